# src/repo_score/data/fetcher.py

"""REST client for GitHub repository issues and pull requests."""

import logging
from datetime import datetime
from typing import Any, Dict, Iterator, Optional

import requests

log = logging.getLogger(__name__)


class GitHubAPIError(Exception):
    """Base error for unexpected GitHub API responses."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(GitHubAPIError):
    """The token is missing, invalid, or lacks access."""


class RateLimitError(GitHubAPIError):
    """The API rate limit has been exhausted."""


class RepositoryNotFoundError(GitHubAPIError):
    """The requested repository does not exist or is not visible."""


class GitHubClient:
    """Thin wrapper around the GitHub REST API, shared by every collector in a run."""

    def __init__(
        self,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        api_url: str = "https://api.github.com",
        per_page: int = 100,
        timeout: float = 30,
    ):
        """Initialize the client."""
        self.api_url = api_url.rstrip("/")
        self.per_page = per_page
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "User-Agent": "repo-score",
            }
        )
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"
        else:
            log.warning("No GitHub token configured; requests are unauthenticated")

    def _check_response(self, response: requests.Response, what: str) -> None:
        """Map error status codes onto the client's exception types."""
        status = response.status_code
        if status < 400:
            return

        remaining = response.headers.get("X-RateLimit-Remaining")
        if status == 429 or (status == 403 and remaining == "0"):
            raise RateLimitError(
                f"GitHub API rate limit exceeded while fetching {what}", status
            )
        if status in (401, 403):
            raise AuthenticationError(
                f"GitHub rejected the credentials while fetching {what}", status
            )
        if status == 404:
            raise RepositoryNotFoundError(f"Repository '{what}' was not found", status)

        try:
            message = response.json().get("message", response.text)
        except ValueError:
            message = response.text
        raise GitHubAPIError(f"GitHub API error {status} for {what}: {message}", status)

    def _get(self, url: str, what: str, params: Optional[Dict[str, Any]] = None):
        log.debug("GET %s params=%s", url, params)
        response = self.session.get(url, params=params, timeout=self.timeout)
        self._check_response(response, what)
        return response

    def get_repository(self, owner: str, repo: str) -> Dict[str, Any]:
        """Fetch repository metadata; raises RepositoryNotFoundError if missing."""
        url = f"{self.api_url}/repos/{owner}/{repo}"
        return self._get(url, f"{owner}/{repo}").json()

    def iter_issues(
        self, owner: str, repo: str, since: Optional[datetime] = None
    ) -> Iterator[Dict[str, Any]]:
        """Yield every issue and pull request of a repository, normalized."""
        url = f"{self.api_url}/repos/{owner}/{repo}/issues"
        params: Optional[Dict[str, Any]] = {
            "state": "all",
            "per_page": self.per_page,
        }
        if since:
            params["since"] = since.strftime("%Y-%m-%dT%H:%M:%SZ")

        while url:
            response = self._get(url, f"{owner}/{repo}", params=params)
            for raw_item in response.json():
                yield self.normalize_item(raw_item)

            # The next link already carries the query string
            url = response.links.get("next", {}).get("url")
            params = None

    @staticmethod
    def normalize_item(raw_item: Dict[str, Any]) -> Dict[str, Any]:
        """Flatten a REST issue/PR payload into the fields the collector needs."""
        user = raw_item.get("user") or {}
        pull_request = raw_item.get("pull_request")

        return {
            "number": raw_item.get("number"),
            "author": user.get("login"),
            "labels": [
                label["name"] if isinstance(label, dict) else label
                for label in raw_item.get("labels") or []
            ],
            "is_pull_request": pull_request is not None,
            "merged": bool(pull_request and pull_request.get("merged_at")),
            "state": raw_item.get("state"),
            "state_reason": raw_item.get("state_reason"),
            "created_at": raw_item.get("created_at"),
        }
