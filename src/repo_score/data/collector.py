# src/repo_score/data/collector.py

"""Collects per-user activity counts for one repository."""

import logging
import time
from collections import Counter, defaultdict
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

import requests

from ..engine.models import ActivityRecord, RepoStateSummary
from ..utils.helpers import parse_datetime
from .cache import ActivityCache
from .fetcher import (
    AuthenticationError,
    GitHubAPIError,
    GitHubClient,
    RateLimitError,
    RepositoryNotFoundError,
)

log = logging.getLogger(__name__)

FEATURE_LABELS = ("bug", "enhancement")
DOC_LABELS = ("documentation",)
TYPO_LABEL = "typo"
DEFAULT_REJECTION_LABELS = ("wontfix", "invalid", "duplicate")

# Not worth retrying within a run
FATAL_ERRORS = (AuthenticationError, RateLimitError, RepositoryNotFoundError)


class CollectionError(Exception):
    """Raised when a repository could not be collected after every retry."""


def classify_first_label(labels: Sequence[str], is_pull_request: bool) -> Optional[str]:
    """Returns the activity category for an item, judged by its first label only.

    One of "feature_fix", "doc", "typo" or None. Typo only applies to PRs.
    """
    if not labels:
        return None
    label = labels[0]
    if label in FEATURE_LABELS:
        return "feature_fix"
    if label in DOC_LABELS:
        return "doc"
    if is_pull_request and label == TYPO_LABEL:
        return "typo"
    return None


class RepoDataCollector:
    """Counts merged PRs and qualifying issues per user for one repository."""

    def __init__(
        self,
        client: GitHubClient,
        owner: str,
        repo: str,
        cache: Optional[ActivityCache] = None,
        rejection_labels: Iterable[str] = DEFAULT_REJECTION_LABELS,
        max_retries: int = 3,
        backoff_base: float = 1.0,
        classify: Callable[[Sequence[str], bool], Optional[str]] = classify_first_label,
    ):
        self.client = client
        self.owner = owner
        self.repo = repo
        self.cache = cache or ActivityCache()
        self.rejection_labels = {label.lower() for label in rejection_labels}
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.classify = classify
        self.state_summary: Optional[RepoStateSummary] = None

    def collect(
        self,
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
        use_cache: bool = False,
    ) -> Dict[str, ActivityRecord]:
        """Returns user -> ActivityRecord, from the cache or a fresh fetch."""
        if use_cache:
            cached = self.cache.load(self.owner, self.repo)
            if cached is not None:
                log.info("Loaded %s/%s from cache", self.owner, self.repo)
                self.state_summary = None
                return cached

        activities = self._fetch_with_retry(since, until)
        self.cache.save(self.owner, self.repo, activities)
        return activities

    def _fetch_with_retry(
        self, since: Optional[datetime], until: Optional[datetime]
    ) -> Dict[str, ActivityRecord]:
        for attempt in range(self.max_retries):
            try:
                self.client.get_repository(self.owner, self.repo)
                items = list(self.client.iter_issues(self.owner, self.repo, since=since))
                return self._count(items, until)
            except FATAL_ERRORS:
                raise
            except (GitHubAPIError, requests.RequestException, ValueError) as e:
                log.warning(
                    "Request for %s/%s failed, attempt %d/%d: %s",
                    self.owner,
                    self.repo,
                    attempt + 1,
                    self.max_retries,
                    e,
                )
                if attempt == self.max_retries - 1:
                    raise CollectionError(
                        f"Giving up on {self.owner}/{self.repo} after "
                        f"{self.max_retries} attempts: {e}"
                    ) from e
                time.sleep(self.backoff_base * 2**attempt)

        raise CollectionError(f"Giving up on {self.owner}/{self.repo}")

    def _count(
        self, items: List[Dict[str, Any]], until: Optional[datetime]
    ) -> Dict[str, ActivityRecord]:
        """Single pass over the items; counters are frozen into records at the end."""
        # An --until date includes that whole day
        cutoff = until + timedelta(days=1) if until else None
        counts: Dict[str, Counter] = defaultdict(Counter)
        stats: Counter = Counter()

        for item in items:
            author = item.get("author")
            if not author:
                continue
            if cutoff:
                created = parse_datetime(item.get("created_at"))
                if created and created >= cutoff:
                    continue
            labels = item.get("labels") or []
            if any(label.lower() in self.rejection_labels for label in labels):
                continue

            category = self.classify(labels, item["is_pull_request"])

            if item["is_pull_request"]:
                if not item.get("merged"):
                    stats["unmerged_prs"] += 1
                    continue
                stats["merged_prs"] += 1
                if category:
                    counts[author][f"pr_{category}"] += 1
            else:
                if item.get("state") == "closed":
                    stats["closed_issues"] += 1
                    if item.get("state_reason") != "completed":
                        continue
                else:
                    stats["open_issues"] += 1
                if category in ("feature_fix", "doc"):
                    counts[author][f"issue_{category}"] += 1

        self.state_summary = RepoStateSummary(**stats)
        log.debug("%s/%s: %s", self.owner, self.repo, self.state_summary)

        return {
            author: ActivityRecord(**counter)
            for author, counter in counts.items()
            if sum(counter.values()) > 0
        }
