"""Pytest configuration for the repo score analyzer."""

from typing import Any, Dict, List

import pytest

from repo_score.engine.models import ActivityRecord, ScoreModel


def make_item(
    number: int,
    author: str,
    labels: List[str],
    is_pr: bool,
    merged: bool = False,
    state: str = "open",
    state_reason: str | None = None,
    created_at: str = "2024-03-01T12:00:00Z",
) -> Dict[str, Any]:
    """Builds a normalized issue/PR item as GitHubClient.iter_issues yields it."""
    return {
        "number": number,
        "author": author,
        "labels": labels,
        "is_pull_request": is_pr,
        "merged": merged,
        "state": state,
        "state_reason": state_reason,
        "created_at": created_at,
    }


class FakeClient:
    """Stands in for GitHubClient; raises the queued errors before succeeding."""

    def __init__(self, items=None, errors=None):
        self.items = items or []
        self.errors = list(errors or [])
        self.repo_calls = 0
        self.since_args = []

    def get_repository(self, owner, repo):
        self.repo_calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return {"full_name": f"{owner}/{repo}"}

    def iter_issues(self, owner, repo, since=None):
        self.since_args.append(since)
        return iter(self.items)


@pytest.fixture
def sample_items() -> List[Dict[str, Any]]:
    """A small repository history covering every counting rule."""
    return [
        # alice: two merged f/b PRs, one merged doc PR, one unmerged PR
        make_item(1, "alice", ["bug"], True, merged=True, state="closed"),
        make_item(2, "alice", ["enhancement", "documentation"], True, merged=True, state="closed"),
        make_item(3, "alice", ["documentation"], True, merged=True, state="closed"),
        make_item(4, "alice", ["bug"], True, merged=False, state="closed"),
        # bob: a typo PR, an open f/b issue, a completed doc issue
        make_item(5, "bob", ["typo"], True, merged=True, state="closed"),
        make_item(6, "bob", ["bug"], False, state="open"),
        make_item(7, "bob", ["documentation"], False, state="closed", state_reason="completed"),
        # bob: closed as not planned, not counted
        make_item(8, "bob", ["bug"], False, state="closed", state_reason="not_planned"),
        # carol: rejected by label, and an unlabeled issue
        make_item(9, "carol", ["bug", "duplicate"], True, merged=True, state="closed"),
        make_item(10, "carol", [], False, state="open"),
    ]


@pytest.fixture
def sample_scores() -> Dict[str, ScoreModel]:
    return {
        "alice": ScoreModel(pr_feature_fix=2, pr_doc=1, issue_feature_fix=3, total=14),
        "bob": ScoreModel(pr_typo=1, issue_feature_fix=1, issue_doc=1, total=4),
        "carol": ScoreModel(pr_doc=2, total=4),
        "dave": ScoreModel(issue_doc=0, total=0),
    }


@pytest.fixture
def sample_activity() -> ActivityRecord:
    return ActivityRecord(
        pr_feature_fix=2, pr_doc=1, pr_typo=0, issue_feature_fix=3, issue_doc=0
    )


@pytest.fixture
def mock_env_vars(monkeypatch, tmp_path):
    """Mock environment variables for testing."""
    monkeypatch.setenv("GITHUB_TOKEN", "test_token")
    monkeypatch.setenv("CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("OUTPUT_DIR", str(tmp_path / "output"))
    monkeypatch.setenv("BACKOFF_BASE", "0")
