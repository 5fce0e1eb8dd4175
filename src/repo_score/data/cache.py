# src/repo_score/data/cache.py

"""Flat JSON cache of collected activity, one file per repository."""

import json
import logging
import os
from typing import Dict, Optional

from pydantic import ValidationError

from ..engine.models import ActivityRecord

log = logging.getLogger(__name__)


class ActivityCache:
    """Stores each repository's user -> ActivityRecord map as JSON. Entries never expire."""

    def __init__(self, cache_dir: str = "cache"):
        self.cache_dir = cache_dir

    def path_for(self, owner: str, repo: str) -> str:
        return os.path.join(self.cache_dir, f"{owner}_{repo}.json")

    def load(self, owner: str, repo: str) -> Optional[Dict[str, ActivityRecord]]:
        """Returns the cached activities, or None when missing or unreadable."""
        return self.load_file(self.path_for(owner, repo))

    @staticmethod
    def load_file(path: str) -> Optional[Dict[str, ActivityRecord]]:
        if not os.path.exists(path):
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            return {
                user: ActivityRecord.model_validate(counts)
                for user, counts in raw.items()
            }
        except (OSError, ValueError, AttributeError, ValidationError) as e:
            log.warning("Ignoring unreadable cache file %s: %s", path, e)
            return None

    def save(self, owner: str, repo: str, activities: Dict[str, ActivityRecord]) -> None:
        """Writes the activities; failures are logged, not raised."""
        path = self.path_for(owner, repo)
        try:
            os.makedirs(self.cache_dir, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(
                    {user: act.model_dump() for user, act in activities.items()},
                    f,
                    indent=2,
                )
        except OSError as e:
            log.warning("Could not write cache file %s: %s", path, e)
            return
        log.debug("Cached %d users to %s", len(activities), path)
