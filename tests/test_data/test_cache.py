# tests/test_data/test_cache.py

import json
import os

from repo_score.data.cache import ActivityCache
from repo_score.engine.models import ActivityRecord


def test_path_is_keyed_by_owner_and_repo(tmp_path):
    cache = ActivityCache(str(tmp_path))
    assert cache.path_for("oss2025hnu", "reposcore-py") == os.path.join(
        str(tmp_path), "oss2025hnu_reposcore-py.json"
    )


def test_save_then_load(tmp_path):
    cache = ActivityCache(str(tmp_path / "nested"))
    activities = {"alice": ActivityRecord(pr_feature_fix=2, issue_doc=1)}

    cache.save("org", "repo", activities)

    assert cache.load("org", "repo") == activities
    with open(cache.path_for("org", "repo"), encoding="utf-8") as f:
        assert json.load(f)["alice"]["pr_feature_fix"] == 2


def test_missing_file_is_a_miss(tmp_path):
    assert ActivityCache(str(tmp_path)).load("org", "repo") is None


def test_invalid_counts_are_a_miss(tmp_path):
    cache = ActivityCache(str(tmp_path))
    with open(cache.path_for("org", "repo"), "w", encoding="utf-8") as f:
        json.dump({"alice": {"pr_doc": -3}}, f)

    assert cache.load("org", "repo") is None


def test_unwritable_cache_is_not_fatal(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a directory")

    ActivityCache(str(blocker)).save("org", "repo", {"a": ActivityRecord()})
