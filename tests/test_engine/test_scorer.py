# tests/test_engine/test_scorer.py

import itertools

import pytest

from repo_score.engine.models import ActivityRecord, ScoreModel
from repo_score.engine.scorer import ScoreAnalyzer, ScoringPolicy


def test_worked_example_capped(sample_activity):
    """pValid = 3, iValid = 3, total = 2*3 + 1*2 + 3*2."""
    score = ScoreAnalyzer().from_activity(sample_activity)

    assert score.total == 14
    # Raw counters are carried over untouched
    assert score.pr_feature_fix == 2
    assert score.pr_doc == 1
    assert score.issue_feature_fix == 3


def test_worked_example_flat(sample_activity):
    score = ScoreAnalyzer(ScoringPolicy.FLAT).from_activity(sample_activity)
    assert score.total == 2 * 3 + 1 * 2 + 3 * 2


def test_all_zero_activity_scores_zero():
    assert ScoreAnalyzer().from_activity(ActivityRecord()).total == 0


def test_doc_and_typo_capped_without_feature_prs():
    """With no f/b PRs, doc+typo credit is capped at 3 units, doc first."""
    act = ActivityRecord(pr_doc=10, pr_typo=10)
    score = ScoreAnalyzer().from_activity(act)

    assert score.total == 3 * ScoreAnalyzer.P_D
    assert score.pr_doc == 10
    assert score.pr_typo == 10


def test_typo_gets_remaining_credit():
    # pValid = 1 + min(1 + 5, 3) = 4 -> fb 1, doc 1, typo 2
    act = ActivityRecord(pr_feature_fix=1, pr_doc=1, pr_typo=5)
    assert ScoreAnalyzer().from_activity(act).total == 3 + 2 + 2


def test_issue_cap_boundary():
    """pValid = 2 caps issue credit at 8 units."""
    act = ActivityRecord(pr_feature_fix=2, issue_feature_fix=100)
    score = ScoreAnalyzer().from_activity(act)

    assert score.total == 2 * 3 + 8 * 2


def test_issue_only_user_scores_zero():
    act = ActivityRecord(issue_feature_fix=5, issue_doc=5)
    assert ScoreAnalyzer().from_activity(act).total == 0


def test_issue_credit_prefers_feature_fix():
    # pValid = 1, iValid = min(10, 4) = 4, all credited as f/b
    act = ActivityRecord(pr_feature_fix=1, issue_feature_fix=5, issue_doc=5)
    assert ScoreAnalyzer().from_activity(act).total == 3 + 4 * 2


def test_scoring_is_pure(sample_activity):
    analyzer = ScoreAnalyzer()
    assert analyzer.from_activity(sample_activity) == analyzer.from_activity(
        sample_activity
    )


def test_total_is_non_negative_and_monotonic_in_feature_prs():
    analyzer = ScoreAnalyzer()
    for doc, typo, ifb, idoc in itertools.product(range(0, 7, 2), range(0, 5, 2), (0, 9), (0, 5)):
        previous = -1
        for fb in range(0, 6):
            act = ActivityRecord(
                pr_feature_fix=fb, pr_doc=doc, pr_typo=typo,
                issue_feature_fix=ifb, issue_doc=idoc,
            )
            total = analyzer.from_activity(act).total
            assert total >= 0
            assert total >= previous
            previous = total


def test_capped_never_exceeds_flat():
    for counts in itertools.product(range(0, 4), repeat=5):
        act = ActivityRecord(
            pr_feature_fix=counts[0], pr_doc=counts[1], pr_typo=counts[2],
            issue_feature_fix=counts[3], issue_doc=counts[4],
        )
        assert ScoreAnalyzer.capped_total(act) <= ScoreAnalyzer.flat_total(act)


def test_negative_counts_are_rejected():
    with pytest.raises(ValueError):
        ActivityRecord(pr_doc=-1)


def test_score_all_scores_every_user(sample_activity):
    scores = ScoreAnalyzer().score_all(
        {"alice": sample_activity, "bob": ActivityRecord(pr_typo=1)}
    )
    assert scores["alice"].total == 14
    assert scores["bob"].total == 1


def test_aggregate_sums_totals_instead_of_rescoring():
    """Per-repository caps survive aggregation."""
    analyzer = ScoreAnalyzer()
    repo1 = analyzer.score_all({"dan": ActivityRecord(pr_doc=3)})
    repo2 = analyzer.score_all({"dan": ActivityRecord(pr_doc=3)})

    combined = ScoreAnalyzer.aggregate([repo1, repo2])["dan"]

    assert combined.pr_doc == 6
    assert combined.total == repo1["dan"].total + repo2["dan"].total == 12
    # Rescoring the summed counters would have capped at 3 doc PRs
    assert analyzer.from_activity(ActivityRecord(pr_doc=6)).total == 6


def test_aggregate_adds_every_field():
    a = ScoreModel(pr_feature_fix=1, pr_doc=2, pr_typo=3, issue_feature_fix=4, issue_doc=5, total=10)
    b = ScoreModel(pr_feature_fix=5, pr_doc=4, pr_typo=3, issue_feature_fix=2, issue_doc=1, total=7)

    combined = ScoreAnalyzer.aggregate([{"u": a}, {"u": b, "v": b}])

    assert combined["u"] == ScoreModel(
        pr_feature_fix=6, pr_doc=6, pr_typo=6, issue_feature_fix=6, issue_doc=6, total=17
    )
    assert combined["v"] == b


def test_aggregate_is_order_independent(sample_scores):
    repos = [
        {"alice": sample_scores["alice"], "bob": sample_scores["bob"]},
        {"bob": sample_scores["bob"], "carol": sample_scores["carol"]},
        {"alice": sample_scores["carol"]},
    ]
    expected = ScoreAnalyzer.aggregate(repos)
    for order in itertools.permutations(repos):
        assert ScoreAnalyzer.aggregate(order) == expected

    # Folding a pre-combined pair gives the same result
    nested = ScoreAnalyzer.aggregate([ScoreAnalyzer.aggregate(repos[:2]), repos[2]])
    assert nested == expected


def test_merge_into_updates_running_totals(sample_scores):
    totals = {}
    ScoreAnalyzer.merge_into(totals, {"alice": sample_scores["alice"]})
    ScoreAnalyzer.merge_into(totals, {"alice": sample_scores["alice"]})

    assert totals["alice"].total == 28
    # Inputs are never mutated
    assert sample_scores["alice"].total == 14


def test_unknown_policy_is_rejected():
    with pytest.raises(ValueError):
        ScoreAnalyzer("weighted")
