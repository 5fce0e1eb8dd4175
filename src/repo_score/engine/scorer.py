# src/repo_score/engine/scorer.py

"""Deterministic contribution scoring with an anti-farming cap."""

from enum import Enum
from typing import Dict, Iterable, Mapping

from .models import ActivityRecord, ScoreModel


class ScoringPolicy(str, Enum):
    """Available scoring formulas."""

    CAPPED = "capped"
    FLAT = "flat"


class ScoreAnalyzer:
    """Turns activity records into scores and folds scores across repositories."""

    # Point values per credited unit
    P_FB = 3
    P_D = 2
    P_T = 1
    I_FB = 2
    I_D = 1

    # Doc/typo PRs are credited up to this multiple of feature/bug-fix PRs
    PR_SUPPORT_RATIO = 3
    # Issues are credited up to this multiple of validated PRs
    ISSUE_RATIO = 4

    def __init__(self, policy: ScoringPolicy = ScoringPolicy.CAPPED):
        self.policy = ScoringPolicy(policy)

    @classmethod
    def flat_total(cls, act: ActivityRecord) -> int:
        """Plain weighted sum of every raw counter."""
        return (
            act.pr_feature_fix * cls.P_FB
            + act.pr_doc * cls.P_D
            + act.pr_typo * cls.P_T
            + act.issue_feature_fix * cls.I_FB
            + act.issue_doc * cls.I_D
        )

    @classmethod
    def capped_total(cls, act: ActivityRecord) -> int:
        """Weighted sum over the credited portion of each counter.

        Documentation and typo PRs are credited up to three times the number
        of feature/bug-fix PRs (or three, for users with none), and issues up
        to four times the validated PR count. Credit is handed out to the
        feature/bug-fix categories first.
        """
        p_valid = act.pr_feature_fix + min(
            act.pr_doc + act.pr_typo,
            cls.PR_SUPPORT_RATIO * max(act.pr_feature_fix, 1),
        )
        i_valid = min(act.issue_feature_fix + act.issue_doc, cls.ISSUE_RATIO * p_valid)

        p_fb = min(act.pr_feature_fix, p_valid)
        p_doc = min(act.pr_doc, p_valid - act.pr_feature_fix)
        p_typo = p_valid - p_fb - p_doc

        i_fb = min(act.issue_feature_fix, i_valid)
        i_doc = i_valid - i_fb

        return (
            p_fb * cls.P_FB
            + p_doc * cls.P_D
            + p_typo * cls.P_T
            + i_fb * cls.I_FB
            + i_doc * cls.I_D
        )

    def from_activity(self, act: ActivityRecord) -> ScoreModel:
        """Scores a single activity record, keeping its raw counters."""
        if self.policy is ScoringPolicy.FLAT:
            total = self.flat_total(act)
        else:
            total = self.capped_total(act)

        return ScoreModel(**act.model_dump(), total=total)

    def score_all(self, activities: Mapping[str, ActivityRecord]) -> Dict[str, ScoreModel]:
        """Scores every user of one repository."""
        return {user: self.from_activity(act) for user, act in activities.items()}

    @staticmethod
    def merge_into(
        totals: Dict[str, ScoreModel], scores: Mapping[str, ScoreModel]
    ) -> Dict[str, ScoreModel]:
        """Folds one repository's scores into a running totals map.

        Totals are summed as-is; they are never recomputed from the summed
        counters, so each repository's cap stays in effect.
        """
        for user, score in scores.items():
            if user in totals:
                totals[user] = totals[user] + score
            else:
                totals[user] = score
        return totals

    @classmethod
    def aggregate(
        cls, per_repo: Iterable[Mapping[str, ScoreModel]]
    ) -> Dict[str, ScoreModel]:
        """Combines per-repository score maps into one cross-repository map."""
        totals: Dict[str, ScoreModel] = {}
        for scores in per_repo:
            cls.merge_into(totals, scores)
        return totals
