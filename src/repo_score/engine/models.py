# src/repo_score/engine/models.py

"""Value objects shared by the collector, the scorer and the reporters."""

from pydantic import BaseModel, ConfigDict, NonNegativeInt


class ActivityRecord(BaseModel):
    """Raw activity counts for one user in one repository."""

    model_config = ConfigDict(frozen=True)

    pr_feature_fix: NonNegativeInt = 0
    pr_doc: NonNegativeInt = 0
    pr_typo: NonNegativeInt = 0
    issue_feature_fix: NonNegativeInt = 0
    issue_doc: NonNegativeInt = 0

    @property
    def pr_count(self) -> int:
        return self.pr_feature_fix + self.pr_doc + self.pr_typo

    @property
    def issue_count(self) -> int:
        return self.issue_feature_fix + self.issue_doc


class ScoreModel(ActivityRecord):
    """Raw activity counts plus the derived score.

    The counters are always the uncapped values; only ``total`` reflects
    the scoring policy.
    """

    total: NonNegativeInt = 0

    def __add__(self, other: "ScoreModel") -> "ScoreModel":
        if not isinstance(other, ScoreModel):
            return NotImplemented
        return ScoreModel(
            pr_feature_fix=self.pr_feature_fix + other.pr_feature_fix,
            pr_doc=self.pr_doc + other.pr_doc,
            pr_typo=self.pr_typo + other.pr_typo,
            issue_feature_fix=self.issue_feature_fix + other.issue_feature_fix,
            issue_doc=self.issue_doc + other.issue_doc,
            total=self.total + other.total,
        )


class RepoStateSummary(BaseModel):
    """Item counts observed during one fresh collection."""

    model_config = ConfigDict(frozen=True)

    merged_prs: NonNegativeInt = 0
    unmerged_prs: NonNegativeInt = 0
    open_issues: NonNegativeInt = 0
    closed_issues: NonNegativeInt = 0
