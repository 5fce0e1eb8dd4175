# src/repo_score/engine/reporter.py

"""Writes score reports for one repository or for the cross-repository total."""

import csv
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
from rich.console import Console  # noqa: E402
from rich.table import Table  # noqa: E402

from .metrics import ranked_rows  # noqa: E402
from .models import RepoStateSummary, ScoreModel  # noqa: E402
from .scorer import ScoreAnalyzer, ScoringPolicy  # noqa: E402

log = logging.getLogger(__name__)

CSV_HEADER = [
    "User",
    "f/b_PR",
    "doc_PR",
    "typo",
    "f/b_issue",
    "doc_issue",
    "PR_rate",
    "IS_rate",
    "total",
]


class OutputDirectoryError(Exception):
    """Raised when the output directory cannot be created."""


def scoring_legend(policy: ScoringPolicy) -> List[str]:
    """Human-readable description of the point values and the active policy."""
    lines = [
        f"Points: f/b PR={ScoreAnalyzer.P_FB}, doc PR={ScoreAnalyzer.P_D}, "
        f"typo PR={ScoreAnalyzer.P_T}, f/b issue={ScoreAnalyzer.I_FB}, "
        f"doc issue={ScoreAnalyzer.I_D}",
        f"Policy: {ScoringPolicy(policy).value}",
    ]
    if ScoringPolicy(policy) is ScoringPolicy.CAPPED:
        lines.append(
            f"Doc+typo PRs credited up to {ScoreAnalyzer.PR_SUPPORT_RATIO}x f/b PRs "
            f"(min {ScoreAnalyzer.PR_SUPPORT_RATIO}); issues up to "
            f"{ScoreAnalyzer.ISSUE_RATIO}x credited PRs"
        )
    return lines


def build_score_table(rows: List[Dict[str, Any]], title: str) -> Table:
    """Builds the ranked rich table shared by the text report and the console."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Rank", justify="right")
    table.add_column("User", style="cyan")
    for column in CSV_HEADER[1:-1]:
        table.add_column(column, justify="right")
    table.add_column("total", justify="right", style="green")

    for row in rows:
        score = row["score"]
        table.add_row(
            str(row["rank"]),
            row["user"],
            str(score.pr_feature_fix),
            str(score.pr_doc),
            str(score.pr_typo),
            str(score.issue_feature_fix),
            str(score.issue_doc),
            f"{row['pr_rate']:.1f}",
            f"{row['is_rate']:.1f}",
            str(score.total),
        )
    return table


class ReportGenerator:
    """Writes one repository's (or the cross-repository total's) score reports."""

    def __init__(
        self,
        scores: Dict[str, ScoreModel],
        repo_name: str,
        output_dir: str = "output",
        policy: ScoringPolicy = ScoringPolicy.CAPPED,
    ):
        """
        Initialize the report generator.

        Args:
            scores: Mapping of user id to score.
            repo_name: Name used for titles, usually "owner/repo". Output files
                are named after it with "/" replaced by "_".
            output_dir: Directory the reports are written to. Created if missing.
            policy: Scoring policy the totals were computed with.
        """
        self.scores = scores
        self.repo_name = repo_name
        self.file_stem = repo_name.replace("/", "_")
        self.output_dir = output_dir
        self.policy = ScoringPolicy(policy)
        self.rows = ranked_rows(scores)

        try:
            os.makedirs(output_dir, exist_ok=True)
        except OSError as e:
            raise OutputDirectoryError(
                f"Cannot create output directory {output_dir}: {e}"
            ) from e

    def _path(self, suffix: str) -> str:
        return os.path.join(self.output_dir, f"{self.file_stem}{suffix}")

    def generate_csv(self) -> str:
        """Writes <stem>.csv: legend comments, header, one row per user."""
        path = self._path(".csv")
        generated_at = datetime.now(timezone.utc).isoformat(timespec="seconds")

        with open(path, "w", encoding="utf-8", newline="") as f:
            for line in scoring_legend(self.policy):
                f.write(f"# {line}\n")
            f.write(f"# Repository: {self.repo_name}\n")
            f.write(f"# Users: {len(self.rows)}\n")
            f.write(f"# Total score: {sum(s.total for s in self.scores.values())}\n")
            f.write(f"# Generated at: {generated_at}\n")

            writer = csv.writer(f)
            writer.writerow(CSV_HEADER)
            for row in self.rows:
                score = row["score"]
                writer.writerow(
                    [
                        row["user"],
                        score.pr_feature_fix,
                        score.pr_doc,
                        score.pr_typo,
                        score.issue_feature_fix,
                        score.issue_doc,
                        f"{row['pr_rate']:.1f}",
                        f"{row['is_rate']:.1f}",
                        score.total,
                    ]
                )

        log.info("Wrote %s", path)
        return path

    def build_table(self) -> Table:
        return build_score_table(self.rows, f"{self.repo_name} scores")

    def generate_table(self) -> str:
        """Writes <stem>.txt with the ranked table as plain text."""
        path = self._path(".txt")
        with open(path, "w", encoding="utf-8") as f:
            console = Console(file=f, width=120, color_system=None, force_terminal=False)
            for line in scoring_legend(self.policy):
                console.print(f"# {line}", markup=False)
            console.print(self.build_table())

        log.info("Wrote %s", path)
        return path

    def generate_chart(self) -> Optional[str]:
        """Writes <stem>_chart.png, a horizontal bar per user, highest total on top."""
        if not self.rows:
            log.info("No scores for %s, skipping chart", self.repo_name)
            return None

        path = self._path("_chart.png")
        labels = [f"{row['rank']}. {row['user']}" for row in self.rows]
        totals = [row["score"].total for row in self.rows]

        fig, ax = plt.subplots(figsize=(10, max(2.5, 0.4 * len(self.rows) + 1)))
        try:
            bars = ax.barh(range(len(totals)), totals, color="steelblue", alpha=0.8)
            ax.set_yticks(range(len(totals)))
            ax.set_yticklabels(labels)
            ax.invert_yaxis()
            ax.set_xlabel("Score")
            ax.set_title(f"{self.repo_name} contribution scores", fontweight="bold")
            ax.grid(axis="x", alpha=0.3)
            for bar, total in zip(bars, totals):
                ax.text(
                    bar.get_width(),
                    bar.get_y() + bar.get_height() / 2,
                    f" {total}",
                    va="center",
                )
            fig.tight_layout()
            fig.savefig(path, dpi=150, bbox_inches="tight")
        finally:
            plt.close(fig)

        log.info("Wrote %s", path)
        return path

    def generate_state_summary(self, summary: RepoStateSummary) -> str:
        """Writes <stem>_state.txt with the PR and issue state counts."""
        path = self._path("_state.txt")
        with open(path, "w", encoding="utf-8") as f:
            f.write(f"=== {self.repo_name} state summary ===\n")
            f.write(f"Merged PRs:    {summary.merged_prs}\n")
            f.write(f"Unmerged PRs:  {summary.unmerged_prs}\n")
            f.write(f"Open issues:   {summary.open_issues}\n")
            f.write(f"Closed issues: {summary.closed_issues}\n")

        log.info("Wrote %s", path)
        return path

    def generate(self, formats: List[str]) -> List[str]:
        """Writes every selected per-file format. HTML is rendered for the whole run."""
        written = []
        if "csv" in formats:
            written.append(self.generate_csv())
        if "text" in formats:
            written.append(self.generate_table())
        if "chart" in formats:
            chart = self.generate_chart()
            if chart:
                written.append(chart)
        return written
