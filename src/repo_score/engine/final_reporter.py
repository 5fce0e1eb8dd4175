# src/repo_score/engine/final_reporter.py

"""Renders the multi-tab HTML report covering every repository of a run."""

import logging
import os
from datetime import datetime, timezone
from typing import Dict, List, Sequence, Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape

from .metrics import ranked_rows
from .models import ScoreModel
from .reporter import OutputDirectoryError, scoring_legend
from .scorer import ScoringPolicy

log = logging.getLogger(__name__)

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates")


class FinalReporter:
    """Generates report.html with one tab per repository plus a total tab."""

    def __init__(
        self,
        output_dir: str = "output",
        policy: ScoringPolicy = ScoringPolicy.CAPPED,
        template_name: str = "report.html.j2",
    ):
        self.output_dir = output_dir
        self.policy = ScoringPolicy(policy)
        self.env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            autoescape=select_autoescape(["html", "j2"]),
        )
        self.template = self.env.get_template(template_name)

    def build_tabs(
        self, repos: Sequence[Tuple[str, Dict[str, ScoreModel]]]
    ) -> List[Dict[str, object]]:
        """Turns (label, scores) pairs into template-ready tabs."""
        return [
            {
                "id": f"tab-{index}",
                "label": label,
                "rows": ranked_rows(scores),
                "total_score": sum(score.total for score in scores.values()),
            }
            for index, (label, scores) in enumerate(repos)
        ]

    def render(
        self,
        repos: Sequence[Tuple[str, Dict[str, ScoreModel]]],
        totals: Dict[str, ScoreModel] | None = None,
    ) -> str:
        """Renders the HTML for the repositories of this run, in the given order."""
        tabs = list(repos)
        if totals is not None:
            tabs.append(("Total", totals))

        return self.template.render(
            tabs=self.build_tabs(tabs),
            legend=scoring_legend(self.policy),
            generated_at=datetime.now(timezone.utc).isoformat(timespec="seconds"),
        )

    def generate(
        self,
        repos: Sequence[Tuple[str, Dict[str, ScoreModel]]],
        totals: Dict[str, ScoreModel] | None = None,
        filename: str = "report.html",
    ) -> str:
        """Writes the HTML report and returns its path."""
        try:
            os.makedirs(self.output_dir, exist_ok=True)
        except OSError as e:
            raise OutputDirectoryError(
                f"Cannot create output directory {self.output_dir}: {e}"
            ) from e

        path = os.path.join(self.output_dir, filename)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.render(repos, totals))

        log.info("Wrote %s", path)
        return path
