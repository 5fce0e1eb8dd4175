# src/repo_score/cli/score.py

"""CLI command for scoring a cached activity file."""

import os

import click
from rich.console import Console

from ..data.cache import ActivityCache
from ..engine.metrics import ranked_rows
from ..engine.reporter import build_score_table, scoring_legend
from ..engine.scorer import ScoreAnalyzer, ScoringPolicy

console = Console()


@click.command()
@click.argument("cache_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--policy",
    type=click.Choice([p.value for p in ScoringPolicy], case_sensitive=False),
    default=ScoringPolicy.CAPPED.value,
    help="Scoring policy to apply.",
)
def score_command(cache_file: str, policy: str):
    """Scores a cached activity JSON file and prints the ranking."""
    activities = ActivityCache.load_file(cache_file)
    if activities is None:
        raise click.ClickException(f"{cache_file} is not a readable activity cache")

    analyzer = ScoreAnalyzer(ScoringPolicy(policy.lower()))
    scores = analyzer.score_all(activities)
    name = os.path.splitext(os.path.basename(cache_file))[0]

    for line in scoring_legend(analyzer.policy):
        console.print(f"[dim]{line}[/dim]")
    console.print(build_score_table(ranked_rows(scores), f"{name} scores"))
