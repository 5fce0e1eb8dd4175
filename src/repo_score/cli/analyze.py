# src/repo_score/cli/analyze.py

"""CLI command that scores one or more repositories and writes the reports."""

import logging
from collections import Counter
from typing import Dict, List, Optional, Tuple

import click
from pydantic import ValidationError
from pydantic_settings import SettingsError
from rich.console import Console
from rich.table import Table

from ..config.settings import get_settings
from ..data.cache import ActivityCache
from ..data.collector import CollectionError, RepoDataCollector
from ..data.fetcher import (
    AuthenticationError,
    GitHubAPIError,
    GitHubClient,
    RateLimitError,
    RepositoryNotFoundError,
)
from ..engine.final_reporter import FinalReporter
from ..engine.metrics import ranked_rows
from ..engine.models import ActivityRecord, ScoreModel
from ..engine.reporter import OutputDirectoryError, ReportGenerator
from ..engine.scorer import ScoreAnalyzer, ScoringPolicy
from ..utils.helpers import (
    FormatError,
    UserInfoError,
    filter_users,
    load_user_info,
    parse_date,
    parse_repo_path,
    remap_users,
    validate_formats,
)

console = Console()
log = logging.getLogger(__name__)


def _date_option(ctx, param, value):
    if value is None:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def _format_validation_error(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'settings'}: {err['msg']}"
        for err in error.errors()
    )


def _label_counts(activities: Dict[str, ActivityRecord]) -> Counter:
    counts: Counter = Counter()
    for act in activities.values():
        counts["bug"] += act.pr_feature_fix + act.issue_feature_fix
        counts["documentation"] += act.pr_doc + act.issue_doc
        counts["typo"] += act.pr_typo
    return counts


def _print_user_lookup(label: str, scores: Dict[str, ScoreModel], user: str) -> None:
    for row in ranked_rows(scores):
        if row["user"].lower() == user.lower():
            score = row["score"]
            console.print(
                f"[cyan]{label}[/cyan]: {row['user']} ranked "
                f"[bold]{row['rank']}[/bold] of {len(scores)} with "
                f"[green]{score.total}[/green] points "
                f"(f/b PR {score.pr_feature_fix}, doc PR {score.pr_doc}, "
                f"typo {score.pr_typo}, f/b issue {score.issue_feature_fix}, "
                f"doc issue {score.issue_doc})"
            )
            return
    console.print(f"[yellow]{label}: no scored activity for {user}[/yellow]")


def _print_dry_run(repos, output_dir: str, formats: List[str], use_cache: bool) -> None:
    console.print("[bold]===== Dry run =====[/bold]")
    console.print("Repositories to analyze:")
    for repo_path in repos:
        console.print(f"  - {repo_path}")
    console.print(f"Cache: {'enabled' if use_cache else 'disabled'}")
    console.print("GitHub API calls: yes")
    console.print("Files that would be written:")
    suffixes = {
        "csv": ".csv",
        "text": ".txt",
        "chart": "_chart.png",
    }
    for fmt in formats:
        if fmt in suffixes:
            console.print(f"  - {output_dir}/<owner>_<repo>{suffixes[fmt]}")
        elif fmt == "html":
            console.print(f"  - {output_dir}/report.html")
    console.print("[bold]===== End of dry run =====[/bold]")


def _print_summary(summaries: List[Tuple[str, Counter]], failed: List[Tuple[str, str]]):
    if summaries:
        table = Table(title="Repository label summary", header_style="bold magenta")
        table.add_column("Repo", style="cyan")
        table.add_column("B/F", justify="right")
        table.add_column("Doc", justify="right")
        table.add_column("typo", justify="right")
        for repo_name, counts in summaries:
            table.add_row(
                repo_name,
                str(counts["bug"]),
                str(counts["documentation"]),
                str(counts["typo"]),
            )
        console.print(table)

    if failed:
        console.print("\n[red]Repositories that were not processed:[/red]")
        for repo_path, reason in failed:
            console.print(f"[red]- {repo_path}: {reason}[/red]")


@click.command()
@click.argument("repos", nargs=-1, required=True)
@click.option("-o", "--output", "output_dir", default=None, help="Output directory (default: output).")
@click.option(
    "-f",
    "--format",
    "formats",
    multiple=True,
    help="Output format: text, csv, chart, html or all (repeatable, default: all).",
)
@click.option("-t", "--token", default=None, help="GitHub access token (overrides GITHUB_TOKEN).")
@click.option("--include-user", "include_users", multiple=True, help="Only report these user ids (repeatable).")
@click.option("--since", callback=_date_option, help="Only count items since this date (YYYY-MM-DD).")
@click.option("--until", callback=_date_option, help="Only count items created up to and including this date (YYYY-MM-DD).")
@click.option(
    "--user-info",
    type=click.Path(dir_okay=False),
    default=None,
    help="JSON or CSV file mapping user ids to display names.",
)
@click.option("--use-cache", is_flag=True, help="Read collected activity from the cache when present.")
@click.option("--user", "lookup_user", default=None, help="Only print this user's rank and score; write no files.")
@click.option("--progress/--no-progress", default=True, help="Show a spinner while collecting.")
@click.option(
    "--policy",
    type=click.Choice([p.value for p in ScoringPolicy], case_sensitive=False),
    default=None,
    help="Scoring policy (default: capped).",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option("--dry-run", is_flag=True, help="Print what would be done and exit.")
def analyze_command(
    repos,
    output_dir: Optional[str],
    formats,
    token: Optional[str],
    include_users,
    since,
    until,
    user_info: Optional[str],
    use_cache: bool,
    lookup_user: Optional[str],
    progress: bool,
    policy: Optional[str],
    verbose: bool,
    dry_run: bool,
):
    """Score contributors of one or more OWNER/REPO repositories."""
    logging.getLogger().setLevel(logging.DEBUG if verbose else logging.WARNING)
    try:
        settings = get_settings()
    except ValidationError as e:
        raise click.ClickException(f"Invalid configuration: {_format_validation_error(e)}") from e
    except SettingsError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e

    try:
        selected_formats = validate_formats(formats)
    except FormatError as e:
        raise click.UsageError(str(e)) from e

    output_dir = output_dir or settings.output_dir
    if not formats:
        console.print("[dim]No format given; writing all formats.[/dim]")

    if dry_run:
        _print_dry_run(repos, output_dir, selected_formats, use_cache)
        return

    display_names = None
    if user_info:
        try:
            display_names = load_user_info(user_info)
        except UserInfoError as e:
            raise click.ClickException(str(e)) from e

    analyzer = ScoreAnalyzer(ScoringPolicy(policy or settings.scoring_policy))
    client = GitHubClient(token=token or settings.github_token)
    cache = ActivityCache(settings.cache_dir)

    totals: Dict[str, ScoreModel] = {}
    html_tabs: List[Tuple[str, Dict[str, ScoreModel]]] = []
    summaries: List[Tuple[str, Counter]] = []
    failed: List[Tuple[str, str]] = []

    for repo_path in repos:
        try:
            owner, repo = parse_repo_path(repo_path)
        except ValueError as e:
            console.print(f"[yellow]{e}[/yellow]")
            failed.append((repo_path, "expected owner/repo"))
            continue

        console.print(f"\n[bold]Processing {owner}/{repo}[/bold]")
        collector = RepoDataCollector(
            client,
            owner,
            repo,
            cache=cache,
            rejection_labels=settings.rejection_labels,
            max_retries=settings.max_retries,
            backoff_base=settings.backoff_base,
        )

        try:
            if progress:
                with console.status(f"[bold green]Collecting {owner}/{repo}..."):
                    activities = collector.collect(since, until, use_cache=use_cache)
            else:
                activities = collector.collect(since, until, use_cache=use_cache)
        except RepositoryNotFoundError as e:
            console.print(f"[red]Repository not found: {e}[/red]")
            failed.append((repo_path, "not found"))
            continue
        except (AuthenticationError, RateLimitError) as e:
            console.print(f"[red]{e}[/red]")
            failed.append((repo_path, str(e)))
            continue
        except (CollectionError, GitHubAPIError) as e:
            console.print(f"[red]Collection failed: {e}[/red]")
            failed.append((repo_path, "collection failed"))
            continue

        summaries.append((f"{owner}/{repo}", _label_counts(activities)))

        scores = remap_users(
            filter_users(analyzer.score_all(activities), include_users), display_names
        )
        ScoreAnalyzer.merge_into(totals, scores)
        html_tabs.append((f"{owner}/{repo}", scores))

        if lookup_user:
            _print_user_lookup(f"{owner}/{repo}", scores, lookup_user)
            continue

        try:
            generator = ReportGenerator(scores, f"{owner}/{repo}", output_dir, analyzer.policy)
        except OutputDirectoryError as e:
            raise click.ClickException(str(e)) from e

        try:
            for path in generator.generate(selected_formats):
                console.print(f"[green]Wrote {path}[/green]")
            if "text" in selected_formats and collector.state_summary is not None:
                path = generator.generate_state_summary(collector.state_summary)
                console.print(f"[green]Wrote {path}[/green]")
        except OSError as e:
            console.print(f"[red]Failed to write reports for {owner}/{repo}: {e}[/red]")
            failed.append((repo_path, "report output failed"))

    _print_summary(summaries, failed)

    if not html_tabs:
        console.print("[yellow]No repository was analyzed; skipping total report.[/yellow]")
        raise SystemExit(1)

    if lookup_user:
        _print_user_lookup("Total", totals, lookup_user)
        return

    try:
        total_generator = ReportGenerator(totals, "total", output_dir, analyzer.policy)
        for path in total_generator.generate(selected_formats):
            console.print(f"[green]Wrote {path}[/green]")
        if "html" in selected_formats:
            reporter = FinalReporter(output_dir, analyzer.policy)
            path = reporter.generate(html_tabs, totals)
            console.print(f"[green]Wrote {path}[/green]")
    except (OutputDirectoryError, OSError, ValueError) as e:
        console.print(f"[red]Failed to write the total report: {e}[/red]")
