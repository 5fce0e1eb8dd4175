"""Main entry point for the reposcore CLI."""

import logging

import click

from .cli.analyze import analyze_command
from .cli.score import score_command


@click.group()
@click.version_option(package_name="repo-score")
def main():
    """Repo Score - rank repository contributors by labeled PRs and issues."""
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


main.add_command(analyze_command, name="analyze")
main.add_command(score_command, name="score")


if __name__ == "__main__":
    main()
