"""Command line entry point: ``changelog-py``."""

from __future__ import annotations

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

console = Console()
err_console = Console(stderr=True)


def configure_logging(verbose: bool) -> None:
    """Send library logging to the error console."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.version_option(package_name="changelog-py")
def cli(verbose: bool) -> None:
    """Generate changelogs and version bumps from git history."""
    configure_logging(verbose)


@cli.command()
@click.argument("path", required=False)
@click.option("--since", help="Base revision (defaults to the latest release tag).")
@click.option(
    "--max-leftovers",
    type=click.IntRange(min=0),
    help="Maximum number of uncategorized entries to list.",
)
@click.option("--pr", "pr_number", type=int, help="Preview an open pull request as highlighted.")
def changelog(
    path: str | None,
    since: str | None,
    max_leftovers: int | None,
    pr_number: int | None,
) -> None:
    """Print the changelog for changes since the last release."""
    from changelog_py.cli.commands.changelog import run_changelog

    run_changelog(path, since, max_leftovers, pr_number, console, err_console)


@cli.command()
@click.argument("path", required=False)
@click.option("--since", help="Base revision (defaults to the latest release tag).")
@click.option("--current-version", help="Version to bump (defaults to the base tag's version).")
def bump(path: str | None, since: str | None, current_version: str | None) -> None:
    """Print the version bump implied by changes since the last release."""
    from changelog_py.cli.commands.changelog import run_bump

    run_bump(path, since, current_version, console, err_console)


@cli.command()
@click.argument("version")
@click.argument("path", required=False)
@click.option("--since", help="Base revision (defaults to the latest release tag).")
@click.option("--execute", is_flag=True, help="Write the changelog file (default: dry run).")
def prepare(version: str, path: str | None, since: str | None, execute: bool) -> None:
    """Add the section for VERSION ("auto" to derive it) to the changelog."""
    from changelog_py.cli.commands.prepare import run_prepare

    run_prepare(version, path, since, execute, console, err_console)


if __name__ == "__main__":
    cli()
