"""Implementation of the 'changelog' and 'bump' commands.

Both commands only read the repository: 'changelog' prints the generated
changelog and 'bump' prints the version bump it implies.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from rich.markup import escape

from changelog_py.cli.context import load_project
from changelog_py.core.bump import calculate_next_version
from changelog_py.core.version import get_version
from changelog_py.exceptions import BumpDeterminationError, ChangelogPyError

if TYPE_CHECKING:
    from rich.console import Console

    from changelog_py.cli.context import ProjectContext
    from changelog_py.core.changelog import ChangelogResult


def run_changelog(
    path: str | None,
    since: str | None,
    max_leftovers: int | None,
    pr_number: int | None,
    console: Console,
    err_console: Console,
) -> None:
    """Run the changelog command.

    Args:
        path: Optional path to project directory
        since: Base revision; defaults to the latest release tag
        max_leftovers: Cap on uncategorized entries; defaults to the config value
        pr_number: Open pull request to preview as a highlighted entry
        console: Console for standard output
        err_console: Console for error output
    """
    project = load_project(path, err_console)
    limit = project.config.changelog.max_leftovers if max_leftovers is None else max_leftovers

    try:
        rev = project.resolve_since(since)
        if pr_number is None:
            result = asyncio.run(project.generator.generate(rev, limit))
        else:
            result = asyncio.run(_preview(project, rev, pr_number, limit))
    except ChangelogPyError as e:
        err_console.print(f"[red]Error generating changelog:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    if result.pr_skipped:
        err_console.print(f"[yellow]Pull request #{pr_number} is excluded from the changelog.[/]")
    if not result.changelog:
        err_console.print("[yellow]No changes found.[/]")
        return
    console.print(result.changelog, markup=False, highlight=False)


async def _preview(
    project: ProjectContext,
    rev: str | None,
    pr_number: int,
    limit: int,
) -> ChangelogResult:
    current_pr = await project.correlator.get_pull_request(pr_number)
    return await project.generator.generate_with_highlight(rev, current_pr, limit)


def current_version_for(rev: str | None) -> str:
    """Version of the last release: from the tag, or empty for a first release."""
    if rev:
        version = get_version(rev)
        if version:
            return version
    return ""


def run_bump(
    path: str | None,
    since: str | None,
    current_version: str | None,
    console: Console,
    err_console: Console,
) -> None:
    """Run the bump command.

    Args:
        path: Optional path to project directory
        since: Base revision; defaults to the latest release tag
        current_version: Version to bump; defaults to the version of the base tag
        console: Console for standard output
        err_console: Console for error output
    """
    project = load_project(path, err_console)
    try:
        rev = project.resolve_since(since)
        bump_type = asyncio.run(
            project.generator.get_auto_bump_type(rev, project.config.changelog.max_leftovers)
        )
    except BumpDeterminationError as e:
        err_console.print(f"[red]Error:[/] {escape(str(e))}")
        raise SystemExit(1) from e
    except ChangelogPyError as e:
        err_console.print(f"[red]Error analyzing commits:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    base = current_version if current_version is not None else current_version_for(rev)
    try:
        next_version = calculate_next_version(base, bump_type)
    except ChangelogPyError as e:
        err_console.print(f"[red]Invalid version:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    console.print(f"Bump: [cyan]{bump_type}[/]")
    console.print(f"Next version: [green]{next_version}[/]")
