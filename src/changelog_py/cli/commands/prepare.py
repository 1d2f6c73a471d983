"""Implementation of the 'prepare' command.

The prepare command writes the changelog section for a new version into
the changelog file.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from changelog_py.cli.commands.changelog import current_version_for
from changelog_py.cli.context import load_project
from changelog_py.core.bump import calculate_next_version
from changelog_py.core.changeset import (
    Changeset,
    prepend_changeset,
    remove_changeset,
    remove_version_changeset,
)
from changelog_py.core.version import get_version
from changelog_py.exceptions import ChangelogPyError, InvalidVersionError

if TYPE_CHECKING:
    from rich.console import Console

    from changelog_py.cli.context import ProjectContext
    from changelog_py.core.changelog import ChangelogResult

AUTO_VERSION = "auto"


def update_changelog_text(markdown: str, changeset: Changeset, unreleased_title: str) -> str:
    """Replace the unreleased and any existing section with changeset.

    Args:
        markdown: Current changelog document
        changeset: The new version section
        unreleased_title: Title of the section collecting unreleased changes

    Returns:
        The updated document
    """
    markdown = remove_changeset(markdown, unreleased_title)
    markdown = remove_version_changeset(markdown, changeset.name)
    return prepend_changeset(markdown, changeset)


async def _generate(
    project: ProjectContext,
    version: str,
    rev: str | None,
) -> tuple[str, ChangelogResult]:
    max_leftovers = project.config.changelog.max_leftovers
    if version == AUTO_VERSION:
        bump_type = await project.generator.get_auto_bump_type(rev, max_leftovers)
        next_version = calculate_next_version(current_version_for(rev), bump_type)
    else:
        next_version = get_version(version)
        if next_version is None:
            raise InvalidVersionError(f"Invalid semantic version: {version!r}")
    result = await project.generator.generate(rev, max_leftovers)
    return next_version, result


def run_prepare(
    version: str,
    path: str | None,
    since: str | None,
    execute: bool,
    console: Console,
    err_console: Console,
) -> None:
    """Run the prepare command.

    Args:
        version: New version, or "auto" to derive it from the commits
        path: Optional path to project directory
        since: Base revision; defaults to the latest release tag
        execute: Whether to actually write the changelog file
        console: Console for standard output
        err_console: Console for error output
    """
    project = load_project(path, err_console)
    try:
        rev = project.resolve_since(since)
        next_version, result = asyncio.run(_generate(project, version, rev))
    except ChangelogPyError as e:
        err_console.print(f"[red]Error:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    changeset = Changeset(name=next_version, body=result.changelog)
    changelog_path = project.changelog_path
    display_path = project.config.effective_changelog_path

    mode_str = "[green]EXECUTING[/]" if execute else "[yellow]DRY-RUN[/]"
    console.print(
        f"\n{mode_str} - Preparing [green]{next_version}[/] "
        f"from {rev or 'the beginning of history'} "
        f"({result.total_commits} commit(s))\n"
    )

    if not execute:
        console.print(
            Panel(
                Text(changeset.body) if changeset.body else "[dim]No documented changes.[/]",
                title=f"[yellow]Dry Run Preview: {display_path}[/]",
                border_style="yellow",
            )
        )
        console.print("\n[dim]Run with [cyan]--execute[/] to apply these changes.[/]")
        return

    try:
        existing = changelog_path.read_text(encoding="utf-8") if changelog_path.exists() else ""
        updated = update_changelog_text(
            existing,
            changeset,
            project.config.changelog.unreleased_title,
        )
        changelog_path.write_text(updated, encoding="utf-8")
    except OSError as e:
        err_console.print(f"[red]Error writing {display_path}:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    console.print(f"  [green]✓[/] Updated {display_path}")
    console.print(
        Panel(
            f"[green]Changelog prepared for version {next_version}![/]\n\n"
            "Next steps:\n"
            "  1. Review the changes\n"
            f"  2. Commit: [cyan]git add {display_path} && git commit -m "
            f"'meta: Update changelog for {next_version}'[/]",
            title="[green]Prepare Complete[/]",
            border_style="green",
        )
    )
