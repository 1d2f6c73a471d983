"""Markdown rendering of classified changes.

Output layout, for one version section::

    ### New Features ✨

    #### Api

    - Add endpoint by @alice in [#1](https://github.com/o/r/pull/1)
    - Add filter by @bob in [#2](https://github.com/o/r/pull/2)

    #### Other

    - (ui) Add button by @carol in [#3](https://github.com/o/r/pull/3)

    ### Other

    - Update readme in [abcdef12](https://github.com/o/r/commit/abcdef12...)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from changelog_py.core.changeset import (
    SCOPE_HEADER_LEVEL,
    SUBSECTION_HEADER_LEVEL,
    escape_leading_underscores,
    markdown_header,
)
from changelog_py.core.commits import (
    clean_body,
    extract_changelog_entry,
    extract_scope,
    format_scope_title,
    should_include_body,
    strip_pr_suffix,
    strip_title,
)

if TYPE_CHECKING:
    from changelog_py.core.commits import ChangelogEntryItem, ClassifiedCommit
    from changelog_py.core.policy import ReleasePolicy

SHORT_SHA_LENGTH = 8
MAX_LEFTOVERS = 24
OTHER_TITLE = "Other"
INDENT = "  "


def _indent(text: str) -> list[str]:
    return [f"{INDENT}{line}" if line.strip() else "" for line in text.splitlines()]


def _link(item: ClassifiedCommit, repo_url: str) -> str:
    pr_number = item.correlated.pr_number
    if pr_number:
        return f"[#{pr_number}]({repo_url}/pull/{pr_number})"
    return f"[{item.sha[:SHORT_SHA_LENGTH]}]({repo_url}/commit/{item.sha})"


def _entry_line(text: str, item: ClassifiedCommit, repo_url: str) -> str:
    line = f"- {escape_leading_underscores(text)}"
    author = item.correlated.author
    if author:
        line = f"{line} by @{author}"
    return f"{line} in {_link(item, repo_url)}"


def _included_body(item: ClassifiedCommit) -> str:
    for body in (item.correlated.pr_body, item.correlated.commit.body):
        if should_include_body(body):
            return clean_body(body)
    return ""


def _custom_entries(item: ClassifiedCommit) -> list[ChangelogEntryItem] | None:
    if not item.correlated.pr_number:
        return None
    return extract_changelog_entry(item.correlated.pr_body)


def _display_title(item: ClassifiedCommit, preserve_scope: bool) -> str:
    title = strip_pr_suffix(item.title)
    regex = item.pattern.regex if item.pattern is not None else None
    return strip_title(title, regex, preserve_scope)


def format_entries(
    item: ClassifiedCommit,
    repo_url: str,
    *,
    preserve_scope: bool = True,
) -> list[str]:
    """Render one change as one or more Markdown list entries.

    A "Changelog Entry" section in the pull request body replaces the title
    and may produce several entries. Otherwise the title is used, followed by
    the body when it carries the include marker. Entries of a highlighted
    change are rendered as a blockquote.
    """
    entries: list[str] = []
    custom = _custom_entries(item)
    if custom:
        for entry in custom:
            lines = [_entry_line(entry.text, item, repo_url)]
            lines.extend(f"{INDENT}{line}" if line.strip() else "" for line in entry.nested)
            entries.append("\n".join(lines))
    else:
        lines = [_entry_line(_display_title(item, preserve_scope), item, repo_url)]
        body = _included_body(item)
        if body:
            lines.extend(_indent(body))
        entries.append("\n".join(lines))

    if item.highlight:
        entries = [
            "\n".join(f"> {line}" if line else ">" for line in entry.split("\n"))
            for entry in entries
        ]
    return entries


def render_category(title: str, items: list[ClassifiedCommit], repo_url: str) -> list[str]:
    """Render a category section, grouping entries by scope.

    Scopes shared by at least two entries get their own subsection, sorted
    by title. When any subsection exists, the remaining entries go under
    "Other"; otherwise all entries form a single block in original order.

    Returns:
        Markdown blocks, to be joined by blank lines
    """
    by_scope: dict[str | None, list[ClassifiedCommit]] = {}
    for item in items:
        by_scope.setdefault(extract_scope(item.title), []).append(item)

    headed = sorted(
        (scope for scope, group in by_scope.items() if scope is not None and len(group) >= 2),
        key=format_scope_title,
    )

    blocks = [markdown_header(SUBSECTION_HEADER_LEVEL, title)]
    if not headed:
        blocks.append(_entry_block(items, repo_url, preserve_scope=True))
        return blocks

    for scope in headed:
        blocks.append(markdown_header(SCOPE_HEADER_LEVEL, format_scope_title(scope)))
        blocks.append(_entry_block(by_scope[scope], repo_url, preserve_scope=False))

    rest = [item for item in items if extract_scope(item.title) not in headed]
    if rest:
        blocks.append(markdown_header(SCOPE_HEADER_LEVEL, OTHER_TITLE))
        blocks.append(_entry_block(rest, repo_url, preserve_scope=True))
    return blocks


def _entry_block(items: list[ClassifiedCommit], repo_url: str, *, preserve_scope: bool) -> str:
    entries: list[str] = []
    for item in items:
        entries.extend(format_entries(item, repo_url, preserve_scope=preserve_scope))
    return "\n".join(entries)


def order_categories(
    categories: dict[str, list[ClassifiedCommit]],
    policy: ReleasePolicy,
) -> list[tuple[str, list[ClassifiedCommit]]]:
    """Sort categories into policy order; unknown titles go last, as seen."""
    known = len(policy.categories)
    ranked = []
    for seen, (title, items) in enumerate(categories.items()):
        index = policy.category_index(title)
        ranked.append((index if index is not None else known + seen, title, items))
    ranked.sort(key=lambda entry: entry[0])
    return [(title, items) for _, title, items in ranked]


def render_changelog(
    categories: dict[str, list[ClassifiedCommit]],
    leftovers: list[ClassifiedCommit],
    policy: ReleasePolicy,
    repo_url: str,
    max_leftovers: int = MAX_LEFTOVERS,
) -> str:
    """Render the body of a version section.

    Args:
        categories: Categorized changes with a pull request, by category title
        leftovers: Changes without a category or without a pull request
        policy: Policy providing the category order
        repo_url: Repository web URL for pull request and commit links
        max_leftovers: Maximum number of leftovers to list

    Returns:
        The Markdown text; empty when there is nothing to render
    """
    blocks: list[str] = []
    for title, items in order_categories(categories, policy):
        if items:
            blocks.extend(render_category(title, items, repo_url))

    if leftovers:
        if blocks:
            blocks.append(markdown_header(SUBSECTION_HEADER_LEVEL, OTHER_TITLE))
        shown = leftovers[:max_leftovers]
        if shown:
            blocks.append(_entry_block(shown, repo_url, preserve_scope=True))
        if len(leftovers) > max_leftovers:
            blocks.append(f"_Plus {len(leftovers) - max_leftovers} more_")

    return "\n\n".join(blocks)
