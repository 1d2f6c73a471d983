"""Commit data model and commit/PR text helpers.

This module holds the data flowing through the changelog pipeline
(Commit -> CorrelatedCommit -> ClassifiedCommit) together with the helpers
that read conventional commit titles and pull request bodies:

- Magic markers (``#skip-changelog``, ``#body-in-changelog``)
- Scope extraction and formatting for ``type(scope): message`` titles
- Title stripping of the conventional commit prefix
- Custom "Changelog Entry" sections in pull request bodies
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from changelog_py.core.policy import Category, CompiledPattern

SKIP_CHANGELOG_MAGIC_WORD = "#skip-changelog"
BODY_IN_CHANGELOG_MAGIC_WORD = "#body-in-changelog"

# GitHub appends the PR number to squash-merged titles: "fix: thing (#123)"
PR_NUMBER_SUFFIX = re.compile(r"\s*\(#(\d+)\)$")

_SCOPE_PATTERN = re.compile(r"^\w+\(([^)]+)\)!?:")

_CHANGELOG_ENTRY_HEADING = re.compile(
    r"^#{2,3}[ \t]+Changelog Entry[ \t]*(?:#+[ \t]*)?$",
    re.IGNORECASE | re.MULTILINE,
)
_ANY_HEADING = re.compile(r"^#{1,6}\s", re.MULTILINE)
_BULLET = re.compile(r"^[-*+]\s+(.*)$")


# =============================================================================
# Data model
# =============================================================================


@dataclass(frozen=True)
class Commit:
    """One non-merge commit from history."""

    sha: str
    title: str
    body: str = ""
    pr: str | None = None

    @property
    def short_sha(self) -> str:
        return self.sha[:8]


@dataclass(frozen=True)
class PullRequestMetadata:
    """Remote data for a commit.

    ``pr_number`` is None when the commit has no pull request; the author
    may still be known in that case.
    """

    author: str | None = None
    pr_number: str | None = None
    pr_title: str | None = None
    pr_body: str | None = None
    labels: tuple[str, ...] = ()


@dataclass(frozen=True)
class CurrentPullRequest:
    """An open pull request previewed in highlight mode."""

    number: int
    title: str
    body: str = ""
    author: str | None = None
    labels: tuple[str, ...] = ()


@dataclass(frozen=True)
class CorrelatedCommit:
    """A commit joined with its (optional) pull request metadata."""

    commit: Commit
    metadata: PullRequestMetadata | None = None

    @property
    def sha(self) -> str:
        return self.commit.sha

    @property
    def author(self) -> str | None:
        return self.metadata.author if self.metadata else None

    @property
    def labels(self) -> frozenset[str]:
        return frozenset(self.metadata.labels) if self.metadata else frozenset()

    @property
    def pr_number(self) -> str | None:
        if self.metadata and self.metadata.pr_number:
            return self.metadata.pr_number
        return self.commit.pr

    @property
    def pr_title(self) -> str | None:
        return self.metadata.pr_title if self.metadata else None

    @property
    def pr_body(self) -> str:
        return (self.metadata.pr_body or "") if self.metadata else ""

    @property
    def title(self) -> str:
        """PR title when known, otherwise the commit title."""
        return self.pr_title or self.commit.title

    @property
    def is_skipped(self) -> bool:
        """True when the commit or PR body carries the skip marker."""
        return (
            SKIP_CHANGELOG_MAGIC_WORD in self.commit.body
            or SKIP_CHANGELOG_MAGIC_WORD in self.pr_body
        )


@dataclass(frozen=True)
class ClassifiedCommit:
    """A correlated commit with its category (None for leftovers)."""

    correlated: CorrelatedCommit
    category: Category | None = None
    pattern: CompiledPattern | None = None
    highlight: bool = False

    @property
    def sha(self) -> str:
        return self.correlated.sha

    @property
    def title(self) -> str:
        return self.correlated.title


@dataclass(frozen=True)
class ChangelogEntryItem:
    """One entry from a "Changelog Entry" section."""

    text: str
    nested: list[str] = field(default_factory=list)


# =============================================================================
# Title helpers
# =============================================================================


def strip_pr_suffix(title: str) -> str:
    """Remove a trailing "(#123)" and surrounding whitespace."""
    return PR_NUMBER_SUFFIX.sub("", title.strip()).strip()


def extract_local_pr(title: str) -> str | None:
    """PR number GitHub appended to a squash-merge title, if any."""
    match = PR_NUMBER_SUFFIX.search(title.strip())
    return match.group(1) if match else None


def extract_scope(title: str) -> str | None:
    """Extract the normalized scope of a conventional commit title.

    Scopes are lowercased and underscores become dashes, so "my_component"
    and "My-Component" fall into the same group.

    >>> extract_scope("feat(My_Api)!: change")
    'my-api'
    """
    match = _SCOPE_PATTERN.match(title)
    if match is None:
        return None
    scope = match.group(1).strip()
    if not scope:
        return None
    return scope.lower().replace("_", "-")


def format_scope_title(scope: str) -> str:
    """Format a scope for use as a heading: "my-component" -> "My Component"."""
    words = [word for word in re.split(r"[-_]", scope) if word]
    return " ".join(word[0].upper() + word[1:] for word in words)


def strip_title(
    title: str,
    pattern: re.Pattern[str] | None,
    preserve_scope: bool,
) -> str:
    """Strip the conventional commit prefix matched by a category pattern.

    Only patterns with a named ``type`` group are used for stripping. The
    remaining text gets its first letter capitalized. With preserve_scope,
    a captured scope is kept as a "(scope) " prefix.
    """
    if pattern is None or "type" not in pattern.groupindex:
        return title
    match = pattern.search(title)
    if match is None or match.group("type") is None:
        return title

    remainder = title[match.end("type") :].strip()
    if not remainder:
        return title
    remainder = remainder[0].upper() + remainder[1:]

    scope = match.groupdict().get("scope")
    if preserve_scope and scope:
        return f"({scope}) {remainder}"
    return remainder


# =============================================================================
# Pull request body helpers
# =============================================================================


def should_include_body(body: str | None) -> bool:
    return bool(body) and BODY_IN_CHANGELOG_MAGIC_WORD in body


def clean_body(body: str) -> str:
    """Body text with the include marker removed."""
    return body.replace(BODY_IN_CHANGELOG_MAGIC_WORD, "").strip()


def extract_changelog_entry(body: str | None) -> list[ChangelogEntryItem] | None:
    """Extract custom changelog entries from a pull request body.

    The entries live under a "Changelog Entry" heading (level 2 or 3) and
    run until the next heading. Every top-level bullet is a separate entry
    with nested bullets kept as its continuation; plain text is a single
    entry.

    Returns:
        The entries, or None if the section is missing or empty
    """
    if not body:
        return None
    text = body.replace("\r\n", "\n")
    heading = _CHANGELOG_ENTRY_HEADING.search(text)
    if heading is None:
        return None

    content = text[heading.end() :]
    next_heading = _ANY_HEADING.search(content)
    if next_heading is not None:
        content = content[: next_heading.start()]
    content = content.strip("\n")
    if not content.strip():
        return None

    return _parse_changelog_content(content)


def _parse_changelog_content(content: str) -> list[ChangelogEntryItem]:
    entries: list[ChangelogEntryItem] = []
    paragraph: list[str] = []
    current: ChangelogEntryItem | None = None

    def flush_paragraph() -> None:
        if paragraph:
            entries.append(ChangelogEntryItem(text=" ".join(paragraph)))
            paragraph.clear()

    for line in content.split("\n"):
        if not line.strip():
            flush_paragraph()
            continue
        bullet = _BULLET.match(line)
        if bullet is not None:
            flush_paragraph()
            current = ChangelogEntryItem(text=bullet.group(1).strip())
            entries.append(current)
        elif current is not None and line[:1].isspace():
            current.nested.append(line.rstrip())
        else:
            current = None
            paragraph.append(line.strip())
    flush_paragraph()

    for entry in entries:
        _dedent_nested(entry.nested)
    return entries


def _dedent_nested(lines: list[str]) -> None:
    if not lines:
        return
    indent = min(len(line) - len(line.lstrip()) for line in lines)
    lines[:] = [line[indent:] for line in lines]
