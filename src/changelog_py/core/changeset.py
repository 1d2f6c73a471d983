"""Locate, remove and prepend version sections in a changelog document.

Two heading styles are recognized for version sections::

    ## 1.2.3

and::

    1.2.3
    -----

A heading may carry a trailing date in parentheses, e.g.
``## 1.2.3 (2024-01-01)``; it is ignored when comparing versions.

All operations are plain text splices: the rest of the document is kept
byte for byte.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from changelog_py.core.version import get_version

DEFAULT_UNRELEASED_TITLE = "Unreleased"
DEFAULT_CHANGESET_BODY = "- No documented changes."

VERSION_HEADER_LEVEL = 2
SUBSECTION_HEADER_LEVEL = VERSION_HEADER_LEVEL + 1
SCOPE_HEADER_LEVEL = SUBSECTION_HEADER_LEVEL + 1

# Groups: 1 = indentation, 2 = ATX title, 3 = Setext title
_HEADER_PATTERN = re.compile(
    rf"^( *)(?:#{{{VERSION_HEADER_LEVEL}}} +([^\n]+?) *(?:#{{{VERSION_HEADER_LEVEL}}})?"
    r"|([^\n]+)\n *(?:-){2,}) *(?:\n+|$)",
    re.MULTILINE,
)

_TRAILING_PARENS = re.compile(r"\(.*\)$")


@dataclass(frozen=True)
class Changeset:
    """A named section of a changelog, one per released version."""

    name: str
    body: str


@dataclass(frozen=True)
class _ChangesetLocation:
    start: re.Match[str]
    end: re.Match[str] | None

    @property
    def padding(self) -> str:
        return self.start.group(1) or ""

    @property
    def title(self) -> str:
        return _heading_title(self.start)

    @property
    def is_setext(self) -> bool:
        return self.start.group(3) is not None


def escape_markdown_pound(text: str) -> str:
    """Escape '#' so that text cannot turn into a Markdown heading."""
    return text.replace("#", "&#35;")


def markdown_header(level: int, text: str) -> str:
    """Render an ATX heading of the given level."""
    return f"{'#' * level} {escape_markdown_pound(text)}"


def escape_leading_underscores(text: str) -> str:
    """Escape the first underscore that starts a word.

    Keeps titles like ``_meta`` from being rendered as emphasis.
    """
    return re.sub(r"(^| )_", r"\1\\_", text, count=1)


def _heading_title(match: re.Match[str]) -> str:
    return match.group(2) or match.group(3)


def _strip_date(title: str) -> str:
    return _TRAILING_PARENS.sub("", title).strip()


def _locate_changeset(
    markdown: str,
    predicate: Callable[[str], bool],
) -> _ChangesetLocation | None:
    headers = _HEADER_PATTERN.finditer(markdown)
    for match in headers:
        if predicate(_heading_title(match)):
            return _ChangesetLocation(start=match, end=next(headers, None))
    return None


def _extract_changeset(markdown: str, location: _ChangesetLocation) -> Changeset:
    start = location.start.end()
    end = location.end.start() if location.end else len(markdown)
    return Changeset(name=_strip_date(location.title), body=markdown[start:end].strip())


def find_changeset(
    markdown: str,
    tag: str,
    fallback_to_unreleased: bool = False,
) -> Changeset | None:
    """Find the changeset for a version in a changelog.

    Args:
        markdown: The full changelog document
        tag: A tag or version string, e.g. "v1.2.3"
        fallback_to_unreleased: Return the "Unreleased" section when the
            version has no section of its own

    Returns:
        The changeset, or None if not found or tag has no version
    """
    version = get_version(tag)
    if version is None:
        return None

    location = _locate_changeset(
        markdown,
        lambda title: get_version(_strip_date(title)) == version,
    )
    if location is None and fallback_to_unreleased:
        location = _locate_changeset(
            markdown,
            lambda title: title == DEFAULT_UNRELEASED_TITLE,
        )

    return _extract_changeset(markdown, location) if location else None


def remove_changeset(markdown: str, header: str) -> str:
    """Remove the section whose heading title is exactly header.

    Unknown or empty headers leave the document unchanged.
    """
    if not header:
        return markdown
    location = _locate_changeset(markdown, lambda title: title == header)
    return _cut(markdown, location)


def remove_version_changeset(markdown: str, tag: str) -> str:
    """Remove the section for the version in tag, dated headings included."""
    version = get_version(tag)
    if version is None:
        return markdown
    location = _locate_changeset(
        markdown,
        lambda title: get_version(_strip_date(title)) == version,
    )
    return _cut(markdown, location)


def _cut(markdown: str, location: _ChangesetLocation | None) -> str:
    if location is None:
        return markdown
    start = location.start.start()
    end = location.end.start() if location.end else len(markdown)
    return markdown[:start] + markdown[end:]


def prepend_changeset(markdown: str, changeset: Changeset) -> str:
    """Insert a changeset before the top-most existing version section.

    The new heading copies the style (ATX or Setext) and indentation of the
    first existing heading. Without any heading the changeset is appended.
    """
    location = _locate_changeset(markdown, bool)
    padding = location.padding if location else ""

    if location is not None and location.is_setext:
        header = f"{changeset.name}\n{'-' * len(changeset.name)}"
    else:
        header = markdown_header(VERSION_HEADER_LEVEL, changeset.name)

    body = changeset.body or DEFAULT_CHANGESET_BODY
    indented_body = re.sub(r"^", padding, body, flags=re.MULTILINE)
    indented_header = re.sub(r"^", padding, header, flags=re.MULTILINE)
    section = f"{indented_header}\n\n{indented_body}\n\n"

    insert_at = location.start.start() if location else len(markdown)
    return markdown[:insert_at] + section + markdown[insert_at:]
