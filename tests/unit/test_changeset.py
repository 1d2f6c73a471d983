"""Tests for locating and editing changelog sections."""

from __future__ import annotations

import pytest

from changelog_py.core.changeset import (
    DEFAULT_CHANGESET_BODY,
    Changeset,
    escape_leading_underscores,
    escape_markdown_pound,
    find_changeset,
    markdown_header,
    prepend_changeset,
    remove_changeset,
    remove_version_changeset,
)

ATX_CHANGELOG = """\
# Changelog

## 1.1.0

- Second

## 1.0.0 (2024-01-01)

- First
"""

SETEXT_CHANGELOG = """\
Changelog
=========

1.1.0
-----

- Second

1.0.0
-----

- First
"""


class TestFindChangeset:
    """Tests for find_changeset()."""

    def test_find_atx(self):
        changeset = find_changeset(ATX_CHANGELOG, "v1.1.0")

        assert changeset == Changeset(name="1.1.0", body="- Second")

    def test_find_strips_date(self):
        """A trailing date in parentheses is not part of the name."""
        changeset = find_changeset(ATX_CHANGELOG, "1.0.0")

        assert changeset == Changeset(name="1.0.0", body="- First")

    def test_find_setext(self):
        changeset = find_changeset(SETEXT_CHANGELOG, "1.0.0")

        assert changeset == Changeset(name="1.0.0", body="- First")

    def test_body_stops_at_next_heading(self):
        changeset = find_changeset(SETEXT_CHANGELOG, "1.1.0")

        assert changeset is not None
        assert changeset.body == "- Second"

    def test_missing_version(self):
        assert find_changeset(ATX_CHANGELOG, "2.0.0") is None

    def test_tag_without_version(self):
        """Tags that are not semantic versions never match."""
        assert find_changeset(ATX_CHANGELOG, "latest") is None

    def test_fallback_to_unreleased(self):
        markdown = "## Unreleased\n\n- Pending\n\n## 1.0.0\n\n- First\n"

        assert find_changeset(markdown, "2.0.0") is None
        assert find_changeset(markdown, "2.0.0", fallback_to_unreleased=True) == Changeset(
            name="Unreleased", body="- Pending"
        )

    def test_version_heading_preferred_over_unreleased(self):
        markdown = "## Unreleased\n\n- Pending\n\n## 1.0.0\n\n- First\n"

        changeset = find_changeset(markdown, "1.0.0", fallback_to_unreleased=True)

        assert changeset is not None
        assert changeset.name == "1.0.0"

    def test_level_three_headings_are_part_of_body(self):
        markdown = "## 1.0.0\n\n### Bug Fixes\n\n- Fix\n\n## 0.9.0\n\n- Old\n"

        changeset = find_changeset(markdown, "1.0.0")

        assert changeset is not None
        assert changeset.body == "### Bug Fixes\n\n- Fix"


class TestRemoveChangeset:
    """Tests for remove_changeset()."""

    def test_remove_section(self):
        result = remove_changeset(ATX_CHANGELOG, "1.1.0")

        assert result == "# Changelog\n\n## 1.0.0 (2024-01-01)\n\n- First\n"

    def test_remove_last_section(self):
        result = remove_changeset(SETEXT_CHANGELOG, "1.0.0")

        assert result == "Changelog\n=========\n\n1.1.0\n-----\n\n- Second\n\n"

    def test_unknown_header_is_noop(self):
        assert remove_changeset(ATX_CHANGELOG, "9.9.9") == ATX_CHANGELOG

    def test_empty_header_is_noop(self):
        assert remove_changeset(ATX_CHANGELOG, "") == ATX_CHANGELOG

    def test_remove_by_version_ignores_date(self):
        result = remove_version_changeset(ATX_CHANGELOG, "v1.0.0")

        assert result == "# Changelog\n\n## 1.1.0\n\n- Second\n\n"

    def test_remove_by_version_without_version_is_noop(self):
        assert remove_version_changeset(ATX_CHANGELOG, "latest") == ATX_CHANGELOG


class TestPrependChangeset:
    """Tests for prepend_changeset()."""

    def test_prepend_atx(self):
        result = prepend_changeset(ATX_CHANGELOG, Changeset(name="1.2.0", body="- Third"))

        assert result.startswith("# Changelog\n\n## 1.2.0\n\n- Third\n\n## 1.1.0\n")

    def test_prepend_copies_setext_style(self):
        result = prepend_changeset(SETEXT_CHANGELOG, Changeset(name="1.2.0", body="- Third"))

        assert result.startswith("Changelog\n=========\n\n1.2.0\n-----\n\n- Third\n\n1.1.0\n")

    def test_prepend_copies_indentation(self):
        markdown = "  ## 1.0.0\n\n  - First\n"

        result = prepend_changeset(markdown, Changeset(name="1.1.0", body="- Second"))

        assert result == "  ## 1.1.0\n\n  - Second\n\n  ## 1.0.0\n\n  - First\n"

    def test_prepend_to_document_without_headings_appends(self):
        result = prepend_changeset("# Changelog\n\n", Changeset(name="1.0.0", body="- First"))

        assert result == "# Changelog\n\n## 1.0.0\n\n- First\n\n"

    def test_empty_body_uses_placeholder(self):
        result = prepend_changeset("", Changeset(name="1.0.0", body=""))

        assert find_changeset(result, "1.0.0") == Changeset(
            name="1.0.0", body=DEFAULT_CHANGESET_BODY
        )

    def test_title_pound_is_escaped(self):
        result = prepend_changeset("", Changeset(name="C# 1.0.0", body="- First"))

        assert result.startswith("## C&#35; 1.0.0\n")


class TestRoundTrip:
    """Properties tying prepend, find and remove together."""

    @pytest.mark.parametrize("markdown", [ATX_CHANGELOG, SETEXT_CHANGELOG, "", "# Changelog\n\n"])
    def test_find_after_prepend(self, markdown: str):
        changeset = Changeset(name="2.0.0", body="### Features\n\n- New thing")

        found = find_changeset(prepend_changeset(markdown, changeset), changeset.name)

        assert found == changeset

    @pytest.mark.parametrize("markdown", [ATX_CHANGELOG, SETEXT_CHANGELOG])
    def test_remove_after_prepend(self, markdown: str):
        changeset = Changeset(name="2.0.0", body="- New thing")

        result = remove_changeset(prepend_changeset(markdown, changeset), changeset.name)

        assert result == markdown


class TestMarkdownHelpers:
    """Tests for Markdown escaping helpers."""

    def test_escape_markdown_pound(self):
        assert escape_markdown_pound("issue #1") == "issue &#35;1"

    def test_markdown_header(self):
        assert markdown_header(3, "Bug Fixes") == "### Bug Fixes"

    def test_escape_leading_underscore(self):
        assert escape_leading_underscores("_meta cleanup") == "\\_meta cleanup"

    def test_escape_underscore_after_space(self):
        assert escape_leading_underscores("Fix _internal helper") == "Fix \\_internal helper"

    def test_underscore_inside_word_untouched(self):
        assert escape_leading_underscores("snake_case") == "snake_case"
