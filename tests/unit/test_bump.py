"""Tests for version bump calculation."""

from __future__ import annotations

import pytest

from changelog_py.core.bump import (
    BumpAnalysis,
    analyze_bump,
    calculate_next_version,
    get_bump_type_for_pr,
    highest_bump,
    require_bump_type,
)
from changelog_py.core.commits import (
    ClassifiedCommit,
    Commit,
    CorrelatedCommit,
    CurrentPullRequest,
)
from changelog_py.core.policy import Category, ReleasePolicy
from changelog_py.core.version import BumpType
from changelog_py.exceptions import InvalidVersionError, NoCommitsError, NoSemverMatchError


def classified(semver: BumpType | None, *, categorized: bool = True) -> ClassifiedCommit:
    category = None
    if categorized:
        category = Category(title=f"cat-{semver}", labels=("x",), semver=semver)
    return ClassifiedCommit(CorrelatedCommit(Commit(sha="a" * 40, title="t")), category)


class TestHighestBump:
    """Tests for highest_bump()."""

    def test_empty(self):
        assert highest_bump([]) is None
        assert highest_bump([None, None]) is None

    def test_most_severe_wins(self):
        assert highest_bump([BumpType.PATCH, BumpType.MINOR]) is BumpType.MINOR
        assert highest_bump([BumpType.PATCH, None, BumpType.MAJOR]) is BumpType.MAJOR
        assert highest_bump([BumpType.PATCH]) is BumpType.PATCH


class TestAnalyzeBump:
    """Tests for analyze_bump()."""

    def test_counts_commits_with_semver(self):
        analysis = analyze_bump(
            [
                classified(BumpType.PATCH),
                classified(BumpType.MINOR),
                classified(None),
                classified(None, categorized=False),
            ],
            total_commits=5,
        )

        assert analysis == BumpAnalysis(
            bump_type=BumpType.MINOR,
            total_commits=5,
            matched_commits_with_semver=2,
        )

    def test_no_semver(self):
        analysis = analyze_bump([classified(None)], total_commits=1)

        assert analysis.bump_type is None
        assert analysis.matched_commits_with_semver == 0


class TestRequireBumpType:
    """Tests for require_bump_type()."""

    def test_no_commits(self):
        with pytest.raises(NoCommitsError, match="no commits found"):
            require_bump_type(BumpAnalysis(None, 0, 0))

    def test_no_semver_match(self):
        with pytest.raises(NoSemverMatchError, match="3 commit\\(s\\) found") as exc_info:
            require_bump_type(BumpAnalysis(None, 3, 0))

        assert exc_info.value.total_commits == 3

    def test_bump_found(self):
        assert require_bump_type(BumpAnalysis(BumpType.MAJOR, 3, 1)) is BumpType.MAJOR


class TestCalculateNextVersion:
    """Tests for calculate_next_version()."""

    @pytest.mark.parametrize(
        ("current", "bump_type", "expected"),
        [
            ("1.2.3", BumpType.MAJOR, "2.0.0"),
            ("1.2.3", BumpType.MINOR, "1.3.0"),
            ("1.2.3", BumpType.PATCH, "1.2.4"),
            ("v1.2.3", BumpType.PATCH, "1.2.4"),
            ("", BumpType.MINOR, "0.1.0"),
            (None, BumpType.PATCH, "0.0.1"),
            ("1.2.3-rc.1", BumpType.PATCH, "1.2.3"),
            ("2.0.0-rc.1", BumpType.MAJOR, "2.0.0"),
        ],
    )
    def test_next_version(self, current: str | None, bump_type: BumpType, expected: str):
        assert calculate_next_version(current, bump_type) == expected

    def test_invalid_version(self):
        with pytest.raises(InvalidVersionError):
            calculate_next_version("banana", BumpType.PATCH)


class TestBumpForPullRequest:
    """Tests for get_bump_type_for_pr()."""

    @pytest.mark.parametrize(
        ("title", "expected"),
        [
            ("feat: new thing", BumpType.MINOR),
            ("fix!: breaking fix", BumpType.MAJOR),
            ("docs: readme", BumpType.PATCH),
            ("Update stuff", None),
        ],
    )
    def test_default_policy(self, default_policy: ReleasePolicy, title: str, expected):
        pr = CurrentPullRequest(number=1, title=title)

        assert get_bump_type_for_pr(pr, default_policy) is expected
