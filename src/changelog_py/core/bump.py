"""Version bump calculation.

The bump for a release is the most severe ``semver`` value among the
categories its changes fall into.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from changelog_py.core.matching import match_commit_to_category
from changelog_py.core.version import BumpType, Version
from changelog_py.exceptions import NoCommitsError, NoSemverMatchError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from changelog_py.core.commits import ClassifiedCommit, CurrentPullRequest
    from changelog_py.core.policy import ReleasePolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BumpAnalysis:
    """Outcome of analyzing a set of changes for a version bump."""

    bump_type: BumpType | None
    total_commits: int
    matched_commits_with_semver: int


def highest_bump(bump_types: Iterable[BumpType | None]) -> BumpType | None:
    """Most severe bump in bump_types, ignoring None."""
    found = [bump for bump in bump_types if bump is not None]
    if not found:
        return None
    return min(found, key=lambda bump: bump.priority)


def analyze_bump(classified: Iterable[ClassifiedCommit], total_commits: int) -> BumpAnalysis:
    """Compute the bump for already classified commits.

    Args:
        classified: Commits that survived exclusion and revert cancellation
        total_commits: Number of commits considered for the release

    Returns:
        The bump analysis; bump_type is None when nothing carries a semver
    """
    bumps: list[BumpType] = []
    for item in classified:
        if item.category is None or item.category.semver is None:
            continue
        if item.category.semver is BumpType.MAJOR and BumpType.MAJOR not in bumps:
            logger.debug(
                "Found major bump trigger in commit %s: %r",
                item.sha[:8],
                item.title,
            )
        bumps.append(item.category.semver)

    return BumpAnalysis(
        bump_type=highest_bump(bumps),
        total_commits=total_commits,
        matched_commits_with_semver=len(bumps),
    )


def require_bump_type(analysis: BumpAnalysis) -> BumpType:
    """Return the bump type or fail with an actionable error.

    Raises:
        NoCommitsError: If there were no commits at all
        NoSemverMatchError: If no commit matched a category with semver
    """
    if analysis.total_commits == 0:
        raise NoCommitsError(
            "Cannot determine version automatically: no commits found since the last release."
        )
    if analysis.bump_type is None:
        raise NoSemverMatchError(
            f"Cannot determine version automatically: {analysis.total_commits} commit(s) "
            "found, but none matched a category with a \"semver\" field in the release "
            "configuration. Please ensure your .github/release.yml categories have "
            "\"semver\" fields defined, or specify the version explicitly.",
            total_commits=analysis.total_commits,
        )

    logger.info(
        "Auto-version: determined %s bump (%d/%d commits matched)",
        analysis.bump_type,
        analysis.matched_commits_with_semver,
        analysis.total_commits,
    )
    return analysis.bump_type


def calculate_next_version(current_version: str | None, bump_type: BumpType) -> str:
    """Apply a bump to a version string.

    A missing or empty version is treated as 0.0.0.

    Raises:
        InvalidVersionError: If current_version is not a semantic version
    """
    version = Version.parse(current_version or "0.0.0")
    return str(version.bump(bump_type))


def get_bump_type_for_pr(pr: CurrentPullRequest, policy: ReleasePolicy) -> BumpType | None:
    """Bump that merging a single pull request would cause."""
    match = match_commit_to_category(frozenset(pr.labels), pr.author, pr.title, policy)
    if match is None:
        return None
    return match.category.semver
