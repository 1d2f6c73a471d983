"""Core business logic for changelog-py.

This module contains the fundamental building blocks:
- Semantic version parsing and bump arithmetic
- Release policy, category matching and revert cancellation
- Changelog rendering and the generation pipeline
- Changelog file section editing
"""

from __future__ import annotations

from changelog_py.core.bump import (
    BumpAnalysis,
    calculate_next_version,
    get_bump_type_for_pr,
)
from changelog_py.core.cache import ChangelogCache
from changelog_py.core.changelog import ChangelogGenerator, ChangelogResult
from changelog_py.core.changeset import (
    Changeset,
    find_changeset,
    prepend_changeset,
    remove_changeset,
)
from changelog_py.core.commits import (
    Commit,
    CorrelatedCommit,
    CurrentPullRequest,
    PullRequestMetadata,
)
from changelog_py.core.policy import ReleasePolicy
from changelog_py.core.version import BumpType, Version

__all__ = [
    # Bump
    "BumpAnalysis",
    # Version
    "BumpType",
    # Pipeline
    "ChangelogCache",
    "ChangelogGenerator",
    "ChangelogResult",
    # Changesets
    "Changeset",
    # Commits
    "Commit",
    "CorrelatedCommit",
    "CurrentPullRequest",
    "PullRequestMetadata",
    # Policy
    "ReleasePolicy",
    "Version",
    "calculate_next_version",
    "find_changeset",
    "get_bump_type_for_pr",
    "prepend_changeset",
    "remove_changeset",
]
