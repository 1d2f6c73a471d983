"""Version control and remote collaborators."""

from __future__ import annotations

from changelog_py.vcs.base import MAX_COMMITS_PER_QUERY, CommitCorrelator, CommitHistory
from changelog_py.vcs.git import GitRepository
from changelog_py.vcs.github import GitHubCorrelator

__all__ = [
    "MAX_COMMITS_PER_QUERY",
    "CommitCorrelator",
    "CommitHistory",
    "GitHubCorrelator",
    "GitRepository",
]
