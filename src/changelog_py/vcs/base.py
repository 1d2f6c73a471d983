"""Interfaces of the collaborators the changelog pipeline reads from."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from changelog_py.core.commits import Commit, PullRequestMetadata

# Upper bound on hashes per correlator call
MAX_COMMITS_PER_QUERY = 50


class CommitHistory(Protocol):
    """Source of commit history."""

    async def get_changes_since(self, rev: str | None, until: str | None = None) -> list[Commit]:
        """Non-merge commits after rev (all history if None), newest first.

        Only commits touching the working path are returned.
        """
        ...


class CommitCorrelator(Protocol):
    """Source of pull request metadata for commits."""

    async def fetch(self, shas: list[str]) -> dict[str, PullRequestMetadata | None]:
        """Look up metadata for at most MAX_COMMITS_PER_QUERY commits.

        A None value means the commit is unknown to the remote.
        """
        ...
