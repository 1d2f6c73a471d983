"""Test doubles and builders shared by the unit tests."""

from __future__ import annotations

from changelog_py.core.changelog import ChangelogGenerator
from changelog_py.core.commits import Commit, PullRequestMetadata
from changelog_py.core.policy import ReleasePolicy

REPO_URL = "https://github.com/octo/hello"


class FakeHistory:
    """In-memory commit history, newest first."""

    def __init__(self, commits: list[Commit] | None = None, error: Exception | None = None):
        self.commits = commits or []
        self.error = error
        self.calls: list[tuple[str | None, str | None]] = []

    async def get_changes_since(self, rev: str | None, until: str | None = None) -> list[Commit]:
        self.calls.append((rev, until))
        if self.error is not None:
            raise self.error
        return list(self.commits)


class FakeCorrelator:
    """In-memory pull request metadata keyed by sha.

    Shas missing from the mapping are reported as unknown (None).
    """

    def __init__(self, metadata: dict[str, PullRequestMetadata | None] | None = None):
        self.metadata = metadata or {}
        self.calls: list[list[str]] = []

    async def fetch(self, shas: list[str]) -> dict[str, PullRequestMetadata | None]:
        self.calls.append(list(shas))
        return {sha: self.metadata.get(sha) for sha in shas}


def make_sha(n: int) -> str:
    """Deterministic 40 character sha for test commits."""
    return f"{n:08x}" + "a" * 32


def pr_commit(
    n: int,
    title: str,
    *,
    author: str | None = "alice",
    labels: tuple[str, ...] = (),
    body: str = "",
    pr_body: str = "",
    pr_title: str | None = None,
) -> tuple[Commit, PullRequestMetadata]:
    """A squash-merged commit for pull request n with its metadata."""
    commit = Commit(sha=make_sha(n), title=f"{title} (#{n})", body=body, pr=str(n))
    metadata = PullRequestMetadata(
        author=author,
        pr_number=str(n),
        pr_title=pr_title if pr_title is not None else title,
        pr_body=pr_body,
        labels=labels,
    )
    return commit, metadata


def build_generator(
    entries: list[tuple[Commit, PullRequestMetadata | None]],
    policy: ReleasePolicy | None = None,
    **kwargs,
) -> ChangelogGenerator:
    """Generator over the given (commit, metadata) pairs, newest first."""
    history = FakeHistory([commit for commit, _ in entries])
    correlator = FakeCorrelator({commit.sha: metadata for commit, metadata in entries})
    return ChangelogGenerator(
        history,
        correlator,
        policy or ReleasePolicy.default(),
        repo_url=REPO_URL,
        **kwargs,
    )
