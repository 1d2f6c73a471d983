"""Changelog generation pipeline.

The pipeline reads commits since a revision, joins them with pull request
metadata, cancels reverted changes, sorts the rest into categories and
renders them as Markdown, computing the version bump along the way:

    history -> correlator -> revert cancellation -> matching -> bump + render

Only the first two steps do I/O. Everything after works on data owned by a
single run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from changelog_py.core.bump import BumpAnalysis, analyze_bump, require_bump_type
from changelog_py.core.commits import (
    ClassifiedCommit,
    Commit,
    CorrelatedCommit,
    PullRequestMetadata,
)
from changelog_py.core.matching import (
    match_commit_to_category,
    should_exclude_commit,
    should_skip_current_pr,
)
from changelog_py.core.render import MAX_LEFTOVERS, render_changelog
from changelog_py.core.reverts import cancel_reverts
from changelog_py.vcs.base import MAX_COMMITS_PER_QUERY

if TYPE_CHECKING:
    from changelog_py.core.cache import ChangelogCache
    from changelog_py.core.commits import CurrentPullRequest
    from changelog_py.core.policy import ReleasePolicy
    from changelog_py.core.version import BumpType
    from changelog_py.vcs.base import CommitCorrelator, CommitHistory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangelogResult:
    """Rendered changelog plus the bump it implies."""

    changelog: str
    bump_type: BumpType | None
    total_commits: int
    matched_commits_with_semver: int
    pr_skipped: bool = False

    @property
    def analysis(self) -> BumpAnalysis:
        return BumpAnalysis(
            bump_type=self.bump_type,
            total_commits=self.total_commits,
            matched_commits_with_semver=self.matched_commits_with_semver,
        )


class ChangelogGenerator:
    """Generate changelogs and version bumps from commit history.

    Args:
        history: Where commits come from
        correlator: Where pull request metadata comes from
        policy: Category and exclusion rules
        repo_url: Repository web URL used for links
        cache: Optional cache shared between generate() calls
    """

    def __init__(
        self,
        history: CommitHistory,
        correlator: CommitCorrelator,
        policy: ReleasePolicy,
        *,
        repo_url: str,
        cache: ChangelogCache[ChangelogResult] | None = None,
    ) -> None:
        self.history = history
        self.correlator = correlator
        self.policy = policy
        self.repo_url = repo_url.rstrip("/")
        self.cache = cache

    async def generate(
        self,
        rev: str | None,
        max_leftovers: int = MAX_LEFTOVERS,
    ) -> ChangelogResult:
        """Generate the changelog for all changes since rev.

        Args:
            rev: Base revision, usually the last release tag; None for all history
            max_leftovers: Maximum number of uncategorized entries to list

        Returns:
            The changelog and bump analysis

        Raises:
            VCSError: If history cannot be read
            GitHubError: If pull request metadata cannot be fetched
        """
        if self.cache is None:
            return await self._run(rev, max_leftovers)
        return await self.cache.get_or_create(
            (rev or "", max_leftovers),
            lambda: self._run(rev, max_leftovers),
        )

    async def generate_with_highlight(
        self,
        rev: str | None,
        current_pr: CurrentPullRequest,
        max_leftovers: int = MAX_LEFTOVERS,
    ) -> ChangelogResult:
        """Preview the changelog as if an open pull request were merged.

        The pull request's entries are rendered as a blockquote. If the pull
        request opts out of the changelog it is left out and the result has
        pr_skipped set. Previews are never cached.
        """
        commits = await self._collect(rev)
        commits = [c for c in commits if c.pr_number != str(current_pr.number)]

        if should_skip_current_pr(current_pr, self.policy):
            logger.info("Pull request #%d is excluded from the changelog", current_pr.number)
            return self._build(commits, max_leftovers, pr_skipped=True)

        preview = CorrelatedCommit(
            commit=Commit(
                sha=f"pr-{current_pr.number}",
                title=current_pr.title,
                body=current_pr.body,
                pr=str(current_pr.number),
            ),
            metadata=PullRequestMetadata(
                author=current_pr.author,
                pr_number=str(current_pr.number),
                pr_title=current_pr.title,
                pr_body=current_pr.body,
                labels=tuple(current_pr.labels),
            ),
        )
        return self._build([preview, *commits], max_leftovers, highlight=preview.sha)

    async def analyze_bump(
        self,
        rev: str | None,
        max_leftovers: int = MAX_LEFTOVERS,
    ) -> BumpAnalysis:
        return (await self.generate(rev, max_leftovers)).analysis

    async def get_auto_bump_type(
        self,
        rev: str | None,
        max_leftovers: int = MAX_LEFTOVERS,
    ) -> BumpType:
        """Determine the bump for the next release.

        The run is cached under the same key as ``generate(rev, max_leftovers)``,
        so a caller that renders the changelog afterwards reuses it.

        Raises:
            NoCommitsError: If there are no commits since rev
            NoSemverMatchError: If no commit matched a category with semver
        """
        logger.info(
            "Analyzing commits since %s for auto-versioning...",
            rev or "(beginning of history)",
        )
        return require_bump_type(await self.analyze_bump(rev, max_leftovers))

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------

    async def _run(self, rev: str | None, max_leftovers: int) -> ChangelogResult:
        commits = await self._collect(rev)
        return self._build(commits, max_leftovers)

    async def _collect(self, rev: str | None) -> list[CorrelatedCommit]:
        commits = await self.history.get_changes_since(rev)
        logger.debug("Found %d commit(s) since %s", len(commits), rev or "(beginning)")

        metadata: dict[str, PullRequestMetadata | None] = {}
        for start in range(0, len(commits), MAX_COMMITS_PER_QUERY):
            chunk = [c.sha for c in commits[start : start + MAX_COMMITS_PER_QUERY]]
            logger.debug("Fetching pull request data for %d commit(s)", len(chunk))
            metadata.update(await self.correlator.fetch(chunk))

        missing = [c for c in commits if metadata.get(c.sha) is None]
        if missing:
            logger.warning(
                "The following commits were not found on GitHub: %s",
                ", ".join(f"{c.short_sha} {c.title}" for c in missing),
            )

        return [CorrelatedCommit(commit=c, metadata=metadata.get(c.sha)) for c in commits]

    def _build(
        self,
        commits: list[CorrelatedCommit],
        max_leftovers: int,
        *,
        highlight: str | None = None,
        pr_skipped: bool = False,
    ) -> ChangelogResult:
        categories: dict[str, list[ClassifiedCommit]] = {}
        leftovers: list[ClassifiedCommit] = []
        counted: list[ClassifiedCommit] = []

        for commit in cancel_reverts(commits):
            if should_exclude_commit(commit.labels, commit.author, self.policy):
                continue

            match = match_commit_to_category(
                commit.labels, commit.author, commit.title, self.policy
            )
            classified = ClassifiedCommit(
                correlated=commit,
                category=match.category if match else None,
                pattern=match.pattern if match else None,
                highlight=commit.sha == highlight,
            )
            counted.append(classified)

            if commit.is_skipped:
                continue
            if classified.category is not None and commit.pr_number:
                categories.setdefault(classified.category.title, []).append(classified)
            else:
                leftovers.append(classified)

        analysis = analyze_bump(counted, total_commits=len(commits))
        changelog = render_changelog(
            categories,
            leftovers,
            self.policy,
            self.repo_url,
            max_leftovers=max_leftovers,
        )
        return ChangelogResult(
            changelog=changelog,
            bump_type=analysis.bump_type,
            total_commits=analysis.total_commits,
            matched_commits_with_semver=analysis.matched_commits_with_semver,
            pr_skipped=pr_skipped,
        )
