"""Cancellation of reverted changes.

A change and its revert cancel each other out and are dropped from the
changelog and from the bump calculation. Reverts of reverts cancel
pairwise starting from the newest commit, so for a chain

    A <- B (reverts A) <- C (reverts B)

C and B cancel and A survives, while a chain of four cancels completely.

A commit is a revert when its title looks like GitHub's default
``Revert "<title>"`` or its body says ``This reverts commit <sha>``.
The sha, when present and found among the commits, always wins over
title matching.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from typing import TYPE_CHECKING

from changelog_py.core.commits import strip_pr_suffix

if TYPE_CHECKING:
    from changelog_py.core.commits import CorrelatedCommit

logger = logging.getLogger(__name__)

REVERT_TITLE_PATTERN = re.compile(r'^Revert "(.+)"(?:\s*\(#\d+\))?$')
REVERT_BODY_PATTERN = re.compile(r"This reverts commit ([0-9a-f]+)", re.IGNORECASE)


def extract_reverted_title(title: str) -> str | None:
    """Title of the reverted change, from a ``Revert "..."`` title."""
    match = REVERT_TITLE_PATTERN.match(title.strip())
    return match.group(1) if match else None


def extract_reverted_sha(body: str | None) -> str | None:
    """Sha named by ``This reverts commit <sha>`` in a body."""
    if not body:
        return None
    match = REVERT_BODY_PATTERN.search(body)
    return match.group(1).lower() if match else None


def _normalize_title(title: str) -> str:
    return strip_pr_suffix(title)


def _titles(commit: CorrelatedCommit) -> set[str]:
    titles = {_normalize_title(commit.commit.title)}
    if commit.pr_title:
        titles.add(_normalize_title(commit.pr_title))
    return titles


def _revert_target(commit: CorrelatedCommit) -> tuple[str | None, str | None]:
    """(sha, title) of what a commit reverts; both None if not a revert."""
    sha = extract_reverted_sha(commit.commit.body) or extract_reverted_sha(commit.pr_body)
    title = extract_reverted_title(commit.commit.title)
    if title is None and commit.pr_title:
        title = extract_reverted_title(commit.pr_title)
    return sha, _normalize_title(title) if title else None


def is_revert_commit(commit: CorrelatedCommit) -> bool:
    sha, title = _revert_target(commit)
    return sha is not None or title is not None


def cancel_reverts(commits: list[CorrelatedCommit]) -> list[CorrelatedCommit]:
    """Drop commit/revert pairs that cancel each other out.

    Args:
        commits: Commits ordered newest first, as git log returns them

    Returns:
        The surviving commits, in their original order
    """
    if not any(is_revert_commit(commit) for commit in commits):
        return list(commits)

    by_sha: dict[str, int] = {}
    by_title: dict[str, list[int]] = defaultdict(list)
    for index, commit in enumerate(commits):
        by_sha[commit.sha.lower()] = index
        for title in _titles(commit):
            by_title[title].append(index)

    cancelled: set[int] = set()
    for index, commit in enumerate(commits):
        if index in cancelled:
            continue
        target_sha, target_title = _revert_target(commit)
        if target_sha is None and target_title is None:
            continue

        # A sha found among the commits is authoritative even when it
        # cannot be cancelled; titles are only consulted for unknown shas.
        target: int | None = None
        candidate = by_sha.get(target_sha) if target_sha is not None else None
        if candidate is not None:
            if candidate > index and candidate not in cancelled:
                target = candidate
        elif target_title is not None:
            target = next(
                (
                    candidate
                    for candidate in by_title.get(target_title, ())
                    if candidate > index and candidate not in cancelled
                ),
                None,
            )

        if target is None:
            logger.debug("Keeping revert %s: reverted change not found", commit.sha[:8])
            continue

        logger.debug(
            "Revert %s cancels %s",
            commit.sha[:8],
            commits[target].sha[:8],
        )
        cancelled.update((index, target))

    return [commit for index, commit in enumerate(commits) if index not in cancelled]
