"""Category matching against a release policy.

Matching order:

1. Labels: the first category (config order) sharing a label wins.
2. Title patterns: the first category with a matching pattern wins.
3. The wildcard ("*") category, if any.

A category whose own exclude rule applies to the item is skipped, so the
item may still land in a later category. Global exclusion is separate and
checked by the caller first (see should_exclude_commit).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from changelog_py.core.commits import SKIP_CHANGELOG_MAGIC_WORD

if TYPE_CHECKING:
    from collections.abc import Set

    from changelog_py.core.commits import CurrentPullRequest
    from changelog_py.core.policy import Category, CompiledPattern, ReleasePolicy


@dataclass(frozen=True)
class CategoryMatch:
    """A matched category and the title pattern that matched, if any."""

    category: Category
    pattern: CompiledPattern | None = None


def is_category_excluded(
    category: Category,
    labels: Set[str],
    author: str | None,
) -> bool:
    return category.is_excluded(labels, author)


def should_exclude_commit(
    labels: Set[str],
    author: str | None,
    policy: ReleasePolicy | None,
    body: str = "",
) -> bool:
    """Check whether an item is excluded from the changelog entirely.

    Args:
        labels: Pull request labels
        author: Pull request (or commit) author login
        policy: Active release policy
        body: Commit or pull request body to scan for the skip marker

    Returns:
        True if the item must not appear anywhere
    """
    if body and SKIP_CHANGELOG_MAGIC_WORD in body:
        return True
    if policy is None:
        return False
    return policy.exclude.matches(labels, author)


def _first_matching_pattern(category: Category, title: str) -> CompiledPattern | None:
    for pattern in category.valid_patterns:
        if pattern.search(title):
            return pattern
    return None


def match_commit_to_category(
    labels: Set[str],
    author: str | None,
    title: str,
    policy: ReleasePolicy,
) -> CategoryMatch | None:
    """Find the category an item belongs to.

    Labels take precedence over title patterns regardless of the order in
    which the categories are declared.
    """
    regular: list[Category] = []
    wildcard: Category | None = None
    for category in policy.categories:
        if not category.is_matchable:
            continue
        if category.is_wildcard:
            wildcard = category
            continue
        regular.append(category)

    title = title.strip()

    if labels:
        for category in regular:
            if set(category.labels).isdisjoint(labels):
                continue
            if is_category_excluded(category, labels, author):
                continue
            return CategoryMatch(category, _first_matching_pattern(category, title))

    for category in regular:
        pattern = _first_matching_pattern(category, title)
        if pattern is None:
            continue
        if is_category_excluded(category, labels, author):
            continue
        return CategoryMatch(category, pattern)

    if wildcard is not None and not is_category_excluded(wildcard, labels, author):
        return CategoryMatch(wildcard, _first_matching_pattern(wildcard, title))

    return None


def should_skip_current_pr(pr: CurrentPullRequest, policy: ReleasePolicy | None) -> bool:
    """Check whether an open pull request stays out of the changelog.

    The pull request is skipped when its body carries the skip marker or
    its labels or author are globally excluded.
    """
    return should_exclude_commit(frozenset(pr.labels), pr.author, policy, pr.body)
