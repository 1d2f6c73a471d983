"""Normalized release policy.

The release policy decides which changelog category a change belongs to
and which changes are left out. It is built once per run, either from the
user's release policy document or from the built-in conventional commits
defaults, and never changes afterwards.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from changelog_py.config.models import CategoryConfig, ExcludeConfig, ReleaseChangelogConfig
from changelog_py.core.version import BumpType

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

WILDCARD_LABEL = "*"

# JavaScript style named groups: (?<name>...), but not lookbehinds.
_JS_NAMED_GROUP = re.compile(r"\(\?<(?![=!])")


@dataclass(frozen=True)
class CompiledPattern:
    """Outcome of compiling one configured title pattern.

    Either ``regex`` is set, or ``error`` explains why compilation failed.
    Failed patterns never match.
    """

    source: str
    regex: re.Pattern[str] | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.regex is not None

    def search(self, text: str) -> re.Match[str] | None:
        if self.regex is None:
            return None
        return self.regex.search(text)


def compile_pattern(source: str) -> CompiledPattern:
    """Compile a title pattern case-insensitively."""
    translated = _JS_NAMED_GROUP.sub("(?P<", source)
    try:
        return CompiledPattern(source=source, regex=re.compile(translated, re.IGNORECASE))
    except re.error as e:
        return CompiledPattern(source=source, error=str(e))


@dataclass(frozen=True)
class ExcludeRule:
    """Labels and authors that exclude an item."""

    labels: frozenset[str] = frozenset()
    authors: frozenset[str] = frozenset()

    @classmethod
    def from_config(cls, config: ExcludeConfig) -> ExcludeRule:
        return cls(labels=frozenset(config.labels), authors=frozenset(config.authors))

    def matches(self, labels: Iterable[str], author: str | None) -> bool:
        if not self.labels.isdisjoint(labels):
            return True
        return bool(author) and author in self.authors


@dataclass(frozen=True)
class Category:
    """A changelog category with its matching rules."""

    title: str
    labels: tuple[str, ...] = ()
    patterns: tuple[CompiledPattern, ...] = ()
    semver: BumpType | None = None
    exclude: ExcludeRule = field(default_factory=ExcludeRule)

    @classmethod
    def from_config(cls, config: CategoryConfig) -> Category:
        patterns = []
        for source in config.commit_patterns:
            compiled = compile_pattern(source)
            if not compiled.ok:
                logger.warning(
                    "Ignoring invalid commit pattern %r in category %r: %s",
                    source,
                    config.title,
                    compiled.error,
                )
            patterns.append(compiled)
        return cls(
            title=config.title,
            labels=tuple(config.labels),
            patterns=tuple(patterns),
            semver=BumpType(config.semver) if config.semver else None,
            exclude=ExcludeRule.from_config(config.exclude),
        )

    @property
    def valid_patterns(self) -> tuple[CompiledPattern, ...]:
        return tuple(p for p in self.patterns if p.ok)

    @property
    def is_wildcard(self) -> bool:
        return WILDCARD_LABEL in self.labels

    @property
    def is_matchable(self) -> bool:
        """A category needs labels or at least one usable pattern."""
        return bool(self.labels) or bool(self.valid_patterns)

    def is_excluded(self, labels: Iterable[str], author: str | None) -> bool:
        return self.exclude.matches(labels, author)


@dataclass(frozen=True)
class ReleasePolicy:
    """Category and exclusion rules for one changelog run."""

    exclude: ExcludeRule = field(default_factory=ExcludeRule)
    categories: tuple[Category, ...] = ()
    is_default: bool = False

    @classmethod
    def from_config(
        cls,
        config: ReleaseChangelogConfig,
        *,
        is_default: bool = False,
    ) -> ReleasePolicy:
        """Build a policy, skipping malformed categories with a warning."""
        return cls(
            exclude=ExcludeRule.from_config(config.exclude),
            categories=tuple(_parse_categories(config.categories)),
            is_default=is_default,
        )

    @classmethod
    def default(cls) -> ReleasePolicy:
        """The built-in conventional commits policy."""
        return _DEFAULT_POLICY

    def category_index(self, title: str) -> int | None:
        """Position of a category in the configured order."""
        for index, category in enumerate(self.categories):
            if category.title == title:
                return index
        return None

    def categories_without_semver(self) -> list[str]:
        return [c.title for c in self.categories if c.semver is None]


def _parse_categories(raw: Any) -> list[Category]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        logger.warning(
            "Release config 'categories' must be a list, got %s; no categories will be used",
            type(raw).__name__,
        )
        return []

    categories = []
    for position, item in enumerate(raw):
        try:
            config = CategoryConfig.model_validate(item)
        except ValidationError as e:
            logger.warning("Skipping malformed category #%d in release config: %s", position, e)
            continue
        categories.append(Category.from_config(config))
    return categories


def _conventional_pattern(types: str, *, breaking: bool = False) -> str:
    bang = "!" if breaking else "!?"
    return rf"^(?P<type>{types}(?:\((?P<scope>[^)]+)\))?{bang}:\s*)"


DEFAULT_SKIP_LABEL = "skip-changelog"

DEFAULT_RELEASE_CONFIG: dict[str, Any] = {
    "exclude": {"labels": [DEFAULT_SKIP_LABEL]},
    "categories": [
        {
            "title": "Breaking Changes 🛠",
            "commit_patterns": [_conventional_pattern(r"\w+", breaking=True)],
            "semver": "major",
        },
        {
            "title": "New Features ✨",
            "commit_patterns": [_conventional_pattern("feat")],
            "semver": "minor",
        },
        {
            "title": "Bug Fixes 🐛",
            "commit_patterns": [_conventional_pattern("fix"), r'^Revert "'],
            "semver": "patch",
        },
        {
            "title": "Documentation 📚",
            "commit_patterns": [_conventional_pattern("docs?")],
            "semver": "patch",
        },
        {
            "title": "Build / dependencies / internal 🔧",
            "commit_patterns": [
                _conventional_pattern("(?:build|refactor|meta|chore|ci|ref|perf)")
            ],
            "semver": "patch",
        },
    ],
}


def _build_default_policy() -> ReleasePolicy:
    return ReleasePolicy.from_config(
        ReleaseChangelogConfig.model_validate(DEFAULT_RELEASE_CONFIG),
        is_default=True,
    )


_DEFAULT_POLICY = _build_default_policy()
