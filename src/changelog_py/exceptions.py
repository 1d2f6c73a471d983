"""Exception hierarchy for changelog-py.

All errors raised by the library derive from ChangelogPyError so that
callers (and the CLI) can handle them in one place.
"""

from __future__ import annotations


class ChangelogPyError(Exception):
    """Base class for all changelog-py errors."""


# =============================================================================
# Configuration
# =============================================================================


class ConfigError(ChangelogPyError):
    """Configuration could not be loaded."""


class ConfigNotFoundError(ConfigError):
    """No pyproject.toml (or other required file) was found."""


class ConfigValidationError(ConfigError):
    """Configuration values failed validation."""


# =============================================================================
# Version control and remote sources
# =============================================================================


class VCSError(ChangelogPyError):
    """A version control operation failed."""


class GitError(VCSError):
    """A git command failed."""

    def __init__(self, message: str, *, stderr: str | None = None) -> None:
        super().__init__(message)
        self.stderr = stderr

    def __str__(self) -> str:
        base = super().__str__()
        if self.stderr:
            return f"{base}\n{self.stderr.strip()}"
        return base


class GitHubError(ChangelogPyError):
    """A GitHub API request failed."""


# =============================================================================
# Versions and changelogs
# =============================================================================


class VersionError(ChangelogPyError):
    """Version handling failed."""


class InvalidVersionError(VersionError):
    """A string could not be parsed as a semantic version."""


class ChangelogError(ChangelogPyError):
    """Changelog generation failed."""


class BumpDeterminationError(ChangelogError):
    """The version bump could not be determined automatically."""


class NoCommitsError(BumpDeterminationError):
    """There are no commits since the base revision."""


class NoSemverMatchError(BumpDeterminationError):
    """Commits exist, but none matched a category with a semver field."""

    def __init__(self, message: str, *, total_commits: int) -> None:
        super().__init__(message)
        self.total_commits = total_commits
