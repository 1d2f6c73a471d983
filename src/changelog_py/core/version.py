"""Semantic version parsing and manipulation.

Versions follow https://semver.org/. A leading ``v`` is accepted and
dropped, so ``v1.2.3`` and ``1.2.3`` are the same version.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

from changelog_py.exceptions import InvalidVersionError

# Matches a semantic version anywhere in a piece of text.
SEMVER_PATTERN = re.compile(
    r"\bv?(0|[1-9][0-9]*)\.(0|[1-9][0-9]*)\.(0|[1-9][0-9]*)"
    r"(?:-?([\da-z-]+(?:\.[\da-z-]+)*))?"
    r"(?:\+([\da-z-]+(?:\.[\da-z-]+)*))?\b",
    re.IGNORECASE,
)


class BumpType(StrEnum):
    """Semantic version bump, ordered from most to least severe."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"

    @property
    def priority(self) -> int:
        """Lower is more severe: major=0, minor=1, patch=2."""
        return _BUMP_PRIORITY[self]


_BUMP_PRIORITY = {BumpType.MAJOR: 0, BumpType.MINOR: 1, BumpType.PATCH: 2}


def get_version(text: str) -> str | None:
    """Extract the first semantic version found in text.

    Args:
        text: Any text, e.g. a tag name or a changelog heading

    Returns:
        The version without a leading "v", or None if there is none
    """
    match = SEMVER_PATTERN.search(text)
    if match is None:
        return None
    version = match.group(0)
    return version[1:] if version[0] in "vV" else version


@dataclass(frozen=True)
class Version:
    """A parsed semantic version."""

    major: int
    minor: int
    patch: int
    prerelease: str | None = None
    build: str | None = None

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse a version string.

        Raises:
            InvalidVersionError: If text contains no semantic version
        """
        match = SEMVER_PATTERN.search(text.strip())
        if match is None:
            raise InvalidVersionError(f"Invalid semantic version: {text!r}")
        return cls(
            major=int(match.group(1)),
            minor=int(match.group(2)),
            patch=int(match.group(3)),
            prerelease=match.group(4),
            build=match.group(5),
        )

    @property
    def is_prerelease(self) -> bool:
        return self.prerelease is not None

    def bump(self, bump_type: BumpType) -> Version:
        """Return the next version for the given bump.

        Pre-releases are released rather than incremented when the bump
        does not go past them: 1.2.3-rc.1 + patch is 1.2.3, and
        2.0.0-rc.1 + major is 2.0.0. Build metadata is dropped.
        """
        if bump_type is BumpType.MAJOR:
            if self.is_prerelease and self.minor == 0 and self.patch == 0:
                return Version(self.major, 0, 0)
            return Version(self.major + 1, 0, 0)
        if bump_type is BumpType.MINOR:
            if self.is_prerelease and self.patch == 0:
                return Version(self.major, self.minor, 0)
            return Version(self.major, self.minor + 1, 0)
        if self.is_prerelease:
            return Version(self.major, self.minor, self.patch)
        return Version(self.major, self.minor, self.patch + 1)

    def __str__(self) -> str:
        version = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            version = f"{version}-{self.prerelease}"
        if self.build:
            version = f"{version}+{self.build}"
        return version
