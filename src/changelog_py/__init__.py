"""changelog-py: changelogs and version bumps from git history and pull requests."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("changelog-py")
except PackageNotFoundError:
    __version__ = "0.0.0"
