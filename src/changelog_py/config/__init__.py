"""Configuration management for changelog-py."""

from __future__ import annotations

from changelog_py.config.loader import load_config, load_release_policy
from changelog_py.config.models import (
    CategoryConfig,
    ChangelogConfig,
    ChangelogPyConfig,
    ExcludeConfig,
    GitHubConfig,
    ReleaseChangelogConfig,
    ReleaseConfig,
    VersionConfig,
)

__all__ = [
    "CategoryConfig",
    "ChangelogConfig",
    "ChangelogPyConfig",
    "ExcludeConfig",
    "GitHubConfig",
    "ReleaseChangelogConfig",
    "ReleaseConfig",
    "VersionConfig",
    "load_config",
    "load_release_policy",
]
