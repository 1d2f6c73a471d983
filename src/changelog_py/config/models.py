"""Configuration models.

Two kinds of configuration exist:

- Tool settings, read from ``[tool.changelog-py]`` in pyproject.toml
  (ChangelogPyConfig and its nested models).
- The release policy document, ``.github/release.yml`` by default, which
  follows GitHub's release notes format with a few extensions
  (ReleaseConfig and its nested models).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# =============================================================================
# Tool settings
# =============================================================================


class ChangelogConfig(BaseModel):
    """Changelog file and generation settings."""

    model_config = ConfigDict(extra="forbid")

    path: Path = Field(default=Path("CHANGELOG.md"), description="Changelog file")
    release_config: Path = Field(
        default=Path(".github/release.yml"),
        description="Release policy document, relative to the project root",
    )
    max_leftovers: int = Field(
        default=24,
        ge=0,
        description="Maximum number of uncategorized entries to render",
    )
    unreleased_title: str = Field(default="Unreleased")


class VersionConfig(BaseModel):
    """Version and tag settings."""

    model_config = ConfigDict(extra="forbid")

    tag_prefix: str = Field(default="v", description="Prefix of release tags")


class GitHubConfig(BaseModel):
    """GitHub repository used for pull request lookups and links."""

    model_config = ConfigDict(extra="forbid")

    owner: str | None = None
    repo: str | None = None
    api_url: str = Field(
        default="https://api.github.com",
        description="API base URL (change for GitHub Enterprise)",
    )
    token_env: str = Field(
        default="GITHUB_TOKEN",
        description="Environment variable holding the API token",
    )

    @property
    def html_url(self) -> str:
        """Repository web URL used for pull request and commit links."""
        base = "https://github.com"
        if self.api_url.rstrip("/") != "https://api.github.com":
            base = self.api_url.split("/api/", 1)[0].rstrip("/")
        return f"{base}/{self.owner}/{self.repo}"


class ChangelogPyConfig(BaseModel):
    """Root configuration for changelog-py."""

    model_config = ConfigDict(extra="forbid")

    changelog: ChangelogConfig = Field(default_factory=ChangelogConfig)
    version: VersionConfig = Field(default_factory=VersionConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)

    @property
    def effective_tag_prefix(self) -> str:
        return self.version.tag_prefix

    @property
    def effective_changelog_path(self) -> Path:
        return self.changelog.path


# =============================================================================
# Release policy document (.github/release.yml)
# =============================================================================


class ExcludeConfig(BaseModel):
    """Labels and authors to leave out."""

    model_config = ConfigDict(extra="ignore")

    labels: list[str] = Field(default_factory=list)
    authors: list[str] = Field(default_factory=list)

    @field_validator("labels", "authors", mode="before")
    @classmethod
    def _empty_when_null(cls, value: object) -> object:
        return [] if value is None else value


class CategoryConfig(BaseModel):
    """One changelog category."""

    model_config = ConfigDict(extra="ignore")

    title: str
    labels: list[str] = Field(default_factory=list)
    commit_patterns: list[str] = Field(default_factory=list)
    semver: Literal["major", "minor", "patch"] | None = None
    exclude: ExcludeConfig = Field(default_factory=ExcludeConfig)

    @field_validator("labels", "commit_patterns", mode="before")
    @classmethod
    def _empty_when_null(cls, value: object) -> object:
        return [] if value is None else value

    @field_validator("exclude", mode="before")
    @classmethod
    def _default_exclude(cls, value: object) -> object:
        return {} if value is None else value


class ReleaseChangelogConfig(BaseModel):
    """The ``changelog`` section of the release policy document.

    Categories are kept as raw data here; they are validated one by one
    when the policy is built so that a single broken entry cannot take the
    whole document down.
    """

    model_config = ConfigDict(extra="ignore")

    exclude: ExcludeConfig = Field(default_factory=ExcludeConfig)
    categories: Any = None

    @field_validator("exclude", mode="before")
    @classmethod
    def _default_exclude(cls, value: object) -> object:
        return {} if value is None else value


class ReleaseConfig(BaseModel):
    """The release policy document."""

    model_config = ConfigDict(extra="ignore")

    changelog: ReleaseChangelogConfig | None = None
