"""Configuration loading.

Tool settings come from ``[tool.changelog-py]`` in pyproject.toml. The
release policy comes from a YAML document (``.github/release.yml`` by
default) and falls back to the built-in conventional commits policy.
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import ValidationError

from changelog_py.config.models import ChangelogPyConfig, ReleaseConfig
from changelog_py.exceptions import ConfigNotFoundError, ConfigValidationError

if TYPE_CHECKING:
    from changelog_py.core.policy import ReleasePolicy

logger = logging.getLogger(__name__)

TOOL_SECTION = "changelog-py"


def find_pyproject_toml(start: Path | None = None) -> Path:
    """Find pyproject.toml in start or one of its parents.

    Args:
        start: Directory to start from (defaults to the current directory)

    Returns:
        Path to pyproject.toml

    Raises:
        ConfigNotFoundError: If no pyproject.toml exists up to the root
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / "pyproject.toml"
        if candidate.is_file():
            return candidate
    raise ConfigNotFoundError(f"No pyproject.toml found in {current} or its parents")


def load_pyproject_toml(path: Path) -> dict[str, Any]:
    """Read and parse a pyproject.toml file.

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigValidationError: If the file is not valid TOML
    """
    if not path.is_file():
        raise ConfigNotFoundError(f"File not found: {path}")
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigValidationError(f"Invalid TOML in {path}: {e}") from e


def extract_changelog_py_config(pyproject: dict[str, Any]) -> dict[str, Any]:
    """Return the ``[tool.changelog-py]`` table, or an empty dict."""
    return pyproject.get("tool", {}).get(TOOL_SECTION, {})


def find_project_root(start: Path | None = None) -> Path:
    """Directory holding pyproject.toml, or start itself if there is none."""
    try:
        return find_pyproject_toml(start).parent
    except ConfigNotFoundError:
        return (start or Path.cwd()).resolve()


def load_config(path: Path | None = None) -> ChangelogPyConfig:
    """Load tool settings for the project containing path.

    A missing pyproject.toml or a missing ``[tool.changelog-py]`` table
    yields the defaults.

    Raises:
        ConfigValidationError: If the settings are invalid
    """
    try:
        pyproject_path = find_pyproject_toml(path)
    except ConfigNotFoundError:
        logger.debug("No pyproject.toml found, using default configuration")
        return ChangelogPyConfig()

    data = extract_changelog_py_config(load_pyproject_toml(pyproject_path))
    try:
        return ChangelogPyConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(
            f"Invalid [tool.{TOOL_SECTION}] configuration in {pyproject_path}:\n{e}"
        ) from e


def load_release_policy(path: Path) -> ReleasePolicy:
    """Load the release policy document at path.

    Problems with the document never fail the run: a missing file, invalid
    YAML or a document without a ``changelog`` section all fall back to the
    built-in policy.

    Args:
        path: Path to the release policy YAML document

    Returns:
        The normalized policy
    """
    from changelog_py.core.policy import ReleasePolicy

    if not path.is_file():
        logger.debug("No release config at %s, using the default policy", path)
        return ReleasePolicy.default()

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        logger.warning("Failed to parse %s, using the default policy: %s", path, e)
        return ReleasePolicy.default()

    try:
        document = ReleaseConfig.model_validate(raw or {})
    except ValidationError as e:
        logger.warning("Invalid release config %s, using the default policy: %s", path, e)
        return ReleasePolicy.default()

    if document.changelog is None:
        return ReleasePolicy.default()

    policy = ReleasePolicy.from_config(document.changelog)
    missing = policy.categories_without_semver()
    if missing:
        logger.warning(
            "The following categories in %s have no 'semver' field and will not "
            "count toward automatic version bumps: %s",
            path,
            ", ".join(missing),
        )
    return policy
