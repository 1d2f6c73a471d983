"""Shared fixtures for changelog-py tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from changelog_py.core.policy import ReleasePolicy


@pytest.fixture
def default_policy() -> ReleasePolicy:
    return ReleasePolicy.default()


@pytest.fixture
def temp_project(tmp_path: Path) -> Path:
    """A project directory with a pyproject.toml carrying tool settings."""
    (tmp_path / "pyproject.toml").write_text(
        """\
[project]
name = "test-project"
version = "1.0.0"

[tool.changelog-py.version]
tag_prefix = "v"

[tool.changelog-py.github]
owner = "octo"
repo = "hello"
"""
    )
    return tmp_path
