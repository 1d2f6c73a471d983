"""Command line interface for changelog-py."""

from __future__ import annotations

from changelog_py.cli.main import cli

__all__ = ["cli"]
