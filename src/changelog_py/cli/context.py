"""Project setup shared by the CLI commands."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from rich.markup import escape

from changelog_py.config.loader import find_project_root, load_config, load_release_policy
from changelog_py.core.cache import ChangelogCache
from changelog_py.core.changelog import ChangelogGenerator
from changelog_py.exceptions import ChangelogPyError, ConfigError
from changelog_py.vcs.git import GitRepository, parse_github_remote
from changelog_py.vcs.github import GitHubCorrelator

if TYPE_CHECKING:
    from rich.console import Console

    from changelog_py.config.models import ChangelogPyConfig
    from changelog_py.core.policy import ReleasePolicy

logger = logging.getLogger(__name__)


@dataclass
class ProjectContext:
    """Everything a command needs to work on one project."""

    root: Path
    config: ChangelogPyConfig
    repo: GitRepository
    correlator: GitHubCorrelator
    policy: ReleasePolicy
    generator: ChangelogGenerator

    @property
    def changelog_path(self) -> Path:
        return self.root / self.config.effective_changelog_path

    def resolve_since(self, since: str | None) -> str | None:
        """Base revision: since if given, else the latest release tag."""
        if since:
            return since
        return self.repo.get_latest_tag(f"{self.config.effective_tag_prefix}*")


def _resolve_github(config: ChangelogPyConfig, repo: GitRepository) -> tuple[str, str]:
    if config.github.owner and config.github.repo:
        return config.github.owner, config.github.repo
    remote = repo.get_remote_url()
    parsed = parse_github_remote(remote) if remote else None
    if parsed is None:
        raise ConfigError(
            "Cannot determine the GitHub repository. Set [tool.changelog-py.github] "
            "owner and repo, or add a GitHub 'origin' remote."
        )
    return parsed


def load_project(path: str | None, err_console: Console) -> ProjectContext:
    """Load configuration, policy and collaborators for a project.

    Exits with status 1 after printing the error if anything fails.
    """
    start = Path(path) if path else Path.cwd()
    try:
        root = find_project_root(start)
        config = load_config(root)
        repo = GitRepository(start)
        owner, name = _resolve_github(config, repo)
        config.github.owner, config.github.repo = owner, name
        correlator = GitHubCorrelator(
            owner,
            name,
            token=os.environ.get(config.github.token_env),
            api_url=config.github.api_url,
        )
        policy_path = root / config.changelog.release_config
        policy = load_release_policy(policy_path)
    except ChangelogPyError as e:
        err_console.print(f"[red]Error loading project:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    if policy.is_default:
        logger.debug("Using the built-in conventional commits policy")
    else:
        logger.debug("Using release policy from %s", policy_path)

    generator = ChangelogGenerator(
        repo,
        correlator,
        policy,
        repo_url=config.github.html_url,
        cache=ChangelogCache(),
    )
    return ProjectContext(
        root=root,
        config=config,
        repo=repo,
        correlator=correlator,
        policy=policy,
        generator=generator,
    )
