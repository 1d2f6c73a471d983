"""Git history access through the git command line."""

from __future__ import annotations

import asyncio
import logging
import re
import subprocess
from pathlib import Path

from changelog_py.core.commits import Commit, extract_local_pr
from changelog_py.exceptions import GitError

logger = logging.getLogger(__name__)

_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
LOG_FORMAT = "%H%x1f%s%x1f%b%x1e"

_GITHUB_REMOTE = re.compile(r"github\.com[:/](?P<owner>[^/]+)/(?P<repo>[^/]+?)(?:\.git)?/?$")


def parse_log_output(output: str) -> list[Commit]:
    """Parse ``git log`` output produced with LOG_FORMAT.

    Args:
        output: Raw stdout of git log

    Returns:
        Commits in the order git printed them
    """
    commits = []
    for record in output.split(_RECORD_SEP):
        record = record.strip("\n")
        if not record:
            continue
        sha, title, body = (record.split(_FIELD_SEP, 2) + ["", ""])[:3]
        commits.append(
            Commit(
                sha=sha.strip(),
                title=title.strip(),
                body=body.strip(),
                pr=extract_local_pr(title),
            )
        )
    return commits


class GitRepository:
    """A git working tree.

    Args:
        path: Directory inside the working tree; history is limited to it
    """

    def __init__(self, path: Path | str = ".") -> None:
        self.path = Path(path).resolve()

    def _run(self, *args: str) -> str:
        try:
            result = subprocess.run(
                ["git", *args],
                capture_output=True,
                text=True,
                check=True,
                cwd=self.path,
            )
        except FileNotFoundError as e:
            raise GitError("git executable not found") from e
        except subprocess.CalledProcessError as e:
            raise GitError(
                f"git {args[0]} failed with exit code {e.returncode}",
                stderr=e.stderr,
            ) from e
        return result.stdout

    async def get_changes_since(self, rev: str | None, until: str | None = None) -> list[Commit]:
        """Non-merge commits after rev touching this directory, newest first.

        Args:
            rev: Base revision (exclusive); None for the whole history
            until: Last revision to include; HEAD by default

        Raises:
            GitError: If git fails, e.g. for an unknown revision
        """
        target = until or "HEAD"
        revision_range = f"{rev}..{target}" if rev else target
        output = await asyncio.to_thread(
            self._run,
            "log",
            "--no-merges",
            f"--format={LOG_FORMAT}",
            revision_range,
            "--",
            ".",
        )
        commits = parse_log_output(output)
        logger.debug("git log %s returned %d commit(s)", revision_range, len(commits))
        return commits

    def get_latest_tag(self, pattern: str | None = None) -> str | None:
        """Most recent tag reachable from HEAD, optionally matching a glob.

        Returns:
            The tag name, or None if there is no such tag
        """
        args = ["describe", "--tags", "--abbrev=0"]
        if pattern:
            args.extend(["--match", pattern])
        try:
            return self._run(*args).strip() or None
        except GitError as e:
            if e.stderr is None:
                raise
            logger.debug("No tag found: %s", e)
            return None

    def get_remote_url(self, name: str = "origin") -> str | None:
        """URL of a remote, or None if it is not configured."""
        try:
            return self._run("remote", "get-url", name).strip() or None
        except GitError as e:
            if e.stderr is None:
                raise
            return None


def parse_github_remote(url: str) -> tuple[str, str] | None:
    """Extract (owner, repo) from a GitHub remote URL.

    >>> parse_github_remote("git@github.com:octo/hello.git")
    ('octo', 'hello')
    """
    match = _GITHUB_REMOTE.search(url.strip())
    if match is None:
        return None
    return match.group("owner"), match.group("repo")
