"""GitHub lookups of pull request data for commits.

Commits are resolved in batches with a single GraphQL query each; every
commit gets an alias (``C<sha>``, since aliases cannot start with a digit)
selecting the first associated pull request.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from changelog_py.core.commits import CurrentPullRequest, PullRequestMetadata
from changelog_py.exceptions import GitHubError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEOUT = 30

_PR_FRAGMENT = """
fragment PRFragment on Commit {
  author {
    user { login }
  }
  associatedPullRequests(first: 1) {
    nodes {
      author { login }
      number
      title
      body
      labels(first: 50) {
        nodes { name }
      }
    }
  }
}"""


def build_commits_query(owner: str, repo: str, shas: list[str]) -> str:
    """GraphQL query resolving pull request data for the given commits."""
    aliases = "\n".join(f'    C{sha}: object(oid: "{sha}") {{...PRFragment}}' for sha in shas)
    return (
        "{\n"
        f'  repository(name: "{repo}", owner: "{owner}") {{\n'
        f"{aliases}\n"
        "  }\n"
        "}\n" + _PR_FRAGMENT
    )


def parse_commit_info(repository: dict[str, Any]) -> dict[str, PullRequestMetadata | None]:
    """Turn the ``repository`` object of a query response into metadata.

    Commits GitHub does not know about map to None. Commits without a pull
    request map to metadata that only carries the commit author.
    """
    result: dict[str, PullRequestMetadata | None] = {}
    for alias, info in repository.items():
        sha = alias[1:]
        if not info:
            result[sha] = None
            continue

        nodes = (info.get("associatedPullRequests") or {}).get("nodes") or []
        pr = nodes[0] if nodes else None
        if pr is None:
            user = (info.get("author") or {}).get("user") or {}
            result[sha] = PullRequestMetadata(author=user.get("login"))
            continue

        labels = ((pr.get("labels") or {}).get("nodes")) or []
        result[sha] = PullRequestMetadata(
            author=(pr.get("author") or {}).get("login"),
            pr_number=str(pr["number"]),
            pr_title=pr.get("title"),
            pr_body=pr.get("body") or "",
            labels=tuple(label["name"] for label in labels),
        )
    return result


class GitHubCorrelator:
    """Pull request metadata from the GitHub API.

    Args:
        owner: Repository owner
        repo: Repository name
        token: API token; read from GITHUB_TOKEN when not given
        api_url: REST API base URL
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        *,
        token: str | None = None,
        api_url: str = DEFAULT_API_URL,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

        self.session = requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/vnd.github+json",
                "User-Agent": "changelog-py",
            }
        )
        token = token or os.environ.get("GITHUB_TOKEN")
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

        retry_strategy = Retry(
            total=3,
            status_forcelist=[429, 500, 502, 503, 504],
            backoff_factor=1,
            allowed_methods=["GET", "POST"],
        )
        self.session.mount("https://", HTTPAdapter(max_retries=retry_strategy))

    @property
    def graphql_url(self) -> str:
        # GitHub Enterprise serves GraphQL at /api/graphql next to /api/v3
        if self.api_url.endswith("/v3"):
            return f"{self.api_url[:-3]}/graphql"
        return f"{self.api_url}/graphql"

    async def fetch(self, shas: list[str]) -> dict[str, PullRequestMetadata | None]:
        """Look up pull request data for a batch of commits.

        Raises:
            GitHubError: If the request fails or GitHub reports errors
        """
        if not shas:
            return {}
        query = build_commits_query(self.owner, self.repo, shas)
        logger.debug("Running GraphQL query for %d commit(s)", len(shas))
        data = await asyncio.to_thread(self._graphql, query)
        return parse_commit_info(data.get("repository") or {})

    async def get_pull_request(self, number: int) -> CurrentPullRequest:
        """Fetch an open pull request for highlight previews.

        Raises:
            GitHubError: If the pull request cannot be fetched
        """
        url = f"{self.api_url}/repos/{self.owner}/{self.repo}/pulls/{number}"
        data = await asyncio.to_thread(self._request, "GET", url)
        return CurrentPullRequest(
            number=int(data["number"]),
            title=data.get("title") or "",
            body=data.get("body") or "",
            author=(data.get("user") or {}).get("login"),
            labels=tuple(label["name"] for label in data.get("labels") or []),
        )

    def _graphql(self, query: str) -> dict[str, Any]:
        payload = self._request("POST", self.graphql_url, json={"query": query})
        errors = payload.get("errors")
        if errors:
            messages = "; ".join(str(error.get("message", error)) for error in errors)
            raise GitHubError(f"GitHub GraphQL query failed: {messages}")
        return payload.get("data") or {}

    def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise GitHubError(f"GitHub request to {url} failed: {e}") from e

        if response.status_code == 401:
            raise GitHubError("Invalid GitHub token or insufficient permissions")
        if response.status_code == 404:
            raise GitHubError(f"GitHub resource not found: {url}")
        if response.status_code != 200:
            raise GitHubError(f"GitHub API error: HTTP {response.status_code}")
        return response.json()
