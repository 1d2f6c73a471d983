"""Unit tests for GitHub pull request lookups."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests
from urllib3.util.retry import Retry

from changelog_py.core.commits import CurrentPullRequest, PullRequestMetadata
from changelog_py.exceptions import GitHubError
from changelog_py.vcs.github import GitHubCorrelator, build_commits_query, parse_commit_info

SHA_A = "a" * 40
SHA_B = "b" * 40
SHA_C = "c" * 40


def response(status_code: int = 200, payload: dict | None = None) -> MagicMock:
    mock = MagicMock(status_code=status_code)
    mock.json.return_value = payload or {}
    return mock


@pytest.fixture
def correlator(monkeypatch: pytest.MonkeyPatch) -> GitHubCorrelator:
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    return GitHubCorrelator("octo", "hello", token="secret")


class TestBuildCommitsQuery:
    """Tests for build_commits_query()."""

    def test_aliases_per_commit(self):
        query = build_commits_query("octo", "hello", [SHA_A, SHA_B])

        assert 'repository(name: "hello", owner: "octo")' in query
        assert f'C{SHA_A}: object(oid: "{SHA_A}") {{...PRFragment}}' in query
        assert f'C{SHA_B}: object(oid: "{SHA_B}") {{...PRFragment}}' in query
        assert "fragment PRFragment on Commit" in query


class TestParseCommitInfo:
    """Tests for parse_commit_info()."""

    def test_commit_with_pull_request(self):
        repository = {
            f"C{SHA_A}": {
                "author": {"user": {"login": "committer"}},
                "associatedPullRequests": {
                    "nodes": [
                        {
                            "author": {"login": "alice"},
                            "number": 42,
                            "title": "feat: add thing",
                            "body": "Details",
                            "labels": {"nodes": [{"name": "enhancement"}, {"name": "api"}]},
                        }
                    ]
                },
            }
        }

        assert parse_commit_info(repository) == {
            SHA_A: PullRequestMetadata(
                author="alice",
                pr_number="42",
                pr_title="feat: add thing",
                pr_body="Details",
                labels=("enhancement", "api"),
            )
        }

    def test_commit_without_pull_request(self):
        repository = {
            f"C{SHA_B}": {
                "author": {"user": {"login": "bob"}},
                "associatedPullRequests": {"nodes": []},
            }
        }

        assert parse_commit_info(repository) == {SHA_B: PullRequestMetadata(author="bob")}

    def test_unknown_commit(self):
        assert parse_commit_info({f"C{SHA_C}": None}) == {SHA_C: None}

    def test_ghost_author(self):
        repository = {
            f"C{SHA_A}": {
                "author": {"user": None},
                "associatedPullRequests": {
                    "nodes": [{"author": None, "number": 1, "title": "x", "body": None}]
                },
            }
        }

        metadata = parse_commit_info(repository)[SHA_A]

        assert metadata == PullRequestMetadata(pr_number="1", pr_title="x", pr_body="")


class TestGitHubCorrelator:
    """Tests for GitHubCorrelator with a mocked HTTP session."""

    def test_token_header(self, correlator: GitHubCorrelator):
        assert correlator.session.headers["Authorization"] == "Bearer secret"

    def test_token_from_environment(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("GITHUB_TOKEN", "from-env")

        correlator = GitHubCorrelator("octo", "hello")

        assert correlator.session.headers["Authorization"] == "Bearer from-env"

    def test_anonymous(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)

        correlator = GitHubCorrelator("octo", "hello")

        assert "Authorization" not in correlator.session.headers

    def test_retries_transient_errors(self, correlator: GitHubCorrelator):
        adapter = correlator.session.get_adapter("https://api.github.com/graphql")

        assert isinstance(adapter.max_retries, Retry)
        assert adapter.max_retries.total == 3
        assert 502 in adapter.max_retries.status_forcelist
        assert "POST" in adapter.max_retries.allowed_methods

    @pytest.mark.parametrize(
        ("api_url", "expected"),
        [
            ("https://api.github.com", "https://api.github.com/graphql"),
            ("https://github.example.com/api/v3/", "https://github.example.com/api/graphql"),
        ],
    )
    def test_graphql_url(self, api_url: str, expected: str):
        assert GitHubCorrelator("o", "r", token="t", api_url=api_url).graphql_url == expected

    @pytest.mark.asyncio
    async def test_fetch(self, correlator: GitHubCorrelator):
        payload = {
            "data": {
                "repository": {
                    f"C{SHA_A}": {
                        "author": {"user": {"login": "alice"}},
                        "associatedPullRequests": {"nodes": []},
                    },
                    f"C{SHA_B}": None,
                }
            }
        }
        with patch.object(correlator.session, "request", return_value=response(200, payload)):
            result = await correlator.fetch([SHA_A, SHA_B])

            call = correlator.session.request.call_args

        assert result == {SHA_A: PullRequestMetadata(author="alice"), SHA_B: None}
        assert call.args == ("POST", "https://api.github.com/graphql")
        assert SHA_A in call.kwargs["json"]["query"]

    @pytest.mark.asyncio
    async def test_fetch_nothing(self, correlator: GitHubCorrelator):
        with patch.object(correlator.session, "request") as mock_request:
            assert await correlator.fetch([]) == {}

        mock_request.assert_not_called()

    @pytest.mark.asyncio
    async def test_graphql_errors(self, correlator: GitHubCorrelator):
        payload = {"errors": [{"message": "Could not resolve to a Repository"}]}
        with patch.object(correlator.session, "request", return_value=response(200, payload)):
            with pytest.raises(GitHubError, match="Could not resolve"):
                await correlator.fetch([SHA_A])

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status_code", "message"),
        [
            (401, "Invalid GitHub token"),
            (404, "not found"),
            (502, "HTTP 502"),
        ],
    )
    async def test_http_errors(self, correlator: GitHubCorrelator, status_code: int, message: str):
        with patch.object(correlator.session, "request", return_value=response(status_code)):
            with pytest.raises(GitHubError, match=message):
                await correlator.fetch([SHA_A])

    @pytest.mark.asyncio
    async def test_connection_error(self, correlator: GitHubCorrelator):
        error = requests.ConnectionError("unreachable")
        with patch.object(correlator.session, "request", side_effect=error):
            with pytest.raises(GitHubError, match="unreachable"):
                await correlator.fetch([SHA_A])

    @pytest.mark.asyncio
    async def test_get_pull_request(self, correlator: GitHubCorrelator):
        payload = {
            "number": 9,
            "title": "feat: preview",
            "body": None,
            "user": {"login": "bob"},
            "labels": [{"name": "enhancement"}],
            "base": {"ref": "main"},
        }
        with patch.object(correlator.session, "request", return_value=response(200, payload)):
            pr = await correlator.get_pull_request(9)

            call = correlator.session.request.call_args

        assert pr == CurrentPullRequest(
            number=9,
            title="feat: preview",
            body="",
            author="bob",
            labels=("enhancement",),
        )
        assert call.args == ("GET", "https://api.github.com/repos/octo/hello/pulls/9")
