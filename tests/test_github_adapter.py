"""Tests for the GitHub REST adapter against a mocked transport."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from conftest import RecordingHandler
from paper_tracker.domain.entities import FileType
from paper_tracker.domain.exceptions import (
    AccessDeniedError,
    AuthenticationFailedError,
    BatchTimeoutError,
    ProviderApiError,
    RepoFileNotFoundError,
    RepositoryNotFoundError,
)
from paper_tracker.infrastructure.github_rest_adapter import GitHubRestAdapter

FULL_COMMIT = {
    "sha": "new-sha",
    "commit": {
        "message": "Add results section",
        "author": {"name": "Ada", "email": "ada@example.com", "date": "2024-05-01T09:00:00Z"},
        "committer": {"date": "2024-05-01T09:30:00Z"},
    },
}


class TestLatestCommit:
    @pytest.mark.asyncio
    async def test_unchanged_head_skips_commit_fetch(self, make_fetcher):
        """Only the lightweight ref lookup runs when the SHA did not move."""
        handler = RecordingHandler(
            lambda r: httpx.Response(200, json={"object": {"sha": "known-sha"}})
        )
        adapter = GitHubRestAdapter(make_fetcher(handler), token="t")

        commit = await adapter.fetch_latest_commit("octo", "paper", "main", "known-sha")

        assert commit.unchanged is True
        assert commit.sha == "known-sha"
        assert handler.paths == ["/repos/octo/paper/git/ref/heads/main"]

    @pytest.mark.asyncio
    async def test_moved_head_returns_full_metadata(self, make_fetcher):
        def route(request):
            if "/git/ref/heads/" in request.url.path:
                return httpx.Response(200, json={"object": {"sha": "new-sha"}})
            return httpx.Response(200, json=FULL_COMMIT)

        handler = RecordingHandler(route)
        adapter = GitHubRestAdapter(make_fetcher(handler), token="t")

        commit = await adapter.fetch_latest_commit("octo", "paper", "main", "old-sha")

        assert commit.unchanged is False
        assert commit.sha == "new-sha"
        assert commit.message == "Add results section"
        assert commit.date == "2024-05-01T09:30:00Z"
        assert commit.author_email == "ada@example.com"
        assert handler.paths == [
            "/repos/octo/paper/git/ref/heads/main",
            "/repos/octo/paper/commits/main",
        ]

    @pytest.mark.asyncio
    async def test_failed_quick_check_falls_through(self, make_fetcher):
        def route(request):
            if "/git/ref/heads/" in request.url.path:
                raise httpx.ConnectError("reset", request=request)
            return httpx.Response(200, json=FULL_COMMIT)

        adapter = GitHubRestAdapter(make_fetcher(route))
        commit = await adapter.fetch_latest_commit("octo", "paper", "main", "old-sha")
        assert commit.sha == "new-sha"

    @pytest.mark.asyncio
    async def test_no_known_sha_goes_straight_to_commit(self, make_fetcher):
        handler = RecordingHandler(lambda r: httpx.Response(200, json=FULL_COMMIT))
        adapter = GitHubRestAdapter(make_fetcher(handler))
        await adapter.fetch_latest_commit("octo", "paper", "main")
        assert handler.paths == ["/repos/octo/paper/commits/main"]

    @pytest.mark.asyncio
    async def test_401_is_authentication_failure(self, make_fetcher):
        adapter = GitHubRestAdapter(make_fetcher(lambda r: httpx.Response(401)), token="t")
        with pytest.raises(AuthenticationFailedError, match="sign in with GitHub again"):
            await adapter.fetch_latest_commit("octo", "paper", "main")

    @pytest.mark.asyncio
    async def test_server_error_uses_shared_wording(self, make_fetcher):
        adapter = GitHubRestAdapter(make_fetcher(lambda r: httpx.Response(503)))
        with pytest.raises(ProviderApiError, match=r"GitHub API error \(HTTP 503\)") as exc_info:
            await adapter.fetch_latest_commit("octo", "paper", "main")
        assert exc_info.value.status_code == 503


class TestRepositoryInfo:
    @pytest.mark.asyncio
    async def test_parses_metadata_and_sends_token(self, make_fetcher):
        handler = RecordingHandler(
            lambda r: httpx.Response(
                200,
                json={
                    "name": "paper",
                    "full_name": "octo/paper",
                    "default_branch": "trunk",
                    "private": True,
                },
            )
        )
        adapter = GitHubRestAdapter(make_fetcher(handler), token="secret")

        info = await adapter.fetch_repository_info("octo", "paper")

        assert info.default_branch == "trunk"
        assert info.is_private is True
        assert handler.requests[0].headers["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_404_without_token_hints_sign_in(self, make_fetcher):
        adapter = GitHubRestAdapter(make_fetcher(lambda r: httpx.Response(404)))
        with pytest.raises(RepositoryNotFoundError, match="sign in with GitHub first"):
            await adapter.fetch_repository_info("octo", "paper")


class TestContent:
    @pytest.mark.asyncio
    async def test_raw_content(self, make_fetcher):
        handler = RecordingHandler(lambda r: httpx.Response(200, content=b"\\documentclass{article}"))
        adapter = GitHubRestAdapter(make_fetcher(handler))

        content = await adapter.fetch_file_content("octo", "paper", "main", "src/main.tex")

        assert content == b"\\documentclass{article}"
        assert handler.requests[0].url.host == "raw.githubusercontent.com"
        assert handler.paths == ["/octo/paper/main/src/main.tex"]

    @pytest.mark.asyncio
    async def test_missing_file_raises_file_not_found(self, make_fetcher):
        adapter = GitHubRestAdapter(make_fetcher(lambda r: httpx.Response(404)))
        with pytest.raises(RepoFileNotFoundError) as exc_info:
            await adapter.fetch_file_content("octo", "paper", "main", "old.tex")
        assert exc_info.value.file_path == "old.tex"
        assert exc_info.value.provider_name == "github"

    @pytest.mark.asyncio
    async def test_rate_limited_raw_fetch_is_access_denied(self, make_fetcher):
        adapter = GitHubRestAdapter(make_fetcher(lambda r: httpx.Response(403)), token="t")
        with pytest.raises(AccessDeniedError, match="Access denied to octo/paper"):
            await adapter.fetch_file_content("octo", "paper", "main", "main.tex")

    @pytest.mark.asyncio
    async def test_list_files(self, make_fetcher):
        handler = RecordingHandler(
            lambda r: httpx.Response(
                200,
                json=[
                    {"name": "main.tex", "path": "main.tex", "type": "file", "size": 120},
                    {"name": "figs", "path": "figs", "type": "dir", "size": 0},
                ],
            )
        )
        adapter = GitHubRestAdapter(make_fetcher(handler))

        entries = await adapter.list_files("octo", "paper", "main")

        assert [e.type for e in entries] == [FileType.FILE, FileType.DIR]
        assert handler.requests[0].url.params["ref"] == "main"


class TestChangeDetection:
    @pytest.mark.asyncio
    async def test_changed_files_complete(self, make_fetcher):
        handler = RecordingHandler(
            lambda r: httpx.Response(
                200, json={"total_files": 1, "files": [{"filename": "main.tex"}]}
            )
        )
        adapter = GitHubRestAdapter(make_fetcher(handler))

        changes = await adapter.fetch_changed_files("octo", "paper", "a1", "b2")

        assert changes.is_complete
        assert "main.tex" in changes
        assert handler.paths == ["/repos/octo/paper/compare/a1...b2"]

    @pytest.mark.asyncio
    async def test_transport_failure_means_unavailable(self, make_fetcher):
        def route(request):
            raise httpx.ConnectError("down", request=request)

        adapter = GitHubRestAdapter(make_fetcher(route))
        changes = await adapter.fetch_changed_files("octo", "paper", "a1", "b2")
        assert changes.is_complete is False

    @pytest.mark.asyncio
    async def test_truncated_compare_means_unavailable(self, make_fetcher):
        adapter = GitHubRestAdapter(
            make_fetcher(
                lambda r: httpx.Response(
                    200, json={"total_files": 500, "files": [{"filename": "a"}] * 300}
                )
            )
        )
        changes = await adapter.fetch_changed_files("octo", "paper", "a1", "b2")
        assert changes.is_complete is False

    @pytest.mark.asyncio
    async def test_batch_isolates_failing_path(self, make_fetcher):
        def route(request):
            if request.url.path.endswith("/gone.tex"):
                return httpx.Response(404)
            name = request.url.path.rsplit("/", 1)[-1]
            return httpx.Response(200, json={"sha": f"sha-{name}"})

        adapter = GitHubRestAdapter(make_fetcher(route))

        hashes = await adapter.fetch_file_hash_batch(
            "octo", "paper", "main", ["main.tex", "gone.tex", "refs.bib"]
        )

        assert hashes == {
            "main.tex": "sha-main.tex",
            "gone.tex": None,
            "refs.bib": "sha-refs.bib",
        }

    @pytest.mark.asyncio
    async def test_batch_timeout_fails_whole_batch(self, make_fetcher, monkeypatch):
        async def slow_hash(owner, repo, branch, file_path):
            await asyncio.sleep(5)
            return "x"

        adapter = GitHubRestAdapter(
            make_fetcher(lambda r: httpx.Response(200), request_timeout=0.05, batch_timeout=0.1)
        )
        monkeypatch.setattr(adapter, "fetch_file_hash", slow_hash)
        with pytest.raises(BatchTimeoutError):
            await adapter.fetch_file_hash_batch("octo", "paper", "main", ["a.tex", "b.tex"])
