"""HTTP boundary tests: routes and the error envelope, with providers mocked."""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import build_token_getters
from paper_tracker.domain.value_objects import EditorCredentials
from paper_tracker.infrastructure.http_fetcher import BoundedFetcher
from paper_tracker.infrastructure.provider_factory import ProviderFactory
from paper_tracker.interface.app import create_app
from paper_tracker.interface.dependencies import (
    get_factory,
    get_instances,
    get_token_getters,
)


def _github(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if request.url.host == "raw.githubusercontent.com":
        if path.endswith("/gone.tex"):
            return httpx.Response(404)
        return httpx.Response(200, content=b"\\section{Intro}")
    if path == "/repos/octo/paper":
        return httpx.Response(
            200, json={"name": "paper", "full_name": "octo/paper", "default_branch": "main"}
        )
    if path == "/repos/octo/missing":
        return httpx.Response(404)
    if path == "/repos/octo/paper/git/ref/heads/main":
        return httpx.Response(200, json={"object": {"sha": "head-sha"}})
    if path == "/repos/octo/paper/commits/main":
        return httpx.Response(200, json={"sha": "head-sha", "commit": {"message": "Update"}})
    if path == "/repos/octo/paper/compare/old-sha...head-sha":
        return httpx.Response(200, json={"total_files": 1, "files": [{"filename": "refs.bib"}]})
    if path == "/repos/octo/flaky/commits/main":
        raise httpx.ConnectError("reset", request=request)
    return httpx.Response(500)


@pytest.fixture
def client():
    app = create_app()
    fetcher = BoundedFetcher(httpx.AsyncClient(transport=httpx.MockTransport(_github)))
    app.dependency_overrides[get_factory] = lambda: ProviderFactory(fetcher)
    app.dependency_overrides[get_instances] = lambda: []
    app.dependency_overrides[get_token_getters] = lambda: build_token_getters()
    with TestClient(app) as test_client:
        yield test_client


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"


class TestRoutes:
    def test_info(self, client):
        resp = client.post("/repositories/info", json={"repo_url": "https://github.com/octo/paper"})
        assert resp.status_code == 200
        assert resp.json()["default_branch"] == "main"

    def test_preview(self, client):
        resp = client.post(
            "/repositories/preview", json={"repo_url": "https://github.com/octo/paper"}
        )
        assert resp.status_code == 200
        assert resp.json()["full_name"] == "octo/paper"

    def test_preview_rejects_overleaf(self, client):
        resp = client.post(
            "/repositories/preview",
            json={"repo_url": "https://www.overleaf.com/project/5f1a2b3c4d5e6f7a8b9c0d1e"},
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == "invalid_url"

    def test_latest_commit_unchanged(self, client):
        resp = client.post(
            "/repositories/latest-commit",
            json={
                "repo_url": "https://github.com/octo/paper",
                "branch": "main",
                "known_sha": "head-sha",
            },
        )
        assert resp.status_code == 200
        assert resp.json()["unchanged"] is True

    def test_file_content(self, client):
        resp = client.post(
            "/repositories/file-content",
            json={"repo_url": "https://github.com/octo/paper", "file_path": "intro.tex"},
        )
        assert resp.status_code == 200
        assert resp.content == b"\\section{Intro}"

    def test_changes_from_diff(self, client):
        resp = client.post(
            "/repositories/changes",
            json={
                "repo_url": "https://github.com/octo/paper",
                "branch": "main",
                "known_sha": "old-sha",
                "tracked_files": [
                    {"path": "main.tex", "dependencies": {"main.tex": "a", "refs.bib": "b"}},
                    {"path": "slides.tex", "dependencies": {"slides.tex": "c"}},
                ],
            },
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["commit"]["sha"] == "head-sha"
        assert body["stale_paths"] == ["main.tex"]
        assert body["checked_individually"] is False


class TestErrorEnvelope:
    def test_invalid_url(self, client):
        resp = client.post("/repositories/info", json={"repo_url": "https://github.com/octo"})
        assert resp.status_code == 422
        body = resp.json()
        assert body["status"] == "error"
        assert "https://github.com/octo" in body["message"]

    @pytest.mark.parametrize(
        "url", ["https://git.uni.edu/physics/thesis", "https://bitbucket.org/owner/repo"]
    )
    def test_unknown_host_is_invalid_url(self, client, url):
        resp = client.post("/repositories/info", json={"repo_url": url})
        assert resp.status_code == 422
        assert resp.json()["code"] == "invalid_url"

    def test_repository_not_found(self, client):
        resp = client.post(
            "/repositories/info", json={"repo_url": "https://github.com/octo/missing"}
        )
        assert resp.status_code == 404
        assert resp.json()["code"] == "repository_not_found"

    def test_file_not_found_names_the_file(self, client):
        resp = client.post(
            "/repositories/file-content",
            json={
                "repo_url": "https://github.com/octo/paper",
                "branch": "main",
                "file_path": "gone.tex",
            },
        )
        assert resp.status_code == 404
        assert resp.json() == {
            "status": "error",
            "code": "file_not_found",
            "message": "File not found in repository: gone.tex",
            "file_path": "gone.tex",
        }

    def test_missing_overleaf_credentials_asks_to_reauthenticate(self, client):
        resp = client.post(
            "/repositories/info",
            json={"repo_url": "https://git.overleaf.com/5f1a2b3c4d5e6f7a8b9c0d1e"},
        )
        assert resp.status_code == 401
        assert resp.json()["code"] == "reauthenticate"

    def test_missing_bridge_is_configuration_error(self, client):
        client.app.dependency_overrides[get_token_getters] = lambda: build_token_getters(
            overleaf=EditorCredentials("ada@example.com", "pw")
        )
        resp = client.post(
            "/repositories/info",
            json={"repo_url": "https://git.overleaf.com/5f1a2b3c4d5e6f7a8b9c0d1e"},
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == "configuration_error"

    def test_network_failure_says_try_again(self, client):
        resp = client.post(
            "/repositories/latest-commit",
            json={"repo_url": "https://github.com/octo/flaky", "branch": "main"},
        )
        assert resp.status_code == 502
        assert resp.json()["message"].endswith("Please try again later.")

    def test_blank_url_is_validation_error(self, client):
        resp = client.post("/repositories/info", json={"repo_url": "   "})
        assert resp.status_code == 422
        assert resp.json()["code"] == "validation_error"
