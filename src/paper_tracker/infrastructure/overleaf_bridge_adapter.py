"""Overleaf adapter — every operation is forwarded to the compile bridge.

The bridge clones the project server-side, so all calls use the long
timeout tier.  Request bodies are ``{gitUrl, auth, ...operation fields}``.
"""

from __future__ import annotations

import base64
import logging
from typing import Any

import httpx

from paper_tracker.domain.entities import CommitInfo, FileChanges, FileEntry, RepositoryInfo
from paper_tracker.domain.exceptions import InvalidResponseError, RepoFileNotFoundError
from paper_tracker.domain.value_objects import EditorCredentials
from paper_tracker.infrastructure.error_interpreter import (
    ErrorContext,
    describe_http_error,
    error_for_status,
)
from paper_tracker.infrastructure.http_fetcher import DEFAULT_BATCH_TIMEOUT, BoundedFetcher
from paper_tracker.infrastructure.normalizers import parse_bridge_commit, parse_bridge_entry
from paper_tracker.infrastructure.provider_helpers import (
    build_bridge_headers,
    error_detail,
    safe_json,
)

logger = logging.getLogger(__name__)

DEFAULT_BRIDGE_TIMEOUT = DEFAULT_BATCH_TIMEOUT
_NOT_FOUND_MARKER = "not found"


class OverleafBridgeAdapter:
    """Concrete RepoProvider for Overleaf projects, via the compile bridge."""

    provider_name = "overleaf"

    def __init__(
        self,
        fetcher: BoundedFetcher,
        git_url: str,
        credentials: EditorCredentials,
        bridge_url: str,
        api_key: str | None = None,
        timeout: float = DEFAULT_BRIDGE_TIMEOUT,
    ) -> None:
        self._fetcher = fetcher
        self._git_url = git_url
        self._credentials = credentials
        self._bridge_url = bridge_url.rstrip("/")
        self._headers = build_bridge_headers(api_key)
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        return self._bridge_url

    @property
    def project_id(self) -> str:
        return self._git_url.rstrip("/").rsplit("/", maxsplit=1)[-1]

    # ── Metadata ────────────────────────────────────────────────────────

    async def fetch_repository_info(self, owner: str = "", repo: str = "") -> RepositoryInfo:
        """Use ``/git/refs`` to discover the default branch."""
        resp = await self._post("/git/refs", {})
        self._raise_for_status(resp, "Failed to access Overleaf project")
        data = self._json(resp, "Overleaf refs")
        return RepositoryInfo(
            name=f"Overleaf Project {self.project_id[:8]}",
            default_branch=data.get("defaultBranch") or "master",
            is_private=True,
        )

    async def fetch_latest_commit(
        self, owner: str, repo: str, branch: str, known_sha: str | None = None
    ) -> CommitInfo:
        """The bridge compares against *known_sha* and reports ``unchanged`` itself."""
        payload: dict[str, Any] = {"branch": branch}
        if known_sha:
            payload["knownSha"] = known_sha
        resp = await self._post("/git/refs", payload)
        self._raise_for_status(resp, "Failed to get Overleaf commit")

        return parse_bridge_commit(self._json(resp, "Overleaf refs"), known_sha=known_sha)

    # ── Content ─────────────────────────────────────────────────────────

    async def fetch_file_content(
        self, owner: str, repo: str, branch: str, file_path: str
    ) -> bytes:
        resp = await self._post("/git/file", {"filePath": file_path, "branch": branch})
        if resp.is_error:
            detail = error_detail(resp)
            if resp.status_code == 404 or _NOT_FOUND_MARKER in detail.lower():
                raise RepoFileNotFoundError(file_path, self.provider_name)
            self._raise_for_status(resp, "Failed to fetch file from Overleaf")

        data = self._json(resp, "Overleaf file")
        content = data.get("content") or ""
        if data.get("encoding") == "base64":
            return base64.b64decode(content)
        return content.encode("utf-8")

    async def list_files(
        self, owner: str, repo: str, branch: str, path: str | None = None
    ) -> list[FileEntry]:
        """The bridge returns the whole directory in a single response."""
        resp = await self._post("/git/tree", {"path": path or "", "branch": branch})
        self._raise_for_status(resp, "Failed to list Overleaf files")
        data = self._json(resp, "Overleaf tree")
        return [parse_bridge_entry(item) for item in data.get("files") or []]

    # ── Change detection ────────────────────────────────────────────────

    async def fetch_changed_files(
        self, owner: str, repo: str, base_sha: str, head_sha: str
    ) -> FileChanges:
        # No compare endpoint on the bridge: callers fall back to hashing
        return FileChanges.unavailable()

    async def fetch_file_hash(
        self, owner: str, repo: str, branch: str, file_path: str
    ) -> str | None:
        hashes = await self.fetch_file_hash_batch(owner, repo, branch, [file_path])
        return hashes.get(file_path)

    async def fetch_file_hash_batch(
        self, owner: str, repo: str, branch: str, file_paths: list[str]
    ) -> dict[str, str | None]:
        """A single bridge call hashes every path; missing paths map to ``None``."""
        if not file_paths:
            return {}
        resp = await self._post("/git/file-hash", {"filePaths": file_paths, "branch": branch})
        self._raise_for_status(resp, "Failed to get file hashes from Overleaf")
        reported = self._json(resp, "Overleaf file hashes").get("hashes") or {}
        return {path: reported.get(path) or None for path in file_paths}

    # ── Internals ───────────────────────────────────────────────────────

    async def _post(self, endpoint: str, payload: dict[str, Any]) -> httpx.Response:
        body = {"gitUrl": self._git_url, "auth": self._credentials.as_payload(), **payload}
        return await self._fetcher.post_json(
            f"{self._bridge_url}{endpoint}",
            body,
            headers=self._headers,
            timeout=self._timeout,
            provider_name=self.provider_name,
        )

    def _raise_for_status(self, resp: httpx.Response, prefix: str) -> None:
        if not resp.is_error:
            return
        ctx = ErrorContext(
            provider_label="Overleaf",
            owner="overleaf",
            repo=self.project_id,
            has_token=True,
            provider_name=self.provider_name,
        )
        status = resp.status_code
        message = f"{describe_http_error(status, ctx)} ({prefix}: {error_detail(resp)})"
        raise error_for_status(status, ctx, message=message)

    def _json(self, resp: httpx.Response, context: str) -> dict[str, Any]:
        data = safe_json(resp, context, self.provider_name)
        if not isinstance(data, dict):
            raise InvalidResponseError(f"Unexpected response from {context}", self.provider_name)
        return data
