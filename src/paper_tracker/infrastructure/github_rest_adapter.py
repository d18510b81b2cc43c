"""GitHub REST API adapter — implements the RepoProvider port."""

from __future__ import annotations

import logging

import httpx

from paper_tracker.domain.entities import CommitInfo, FileChanges, FileEntry, RepositoryInfo
from paper_tracker.domain.exceptions import (
    PaperTrackerError,
    RepoFileNotFoundError,
)
from paper_tracker.infrastructure.error_interpreter import ErrorContext, error_for_status
from paper_tracker.infrastructure.http_fetcher import BoundedFetcher, encode_path
from paper_tracker.infrastructure.normalizers import (
    parse_github_commit,
    parse_github_compare,
    parse_github_entry,
    parse_github_ref_sha,
    parse_github_repo_info,
)
from paper_tracker.infrastructure.provider_helpers import build_github_headers, safe_json

logger = logging.getLogger(__name__)

GITHUB_API = "https://api.github.com"
RAW_BASE = "https://raw.githubusercontent.com"


class GitHubRestAdapter:
    """Concrete RepoProvider backed by the GitHub v3 REST API."""

    provider_name = "github"

    def __init__(
        self,
        fetcher: BoundedFetcher,
        token: str | None = None,
        api_base: str = GITHUB_API,
        raw_base: str = RAW_BASE,
    ) -> None:
        self._fetcher = fetcher
        self._token = token or None
        self._api_base = api_base.rstrip("/")
        self._raw_base = raw_base.rstrip("/")
        self._api_headers = build_github_headers(self._token)

    @property
    def base_url(self) -> str:
        return self._api_base

    # ── Metadata ────────────────────────────────────────────────────────

    async def fetch_repository_info(self, owner: str, repo: str) -> RepositoryInfo:
        """GET /repos/{owner}/{repo} → RepositoryInfo."""
        resp = await self._api_get(f"/repos/{owner}/{repo}")
        if resp.status_code != 200:
            raise error_for_status(resp.status_code, self._error_context(owner, repo))
        return parse_github_repo_info(
            safe_json(resp, "GitHub repository info", self.provider_name)
        )

    async def fetch_latest_commit(
        self, owner: str, repo: str, branch: str, known_sha: str | None = None
    ) -> CommitInfo:
        """Return the head of *branch*, skipping the commit fetch if *known_sha* is current."""
        if known_sha:
            quick = await self._try_quick_check(owner, repo, branch, known_sha)
            if quick is not None:
                return quick

        resp = await self._api_get(f"/repos/{owner}/{repo}/commits/{encode_path(branch)}")
        if resp.status_code != 200:
            raise error_for_status(resp.status_code, self._error_context(owner, repo))
        return parse_github_commit(safe_json(resp, "GitHub commit info", self.provider_name))

    async def _try_quick_check(
        self, owner: str, repo: str, branch: str, known_sha: str
    ) -> CommitInfo | None:
        """Compare the lightweight ref lookup against *known_sha*.

        Returns the short-circuit result, or ``None`` when the SHA moved or
        the lookup failed.
        """
        try:
            resp = await self._api_get(
                f"/repos/{owner}/{repo}/git/ref/heads/{encode_path(branch)}"
            )
            if resp.status_code != 200:
                logger.debug("Ref lookup for %s/%s@%s returned %d", owner, repo, branch, resp.status_code)
                return None
            head_sha = parse_github_ref_sha(safe_json(resp, "GitHub ref info", self.provider_name))
        except PaperTrackerError:
            logger.debug("Ref lookup for %s/%s@%s failed", owner, repo, branch, exc_info=True)
            return None

        if head_sha == known_sha:
            return CommitInfo(sha=known_sha, unchanged=True)
        return None

    # ── Content ─────────────────────────────────────────────────────────

    async def fetch_file_content(
        self, owner: str, repo: str, branch: str, file_path: str
    ) -> bytes:
        """Fetch raw bytes via raw.githubusercontent.com (no base64 inflation)."""
        raw_url = f"{self._raw_base}/{owner}/{repo}/{encode_path(branch)}/{encode_path(file_path)}"
        resp = await self._fetcher.get(
            raw_url,
            headers=build_github_headers(self._token, raw=True),
            provider_name=self.provider_name,
        )
        if resp.status_code == 200:
            return resp.content
        if resp.status_code == 404:
            raise RepoFileNotFoundError(file_path, self.provider_name)
        raise error_for_status(resp.status_code, self._error_context(owner, repo))

    async def list_files(
        self, owner: str, repo: str, branch: str, path: str | None = None
    ) -> list[FileEntry]:
        """GET /repos/{owner}/{repo}/contents/{path}?ref={branch} → [FileEntry].

        The contents endpoint returns a whole directory in one response.
        """
        endpoint = f"/repos/{owner}/{repo}/contents"
        if path:
            endpoint = f"{endpoint}/{encode_path(path.strip('/'))}"
        resp = await self._api_get(endpoint, params={"ref": branch})
        if resp.status_code != 200:
            raise error_for_status(resp.status_code, self._error_context(owner, repo))

        data = safe_json(resp, "GitHub directory listing", self.provider_name)
        items = data if isinstance(data, list) else [data]
        return [parse_github_entry(item) for item in items]

    # ── Change detection ────────────────────────────────────────────────

    async def fetch_changed_files(
        self, owner: str, repo: str, base_sha: str, head_sha: str
    ) -> FileChanges:
        """GET /repos/{owner}/{repo}/compare/{base}...{head} → FileChanges (never raises)."""
        try:
            resp = await self._api_get(f"/repos/{owner}/{repo}/compare/{base_sha}...{head_sha}")
            if resp.status_code != 200:
                logger.info("GitHub compare API failed for %s/%s: HTTP %d", owner, repo, resp.status_code)
                return FileChanges.unavailable()
            paths = parse_github_compare(safe_json(resp, "GitHub compare", self.provider_name))
        except Exception:
            logger.info("Failed to fetch changed files for %s/%s", owner, repo, exc_info=True)
            return FileChanges.unavailable()

        if paths is None:
            logger.info("GitHub compare results truncated for %s/%s; falling back to full checks", owner, repo)
            return FileChanges.unavailable()
        return FileChanges.complete(paths)

    async def fetch_file_hash(
        self, owner: str, repo: str, branch: str, file_path: str
    ) -> str | None:
        """Git blob SHA from the contents endpoint, ``None`` on any failure."""
        try:
            resp = await self._api_get(
                f"/repos/{owner}/{repo}/contents/{encode_path(file_path)}",
                params={"ref": branch},
            )
            if resp.status_code != 200:
                return None
            data = safe_json(resp, "GitHub file info", self.provider_name)
        except PaperTrackerError:
            logger.debug("Hash lookup failed for %s", file_path, exc_info=True)
            return None
        return data.get("sha") if isinstance(data, dict) else None

    async def fetch_file_hash_batch(
        self, owner: str, repo: str, branch: str, file_paths: list[str]
    ) -> dict[str, str | None]:
        """One concurrent hash lookup per path, joined under the batch timeout."""
        hashes = await self._fetcher.gather(
            (self.fetch_file_hash(owner, repo, branch, path) for path in file_paths),
            what="GitHub batch hash fetch",
            provider_name=self.provider_name,
        )
        return dict(zip(file_paths, hashes))

    # ── Internals ───────────────────────────────────────────────────────

    async def _api_get(
        self,
        endpoint: str,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        return await self._fetcher.get(
            f"{self._api_base}{endpoint}",
            headers=self._api_headers,
            params=params,
            provider_name=self.provider_name,
        )

    def _error_context(self, owner: str, repo: str) -> ErrorContext:
        return ErrorContext(
            provider_label="GitHub",
            owner=owner,
            repo=repo,
            has_token=self._token is not None,
            provider_name=self.provider_name,
        )
