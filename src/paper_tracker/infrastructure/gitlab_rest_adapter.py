"""GitLab REST API (v4) adapter — implements the RepoProvider port.

Serves gitlab.com and self-hosted instances alike; a self-hosted adapter is
the same class constructed with the instance's base URL and name.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from paper_tracker.domain.entities import CommitInfo, FileChanges, FileEntry, RepositoryInfo
from paper_tracker.domain.exceptions import (
    PaperTrackerError,
    RepoFileNotFoundError,
)
from paper_tracker.infrastructure.error_interpreter import ErrorContext, error_for_status
from paper_tracker.infrastructure.http_fetcher import BoundedFetcher
from paper_tracker.infrastructure.normalizers import (
    parse_gitlab_branch_sha,
    parse_gitlab_commit,
    parse_gitlab_compare,
    parse_gitlab_repo_info,
    parse_gitlab_tree_entry,
)
from paper_tracker.infrastructure.provider_helpers import build_gitlab_headers, safe_json

logger = logging.getLogger(__name__)

GITLAB_CLOUD = "https://gitlab.com"
DEFAULT_PAGE_SIZE = 100


class GitLabRestAdapter:
    """Concrete RepoProvider backed by the GitLab v4 REST API."""

    def __init__(
        self,
        fetcher: BoundedFetcher,
        token: str | None = None,
        base_url: str = GITLAB_CLOUD,
        instance_name: str | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._fetcher = fetcher
        self._token = token or None
        self._base_url = base_url.rstrip("/")
        self._instance_name = instance_name
        self._page_size = page_size
        self._headers = build_gitlab_headers(self._token)
        self._provider_name = f"gitlab:{instance_name}" if instance_name else "gitlab"

    @property
    def provider_name(self) -> str:
        return self._provider_name

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def instance_name(self) -> str | None:
        return self._instance_name

    # ── Metadata ────────────────────────────────────────────────────────

    async def fetch_repository_info(self, owner: str, repo: str) -> RepositoryInfo:
        """GET /projects/:id → RepositoryInfo."""
        resp = await self._project_get(owner, repo, "")
        if resp.status_code != 200:
            raise error_for_status(resp.status_code, self._error_context(owner, repo))
        return parse_gitlab_repo_info(
            safe_json(resp, "GitLab repository info", self.provider_name)
        )

    async def fetch_latest_commit(
        self, owner: str, repo: str, branch: str, known_sha: str | None = None
    ) -> CommitInfo:
        """Return the head of *branch*, skipping the commit fetch if *known_sha* is current."""
        if known_sha:
            quick = await self._try_quick_check(owner, repo, branch, known_sha)
            if quick is not None:
                return quick

        resp = await self._project_get(
            owner, repo, f"/repository/commits/{quote(branch, safe='')}"
        )
        if resp.status_code != 200:
            raise error_for_status(resp.status_code, self._error_context(owner, repo))
        return parse_gitlab_commit(safe_json(resp, "GitLab commit info", self.provider_name))

    async def _try_quick_check(
        self, owner: str, repo: str, branch: str, known_sha: str
    ) -> CommitInfo | None:
        """Compare the branch head against *known_sha*; ``None`` means fetch the commit."""
        try:
            resp = await self._project_get(
                owner, repo, f"/repository/branches/{quote(branch, safe='')}"
            )
            if resp.status_code != 200:
                logger.debug(
                    "Branch lookup for %s/%s@%s returned %d", owner, repo, branch, resp.status_code
                )
                return None
            head_sha = parse_gitlab_branch_sha(
                safe_json(resp, "GitLab branch info", self.provider_name)
            )
        except PaperTrackerError:
            logger.debug("Branch lookup for %s/%s@%s failed", owner, repo, branch, exc_info=True)
            return None

        if head_sha == known_sha:
            return CommitInfo(sha=known_sha, unchanged=True)
        return None

    # ── Content ─────────────────────────────────────────────────────────

    async def fetch_file_content(
        self, owner: str, repo: str, branch: str, file_path: str
    ) -> bytes:
        """GET /projects/:id/repository/files/:path/raw → bytes."""
        resp = await self._project_get(
            owner, repo, f"/repository/files/{quote(file_path, safe='')}/raw",
            params={"ref": branch},
        )
        if resp.status_code == 200:
            return resp.content
        if resp.status_code == 404:
            raise RepoFileNotFoundError(file_path, self.provider_name)
        raise error_for_status(resp.status_code, self._error_context(owner, repo))

    async def list_files(
        self, owner: str, repo: str, branch: str, path: str | None = None
    ) -> list[FileEntry]:
        """GET /projects/:id/repository/tree, following pages until a short one."""
        entries: list[FileEntry] = []
        page = 1
        while True:
            params = {"ref": branch, "per_page": str(self._page_size), "page": str(page)}
            if path:
                params["path"] = path.strip("/")
            resp = await self._project_get(owner, repo, "/repository/tree", params=params)
            if resp.status_code != 200:
                raise error_for_status(resp.status_code, self._error_context(owner, repo))

            data = safe_json(resp, "GitLab directory listing", self.provider_name)
            if not isinstance(data, list):
                break
            entries.extend(parse_gitlab_tree_entry(item) for item in data)
            if len(data) < self._page_size:
                break
            page += 1
        return entries

    # ── Change detection ────────────────────────────────────────────────

    async def fetch_changed_files(
        self, owner: str, repo: str, base_sha: str, head_sha: str
    ) -> FileChanges:
        """GET /projects/:id/repository/compare → FileChanges (never raises)."""
        try:
            resp = await self._project_get(
                owner, repo, "/repository/compare", params={"from": base_sha, "to": head_sha}
            )
            if resp.status_code != 200:
                logger.info(
                    "GitLab compare API failed for %s/%s: HTTP %d", owner, repo, resp.status_code
                )
                return FileChanges.unavailable()
            paths = parse_gitlab_compare(safe_json(resp, "GitLab compare", self.provider_name))
        except Exception:
            logger.info("Failed to fetch changed files for %s/%s", owner, repo, exc_info=True)
            return FileChanges.unavailable()

        if paths is None:
            logger.info(
                "GitLab compare results incomplete for %s/%s; falling back to full checks",
                owner, repo,
            )
            return FileChanges.unavailable()
        return FileChanges.complete(paths)

    async def fetch_file_hash(
        self, owner: str, repo: str, branch: str, file_path: str
    ) -> str | None:
        """Blob id from ``HEAD /repository/files/:path`` (no content download)."""
        try:
            resp = await self._fetcher.head(
                self._project_url(owner, repo, f"/repository/files/{quote(file_path, safe='')}"),
                headers=self._headers,
                params={"ref": branch},
                provider_name=self.provider_name,
            )
        except PaperTrackerError:
            logger.debug("Hash lookup failed for %s", file_path, exc_info=True)
            return None
        if resp.status_code != 200:
            return None
        return resp.headers.get("X-Gitlab-Blob-Id") or None

    async def fetch_file_hash_batch(
        self, owner: str, repo: str, branch: str, file_paths: list[str]
    ) -> dict[str, str | None]:
        """One concurrent hash lookup per path, joined under the batch timeout."""
        hashes = await self._fetcher.gather(
            (self.fetch_file_hash(owner, repo, branch, path) for path in file_paths),
            what="GitLab batch hash fetch",
            provider_name=self.provider_name,
        )
        return dict(zip(file_paths, hashes))

    # ── Internals ───────────────────────────────────────────────────────

    def _project_url(self, owner: str, repo: str, suffix: str) -> str:
        project_id = quote(f"{owner}/{repo}", safe="")
        return f"{self._base_url}/api/v4/projects/{project_id}{suffix}"

    async def _project_get(
        self,
        owner: str,
        repo: str,
        suffix: str,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        return await self._fetcher.get(
            self._project_url(owner, repo, suffix),
            headers=self._headers,
            params=params,
            provider_name=self.provider_name,
        )

    def _error_context(self, owner: str, repo: str) -> ErrorContext:
        return ErrorContext(
            provider_label="GitLab",
            owner=owner,
            repo=repo,
            has_token=self._token is not None,
            instance_name=self._instance_name,
            provider_name=self.provider_name,
        )
