"""Port: repository provider — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Protocol

from paper_tracker.domain.entities import CommitInfo, FileChanges, FileEntry, RepositoryInfo


class RepoProvider(Protocol):
    """Uniform access contract for one source-control backend.

    Implementations are immutable once constructed: token and base URL are
    fixed in ``__init__``.
    """

    @property
    def provider_name(self) -> str:
        """Human-readable name, e.g. ``github`` or ``gitlab:work``."""
        ...

    @property
    def base_url(self) -> str:
        """Base URL outbound requests are issued against."""
        ...

    async def fetch_repository_info(self, owner: str, repo: str) -> RepositoryInfo:
        """Return repository metadata."""
        ...

    async def fetch_latest_commit(
        self, owner: str, repo: str, branch: str, known_sha: str | None = None
    ) -> CommitInfo:
        """Return the branch head, short-circuiting when *known_sha* is still current."""
        ...

    async def fetch_file_content(
        self, owner: str, repo: str, branch: str, file_path: str
    ) -> bytes:
        """Return raw file bytes; raise ``RepoFileNotFoundError`` if the file is gone."""
        ...

    async def list_files(
        self, owner: str, repo: str, branch: str, path: str | None = None
    ) -> list[FileEntry]:
        """List one directory level, every page materialized."""
        ...

    async def fetch_changed_files(
        self, owner: str, repo: str, base_sha: str, head_sha: str
    ) -> FileChanges:
        """Best-effort diff between two commits.  Never raises."""
        ...

    async def fetch_file_hash(
        self, owner: str, repo: str, branch: str, file_path: str
    ) -> str | None:
        """Return the content hash of one file, or ``None`` if unavailable."""
        ...

    async def fetch_file_hash_batch(
        self, owner: str, repo: str, branch: str, file_paths: list[str]
    ) -> dict[str, str | None]:
        """Return a hash (or ``None``) for every requested path."""
        ...
