"""Response normalizers — translate each provider's JSON into domain entities.

Pure functions.  Missing optional fields degrade to ``None``; a missing
identity field (commit SHA, repository name) raises
:class:`InvalidResponseError` because nothing downstream can work without it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from paper_tracker.domain.entities import CommitInfo, FileEntry, FileType, RepositoryInfo
from paper_tracker.domain.exceptions import InvalidResponseError


def _require(data: Any, key: str, context: str) -> Any:
    if not isinstance(data, dict) or not data.get(key):
        raise InvalidResponseError(f"{context} response is missing '{key}'")
    return data[key]


def _with_date_fallback(
    sha: str,
    message: str,
    date: str | None,
    author_name: str | None,
    author_email: str | None,
) -> CommitInfo:
    date_is_fallback = not date
    if date_is_fallback:
        date = datetime.now(timezone.utc).isoformat()
    return CommitInfo(
        sha=sha,
        message=message,
        date=date,
        date_is_fallback=date_is_fallback,
        author_name=author_name,
        author_email=author_email,
    )


# ── GitHub ──────────────────────────────────────────────────────────────────


def parse_github_commit(data: Any) -> CommitInfo:
    """``GET /repos/{o}/{r}/commits/{ref}`` → CommitInfo."""
    sha = _require(data, "sha", "GitHub commit")
    commit = data.get("commit") or {}
    committer = commit.get("committer") or {}
    author = commit.get("author") or {}
    return _with_date_fallback(
        sha=sha,
        message=commit.get("message") or "",
        date=committer.get("date") or author.get("date"),
        author_name=author.get("name"),
        author_email=author.get("email"),
    )


def parse_github_ref_sha(data: Any) -> str | None:
    """``GET /repos/{o}/{r}/git/ref/heads/{b}`` → head SHA."""
    if not isinstance(data, dict):
        return None
    obj = data.get("object") or {}
    return obj.get("sha")


def parse_github_repo_info(data: Any) -> RepositoryInfo:
    return RepositoryInfo(
        name=_require(data, "name", "GitHub repository"),
        full_name=data.get("full_name"),
        default_branch=data.get("default_branch") or "main",
        description=data.get("description"),
        is_private=bool(data.get("private", False)),
    )


def parse_github_entry(item: dict[str, Any]) -> FileEntry:
    return FileEntry(
        name=item["name"],
        path=item["path"],
        type=FileType.DIR if item.get("type") == "dir" else FileType.FILE,
        size=item.get("size"),
    )


def parse_github_compare(data: Any) -> list[str] | None:
    """Changed paths from the compare endpoint, or ``None`` when truncated."""
    if not isinstance(data, dict):
        return None
    files = data.get("files") or []
    total = data.get("total_files")
    if isinstance(total, int) and total > len(files):
        return None
    paths: list[str] = []
    for item in files:
        if item.get("filename"):
            paths.append(item["filename"])
        if item.get("previous_filename"):
            paths.append(item["previous_filename"])
    return paths


# ── GitLab ──────────────────────────────────────────────────────────────────


def parse_gitlab_commit(data: Any) -> CommitInfo:
    """``GET /projects/:id/repository/commits/:ref`` → CommitInfo."""
    return _with_date_fallback(
        sha=_require(data, "id", "GitLab commit"),
        message=data.get("message") or "",
        date=data.get("committed_date") or data.get("created_at"),
        author_name=data.get("author_name"),
        author_email=data.get("author_email"),
    )


def parse_gitlab_branch_sha(data: Any) -> str | None:
    """``GET /projects/:id/repository/branches/:b`` → head SHA."""
    if not isinstance(data, dict):
        return None
    commit = data.get("commit") or {}
    return commit.get("id")


def parse_gitlab_repo_info(data: Any) -> RepositoryInfo:
    return RepositoryInfo(
        name=_require(data, "name", "GitLab project"),
        full_name=data.get("path_with_namespace"),
        default_branch=data.get("default_branch") or "main",
        description=data.get("description") or None,
        is_private=data.get("visibility") != "public",
    )


def parse_gitlab_tree_entry(item: dict[str, Any]) -> FileEntry:
    # The tree endpoint does not report sizes
    return FileEntry(
        name=item["name"],
        path=item["path"],
        type=FileType.DIR if item.get("type") == "tree" else FileType.FILE,
    )


def parse_gitlab_compare(data: Any) -> list[str] | None:
    """Changed paths from the compare endpoint, or ``None`` when incomplete."""
    if not isinstance(data, dict):
        return None
    if data.get("compare_timeout") or data.get("overflow"):
        return None
    paths: list[str] = []
    for diff in data.get("diffs") or []:
        if diff.get("new_path"):
            paths.append(diff["new_path"])
        if diff.get("old_path"):
            paths.append(diff["old_path"])
    return paths


# ── Compile bridge ──────────────────────────────────────────────────────────


def parse_bridge_commit(data: Any, known_sha: str | None = None) -> CommitInfo:
    """``POST /git/refs`` → CommitInfo; the bridge decides ``unchanged`` itself.

    An ``unchanged`` reply may omit ``sha``; the caller's *known_sha* stands in.
    """
    if isinstance(data, dict) and data.get("unchanged"):
        sha = data.get("sha") or known_sha
        if sha:
            return CommitInfo(sha=sha, message=data.get("message") or "", unchanged=True)
    sha = _require(data, "sha", "Overleaf refs")
    return _with_date_fallback(
        sha=sha,
        message=data.get("message") or "Overleaf commit",
        date=data.get("date"),
        author_name=data.get("authorName"),
        author_email=data.get("authorEmail"),
    )


def parse_bridge_entry(item: dict[str, Any]) -> FileEntry:
    return FileEntry(
        name=item.get("name") or item["path"].rsplit("/", maxsplit=1)[-1],
        path=item["path"],
        type=FileType.DIR if item.get("type") in ("dir", "tree") else FileType.FILE,
        size=item.get("size"),
    )
