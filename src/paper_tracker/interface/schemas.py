"""Pydantic request / response DTOs for the API boundary."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from paper_tracker.domain.entities import (
    CommitInfo,
    FileEntry,
    RepositoryInfo,
    StalenessReport,
    TrackedFile,
)


class RepositoryRequest(BaseModel):
    """Identifies a repository; ``user_id`` selects background credentials."""

    repo_url: str
    user_id: str | None = None

    @field_validator("repo_url")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            msg = "repo_url must not be empty."
            raise ValueError(msg)
        return stripped


class ListFilesRequest(RepositoryRequest):
    branch: str | None = None
    path: str | None = None


class FileContentRequest(RepositoryRequest):
    file_path: str
    branch: str | None = None


class LatestCommitRequest(RepositoryRequest):
    branch: str | None = None
    known_sha: str | None = None


class TrackedFileSchema(BaseModel):
    path: str
    dependencies: dict[str, str] = Field(default_factory=dict)

    def to_domain(self) -> TrackedFile:
        return TrackedFile(path=self.path, dependencies=dict(self.dependencies))


class ChangesRequest(LatestCommitRequest):
    tracked_files: list[TrackedFileSchema] = Field(default_factory=list)


class RepositoryInfoResponse(BaseModel):
    name: str
    full_name: str | None = None
    default_branch: str
    description: str | None = None
    is_private: bool

    @classmethod
    def from_domain(cls, info: RepositoryInfo) -> RepositoryInfoResponse:
        return cls(
            name=info.name,
            full_name=info.full_name,
            default_branch=info.default_branch,
            description=info.description,
            is_private=info.is_private,
        )


class FileEntryResponse(BaseModel):
    name: str
    path: str
    type: str
    size: int | None = None

    @classmethod
    def from_domain(cls, entry: FileEntry) -> FileEntryResponse:
        return cls(name=entry.name, path=entry.path, type=entry.type.value, size=entry.size)


class CommitResponse(BaseModel):
    sha: str
    message: str
    date: str | None = None
    unchanged: bool = False
    date_is_fallback: bool = False
    author_name: str | None = None
    author_email: str | None = None

    @classmethod
    def from_domain(cls, commit: CommitInfo) -> CommitResponse:
        return cls(
            sha=commit.sha,
            message=commit.message,
            date=commit.date,
            unchanged=commit.unchanged,
            date_is_fallback=commit.date_is_fallback,
            author_name=commit.author_name,
            author_email=commit.author_email,
        )


class ChangesResponse(BaseModel):
    commit: CommitResponse
    stale_paths: list[str]
    removed_paths: list[str]
    checked_individually: bool

    @classmethod
    def from_domain(cls, report: StalenessReport) -> ChangesResponse:
        return cls(
            commit=CommitResponse.from_domain(report.commit),
            stale_paths=report.stale_paths,
            removed_paths=report.removed_paths,
            checked_individually=report.checked_individually,
        )


class ErrorResponse(BaseModel):
    """Standard error envelope returned on all failure paths."""

    status: str = "error"
    code: str
    message: str
    file_path: str | None = None
