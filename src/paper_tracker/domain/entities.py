"""Domain entities — canonical records every provider normalizes into."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping


class FileType(str, Enum):
    """Kind of a directory listing entry."""

    FILE = "file"
    DIR = "dir"


@dataclass(frozen=True, slots=True)
class CommitInfo:
    """Head commit of a branch.

    ``unchanged=True`` means the caller's known SHA is still current; in that
    case *sha* equals the known SHA and *date* / *message* may be empty.
    """

    sha: str
    message: str = ""
    date: str | None = None
    unchanged: bool = False
    date_is_fallback: bool = False
    author_name: str | None = None
    author_email: str | None = None


@dataclass(frozen=True, slots=True)
class RepositoryInfo:
    """Read-only snapshot of repository metadata."""

    name: str
    default_branch: str
    is_private: bool
    full_name: str | None = None
    description: str | None = None


@dataclass(frozen=True, slots=True)
class FileEntry:
    """One entry of a directory listing.  ``size`` is best-effort."""

    name: str
    path: str
    type: FileType
    size: int | None = None


@dataclass(frozen=True, slots=True)
class FileChanges:
    """Outcome of a commit-to-commit diff.

    A *complete* result lists every path touched between the two commits (an
    empty tuple really means "nothing changed").  An *unavailable* result means
    the provider could not give a trustworthy answer and every tracked file
    has to be checked individually.
    """

    paths: tuple[str, ...] = ()
    is_complete: bool = False

    @classmethod
    def complete(cls, paths: list[str] | tuple[str, ...]) -> FileChanges:
        # dict.fromkeys keeps first-seen order while dropping duplicates
        return cls(paths=tuple(dict.fromkeys(p for p in paths if p)), is_complete=True)

    @classmethod
    def unavailable(cls) -> FileChanges:
        return cls()

    def __contains__(self, path: object) -> bool:
        return path in self.paths

    def __len__(self) -> int:
        return len(self.paths)


@dataclass(frozen=True, slots=True)
class TrackedFile:
    """A file whose compiled artifact is being kept up to date.

    *dependencies* maps each input path (the file itself included, when known)
    to the content hash recorded at the last successful build.
    """

    path: str
    dependencies: Mapping[str, str] = field(default_factory=dict)

    def watched_paths(self) -> list[str]:
        return list(dict.fromkeys([self.path, *self.dependencies]))


@dataclass(frozen=True, slots=True)
class StalenessReport:
    """Answer of a change-detection run."""

    commit: CommitInfo
    stale_paths: list[str] = field(default_factory=list)
    removed_paths: list[str] = field(default_factory=list)
    checked_individually: bool = False

    @property
    def has_changes(self) -> bool:
        return bool(self.stale_paths or self.removed_paths)
