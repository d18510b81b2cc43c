"""Change-detection use case — decide which tracked files need a rebuild.

Depends only on the :class:`RepoProvider` port.  The cheapest sufficient
check wins:

1. head SHA still equals the known SHA → nothing is stale;
2. a complete commit diff → stale iff a watched path was touched;
3. otherwise one batch of content hashes, compared with the hashes
   recorded at the last build.

A missing hash only means "could not be read".  A tracked file is reported
removed only after a content fetch confirms it is gone; any other failure
marks it stale.

A file whose recorded inputs are unknown is rebuilt on any new commit.
"""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

from paper_tracker.domain.entities import (
    CommitInfo,
    FileChanges,
    StalenessReport,
    TrackedFile,
)
from paper_tracker.domain.exceptions import PaperTrackerError, RepoFileNotFoundError
from paper_tracker.domain.ports.repo_provider import RepoProvider

logger = logging.getLogger(__name__)


class ChangeDetectionUseCase:
    """Compare the upstream branch with what the tracked files were built from.

    Parameters
    ----------
    provider:
        Adapter returned by the provider factory.
    owner, repo:
        Coordinates returned alongside the adapter.
    """

    def __init__(self, provider: RepoProvider, owner: str, repo: str) -> None:
        self._provider = provider
        self._owner = owner
        self._repo = repo

    async def check(
        self,
        branch: str,
        tracked_files: Sequence[TrackedFile],
        known_sha: str | None = None,
    ) -> StalenessReport:
        """Return which of *tracked_files* are stale at the head of *branch*.

        Errors from the commit lookup and a batch-hash timeout propagate:
        partial information is never reported as "unchanged".
        """
        commit = await self._provider.fetch_latest_commit(
            self._owner, self._repo, branch, known_sha
        )
        if commit.unchanged or (known_sha is not None and commit.sha == known_sha):
            logger.info("%s/%s@%s unchanged at %s", self._owner, self._repo, branch, commit.sha)
            return StalenessReport(commit=commit)

        if not tracked_files:
            return StalenessReport(commit=commit)

        if known_sha is not None:
            changes = await self._provider.fetch_changed_files(
                self._owner, self._repo, known_sha, commit.sha
            )
            if changes.is_complete:
                return self._from_diff(commit, tracked_files, changes)
            logger.info(
                "Diff unavailable for %s/%s %s..%s; checking %d files individually",
                self._owner, self._repo, known_sha[:7], commit.sha[:7], len(tracked_files),
            )

        hashes = await self._provider.fetch_file_hash_batch(
            self._owner, self._repo, branch, _all_watched_paths(tracked_files)
        )
        unreadable = [t.path for t in tracked_files if hashes.get(t.path) is None]
        removed = await self._confirm_removed(branch, unreadable)
        return self._from_hashes(commit, tracked_files, hashes, removed)

    async def _confirm_removed(self, branch: str, paths: Sequence[str]) -> set[str]:
        """Return the subset of *paths* the provider reports as not found."""
        removed: set[str] = set()
        for path in paths:
            try:
                await self._provider.fetch_file_content(self._owner, self._repo, branch, path)
            except RepoFileNotFoundError:
                removed.add(path)
            except PaperTrackerError:
                logger.info(
                    "Could not read %s in %s/%s; treating it as stale",
                    path, self._owner, self._repo, exc_info=True,
                )
        return removed

    # ── Decision rules ──────────────────────────────────────────────────

    @staticmethod
    def _from_diff(
        commit: CommitInfo, tracked_files: Sequence[TrackedFile], changes: FileChanges
    ) -> StalenessReport:
        stale = [
            tracked.path
            for tracked in tracked_files
            if not tracked.dependencies
            or any(path in changes for path in tracked.watched_paths())
        ]
        logger.info("%d of %d tracked files touched by %d changed paths",
                    len(stale), len(tracked_files), len(changes))
        return StalenessReport(commit=commit, stale_paths=stale)

    @staticmethod
    def _from_hashes(
        commit: CommitInfo,
        tracked_files: Sequence[TrackedFile],
        hashes: Mapping[str, str | None],
        confirmed_removed: set[str],
    ) -> StalenessReport:
        stale: list[str] = []
        removed: list[str] = []
        for tracked in tracked_files:
            if tracked.path in confirmed_removed:
                removed.append(tracked.path)
                continue
            if hashes.get(tracked.path) is None:
                stale.append(tracked.path)
                continue
            if not tracked.dependencies:
                stale.append(tracked.path)
                continue
            if any(hashes.get(dep) != recorded for dep, recorded in tracked.dependencies.items()):
                stale.append(tracked.path)

        logger.info(
            "Hash check: %d stale, %d removed of %d tracked files",
            len(stale), len(removed), len(tracked_files),
        )
        return StalenessReport(
            commit=commit,
            stale_paths=stale,
            removed_paths=removed,
            checked_individually=True,
        )


def _all_watched_paths(tracked_files: Sequence[TrackedFile]) -> list[str]:
    paths: dict[str, None] = {}
    for tracked in tracked_files:
        paths.update(dict.fromkeys(tracked.watched_paths()))
    return list(paths)
