"""Tests for provider JSON → domain entity normalization."""

from __future__ import annotations

import pytest

from paper_tracker.domain.entities import FileType
from paper_tracker.domain.exceptions import InvalidResponseError
from paper_tracker.infrastructure.normalizers import (
    parse_bridge_commit,
    parse_bridge_entry,
    parse_github_commit,
    parse_github_compare,
    parse_gitlab_commit,
    parse_gitlab_compare,
    parse_gitlab_repo_info,
    parse_gitlab_tree_entry,
)


class TestCommits:
    def test_github_commit_prefers_committer_date(self):
        commit = parse_github_commit(
            {
                "sha": "abc123",
                "commit": {
                    "message": "Fix typo",
                    "author": {"name": "Ada", "email": "ada@example.com", "date": "2024-01-01T00:00:00Z"},
                    "committer": {"date": "2024-01-02T00:00:00Z"},
                },
            }
        )
        assert commit.sha == "abc123"
        assert commit.message == "Fix typo"
        assert commit.date == "2024-01-02T00:00:00Z"
        assert commit.author_name == "Ada"
        assert commit.date_is_fallback is False

    def test_missing_date_falls_back_to_now_and_is_flagged(self):
        commit = parse_gitlab_commit({"id": "def456", "message": "Draft"})
        assert commit.date
        assert commit.date_is_fallback is True

    def test_missing_sha_is_invalid(self):
        with pytest.raises(InvalidResponseError):
            parse_github_commit({"commit": {}})

    def test_bridge_unchanged_is_passed_through(self):
        commit = parse_bridge_commit({"sha": "abc", "unchanged": True})
        assert commit.unchanged is True
        assert commit.sha == "abc"

    def test_bridge_unchanged_without_sha_keeps_known_sha(self):
        commit = parse_bridge_commit({"unchanged": True}, known_sha="abc")
        assert commit.unchanged is True
        assert commit.sha == "abc"

    def test_bridge_new_commit_still_needs_sha(self):
        with pytest.raises(InvalidResponseError):
            parse_bridge_commit({"unchanged": False}, known_sha="abc")

    def test_bridge_defaults_message(self):
        commit = parse_bridge_commit({"sha": "abc", "date": "2024-03-01T10:00:00Z"})
        assert commit.message == "Overleaf commit"
        assert commit.date_is_fallback is False


class TestCompare:
    def test_github_rename_reports_both_paths(self):
        paths = parse_github_compare(
            {
                "total_files": 2,
                "files": [
                    {"filename": "main.tex"},
                    {"filename": "sections/intro.tex", "previous_filename": "intro.tex"},
                ],
            }
        )
        assert paths == ["main.tex", "sections/intro.tex", "intro.tex"]

    def test_github_truncated_compare_is_none(self):
        assert parse_github_compare({"total_files": 400, "files": [{"filename": "a"}]}) is None

    @pytest.mark.parametrize("flag", ["compare_timeout", "overflow"])
    def test_gitlab_incomplete_compare_is_none(self, flag):
        assert parse_gitlab_compare({flag: True, "diffs": [{"new_path": "a", "old_path": "a"}]}) is None

    def test_gitlab_compare_collects_old_and_new(self):
        paths = parse_gitlab_compare({"diffs": [{"new_path": "b.tex", "old_path": "a.tex"}]})
        assert paths == ["b.tex", "a.tex"]


class TestEntries:
    def test_gitlab_tree_type_is_dir(self):
        entry = parse_gitlab_tree_entry({"name": "figs", "path": "figs", "type": "tree"})
        assert entry.type is FileType.DIR
        assert entry.size is None

    def test_bridge_entry_derives_name(self):
        entry = parse_bridge_entry({"path": "chapters/one.tex", "type": "file", "size": 12})
        assert entry.name == "one.tex"
        assert entry.type is FileType.FILE

    def test_gitlab_visibility(self):
        public = parse_gitlab_repo_info({"name": "p", "visibility": "public"})
        internal = parse_gitlab_repo_info({"name": "p", "visibility": "internal"})
        assert public.is_private is False
        assert internal.is_private is True
