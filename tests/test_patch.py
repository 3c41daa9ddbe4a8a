"""Tests for hunkstack.compose.patch module."""

import pytest

from hunkstack.compose.errors import PatchCreationError
from hunkstack.compose.indexer import create_hunks_from_diffs
from hunkstack.compose.models import DraftCommit
from hunkstack.compose.patch import build_commit_patch, build_commit_patches


@pytest.fixture
def hunks(staged_diff, unstaged_diff):
    hunks, _ = create_hunks_from_diffs(staged_diff, unstaged_diff)
    return hunks


@pytest.fixture
def hunks_by_index(hunks):
    return {hunk.index: hunk for hunk in hunks}


class TestBuildCommitPatch:
    """Tests for build_commit_patch."""

    def test_single_file_patch(self, hunks_by_index, staged_diff):
        """Test that a draft holding every hunk of a file reproduces its diff."""
        draft = DraftCommit(id="d", message="m", hunk_indices=[1, 2])
        assert build_commit_patch(draft, hunks_by_index) == staged_diff

    def test_hunks_sorted_by_index_within_file(self, hunks_by_index, staged_diff):
        """Test that draft order does not change the order of hunks in a file."""
        draft = DraftCommit(id="d", message="m", hunk_indices=[2, 1])
        assert build_commit_patch(draft, hunks_by_index) == staged_diff

    def test_header_once_per_file(self, hunks_by_index):
        draft = DraftCommit(id="d", message="m", hunk_indices=[2])
        patch = build_commit_patch(draft, hunks_by_index)

        assert patch.count("diff --git a/a.ts b/a.ts") == 1
        assert "@@ -10,3 +11,3 @@" in patch
        assert "@@ -1,3 +1,4 @@" not in patch
        assert patch.endswith("\n")

    def test_staged_sections_come_first(self, hunks_by_index):
        """Test that staged sections precede unstaged ones."""
        draft = DraftCommit(id="d", message="m", hunk_indices=[3, 1])
        patch = build_commit_patch(draft, hunks_by_index)
        assert patch.index("a/a.ts") < patch.index("a/b.ts")

    def test_rename_hunk_is_header_only(self, rename_diff):
        """Test that a rename hunk contributes its diff header alone."""
        hunks, _ = create_hunks_from_diffs(rename_diff, None)
        draft = DraftCommit(id="d", message="m", hunk_indices=[1])

        patch = build_commit_patch(draft, {h.index: h for h in hunks})

        assert patch == rename_diff

    def test_unknown_hunk(self, hunks_by_index):
        draft = DraftCommit(id="d", message="m", hunk_indices=[42])
        with pytest.raises(PatchCreationError, match="unknown hunk: 42"):
            build_commit_patch(draft, hunks_by_index)


class TestBuildCommitPatches:
    """Tests for build_commit_patches."""

    def test_patches_follow_draft_order(self, hunks):
        drafts = [
            DraftCommit(id="d1", message="First", hunk_indices=[3]),
            DraftCommit(id="d2", message="Second", hunk_indices=[1, 2]),
        ]
        patches = build_commit_patches(drafts, hunks)

        assert [p.message for p in patches] == ["First", "Second"]
        assert "b.ts" in patches[0].patch
        assert "a.ts" in patches[1].patch

    def test_empty_drafts_are_skipped(self, hunks):
        drafts = [
            DraftCommit(id="empty", message=""),
            DraftCommit(id="d", message="Only", hunk_indices=[1]),
        ]
        assert [p.message for p in build_commit_patches(drafts, hunks)] == ["Only"]

    def test_missing_message(self, hunks):
        """Test that a non-empty draft needs a message."""
        drafts = [DraftCommit(id="d", message="  ", hunk_indices=[1])]
        with pytest.raises(PatchCreationError, match="has no message"):
            build_commit_patches(drafts, hunks)

    def test_nothing_assigned(self, hunks):
        with pytest.raises(PatchCreationError, match="No hunks"):
            build_commit_patches([DraftCommit(id="d", message="m")], hunks)
