"""Tests for hunkstack.compose.parser and hunkstack.compose.indexer."""

from hunkstack.compose.indexer import (
    build_hunk_map,
    create_hunks_from_diffs,
    initial_hunk_indices,
)
from hunkstack.compose.models import RENAME_HUNK_HEADER, STAGED, UNSTAGED
from hunkstack.compose.parser import parse_unified_diff


BINARY_DIFF = """diff --git a/logo.png b/logo.png
index 1111111..2222222 100644
Binary files a/logo.png and b/logo.png differ
"""

MODE_ONLY_DIFF = """diff --git a/run.sh b/run.sh
old mode 100644
new mode 100755
"""


class TestParseUnifiedDiff:
    """Tests for parse_unified_diff."""

    def test_empty_or_missing_diff(self):
        """Test that None and blank diffs parse to nothing."""
        assert parse_unified_diff(None) == ([], [])
        assert parse_unified_diff("  \n") == ([], [])

    def test_parses_files_and_hunks(self, staged_diff):
        """Test that hunk blocks are split per @@ header."""
        files, warnings = parse_unified_diff(staged_diff)

        assert warnings == []
        assert len(files) == 1
        assert files[0].file_path == "a.ts"
        assert [h.old_start for h in files[0].hunks] == [1, 10]
        assert files[0].hunks[1].header.startswith("@@ -10,3 +11,3 @@")
        assert files[0].diff_header_lines[0] == "diff --git a/a.ts b/a.ts"
        assert files[0].diff_header_lines[-1] == "+++ b/a.ts"

    def test_hunk_body_has_no_trailing_blank_line(self, unstaged_diff):
        """Test that the final newline of the diff is not kept as a line."""
        files, _ = parse_unified_diff(unstaged_diff)
        assert files[0].hunks[0].lines[-1] == " export const z = 3;"

    def test_binary_file_is_skipped_with_warning(self):
        """Test that binary files are flagged and reported."""
        files, warnings = parse_unified_diff(BINARY_DIFF)
        assert files[0].is_binary
        assert warnings == ["Binary file skipped: logo.png"]

    def test_rename_paths(self, rename_diff):
        """Test that rename from/to lines set the old and new paths."""
        files, _ = parse_unified_diff(rename_diff)
        assert files[0].is_renamed
        assert files[0].old_path == "old_name.py"
        assert files[0].file_path == "new_name.py"
        assert files[0].hunks == []


class TestCreateHunksFromDiffs:
    """Tests for create_hunks_from_diffs."""

    def test_staged_before_unstaged(self, staged_diff, unstaged_diff):
        """Test that indices are 1-based and staged hunks come first."""
        hunks, hunk_map = create_hunks_from_diffs(staged_diff, unstaged_diff)

        assert [h.index for h in hunks] == [1, 2, 3]
        assert [h.origin for h in hunks] == [STAGED, STAGED, UNSTAGED]
        assert [h.file_name for h in hunks] == ["a.ts", "a.ts", "b.ts"]
        assert [(e.index, e.hunk_header) for e in hunk_map] == [
            (h.index, h.hunk_header) for h in hunks
        ]

    def test_counts_additions_and_deletions(self, staged_diff):
        """Test that +/- lines are counted per hunk."""
        hunks, _ = create_hunks_from_diffs(staged_diff, None)
        assert (hunks[0].additions, hunks[0].deletions) == (1, 0)
        assert (hunks[1].additions, hunks[1].deletions) == (1, 1)

    def test_only_unstaged(self, unstaged_diff):
        """Test that unstaged hunks start at 1 when nothing is staged."""
        hunks, _ = create_hunks_from_diffs(None, unstaged_diff)
        assert [(h.index, h.origin) for h in hunks] == [(1, UNSTAGED)]

    def test_no_changes(self):
        """Test that missing diffs give no hunks."""
        assert create_hunks_from_diffs(None, None) == ([], [])

    def test_rename_only_change(self, rename_diff):
        """Test that a pure rename becomes one rename hunk."""
        hunks, _ = create_hunks_from_diffs(rename_diff, None)

        assert len(hunks) == 1
        rename = hunks[0]
        assert rename.is_rename
        assert rename.hunk_header == RENAME_HUNK_HEADER
        assert rename.original_file_name == "old_name.py"
        assert rename.content == "Renamed from old_name.py to new_name.py"
        assert (rename.additions, rename.deletions) == (0, 0)

    def test_indices_are_contiguous_across_files(self, staged_diff, unstaged_diff, rename_diff):
        """Test that indices keep counting across files and origins."""
        hunks, _ = create_hunks_from_diffs(staged_diff + rename_diff, unstaged_diff)
        assert [h.index for h in hunks] == [1, 2, 3, 4]
        assert hunks[2].is_rename
        assert hunks[3].origin == UNSTAGED

    def test_binary_and_mode_only_changes_are_skipped(self, unstaged_diff):
        """Test that files without assignable hunks produce nothing."""
        hunks, _ = create_hunks_from_diffs(BINARY_DIFF + MODE_ONLY_DIFF, unstaged_diff)
        assert [(h.index, h.file_name) for h in hunks] == [(1, "b.ts")]

    def test_hunk_map_matches_hunks(self, staged_diff, unstaged_diff):
        """Test build_hunk_map against the hunks it is built from."""
        hunks, hunk_map = create_hunks_from_diffs(staged_diff, unstaged_diff)
        assert build_hunk_map(hunks) == hunk_map


class TestInitialHunkIndices:
    """Tests for initial_hunk_indices."""

    def test_staged_only_when_both_exist(self, staged_diff, unstaged_diff):
        """Test that only staged hunks are seeded when both origins exist."""
        hunks, _ = create_hunks_from_diffs(staged_diff, unstaged_diff)
        assert initial_hunk_indices(hunks) == [1, 2]

    def test_everything_when_only_unstaged(self, staged_diff, unstaged_diff):
        """Test that all hunks are seeded when nothing is staged."""
        hunks, _ = create_hunks_from_diffs(None, staged_diff + unstaged_diff)
        assert initial_hunk_indices(hunks) == [1, 2, 3]

    def test_everything_when_only_staged(self, staged_diff):
        hunks, _ = create_hunks_from_diffs(staged_diff, None)
        assert initial_hunk_indices(hunks) == [1, 2]
