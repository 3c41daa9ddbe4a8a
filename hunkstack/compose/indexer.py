"""Hunk indexing for hunkstack compose module.

Contains functions for turning raw diffs into indexed hunks:
- create_hunks_from_diffs: Index staged and unstaged diffs into Hunk records
- build_hunk_map: Build the lightweight HunkMapEntry list for a set of hunks
- initial_hunk_indices: Pick the hunks seeded into the first draft commit
"""

import logging
from typing import Optional

from hunkstack.compose.models import (
    RENAME_HUNK_HEADER,
    STAGED,
    UNSTAGED,
    FileDiff,
    Hunk,
    HunkMapEntry,
)
from hunkstack.compose.parser import parse_unified_diff

logger = logging.getLogger(__name__)


def create_hunks_from_diffs(
    staged_diff: Optional[str], unstaged_diff: Optional[str]
) -> tuple[list[Hunk], list[HunkMapEntry]]:
    """Index staged and unstaged diffs.

    Indices start at 1. Staged hunks come before unstaged hunks, and within
    each diff hunks follow file order, then hunk order within the file.

    Args:
        staged_diff: Raw staged diff text, or None
        unstaged_diff: Raw unstaged diff text, or None

    Returns:
        Tuple of (hunks, hunk map), one map entry per hunk
    """
    hunks: list[Hunk] = []

    for origin, diff_text in ((STAGED, staged_diff), (UNSTAGED, unstaged_diff)):
        file_diffs, warnings = parse_unified_diff(diff_text)
        for warning in warnings:
            logger.warning("%s diff: %s", origin, warning)
        for file_diff in file_diffs:
            hunks.extend(_hunks_for_file(file_diff, origin, start_index=len(hunks) + 1))

    return hunks, build_hunk_map(hunks)


def build_hunk_map(hunks: list[Hunk]) -> list[HunkMapEntry]:
    """Build one HunkMapEntry per hunk, sharing the hunk's index."""
    return [HunkMapEntry(index=hunk.index, hunk_header=hunk.hunk_header) for hunk in hunks]


def initial_hunk_indices(hunks: list[Hunk]) -> list[int]:
    """Pick the hunk indices for the initial draft commit.

    When both staged and unstaged hunks exist, only the staged ones are
    seeded; otherwise every hunk is.
    """
    has_staged = any(hunk.origin == STAGED for hunk in hunks)
    has_unstaged = any(hunk.origin == UNSTAGED for hunk in hunks)

    if has_staged and has_unstaged:
        return [hunk.index for hunk in hunks if hunk.origin == STAGED]
    return [hunk.index for hunk in hunks]


def _hunks_for_file(file_diff: FileDiff, origin: str, start_index: int) -> list[Hunk]:
    """Create the Hunk records for one file, numbering from start_index."""
    if file_diff.is_binary:
        return []

    diff_header = "\n".join(file_diff.diff_header_lines)

    if not file_diff.hunks:
        if file_diff.is_renamed:
            return [
                Hunk(
                    index=start_index,
                    file_name=file_diff.file_path,
                    diff_header=diff_header,
                    hunk_header=RENAME_HUNK_HEADER,
                    content=f"Renamed from {file_diff.old_path} to {file_diff.file_path}",
                    additions=0,
                    deletions=0,
                    origin=origin,
                    is_rename=True,
                    original_file_name=file_diff.old_path,
                )
            ]
        # Mode changes and empty new files carry no hunk to assign
        logger.warning("%s diff: header-only change skipped: %s", origin, file_diff.file_path)
        return []

    result: list[Hunk] = []
    for offset, block in enumerate(file_diff.hunks):
        additions = sum(1 for ln in block.lines if ln.startswith("+"))
        deletions = sum(1 for ln in block.lines if ln.startswith("-"))
        result.append(
            Hunk(
                index=start_index + offset,
                file_name=file_diff.file_path,
                diff_header=diff_header,
                hunk_header=block.header,
                content="\n".join(block.lines),
                additions=additions,
                deletions=deletions,
                origin=origin,
                original_file_name=file_diff.old_path if file_diff.is_renamed else None,
            )
        )
    return result
