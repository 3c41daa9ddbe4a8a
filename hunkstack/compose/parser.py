"""Diff parser for hunkstack compose module.

Contains functions for parsing unified diff output:
- parse_unified_diff: Parse unified diff output from git diff
- _parse_file_block: Parse a single file block from the diff
- _parse_hunks: Parse hunks from the hunk portion of a file diff
- _create_hunk_block: Create a HunkBlock from parsed hunk data
"""

import re
from typing import Optional

from hunkstack.compose.models import FileDiff, HunkBlock

_DIFF_GIT_RE = re.compile(r"diff --git a/(.*) b/(.*)")
_HUNK_HEADER_RE = re.compile(r"@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


def parse_unified_diff(diff_output: Optional[str]) -> tuple[list[FileDiff], list[str]]:
    """Parse unified diff output from 'git diff'.

    Args:
        diff_output: Raw output from git diff (None is treated as empty)

    Returns:
        Tuple of (list of FileDiff objects, list of warning messages)
    """
    files: list[FileDiff] = []
    warnings: list[str] = []

    if not diff_output or not diff_output.strip():
        return files, warnings

    # Each file starts with 'diff --git a/... b/...'
    file_blocks = re.split(r"(?=^diff --git )", diff_output, flags=re.MULTILINE)

    for block in file_blocks:
        if not block.startswith("diff --git"):
            continue

        lines = block.split("\n")
        # Trailing "" entries come from the final newline, never from the diff
        while lines and lines[-1] == "":
            lines.pop()

        file_diff = _parse_file_block(lines, warnings)
        if file_diff:
            files.append(file_diff)

    return files, warnings


def _parse_file_block(lines: list[str], warnings: list[str]) -> Optional[FileDiff]:
    """Parse a single file block from the diff.

    Args:
        lines: Lines of the file block
        warnings: List to append warnings to

    Returns:
        FileDiff object or None if the block header is invalid
    """
    match = _DIFF_GIT_RE.match(lines[0]) if lines else None
    if not match:
        return None

    old_path = match.group(1)
    new_path = match.group(2)

    header_lines: list[str] = []
    hunk_start_idx = None
    is_new_file = False
    is_deleted_file = False
    rename_from: Optional[str] = None
    rename_to: Optional[str] = None

    for i, line in enumerate(lines):
        if line.startswith("@@"):
            hunk_start_idx = i
            break
        header_lines.append(line)

        if "GIT binary patch" in line or line.startswith("Binary files"):
            warnings.append(f"Binary file skipped: {new_path}")
            return FileDiff(
                file_path=new_path,
                diff_header_lines=header_lines,
                is_binary=True,
            )

        if line.startswith("new file mode"):
            is_new_file = True
        elif line.startswith("deleted file mode"):
            is_deleted_file = True
        elif line.startswith("rename from "):
            rename_from = line[len("rename from "):]
        elif line.startswith("rename to "):
            rename_to = line[len("rename to "):]

    # rename from/to lines are unambiguous even when paths contain " b/"
    if rename_from is not None and rename_to is not None:
        old_path, new_path = rename_from, rename_to
    is_renamed = old_path != new_path

    hunks = _parse_hunks(lines[hunk_start_idx:]) if hunk_start_idx is not None else []

    return FileDiff(
        file_path=new_path,
        diff_header_lines=header_lines,
        hunks=hunks,
        is_new_file=is_new_file,
        is_deleted_file=is_deleted_file,
        is_renamed=is_renamed,
        old_path=old_path if is_renamed else None,
    )


def _parse_hunks(lines: list[str]) -> list[HunkBlock]:
    """Parse hunks from the hunk portion of a file diff.

    Args:
        lines: Lines starting from first @@

    Returns:
        List of HunkBlock objects
    """
    hunks: list[HunkBlock] = []
    current_lines: list[str] = []
    current_header: Optional[str] = None

    for line in lines:
        if line.startswith("@@"):
            if current_header is not None:
                hunk = _create_hunk_block(current_header, current_lines)
                if hunk:
                    hunks.append(hunk)
            current_header = line
            current_lines = []
        elif current_header is not None:
            current_lines.append(line)

    if current_header is not None:
        hunk = _create_hunk_block(current_header, current_lines)
        if hunk:
            hunks.append(hunk)

    return hunks


def _create_hunk_block(header: str, lines: list[str]) -> Optional[HunkBlock]:
    """Create a HunkBlock from parsed hunk data.

    Args:
        header: The @@ header line
        lines: Body lines of the hunk

    Returns:
        HunkBlock object or None if the header is invalid
    """
    # Format: @@ -old_start,old_len +new_start,new_len @@ optional context
    match = _HUNK_HEADER_RE.match(header)
    if not match:
        return None

    return HunkBlock(
        header=header,
        old_start=int(match.group(1)),
        old_len=int(match.group(2)) if match.group(2) else 1,
        new_start=int(match.group(3)),
        new_len=int(match.group(4)) if match.group(4) else 1,
        lines=lines,
    )
