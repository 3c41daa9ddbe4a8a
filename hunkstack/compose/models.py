"""Data models for hunkstack compose module.

Contains:
- Hunk: One indexed, indivisible fragment of a diff
- HunkMapEntry: Lightweight index -> hunk header pairing
- DraftCommit: A user-defined grouping of hunks destined to become a commit
- BaseCommitRef: The commit the composition is built on
- SafetySnapshot: Fingerprint of repository state at session start
- HunkBlock, FileDiff: Intermediate parser output
"""

from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel, Field, field_validator


# Hunk origins. Any other origin value is a commit sha.
STAGED = "staged"
UNSTAGED = "unstaged"

# Hunk header used for rename-only hunks
RENAME_HUNK_HEADER = "rename"


@dataclass
class Hunk:
    """One indivisible diff fragment, or a rename marker."""

    index: int  # 1-based, unique within a session
    file_name: str
    diff_header: str  # From 'diff --git' up to the first @@
    hunk_header: str  # The @@ ... @@ line, or "rename"
    content: str  # Hunk body lines (+, -, context), or a rename description
    additions: int
    deletions: int
    origin: str  # STAGED, UNSTAGED, or a commit sha
    is_rename: bool = False
    original_file_name: Optional[str] = None  # For renames

    def snippet(self, max_lines: int = 5) -> str:
        """Get a snippet of the changed lines for display."""
        if self.is_rename:
            return self.content
        changed = [ln for ln in self.content.split("\n") if ln.startswith(("+", "-"))]
        if len(changed) <= max_lines:
            return "\n".join(changed)
        return "\n".join(changed[:max_lines]) + f"\n... ({len(changed) - max_lines} more lines)"


@dataclass(frozen=True)
class HunkMapEntry:
    """Index to hunk header pairing, shipped instead of full hunk bodies."""

    index: int
    hunk_header: str


class DraftCommit(BaseModel):
    """A not-yet-persisted commit: a message and an ordered list of hunks."""

    id: str  # e.g., "draft-commit-1", "ai-commit-0"
    message: str = ""
    ai_explanation: Optional[str] = None
    hunk_indices: list[int] = Field(default_factory=list)

    @field_validator("hunk_indices")
    @classmethod
    def reject_duplicate_indices(cls, value: list[int]) -> list[int]:
        """A draft may not list the same hunk twice."""
        if len(set(value)) != len(value):
            raise ValueError("hunk_indices contains duplicates")
        return value


@dataclass(frozen=True)
class BaseCommitRef:
    """The commit a composition is built on top of."""

    sha: str
    message: str
    repo_name: str
    branch_name: str


@dataclass(frozen=True)
class SafetySnapshot:
    """Point-in-time fingerprint of repository state.

    Compared by structural equality of every field except captured_at.
    """

    repo_path: str
    head_sha: str
    branch_name: str
    branch_ref_sha: str
    worktree_path: str
    staged_diff: Optional[str]  # None if there were no staged changes
    unstaged_diff: Optional[str]  # None if there were no unstaged changes
    captured_at: float  # Unix timestamp

    def diff_for(self, origin: str) -> Optional[str]:
        """Return the captured diff text for a hunk origin."""
        if origin == STAGED:
            return self.staged_diff
        if origin == UNSTAGED:
            return self.unstaged_diff
        raise ValueError(f"No diff is captured for origin: {origin}")


@dataclass
class HunkBlock:
    """A parsed @@ block before it receives a session index."""

    header: str  # The @@ ... @@ line
    old_start: int
    old_len: int
    new_start: int
    new_len: int
    lines: list[str]  # Body lines without the header


@dataclass
class FileDiff:
    """Diff for a single file containing multiple hunk blocks."""

    file_path: str
    diff_header_lines: list[str]  # From 'diff --git' up to first @@
    hunks: list[HunkBlock] = field(default_factory=list)
    is_binary: bool = False
    is_new_file: bool = False
    is_deleted_file: bool = False
    is_renamed: bool = False
    old_path: Optional[str] = None  # For renames
