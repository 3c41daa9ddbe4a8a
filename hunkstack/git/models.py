"""Data models for the git backend.

Contains:
- DiffScope: Which side of the working tree a diff is read from
- Diff: Raw diff text for one scope
- CommitInfo: A resolved commit (sha and message)
- Branch: The current branch
- StashEntry / StashList: Stash entries ordered by recency
- CommitPatch: A patch plus the message of the commit it becomes
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class DiffScope(str, Enum):
    """Scope of a working-tree diff."""

    STAGED = "staged"
    UNSTAGED = "unstaged"


@dataclass(frozen=True)
class Diff:
    """Raw diff output for a single scope."""

    scope: DiffScope
    contents: str


@dataclass(frozen=True)
class CommitInfo:
    """A commit resolved from a ref."""

    sha: str
    message: str


@dataclass(frozen=True)
class Branch:
    """The currently checked out branch."""

    name: str


@dataclass(frozen=True)
class StashEntry:
    """One entry of the stash list."""

    name: str  # e.g. "stash@{0}"
    sha: str  # Stash commit sha, used as the entry's identity
    message: str  # Message without the "On <branch>: " prefix


@dataclass
class StashList:
    """Stash entries, most recent first."""

    stashes: list[StashEntry] = field(default_factory=list)

    def latest(self) -> Optional[StashEntry]:
        """Return the most recent stash entry, or None if the stash is empty."""
        return self.stashes[0] if self.stashes else None


@dataclass(frozen=True)
class CommitPatch:
    """A patch to apply and the message of the commit it creates."""

    message: str
    patch: str
