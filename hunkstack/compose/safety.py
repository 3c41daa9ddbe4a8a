"""Safety snapshots for hunkstack compose module.

Contains:
- SafetyValidation: Result of comparing a baseline with the current state
- capture_snapshot: Fingerprint the repository state
- validate_snapshot: Detect drift between a baseline and the current state
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from hunkstack.compose.models import STAGED, UNSTAGED, Hunk, SafetySnapshot
from hunkstack.git.backend import GitRepository
from hunkstack.git.models import DiffScope

logger = logging.getLogger(__name__)


@dataclass
class SafetyValidation:
    """Outcome of validate_snapshot."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    current: Optional[SafetySnapshot] = None


async def capture_snapshot(repository: GitRepository) -> SafetySnapshot:
    """Capture a fingerprint of the repository's current state.

    This is a best-effort read without locking. It sets a baseline for
    validate_snapshot; it does not stop anyone from changing the repository.
    """
    head_sha = await repository.get_head_sha() or ""
    branch = await repository.get_current_branch()
    branch_name = branch.name if branch else ""
    branch_ref_sha = ""
    if branch is not None:
        branch_ref_sha = await repository.get_branch_ref_sha(branch.name) or ""
    worktree_path = await repository.get_worktree_path()
    staged = await repository.get_diff(DiffScope.STAGED)
    unstaged = await repository.get_diff(DiffScope.UNSTAGED)

    return SafetySnapshot(
        repo_path=str(repository.path),
        head_sha=head_sha,
        branch_name=branch_name,
        branch_ref_sha=branch_ref_sha,
        worktree_path=worktree_path,
        staged_diff=staged.contents if staged else None,
        unstaged_diff=unstaged.contents if unstaged else None,
        captured_at=time.time(),
    )


async def validate_snapshot(
    repository: GitRepository,
    baseline: SafetySnapshot,
    hunks_being_committed: list[Hunk],
) -> SafetyValidation:
    """Re-capture the repository state and compare it with baseline.

    Every check runs and contributes its own error; nothing short-circuits.
    Only the diffs for origins that hunks_being_committed come from are
    compared, so untouched changes elsewhere in the tree do not block.

    Args:
        repository: Repository to inspect
        baseline: Snapshot captured when the session opened
        hunks_being_committed: Hunks assigned to any draft commit

    Returns:
        SafetyValidation with one error per violated check
    """
    current = await capture_snapshot(repository)
    errors: list[str] = []

    if current.repo_path != baseline.repo_path:
        errors.append(
            f"Repository path changed from {baseline.repo_path} to {current.repo_path}"
        )

    if current.head_sha != baseline.head_sha:
        errors.append(
            f"HEAD changed from {_short(baseline.head_sha)} to {_short(current.head_sha)} "
            "(new commits, rebase or reset since the composer was opened)"
        )

    if current.branch_name != baseline.branch_name:
        errors.append(
            f"Branch changed from '{baseline.branch_name}' to '{current.branch_name}'"
        )

    if current.branch_ref_sha != baseline.branch_ref_sha:
        errors.append(
            f"Branch '{baseline.branch_name}' moved from {_short(baseline.branch_ref_sha)} "
            f"to {_short(current.branch_ref_sha)}"
        )

    if current.worktree_path != baseline.worktree_path:
        errors.append(
            f"Worktree changed from {baseline.worktree_path} to {current.worktree_path}"
        )

    origins = {hunk.origin for hunk in hunks_being_committed}
    for origin in (STAGED, UNSTAGED):
        if origin in origins and current.diff_for(origin) != baseline.diff_for(origin):
            errors.append(
                f"The {origin} changes have been modified since the composer was opened"
            )

    if errors:
        logger.warning("Safety validation failed:\n%s", "\n".join(errors))

    return SafetyValidation(valid=not errors, errors=errors, current=current)


def _short(sha: str) -> str:
    return sha[:7] if sha else "(none)"
