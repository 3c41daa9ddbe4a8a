"""Finalization of a compose session into real commits.

Contains:
- FinalizationStep: The ordered steps of a finalization
- FinalizationResult: Outcome of a finalization that did not raise
- FinalizationEngine: Runs the steps against a repository
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from hunkstack.config import STASH_MESSAGE_PREFIX
from hunkstack.compose.cancellation import CancellationToken
from hunkstack.compose.errors import (
    BranchResetError,
    FinalizationInProgressError,
    PatchCreationError,
    SafetyValidationError,
    StashConflictError,
)
from hunkstack.compose.models import BaseCommitRef, DraftCommit, Hunk, SafetySnapshot
from hunkstack.compose.patch import build_commit_patches
from hunkstack.compose.safety import validate_snapshot
from hunkstack.git.backend import GitRepository
from hunkstack.git.exceptions import GitError, RepositoryUnavailableError
from hunkstack.git.models import StashEntry

logger = logging.getLogger(__name__)

COMPLETED = "completed"
CANCELLED = "cancelled"


class FinalizationStep(str, Enum):
    """Finalization steps, in execution order."""

    VALIDATE = "validate"
    BUILD_PATCHES = "build_patches"
    CREATE_COMMITS = "create_commits"
    CAPTURE_STASH = "capture_stash"
    STASH_CHANGES = "stash_changes"
    RESET_BRANCH = "reset_branch"
    RESTORE_CHANGES = "restore_changes"
    COMPLETE = "complete"


@dataclass
class FinalizationResult:
    """How a finalization ended.

    step is the last step that was entered. cancel_requested is set when
    cancellation arrived after the branch was reset; the commits are kept.
    """

    status: str
    step: FinalizationStep
    commit_shas: list[str] = field(default_factory=list)
    stash_restored: bool = False
    cancel_requested: bool = False

    @property
    def completed(self) -> bool:
        return self.status == COMPLETED


class FinalizationEngine:
    """Turns draft commits into commits on the current branch.

    Steps run strictly in order:

    1. Validate the safety snapshot against the hunks being committed
    2. Build one patch per non-empty draft
    3. Create unreachable commits on top of the base commit
    4. Record the current top stash entry
    5. Stash every working tree change, including untracked files
    6. Hard-reset the branch to the last created commit
    7. Pop the stash created in step 5
    8. Complete

    Cancellation is checked before steps 1, 3, 5, 6 and 7. Until step 6 a
    cancellation leaves the branch where it was and pops any stash the
    engine created. After step 6 it is only recorded on the result.

    Commits created in step 3 are never rolled back. Nothing references
    them until step 6, so an abort leaves them for garbage collection.
    """

    def __init__(self, repository: GitRepository, stash_message_prefix: str = STASH_MESSAGE_PREFIX):
        self.repository = repository
        self.stash_message_prefix = stash_message_prefix
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def run(
        self,
        drafts: list[DraftCommit],
        hunks: list[Hunk],
        base_commit: BaseCommitRef,
        snapshot: SafetySnapshot,
        token: CancellationToken,
    ) -> FinalizationResult:
        """Finalize drafts into commits.

        Args:
            drafts: Draft commits in commit order
            hunks: Every hunk of the session
            base_commit: Commit the new commits are built on
            snapshot: Safety snapshot captured when the session loaded
            token: Cancellation token owned by the caller

        Returns:
            FinalizationResult with status "completed" or "cancelled"

        Raises:
            FinalizationInProgressError: If this engine is already running
            SafetyValidationError: If the repository drifted; nothing changed
            PatchCreationError: If commits could not be created; no ref moved
            StashConflictError: If the stash could not be saved, identified
                or restored
            BranchResetError: If the branch could not be reset
            RepositoryUnavailableError: If the repository disappeared
        """
        if self._running:
            raise FinalizationInProgressError("A finalization is already running")

        self._running = True
        try:
            return await self._run(drafts, hunks, base_commit, snapshot, token)
        finally:
            self._running = False

    async def _run(
        self,
        drafts: list[DraftCommit],
        hunks: list[Hunk],
        base_commit: BaseCommitRef,
        snapshot: SafetySnapshot,
        token: CancellationToken,
    ) -> FinalizationResult:
        # 1. Validate
        self._enter(FinalizationStep.VALIDATE)
        if token.is_cancellation_requested:
            return self._cancelled(FinalizationStep.VALIDATE)
        await self._validate(drafts, hunks, base_commit, snapshot)

        # 2. Build patches
        self._enter(FinalizationStep.BUILD_PATCHES)
        patches = build_commit_patches(drafts, hunks)

        # 3. Create commits
        self._enter(FinalizationStep.CREATE_COMMITS)
        if token.is_cancellation_requested:
            return self._cancelled(FinalizationStep.CREATE_COMMITS)
        try:
            shas = await self.repository.create_unreachable_commits_from_patches(
                base_commit.sha, patches
            )
        except RepositoryUnavailableError:
            raise
        except GitError as e:
            raise PatchCreationError(f"Failed to create commits: {e}") from e
        if len(shas) != len(patches):
            raise PatchCreationError(
                f"Expected {len(patches)} commits but {len(shas)} were created"
            )
        logger.info("Created commits: %s", ", ".join(shas))

        # 4. Capture prior stash state
        self._enter(FinalizationStep.CAPTURE_STASH)
        prior_stash = (await self.repository.get_stash()).latest()

        # 5. Stash working changes
        self._enter(FinalizationStep.STASH_CHANGES)
        if token.is_cancellation_requested:
            return self._cancelled(FinalizationStep.STASH_CHANGES, shas)
        stash = await self._stash_working_changes(prior_stash)

        # 6. Reset branch tip
        self._enter(FinalizationStep.RESET_BRANCH)
        if token.is_cancellation_requested:
            restored = await self._restore(stash)
            return self._cancelled(FinalizationStep.RESET_BRANCH, shas, stash_restored=restored)
        await self._reset(shas[-1], stash)

        # 7. Restore preserved changes
        self._enter(FinalizationStep.RESTORE_CHANGES)
        cancel_requested = token.is_cancellation_requested
        if cancel_requested:
            logger.warning("Cancellation requested after the branch was reset; keeping the new commits")
        restored = await self._restore(stash)

        # 8. Complete
        self._enter(FinalizationStep.COMPLETE)
        logger.info("Finalized %d commits on top of %s", len(shas), base_commit.sha[:7])
        return FinalizationResult(
            status=COMPLETED,
            step=FinalizationStep.COMPLETE,
            commit_shas=shas,
            stash_restored=restored,
            cancel_requested=cancel_requested,
        )

    def _enter(self, step: FinalizationStep) -> None:
        logger.info("Finalization step: %s", step.value)

    def _cancelled(
        self, step: FinalizationStep, shas: Optional[list[str]] = None, stash_restored: bool = False
    ) -> FinalizationResult:
        logger.info("Finalization cancelled before %s", step.value)
        return FinalizationResult(
            status=CANCELLED,
            step=step,
            commit_shas=list(shas or []),
            stash_restored=stash_restored,
        )

    async def _validate(
        self,
        drafts: list[DraftCommit],
        hunks: list[Hunk],
        base_commit: BaseCommitRef,
        snapshot: SafetySnapshot,
    ) -> None:
        committed = {index for draft in drafts for index in draft.hunk_indices}
        hunks_being_committed = [hunk for hunk in hunks if hunk.index in committed]

        validation = await validate_snapshot(self.repository, snapshot, hunks_being_committed)
        errors = list(validation.errors)

        # A HEAD drift error already covers a base that matched the snapshot
        current = validation.current
        if current is not None and base_commit.sha != snapshot.head_sha and base_commit.sha != current.head_sha:
            errors.append(
                f"Base commit {base_commit.sha[:7]} is not the current tip of '{base_commit.branch_name}'"
            )

        if errors:
            raise SafetyValidationError(errors)

    async def _stash_working_changes(self, prior: Optional[StashEntry]) -> Optional[StashEntry]:
        message = f"{self.stash_message_prefix}: {datetime.now().isoformat(timespec='seconds')}"
        try:
            await self.repository.save_stash(message, include_untracked=True)
        except RepositoryUnavailableError:
            raise
        except GitError as e:
            raise StashConflictError(f"Failed to stash working changes: {e}") from e

        stash = await self.identify_new_stash(prior, message)
        if stash is None:
            if await self.repository.has_uncommitted_changes():
                raise StashConflictError(
                    "Working changes were not stashed; refusing to reset the branch over them"
                )
            logger.info("No working changes to stash")
        else:
            logger.info("Stashed working changes as %s", stash.name)
        return stash

    async def identify_new_stash(
        self, prior: Optional[StashEntry], message: str
    ) -> Optional[StashEntry]:
        """Find the stash entry created by save_stash(message).

        The new entry must be on top of the stash, differ from prior, and
        carry message.

        Returns:
            The new entry, or None if the stash did not change.

        Raises:
            StashConflictError: If the top entry is new but carries another message.
        """
        latest = (await self.repository.get_stash()).latest()
        if latest is None:
            return None
        if prior is not None and latest.sha == prior.sha:
            return None
        if latest.message != message:
            raise StashConflictError(
                f"Unexpected stash entry {latest.name} ('{latest.message}'); "
                "cannot tell which stash holds the working changes",
                stash_name=latest.name,
            )
        return latest

    async def _reset(self, sha: str, stash: Optional[StashEntry]) -> None:
        try:
            await self.repository.reset(sha, hard=True)
        except RepositoryUnavailableError:
            raise
        except GitError as e:
            if stash is None:
                raise BranchResetError(f"Failed to reset branch to {sha[:7]}: {e}") from e
            try:
                await self._restore(stash)
            except StashConflictError as restore_error:
                raise BranchResetError(
                    f"Failed to reset branch to {sha[:7]}: {e}. "
                    f"Restoring working changes also failed: {restore_error}"
                ) from e
            raise BranchResetError(
                f"Failed to reset branch to {sha[:7]}: {e}. Working changes were restored."
            ) from e
        logger.info("Reset branch to %s", sha)

    async def _restore(self, stash: Optional[StashEntry]) -> bool:
        if stash is None:
            return False
        try:
            await self.repository.apply_stash(stash.name, delete_after=True)
        except RepositoryUnavailableError:
            raise
        except GitError as e:
            raise StashConflictError(
                f"Failed to restore working changes from {stash.name}: {e}. "
                f"Resolve the conflicts and run 'git stash pop' manually.",
                stash_name=stash.name,
            ) from e
        logger.info("Restored working changes from %s", stash.name)
        return True
