"""Compose-related exception classes.

Contains all exception classes for compose sessions and finalization:
- ComposeError: Base exception for compose errors
- LoadingError: Session could not be bootstrapped
- SafetyValidationError: Repository drifted since the snapshot was captured
- GenerationFailedError: Generation gateway failed (not cancelled)
- DraftAssignmentError: Invalid edit to the draft commits
- PatchCreationError: Patch building or commit creation failed
- StashConflictError: Saving, identifying or restoring the stash failed
- BranchResetError: Moving the branch to the new commits failed
- FinalizationInProgressError: Finalization requested while one is running
"""

from typing import Optional


class ComposeError(Exception):
    """Base exception for compose errors."""

    pass


class LoadingError(ComposeError):
    """Raised when a compose session cannot be bootstrapped."""

    pass


class SafetyValidationError(ComposeError):
    """Raised when the repository changed since the session opened."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("\n".join(self.errors))


class GenerationFailedError(ComposeError):
    """Raised when AI generation fails for a reason other than cancellation."""

    pass


class DraftAssignmentError(ComposeError):
    """Raised for edits that reference unknown drafts or hunks."""

    pass


class PatchCreationError(ComposeError):
    """Raised when patches cannot be built or applied into commits.

    No ref has moved when this is raised. Commits created before the
    failure are unreachable and left for garbage collection.
    """

    pass


class StashConflictError(ComposeError):
    """Raised when the working tree stash cannot be saved, identified or restored."""

    def __init__(self, message: str, stash_name: Optional[str] = None):
        self.stash_name = stash_name
        super().__init__(message)


class BranchResetError(ComposeError):
    """Raised when the branch cannot be reset to the composed commits."""

    pass


class FinalizationInProgressError(ComposeError):
    """Raised when finalization is requested while another one is running."""

    pass
