"""Compose feature for hunkstack - turn uncommitted changes into a commit stack.

This package provides the compose engine:
- models: Hunk, HunkMapEntry, DraftCommit, BaseCommitRef, SafetySnapshot
- parser: parse_unified_diff
- indexer: create_hunks_from_diffs, initial_hunk_indices
- drafts: DraftAssignment
- safety: capture_snapshot, validate_snapshot
- patch: build_commit_patch, build_commit_patches
- cancellation: CancellationToken, run_cancellable
- gateway: GenerationGateway, LLMGenerationGateway and generation outcomes
- finalize: FinalizationEngine, FinalizationStep, FinalizationResult
- session: ComposeSession and its read model
"""

# Errors
from hunkstack.compose.errors import (
    BranchResetError,
    ComposeError,
    DraftAssignmentError,
    FinalizationInProgressError,
    GenerationFailedError,
    LoadingError,
    PatchCreationError,
    SafetyValidationError,
    StashConflictError,
)

# Models
from hunkstack.compose.models import (
    STAGED,
    UNSTAGED,
    BaseCommitRef,
    DraftCommit,
    Hunk,
    HunkMapEntry,
    SafetySnapshot,
)

# Indexing
from hunkstack.compose.parser import parse_unified_diff
from hunkstack.compose.indexer import (
    build_hunk_map,
    create_hunks_from_diffs,
    initial_hunk_indices,
)

# Drafts
from hunkstack.compose.drafts import DraftAssignment

# Safety
from hunkstack.compose.safety import (
    SafetyValidation,
    capture_snapshot,
    validate_snapshot,
)

# Patches
from hunkstack.compose.patch import (
    build_commit_patch,
    build_commit_patches,
)

# Cancellation
from hunkstack.compose.cancellation import (
    CancellationToken,
    OperationCancelledError,
    run_cancellable,
)

# Generation
from hunkstack.compose.gateway import (
    Cancelled,
    Failed,
    GenerationGateway,
    GroupingResult,
    LLMGenerationGateway,
    MessageResult,
    Succeeded,
)

# Finalization
from hunkstack.compose.finalize import (
    FinalizationEngine,
    FinalizationResult,
    FinalizationStep,
)

# Session
from hunkstack.compose.session import (
    AIOperationError,
    ComposerEvent,
    ComposerState,
    ComposeSession,
    SessionArgs,
)


__all__ = [
    # Errors
    "BranchResetError",
    "ComposeError",
    "DraftAssignmentError",
    "FinalizationInProgressError",
    "GenerationFailedError",
    "LoadingError",
    "PatchCreationError",
    "SafetyValidationError",
    "StashConflictError",
    # Models
    "STAGED",
    "UNSTAGED",
    "BaseCommitRef",
    "DraftCommit",
    "Hunk",
    "HunkMapEntry",
    "SafetySnapshot",
    # Indexing
    "parse_unified_diff",
    "build_hunk_map",
    "create_hunks_from_diffs",
    "initial_hunk_indices",
    # Drafts
    "DraftAssignment",
    # Safety
    "SafetyValidation",
    "capture_snapshot",
    "validate_snapshot",
    # Patches
    "build_commit_patch",
    "build_commit_patches",
    # Cancellation
    "CancellationToken",
    "OperationCancelledError",
    "run_cancellable",
    # Generation
    "Cancelled",
    "Failed",
    "GenerationGateway",
    "GroupingResult",
    "LLMGenerationGateway",
    "MessageResult",
    "Succeeded",
    # Finalization
    "FinalizationEngine",
    "FinalizationResult",
    "FinalizationStep",
    # Session
    "AIOperationError",
    "ComposerEvent",
    "ComposerState",
    "ComposeSession",
    "SessionArgs",
]
