"""Compose session controller.

Contains:
- SessionArgs: Identity of the session being shown
- ComposerState: Read model of the session, consumed by the CLI
- ComposerEvent: Notifications emitted on state changes
- AIOperationError: Last failed AI operation
- ComposeSession: Owns the single active compose session
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from hunkstack.cache.bootstrap import BootstrapCache
from hunkstack.config import BOOTSTRAP_CACHE_TTL_SECONDS
from hunkstack.compose.cancellation import CancellationToken
from hunkstack.compose.drafts import DraftAssignment
from hunkstack.compose.errors import (
    ComposeError,
    DraftAssignmentError,
    FinalizationInProgressError,
    LoadingError,
    SafetyValidationError,
)
from hunkstack.compose.finalize import FinalizationEngine, FinalizationResult
from hunkstack.compose.gateway import (
    Cancelled,
    GenerationGateway,
    LLMGenerationGateway,
    GroupingResult,
    MessageResult,
    Outcome,
    Succeeded,
)
from hunkstack.compose.indexer import create_hunks_from_diffs, initial_hunk_indices
from hunkstack.compose.models import (
    BaseCommitRef,
    DraftCommit,
    Hunk,
    HunkMapEntry,
    SafetySnapshot,
)
from hunkstack.compose.patch import build_commit_patch
from hunkstack.compose.safety import capture_snapshot
from hunkstack.git.backend import GitRepository, open_repository
from hunkstack.git.exceptions import GitError

logger = logging.getLogger(__name__)

REPOSITORY_UNAVAILABLE = "Repository is no longer available"

GENERATE_COMMITS_OPERATION = "generateCommits"
GENERATE_MESSAGE_OPERATION = "generateCommitMessage"


@dataclass(frozen=True)
class SessionArgs:
    """Arguments identifying a session; also the bootstrap cache key."""

    repo_path: Optional[str] = None


@dataclass
class AIOperationError:
    operation: str
    error: str


@dataclass
class ComposerState:
    """Snapshot of a session for display. Mutating it changes nothing."""

    hunks: list[Hunk] = field(default_factory=list)
    hunk_map: list[HunkMapEntry] = field(default_factory=list)
    drafts: list[DraftCommit] = field(default_factory=list)
    unassigned: list[Hunk] = field(default_factory=list)
    base_commit: Optional[BaseCommitRef] = None
    safety_snapshot: Optional[SafetySnapshot] = None
    generating_commits: bool = False
    generating_commit_message: Optional[str] = None  # Id of the draft being described
    committing: bool = False
    safety_error: Optional[str] = None
    loading_error: Optional[str] = None
    commit_error: Optional[str] = None
    ai_operation_error: Optional[AIOperationError] = None
    has_changes: bool = False
    has_used_auto_compose: bool = False


class ComposerEvent(str, Enum):
    """Notifications sent to the session listener."""

    LOADED = "loaded"
    LOADING_ERROR = "loading_error"
    SAFETY_ERROR = "safety_error"
    GENERATING_COMMITS = "generating_commits"
    COMMITS_GENERATED = "commits_generated"
    GENERATE_COMMITS_CANCELLED = "generate_commits_cancelled"
    GENERATING_MESSAGE = "generating_message"
    MESSAGE_GENERATED = "message_generated"
    GENERATE_MESSAGE_CANCELLED = "generate_message_cancelled"
    AI_OPERATION_ERROR = "ai_operation_error"
    AI_OPERATION_ERROR_CLEARED = "ai_operation_error_cleared"
    COMMITTING = "committing"
    FINALIZED = "finalized"
    FINALIZE_CANCELLED = "finalize_cancelled"
    COMMIT_ERROR = "commit_error"
    CLOSED = "closed"


Listener = Callable[[ComposerEvent, ComposerState], None]


@dataclass
class _Bootstrap:
    """Result of loading a session; what the bootstrap cache stores."""

    repository: GitRepository
    hunks: list[Hunk]
    hunk_map: list[HunkMapEntry]
    base_commit: BaseCommitRef
    safety_snapshot: SafetySnapshot


class ComposeSession:
    """Owns one compose session and mediates every operation on it.

    Loading reads the repository once and caches the result for a short
    time, so repeated show() calls with the same arguments reuse it. Each
    long operation gets its own CancellationToken, disposed when the
    operation settles. Grouping and message generation are single-flight:
    a new request cancels the outstanding one of the same kind.
    """

    def __init__(
        self,
        gateway: Optional[GenerationGateway] = None,
        repository_resolver: Callable[[Optional[Path]], Optional[GitRepository]] = open_repository,
        listener: Optional[Listener] = None,
        cache: Optional[BootstrapCache] = None,
    ):
        self._gateway = gateway
        self._resolve_repository = repository_resolver
        self._listener = listener
        self._cache: BootstrapCache = cache or BootstrapCache(ttl_seconds=BOOTSTRAP_CACHE_TTL_SECONDS)

        self._args = SessionArgs()
        self._bootstrap: Optional[_Bootstrap] = None
        self._assignment: Optional[DraftAssignment] = None
        self._engine: Optional[FinalizationEngine] = None

        self._grouping_token: Optional[CancellationToken] = None
        self._message_token: Optional[CancellationToken] = None
        self._finalize_token: Optional[CancellationToken] = None

        self._generating_commit_message: Optional[str] = None
        self._safety_error: Optional[str] = None
        self._loading_error: Optional[str] = None
        self._commit_error: Optional[str] = None
        self._ai_operation_error: Optional[AIOperationError] = None
        self._has_used_auto_compose = False

    # ------------------------------------------------------------------
    # Read model
    # ------------------------------------------------------------------

    @property
    def gateway(self) -> GenerationGateway:
        if self._gateway is None:
            self._gateway = LLMGenerationGateway()
        return self._gateway

    @property
    def args(self) -> SessionArgs:
        return self._args

    @property
    def loaded(self) -> bool:
        return self._bootstrap is not None

    @property
    def repository(self) -> Optional[GitRepository]:
        return self._bootstrap.repository if self._bootstrap else None

    @property
    def assignment(self) -> DraftAssignment:
        """The draft commits of the loaded session, for editing."""
        return self._require_loaded()[1]

    @property
    def state(self) -> ComposerState:
        bootstrap = self._bootstrap
        assignment = self._assignment
        return ComposerState(
            hunks=list(bootstrap.hunks) if bootstrap else [],
            hunk_map=list(bootstrap.hunk_map) if bootstrap else [],
            drafts=assignment.drafts if assignment else [],
            unassigned=assignment.unassigned_hunks() if assignment else [],
            base_commit=bootstrap.base_commit if bootstrap else None,
            safety_snapshot=bootstrap.safety_snapshot if bootstrap else None,
            generating_commits=self._grouping_token is not None,
            generating_commit_message=self._generating_commit_message,
            committing=self._finalize_token is not None,
            safety_error=self._safety_error,
            loading_error=self._loading_error,
            commit_error=self._commit_error,
            ai_operation_error=self._ai_operation_error,
            has_changes=bool(bootstrap and bootstrap.hunks),
            has_used_auto_compose=self._has_used_auto_compose,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def show(self, args: Optional[SessionArgs] = None) -> ComposerState:
        """Show the composer, loading the session if needed.

        Passing args starts a session for them and drops any cached
        bootstrap. Without args, a cached bootstrap that has not expired is
        reused as is, drafts included.
        """
        if args is not None:
            self._cancel_generation()
            self._cache.invalidate()
            self._args = args
        return await self.load()

    async def load(self) -> ComposerState:
        """Load the session for the current arguments.

        A LoadingError is recorded in the read model rather than raised.
        """
        try:
            bootstrap = await self._cache.get(self._args, self._load_bootstrap)
        except LoadingError as e:
            logger.info("Could not load compose session: %s", e)
            self._clear_session()
            self._loading_error = str(e)
            self._notify(ComposerEvent.LOADING_ERROR)
            return self.state

        if bootstrap is not self._bootstrap:
            self._apply_bootstrap(bootstrap)
        self._notify(ComposerEvent.LOADED)
        return self.state

    async def reload(self, repo_path: Optional[str] = None) -> ComposerState:
        """Discard the session and load it again from the repository."""
        self._cancel_generation()
        self._cache.invalidate()

        repository = self.repository
        if repo_path is None and repository is not None and not repository.path.is_dir():
            self._safety_error = REPOSITORY_UNAVAILABLE
            self._notify(ComposerEvent.SAFETY_ERROR)
            return self.state

        if repo_path is not None:
            self._args = SessionArgs(repo_path=repo_path)
        self._clear_session()
        return await self.load()

    def dispose(self) -> None:
        """Cancel every outstanding operation."""
        self._cancel_generation()
        if self._finalize_token is not None:
            self._finalize_token.cancel()

    def close(self) -> None:
        """Dispose of outstanding operations and discard the session."""
        self.dispose()
        self._cache.invalidate()
        self._clear_session()
        self._notify(ComposerEvent.CLOSED)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def generate_grouping(self, custom_instructions: Optional[str] = None) -> "Outcome[GroupingResult]":
        """Ask the gateway to group every hunk into draft commits.

        On success the drafts are replaced. On failure or cancellation the
        drafts are left as they were.
        """
        bootstrap, assignment = self._require_loaded()

        if self._grouping_token is not None:
            self._grouping_token.cancel()
        token = CancellationToken()
        self._grouping_token = token
        self._ai_operation_error = None
        self._notify(ComposerEvent.GENERATING_COMMITS)

        try:
            outcome = await self.gateway.generate_grouping(
                bootstrap.hunks, assignment.drafts, bootstrap.hunk_map, custom_instructions, token
            )
        finally:
            token.dispose()
            superseded = self._grouping_token is not token
            if not superseded:
                self._grouping_token = None

        # The superseding request or a reload owns the state now
        if superseded:
            return Cancelled()

        if isinstance(outcome, Succeeded):
            assignment.replace_drafts(outcome.value.drafts)
            self._has_used_auto_compose = True
            self._notify(ComposerEvent.COMMITS_GENERATED)
        elif isinstance(outcome, Cancelled):
            self._notify(ComposerEvent.GENERATE_COMMITS_CANCELLED)
        else:
            self._ai_operation_error = AIOperationError(GENERATE_COMMITS_OPERATION, str(outcome.error))
            self._notify(ComposerEvent.AI_OPERATION_ERROR)
        return outcome

    async def generate_message(self, commit_id: str) -> "Outcome[MessageResult]":
        """Ask the gateway for a message for one draft commit.

        Raises:
            DraftAssignmentError: If the draft is unknown or has no hunks.
        """
        bootstrap, assignment = self._require_loaded()
        draft = assignment.get_draft(commit_id)
        if not draft.hunk_indices:
            raise DraftAssignmentError(f"Commit {commit_id} has no hunks to describe")
        diff_text = build_commit_patch(draft, {hunk.index: hunk for hunk in bootstrap.hunks})

        if self._message_token is not None:
            self._message_token.cancel()
        token = CancellationToken()
        self._message_token = token
        self._generating_commit_message = commit_id
        self._ai_operation_error = None
        self._notify(ComposerEvent.GENERATING_MESSAGE)

        try:
            outcome = await self.gateway.generate_message(commit_id, diff_text, token)
        finally:
            token.dispose()
            superseded = self._message_token is not token
            if not superseded:
                self._message_token = None
                self._generating_commit_message = None

        if superseded:
            return Cancelled()

        if isinstance(outcome, Succeeded):
            if assignment.has_draft(commit_id):
                assignment.set_message(commit_id, outcome.value.message)
                self._notify(ComposerEvent.MESSAGE_GENERATED)
            else:
                logger.info("Discarding message for removed commit %s", commit_id)
        elif isinstance(outcome, Cancelled):
            self._notify(ComposerEvent.GENERATE_MESSAGE_CANCELLED)
        else:
            self._ai_operation_error = AIOperationError(GENERATE_MESSAGE_OPERATION, str(outcome.error))
            self._notify(ComposerEvent.AI_OPERATION_ERROR)
        return outcome

    def cancel_generate_grouping(self) -> bool:
        """Request cancellation; the generation call sends the notification."""
        return self._grouping_token.cancel() if self._grouping_token else False

    def cancel_generate_message(self) -> bool:
        return self._message_token.cancel() if self._message_token else False

    def clear_ai_operation_error(self) -> None:
        self._ai_operation_error = None
        self._notify(ComposerEvent.AI_OPERATION_ERROR_CLEARED)

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    async def finalize(self) -> FinalizationResult:
        """Turn the draft commits into real commits.

        On completion the session is discarded. A cancelled finalization
        keeps the session so it can be retried.

        Raises:
            FinalizationInProgressError: If a finalization is already running.
            ComposeError: Any finalization failure, after it is recorded in
                the read model.
            GitError: If the repository became unavailable.
        """
        if self._finalize_token is not None:
            raise FinalizationInProgressError("A finalization is already running")
        bootstrap, assignment = self._require_loaded()

        token = CancellationToken()
        self._finalize_token = token
        self._commit_error = None
        self._safety_error = None
        self._notify(ComposerEvent.COMMITTING)

        try:
            result = await self._engine.run(
                assignment.drafts,
                bootstrap.hunks,
                bootstrap.base_commit,
                bootstrap.safety_snapshot,
                token,
            )
        except SafetyValidationError as e:
            self._settle_finalize(token)
            self._safety_error = str(e)
            self._notify(ComposerEvent.SAFETY_ERROR)
            raise
        except (ComposeError, GitError) as e:
            self._settle_finalize(token)
            self._commit_error = str(e)
            self._notify(ComposerEvent.COMMIT_ERROR)
            raise
        self._settle_finalize(token)

        if not result.completed:
            self._notify(ComposerEvent.FINALIZE_CANCELLED)
            return result

        self._cache.invalidate()
        self._clear_session()
        if result.cancel_requested:
            self._notify(ComposerEvent.FINALIZE_CANCELLED)
        else:
            self._notify(ComposerEvent.FINALIZED)
        return result

    def cancel_finalize(self) -> bool:
        """Request cancellation; finalize() sends the notification."""
        return self._finalize_token.cancel() if self._finalize_token else False

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _load_bootstrap(self) -> _Bootstrap:
        path = Path(self._args.repo_path) if self._args.repo_path else None
        repository = self._resolve_repository(path)
        if repository is None:
            raise LoadingError("No repository found. Run hunkstack inside a git repository.")

        try:
            snapshot = await capture_snapshot(repository)
            if snapshot.staged_diff is None and snapshot.unstaged_diff is None:
                raise LoadingError("No changes found to compose commits from.")

            head = await repository.get_commit("HEAD")
            if head is None:
                raise LoadingError("No base commit found to compose from.")

            branch = await repository.get_current_branch()
            if branch is None:
                raise LoadingError("No current branch found to compose from.")
        except GitError as e:
            raise LoadingError(f"Failed to read repository: {e}") from e

        # Index the diffs the snapshot holds so both describe the same state
        hunks, hunk_map = create_hunks_from_diffs(snapshot.staged_diff, snapshot.unstaged_diff)
        if not hunks:
            raise LoadingError("No changes found to compose commits from.")

        logger.info("Loaded %d hunks from %s on %s", len(hunks), repository.name, branch.name)
        return _Bootstrap(
            repository=repository,
            hunks=hunks,
            hunk_map=hunk_map,
            base_commit=BaseCommitRef(
                sha=head.sha,
                message=head.message,
                repo_name=repository.name,
                branch_name=branch.name,
            ),
            safety_snapshot=snapshot,
        )

    def _apply_bootstrap(self, bootstrap: _Bootstrap) -> None:
        self._clear_session()
        self._bootstrap = bootstrap
        self._assignment = DraftAssignment(bootstrap.hunks)
        self._assignment.add_draft(hunk_indices=initial_hunk_indices(bootstrap.hunks))
        self._engine = FinalizationEngine(bootstrap.repository)

    def _clear_session(self) -> None:
        self._bootstrap = None
        self._assignment = None
        self._engine = None
        self._generating_commit_message = None
        self._safety_error = None
        self._loading_error = None
        self._commit_error = None
        self._ai_operation_error = None
        self._has_used_auto_compose = False

    def _cancel_generation(self) -> None:
        for token in (self._grouping_token, self._message_token):
            if token is not None:
                token.cancel()
        self._grouping_token = None
        self._message_token = None
        self._generating_commit_message = None

    def _settle_finalize(self, token: CancellationToken) -> None:
        token.dispose()
        self._finalize_token = None

    def _require_loaded(self) -> tuple[_Bootstrap, DraftAssignment]:
        if self._bootstrap is None or self._assignment is None:
            raise LoadingError(self._loading_error or "No compose session is loaded.")
        return self._bootstrap, self._assignment

    def _notify(self, event: ComposerEvent) -> None:
        logger.debug("Composer event: %s", event.value)
        if self._listener is not None:
            self._listener(event, self.state)
