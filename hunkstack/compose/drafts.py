"""Draft commit assignment for hunkstack compose module.

Contains:
- DraftAssignment: Ordered draft commits over a fixed set of hunks
"""

from typing import Optional

from hunkstack.config import DRAFT_ID_PREFIX
from hunkstack.compose.errors import DraftAssignmentError
from hunkstack.compose.models import DraftCommit, Hunk


class DraftAssignment:
    """In-memory mapping of hunks to ordered draft commits.

    A hunk index is held by at most one draft at any time. Every mutation
    keeps that true, so the assignment is always valid for finalization as
    far as ownership goes. Readers get copies of the drafts, never the
    instances held here.
    """

    def __init__(self, hunks: list[Hunk], drafts: Optional[list[DraftCommit]] = None):
        self._hunks = {hunk.index: hunk for hunk in hunks}
        self._order = [hunk.index for hunk in hunks]
        self._drafts: list[DraftCommit] = []
        self._next_id = 1
        if drafts:
            self.replace_drafts(drafts)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def drafts(self) -> list[DraftCommit]:
        """Copies of the draft commits, in commit order."""
        return [draft.model_copy(deep=True) for draft in self._drafts]

    @property
    def hunks(self) -> list[Hunk]:
        return [self._hunks[index] for index in self._order]

    def get_draft(self, draft_id: str) -> DraftCommit:
        return self._find(draft_id).model_copy(deep=True)

    def has_draft(self, draft_id: str) -> bool:
        return any(draft.id == draft_id for draft in self._drafts)

    def assigned_indices(self) -> list[int]:
        """Hunk indices held by any draft, in commit order."""
        return [index for draft in self._drafts for index in draft.hunk_indices]

    def unassigned_hunks(self) -> list[Hunk]:
        """Hunks held by no draft, in index order."""
        assigned = set(self.assigned_indices())
        return [self._hunks[index] for index in self._order if index not in assigned]

    def hunks_being_committed(self) -> list[Hunk]:
        """Hunks held by any draft, in index order."""
        assigned = set(self.assigned_indices())
        return [self._hunks[index] for index in self._order if index in assigned]

    def owner_of(self, hunk_index: int) -> Optional[str]:
        """Return the id of the draft holding hunk_index, or None."""
        for draft in self._drafts:
            if hunk_index in draft.hunk_indices:
                return draft.id
        return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_draft(
        self,
        message: str = "",
        hunk_indices: Optional[list[int]] = None,
        position: Optional[int] = None,
        draft_id: Optional[str] = None,
    ) -> DraftCommit:
        """Add a draft commit, taking ownership of hunk_indices.

        Hunks listed here are removed from whichever drafts held them.

        Returns:
            A copy of the new draft.
        """
        if draft_id is None:
            draft_id = self._new_id()
        elif any(draft.id == draft_id for draft in self._drafts):
            raise DraftAssignmentError(f"Draft commit already exists: {draft_id}")

        indices = list(dict.fromkeys(hunk_indices or []))
        self._check_hunks(indices)
        self._release(indices)

        draft = DraftCommit(id=draft_id, message=message, hunk_indices=indices)
        if position is None:
            self._drafts.append(draft)
        else:
            self._drafts.insert(position, draft)
        return draft.model_copy(deep=True)

    def remove_draft(self, draft_id: str) -> None:
        """Remove a draft; its hunks become unassigned."""
        self._drafts.remove(self._find(draft_id))

    def move_draft(self, draft_id: str, position: int) -> None:
        """Move a draft to a new position in commit order."""
        draft = self._find(draft_id)
        self._drafts.remove(draft)
        self._drafts.insert(position, draft)

    def reorder(self, draft_ids: list[str]) -> None:
        """Set the commit order; draft_ids must name every draft exactly once."""
        current = {draft.id: draft for draft in self._drafts}
        if sorted(draft_ids) != sorted(current):
            raise DraftAssignmentError("Reorder must list every draft commit exactly once")
        self._drafts = [current[draft_id] for draft_id in draft_ids]

    def set_message(self, draft_id: str, message: str, ai_explanation: Optional[str] = None) -> None:
        draft = self._find(draft_id)
        draft.message = message
        if ai_explanation is not None:
            draft.ai_explanation = ai_explanation

    def move_hunk(
        self, hunk_index: int, target_draft_id: Optional[str], position: Optional[int] = None
    ) -> None:
        """Move a hunk to a draft, or to unassigned when target_draft_id is None."""
        self._check_hunks([hunk_index])
        target = self._find(target_draft_id) if target_draft_id is not None else None

        self._release([hunk_index])
        if target is None:
            return
        if position is None:
            target.hunk_indices.append(hunk_index)
        else:
            target.hunk_indices.insert(position, hunk_index)

    def replace_drafts(self, drafts: list[DraftCommit]) -> None:
        """Replace every draft at once, e.g. with an AI grouping.

        Raises:
            DraftAssignmentError: If a draft references an unknown hunk, a hunk
                appears in more than one draft, or two drafts share an id.
        """
        seen_ids: set[str] = set()
        seen_hunks: set[int] = set()
        for draft in drafts:
            if draft.id in seen_ids:
                raise DraftAssignmentError(f"Duplicate draft commit id: {draft.id}")
            seen_ids.add(draft.id)
            self._check_hunks(draft.hunk_indices)
            for index in draft.hunk_indices:
                if index in seen_hunks:
                    raise DraftAssignmentError(f"Hunk {index} is used in multiple commits")
                seen_hunks.add(index)

        self._drafts = [draft.model_copy(deep=True) for draft in drafts]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _find(self, draft_id: str) -> DraftCommit:
        for draft in self._drafts:
            if draft.id == draft_id:
                return draft
        raise DraftAssignmentError(f"Unknown draft commit: {draft_id}")

    def _check_hunks(self, indices: list[int]) -> None:
        unknown = [index for index in indices if index not in self._hunks]
        if unknown:
            raise DraftAssignmentError(f"Unknown hunk index: {', '.join(map(str, unknown))}")

    def _release(self, indices: list[int]) -> None:
        released = set(indices)
        for draft in self._drafts:
            draft.hunk_indices = [i for i in draft.hunk_indices if i not in released]

    def _new_id(self) -> str:
        existing = {draft.id for draft in self._drafts}
        while f"{DRAFT_ID_PREFIX}-{self._next_id}" in existing:
            self._next_id += 1
        draft_id = f"{DRAFT_ID_PREFIX}-{self._next_id}"
        self._next_id += 1
        return draft_id
