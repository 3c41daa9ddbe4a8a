"""Patch builder for hunkstack compose module.

Contains:
- build_commit_patch: Build the patch for a single draft commit
- build_commit_patches: Build ordered CommitPatches for every draft commit
"""

from hunkstack.compose.errors import PatchCreationError
from hunkstack.compose.models import STAGED, UNSTAGED, DraftCommit, Hunk
from hunkstack.git.models import CommitPatch

# Unstaged hunks are relative to the index, so they follow staged ones
_ORIGIN_RANK = {STAGED: 0, UNSTAGED: 1}


def build_commit_patch(draft: DraftCommit, hunks: dict[int, Hunk]) -> str:
    """Build a patch for a single draft commit.

    Hunks are grouped into one section per (origin, file). Staged sections
    come first, then sections follow the order in which their first hunk
    was indexed. Rename-only hunks contribute their diff header alone.

    Args:
        draft: The draft commit
        hunks: Dictionary of hunk index to Hunk

    Returns:
        Patch content as string, ending with a newline
    """
    sections: dict[tuple[str, str], list[Hunk]] = {}
    for index in draft.hunk_indices:
        hunk = hunks.get(index)
        if hunk is None:
            raise PatchCreationError(f"Commit {draft.id} references unknown hunk: {index}")
        sections.setdefault((hunk.origin, hunk.file_name), []).append(hunk)

    def section_key(item: tuple[tuple[str, str], list[Hunk]]) -> tuple[int, int]:
        (origin, _), section_hunks = item
        return _ORIGIN_RANK.get(origin, len(_ORIGIN_RANK)), min(h.index for h in section_hunks)

    patch_lines: list[str] = []
    for _, section_hunks in sorted(sections.items(), key=section_key):
        section_hunks.sort(key=lambda h: h.index)
        patch_lines.append(section_hunks[0].diff_header)
        for hunk in section_hunks:
            if hunk.is_rename:
                continue
            patch_lines.append(hunk.hunk_header)
            if hunk.content:
                patch_lines.append(hunk.content)

    # git apply requires the patch to end with a newline
    return "\n".join(patch_lines) + "\n"


def build_commit_patches(drafts: list[DraftCommit], hunks: list[Hunk]) -> list[CommitPatch]:
    """Build one CommitPatch per non-empty draft, in draft order.

    Raises:
        PatchCreationError: If no draft has hunks, or a non-empty draft has
            no message.
    """
    by_index = {hunk.index: hunk for hunk in hunks}
    patches: list[CommitPatch] = []

    for draft in drafts:
        if not draft.hunk_indices:
            continue
        if not draft.message.strip():
            raise PatchCreationError(f"Commit {draft.id} has no message")
        patches.append(
            CommitPatch(message=draft.message, patch=build_commit_patch(draft, by_index))
        )

    if not patches:
        raise PatchCreationError("No hunks are assigned to any commit")
    return patches
