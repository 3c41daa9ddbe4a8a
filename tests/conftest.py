"""Shared test fixtures and configuration."""

import tempfile
from pathlib import Path
from typing import Callable, Optional

import pytest

from hunkstack.git.exceptions import GitError
from hunkstack.git.models import (
    Branch,
    CommitInfo,
    CommitPatch,
    Diff,
    DiffScope,
    StashEntry,
    StashList,
)


STAGED_DIFF = """diff --git a/a.ts b/a.ts
index 1111111..2222222 100644
--- a/a.ts
+++ b/a.ts
@@ -1,3 +1,4 @@
 const a = 1;
+const b = 2;
 const c = 3;
 const d = 4;
@@ -10,3 +11,3 @@ function main() {
   run();
-  stop();
+  halt();
 }
"""

UNSTAGED_DIFF = """diff --git a/b.ts b/b.ts
index 3333333..4444444 100644
--- a/b.ts
+++ b/b.ts
@@ -5,2 +5,3 @@
 export const x = 1;
+export const y = 2;
 export const z = 3;
"""

RENAME_DIFF = """diff --git a/old_name.py b/new_name.py
similarity index 100%
rename from old_name.py
rename to new_name.py
"""


class FakeRepository:
    """In-memory stand-in for GitRepository.

    Records every call in `calls`. Set `failures[name]` to an exception to
    make that method raise, and `after[name]` to a callable run once the
    method has done its work.
    """

    def __init__(
        self,
        path: Path,
        staged: Optional[str] = STAGED_DIFF,
        unstaged: Optional[str] = UNSTAGED_DIFF,
        head_sha: Optional[str] = "abc",
        branch: Optional[str] = "main",
        head_message: str = "Initial commit",
    ):
        self.path = Path(path)
        self.name = self.path.name
        self.staged = staged
        self.unstaged = unstaged
        self.untracked = False
        self.head_sha = head_sha
        self.head_message = head_message
        self.branch = branch
        self.branch_ref_sha = head_sha
        self.worktree_path = str(self.path)

        self.stashes: list[StashEntry] = []
        self.stash_payloads: dict[str, tuple] = {}
        self.created: list[tuple[str, list[CommitPatch]]] = []
        self.calls: list[str] = []
        self.failures: dict[str, Exception] = {}
        self.after: dict[str, Callable[[], None]] = {}
        self._counter = 0

    def _enter(self, name: str) -> None:
        self.calls.append(name)
        if name in self.failures:
            raise self.failures[name]

    def _exit(self, name: str) -> None:
        if name in self.after:
            self.after[name]()

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}{self._counter}"

    @property
    def mutating_calls(self) -> list[str]:
        mutating = {"create_unreachable_commits_from_patches", "save_stash", "apply_stash", "reset"}
        return [call for call in self.calls if call in mutating]

    async def get_diff(self, scope: DiffScope) -> Optional[Diff]:
        self._enter("get_diff")
        contents = self.staged if scope == DiffScope.STAGED else self.unstaged
        self._exit("get_diff")
        return Diff(scope=scope, contents=contents) if contents else None

    async def get_commit(self, ref: str) -> Optional[CommitInfo]:
        self._enter("get_commit")
        if self.head_sha is None:
            return None
        return CommitInfo(sha=self.head_sha, message=self.head_message)

    async def get_current_branch(self) -> Optional[Branch]:
        self._enter("get_current_branch")
        return Branch(name=self.branch) if self.branch else None

    async def get_head_sha(self) -> Optional[str]:
        self._enter("get_head_sha")
        return self.head_sha

    async def get_branch_ref_sha(self, branch_name: str) -> Optional[str]:
        self._enter("get_branch_ref_sha")
        return self.branch_ref_sha if branch_name == self.branch else None

    async def get_worktree_path(self) -> str:
        self._enter("get_worktree_path")
        return self.worktree_path

    async def has_uncommitted_changes(self) -> bool:
        self._enter("has_uncommitted_changes")
        return bool(self.staged or self.unstaged or self.untracked)

    async def create_unreachable_commits_from_patches(
        self, base_sha: str, patches: list[CommitPatch]
    ) -> list[str]:
        self._enter("create_unreachable_commits_from_patches")
        self.created.append((base_sha, list(patches)))
        shas = [self._next_id("new") for _ in patches]
        self._exit("create_unreachable_commits_from_patches")
        return shas

    async def save_stash(
        self, message: str, pathspecs: Optional[list[str]] = None, include_untracked: bool = False
    ) -> None:
        self._enter("save_stash")
        if self.staged or self.unstaged or (include_untracked and self.untracked):
            sha = self._next_id("stash")
            self.stash_payloads[sha] = (self.staged, self.unstaged, self.untracked)
            self.stashes.insert(0, StashEntry(name="", sha=sha, message=message))
            self._rename_stashes()
            self.staged = self.unstaged = None
            self.untracked = False
        self._exit("save_stash")

    async def get_stash(self) -> StashList:
        self._enter("get_stash")
        return StashList(stashes=list(self.stashes))

    async def apply_stash(self, stash_name: str, delete_after: bool = False) -> None:
        self._enter("apply_stash")
        entry = next((s for s in self.stashes if s.name == stash_name), None)
        if entry is None:
            raise GitError(f"{stash_name} is not a valid reference")
        self.staged, self.unstaged, self.untracked = self.stash_payloads[entry.sha]
        if delete_after:
            self.stashes.remove(entry)
            self._rename_stashes()
        self._exit("apply_stash")

    async def reset(self, sha: str, hard: bool = False) -> None:
        self._enter("reset")
        self.head_sha = sha
        self.branch_ref_sha = sha
        if hard:
            self.staged = self.unstaged = None
        self._exit("reset")

    def push_foreign_stash(self, message: str) -> StashEntry:
        """Add a stash entry the engine did not create."""
        entry = StashEntry(name="", sha=self._next_id("foreign"), message=message)
        self.stash_payloads[entry.sha] = (None, None, False)
        self.stashes.insert(0, entry)
        self._rename_stashes()
        return self.stashes[0]

    def _rename_stashes(self) -> None:
        self.stashes = [
            StashEntry(name=f"stash@{{{i}}}", sha=s.sha, message=s.message)
            for i, s in enumerate(self.stashes)
        ]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_repo(temp_dir):
    """Fake repository with 2 staged hunks in a.ts and 1 unstaged hunk in b.ts."""
    return FakeRepository(temp_dir)


@pytest.fixture
def sample_grouping_response():
    """Sample raw LLM grouping response."""
    return """```json
{
  "commits": [
    {"message": "Add constant b", "explanation": "New constant", "hunks": [1]},
    {"message": "Rename stop to halt", "explanation": "Clearer name", "hunks": [{"hunk": 2}, 3]}
  ]
}
```"""


@pytest.fixture
def sample_message_response():
    """Sample raw LLM message response."""
    return '{"summary": "Add constant b", "body": "Needed by the exporter."}'


@pytest.fixture
def staged_diff():
    """Staged diff with two hunks in a.ts."""
    return STAGED_DIFF


@pytest.fixture
def unstaged_diff():
    """Unstaged diff with one hunk in b.ts."""
    return UNSTAGED_DIFF


@pytest.fixture
def rename_diff():
    """Staged diff of a pure rename."""
    return RENAME_DIFF


@pytest.fixture
def make_fake_repo(temp_dir):
    """Factory for FakeRepository instances rooted at temp_dir."""

    def _make(**kwargs):
        return FakeRepository(temp_dir, **kwargs)

    return _make
