"""Git repository backend used by the compose engine.

Contains:
- GitRepository: Async facade over the git CLI for one repository
- open_repository: Resolve a repository from a path, or None
"""

import asyncio
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Optional

from hunkstack.git.exceptions import GitError, RepositoryUnavailableError
from hunkstack.git.models import (
    Branch,
    CommitInfo,
    CommitPatch,
    Diff,
    DiffScope,
    StashEntry,
    StashList,
)
from hunkstack.git.runner import _run_git_command, encode_output, get_repo_root

logger = logging.getLogger(__name__)

# Flags that keep diff output parseable regardless of user configuration
_DIFF_FLAGS = [
    "--no-color",
    "--no-ext-diff",
    "--src-prefix=a/",
    "--dst-prefix=b/",
]

# "On main: message" (git stash push -m) or "WIP on main: abc123 subject"
_STASH_SUBJECT_RE = re.compile(r"^(?:WIP on|On) [^:]+: (?P<message>.*)$")


class GitRepository:
    """A git repository addressed by its working tree root.

    Every public method is a coroutine. The git CLI is blocking, so each call
    runs in a worker thread and the event loop stays free for cancellation.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.name = self.path.name

    def __repr__(self) -> str:
        return f"GitRepository({str(self.path)!r})"

    def _git(
        self,
        args: list[str],
        env: Optional[dict[str, str]] = None,
        input_text: Optional[str] = None,
        strip: bool = True,
    ) -> str:
        if not self.path.is_dir():
            raise RepositoryUnavailableError(f"Repository is no longer available: {self.path}")
        return _run_git_command(args, cwd=self.path, env=env, input_text=input_text, strip=strip)

    async def _run(self, args: list[str], **kwargs) -> str:
        return await asyncio.to_thread(self._git, args, **kwargs)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_diff(self, scope: DiffScope) -> Optional[Diff]:
        """Get the staged or unstaged diff.

        Args:
            scope: DiffScope.STAGED (index vs HEAD) or DiffScope.UNSTAGED
                (working tree vs index).

        Returns:
            The Diff, or None when there are no changes in that scope.
        """
        if scope == DiffScope.STAGED:
            args = ["diff", "--cached", "-M"] + _DIFF_FLAGS
        else:
            args = ["diff"] + _DIFF_FLAGS

        contents = await self._run(args, strip=False)
        if not contents.strip():
            return None
        return Diff(scope=scope, contents=contents)

    async def get_commit(self, ref: str) -> Optional[CommitInfo]:
        """Resolve a ref to a commit, or None if it does not exist."""
        try:
            output = await self._run(["log", "-1", "--format=%H%x00%B", ref, "--"])
        except RepositoryUnavailableError:
            raise
        except GitError:
            return None

        if not output:
            return None
        sha, _, message = output.partition("\x00")
        return CommitInfo(sha=sha.strip(), message=message.strip())

    async def get_current_branch(self) -> Optional[Branch]:
        """Get the current branch, or None in detached HEAD state."""
        name = await self._run(["branch", "--show-current"])
        if not name:
            return None
        return Branch(name=name)

    async def get_head_sha(self) -> Optional[str]:
        """Get the sha HEAD points at, or None for an unborn branch."""
        try:
            return await self._run(["rev-parse", "--verify", "HEAD"])
        except RepositoryUnavailableError:
            raise
        except GitError:
            return None

    async def get_branch_ref_sha(self, branch_name: str) -> Optional[str]:
        """Get the sha stored in refs/heads/<branch_name>, or None."""
        try:
            return await self._run(["rev-parse", "--verify", f"refs/heads/{branch_name}"])
        except RepositoryUnavailableError:
            raise
        except GitError:
            return None

    async def get_worktree_path(self) -> str:
        """Get the absolute path of the current worktree root."""
        return await self._run(["rev-parse", "--show-toplevel"])

    async def has_uncommitted_changes(self) -> bool:
        """Check for staged, unstaged or untracked changes."""
        status = await self._run(["status", "--porcelain=v1", "--untracked-files=all"])
        return bool(status)

    # ------------------------------------------------------------------
    # Commit creation
    # ------------------------------------------------------------------

    async def create_unreachable_commits_from_patches(
        self, base_sha: str, patches: list[CommitPatch]
    ) -> list[str]:
        """Create a chain of commits without moving any ref.

        Each patch is applied to a private index seeded from base_sha, and the
        resulting tree is committed on top of the previous commit in the chain.

        Args:
            base_sha: Commit the chain is built on.
            patches: Ordered patches; each becomes one commit.

        Returns:
            The shas of the created commits, in order.

        Raises:
            GitError: If a patch does not apply or a commit cannot be created.
        """
        return await asyncio.to_thread(self._create_commit_chain, base_sha, patches)

    def _create_commit_chain(self, base_sha: str, patches: list[CommitPatch]) -> list[str]:
        shas: list[str] = []

        with tempfile.TemporaryDirectory(prefix="hunkstack_") as tmp:
            tmp_dir = Path(tmp)
            env = dict(os.environ)
            env["GIT_INDEX_FILE"] = str(tmp_dir / "index")

            self._git(["read-tree", base_sha], env=env)

            parent = base_sha
            for position, commit_patch in enumerate(patches, start=1):
                patch_file = tmp_dir / f"commit_{position}.patch"
                patch_file.write_bytes(encode_output(commit_patch.patch))

                self._git(["apply", "--cached", "--whitespace=nowarn", str(patch_file)], env=env)
                tree = self._git(["write-tree"], env=env)
                sha = self._git(
                    ["commit-tree", tree, "-p", parent, "-F", "-"],
                    env=env,
                    input_text=commit_patch.message,
                )
                logger.debug("Created commit %s (%d/%d)", sha, position, len(patches))
                shas.append(sha)
                parent = sha

        return shas

    # ------------------------------------------------------------------
    # Stash and reset
    # ------------------------------------------------------------------

    async def save_stash(
        self,
        message: str,
        pathspecs: Optional[list[str]] = None,
        include_untracked: bool = False,
    ) -> None:
        """Stash working tree changes under message.

        git exits successfully without creating an entry when there is
        nothing to stash, so callers compare get_stash() before and after.
        """
        args = ["stash", "push", "-m", message]
        if include_untracked:
            args.append("--include-untracked")
        if pathspecs:
            args.append("--")
            args.extend(pathspecs)
        await self._run(args)

    async def get_stash(self) -> StashList:
        """List stash entries, most recent first."""
        output = await self._run(["stash", "list", "--format=%gd%x00%H%x00%gs"])
        stashes: list[StashEntry] = []
        for line in output.split("\n"):
            if not line:
                continue
            parts = line.split("\x00")
            if len(parts) != 3:
                continue
            name, sha, subject = parts
            match = _STASH_SUBJECT_RE.match(subject)
            stashes.append(
                StashEntry(
                    name=name,
                    sha=sha,
                    message=match.group("message") if match else subject,
                )
            )
        return StashList(stashes=stashes)

    async def apply_stash(self, stash_name: str, delete_after: bool = False) -> None:
        """Apply a stash entry, dropping it afterwards when delete_after is set.

        `git stash pop` keeps the entry when the apply conflicts.
        """
        command = "pop" if delete_after else "apply"
        await self._run(["stash", command, stash_name])

    async def reset(self, sha: str, hard: bool = False) -> None:
        """Reset the current branch to sha."""
        args = ["reset"]
        if hard:
            args.append("--hard")
        args.append(sha)
        await self._run(args)


def open_repository(path: Optional[Path] = None) -> Optional[GitRepository]:
    """Resolve the repository containing path (or the cwd).

    Returns:
        A GitRepository, or None when path is not inside a git repository.
    """
    if path is not None and not Path(path).is_dir():
        return None
    try:
        root = get_repo_root(path)
    except GitError:
        return None
    return GitRepository(root)
