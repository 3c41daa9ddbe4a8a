"""Git backend for hunkstack.

This package provides the version-control collaborator used by compose:
- exceptions: GitError, RepositoryUnavailableError
- runner: _run_git_command, get_repo_root
- models: DiffScope, Diff, CommitInfo, Branch, StashEntry, StashList, CommitPatch
- backend: GitRepository, open_repository
"""

# Exceptions
from hunkstack.git.exceptions import (
    GitError,
    RepositoryUnavailableError,
)

# Runner utilities
from hunkstack.git.runner import (
    _run_git_command,
    get_repo_root,
)

# Models
from hunkstack.git.models import (
    Branch,
    CommitInfo,
    CommitPatch,
    Diff,
    DiffScope,
    StashEntry,
    StashList,
)

# Backend
from hunkstack.git.backend import (
    GitRepository,
    open_repository,
)


__all__ = [
    # Exceptions
    "GitError",
    "RepositoryUnavailableError",
    # Runner
    "_run_git_command",
    "get_repo_root",
    # Models
    "Branch",
    "CommitInfo",
    "CommitPatch",
    "Diff",
    "DiffScope",
    "StashEntry",
    "StashList",
    # Backend
    "GitRepository",
    "open_repository",
]
