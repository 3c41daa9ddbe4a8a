"""Git-related exception classes.

Contains all exception classes for Git operations:
- GitError: Base exception for git-related errors
- RepositoryUnavailableError: Raised when the repository disappeared mid-session
"""


class GitError(Exception):
    """Custom exception for git-related errors."""

    pass


class RepositoryUnavailableError(GitError):
    """Raised when the target repository is no longer available."""

    pass
