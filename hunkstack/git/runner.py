"""Git command runner and repository utilities.

Contains:
- _run_git_command: Run a git command and return its output
- decode_output / encode_output: Lossless conversion of git output
- get_repo_root: Get the root directory of a git repository
"""

import logging
import subprocess
from pathlib import Path
from typing import Optional

from hunkstack.git.exceptions import GitError

logger = logging.getLogger(__name__)

OUTPUT_ENCODING = "utf-8"


def _run_git_command(
    args: list[str],
    cwd: Optional[Path] = None,
    env: Optional[dict[str, str]] = None,
    input_text: Optional[str] = None,
    strip: bool = True,
) -> str:
    """Run a git command and return its output.

    Args:
        args: List of arguments to pass to git.
        cwd: Working directory for the command (defaults to the process cwd).
        env: Full environment for the child process (defaults to inherited).
        input_text: Text passed to the command's stdin.
        strip: Whether to strip surrounding whitespace from stdout. Diff
            output must be kept verbatim, so callers reading patches pass False.

    Returns:
        The stdout of the git command. Undecodable bytes are kept as
        surrogate escapes and line endings are never translated, so
        encode_output() gives back the exact bytes git wrote.

    Raises:
        GitError: If the command fails.
    """
    try:
        result = subprocess.run(
            ["git"] + args,
            capture_output=True,
            check=True,
            cwd=cwd,
            env=env,
            input=encode_output(input_text) if input_text is not None else None,
        )
        stdout = decode_output(result.stdout)
    except subprocess.CalledProcessError as e:
        stderr = e.stderr.decode(OUTPUT_ENCODING, errors="replace").strip()
        logger.debug("git %s failed: %s", " ".join(args), stderr)
        raise GitError(f"Git command failed: git {' '.join(args)}\n{stderr}")
    except FileNotFoundError:
        raise GitError("Git is not installed or not in PATH.")
    except UnicodeError as e:
        raise GitError(f"Git command failed: git {' '.join(args)}\n{e}")

    return stdout.strip() if strip else stdout


def decode_output(data: bytes) -> str:
    """Decode git output without losing bytes that are not valid UTF-8."""
    return data.decode(OUTPUT_ENCODING, errors="surrogateescape")


def encode_output(text: str) -> bytes:
    """Inverse of decode_output()."""
    return text.encode(OUTPUT_ENCODING, errors="surrogateescape")


def get_repo_root(path: Optional[Path] = None) -> Path:
    """Get the root directory of the git repository containing path.

    Args:
        path: Any directory inside the repository (defaults to the process cwd).

    Returns:
        Path to the repository root.

    Raises:
        GitError: If not in a git repository.
    """
    try:
        root = _run_git_command(["rev-parse", "--show-toplevel"], cwd=path)
        return Path(root)
    except GitError:
        raise GitError("Not in a git repository. Please run this command from within a git repo.")
