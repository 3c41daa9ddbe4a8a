"""Shared utility functions for CLI commands."""

import logging

import typer

from hunkstack.compose.models import Hunk
from hunkstack.compose.session import ComposerState

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(verbosity: int) -> None:
    """Send log records to stderr.

    Args:
        verbosity: Number of -v flags; 0 is WARNING, 1 is INFO, 2+ is DEBUG.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)


def format_hunk(hunk: Hunk) -> str:
    """One-line description of a hunk."""
    if hunk.is_rename:
        return f"[{hunk.index}] {hunk.origin:<8} {hunk.file_name}  ({hunk.content})"
    # Function context in the header keeps the file's raw bytes
    header = hunk.hunk_header.rstrip("\r").encode("utf-8", errors="replace").decode("utf-8")
    return (
        f"[{hunk.index}] {hunk.origin:<8} {hunk.file_name}  {header}  "
        f"+{hunk.additions}/-{hunk.deletions}"
    )


def print_state(state: ComposerState) -> None:
    """Print the base commit, the draft commits and the unassigned hunks."""
    by_index = {hunk.index: hunk for hunk in state.hunks}

    if state.base_commit is not None:
        base = state.base_commit
        subject = base.message.splitlines()[0] if base.message else ""
        typer.echo(f"Repository: {base.repo_name} ({base.branch_name})")
        typer.echo(f"Base commit: {base.sha[:7]} {subject}")
    typer.echo(f"Hunks: {len(state.hunks)}")
    typer.echo("")

    for position, draft in enumerate(state.drafts, 1):
        title = draft.message.splitlines()[0] if draft.message.strip() else "(no message)"
        typer.echo(f"{position}. {title}  [{draft.id}]")
        if draft.ai_explanation:
            typer.echo(f"   {draft.ai_explanation}")
        for index in draft.hunk_indices:
            typer.echo(f"   {format_hunk(by_index[index])}")
        typer.echo("")

    if state.unassigned:
        typer.echo("Unassigned (left in the working tree):")
        for hunk in state.unassigned:
            typer.echo(f"   {format_hunk(hunk)}")
        typer.echo("")
