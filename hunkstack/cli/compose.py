"""CLI commands for showing and finalizing compose sessions."""

import asyncio
import signal
from pathlib import Path
from typing import Optional

import typer

from hunkstack import global_config
from hunkstack.compose import (
    ComposeError,
    ComposeSession,
    Failed,
    SafetyValidationError,
    SessionArgs,
)
from hunkstack.config import load_config
from hunkstack.git.exceptions import GitError
from hunkstack.cli.utils import configure_logging, print_state


def _session_args(repo: Optional[Path]) -> SessionArgs:
    return SessionArgs(repo_path=str(repo.resolve()) if repo else None)


async def _load(session: ComposeSession, repo: Optional[Path]) -> None:
    state = await session.show(_session_args(repo))
    if state.loading_error:
        typer.echo(state.loading_error, err=True)
        raise typer.Exit(1)


def show_command(
    repo: Optional[Path] = typer.Option(
        None,
        "--repo",
        help="Path inside the repository (defaults to the current directory)",
    ),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Increase log verbosity"),
) -> None:
    """Show the hunks and the initial draft commit without changing anything."""
    configure_logging(verbose)

    async def run() -> None:
        session = ComposeSession()
        await _load(session, repo)
        print_state(session.state)

    asyncio.run(run())


def compose_command(
    repo: Optional[Path] = typer.Option(
        None,
        "--repo",
        help="Path inside the repository (defaults to the current directory)",
    ),
    ai: bool = typer.Option(
        True,
        "--ai/--no-ai",
        help="Group hunks into commits with the configured LLM",
    ),
    instructions: Optional[str] = typer.Option(
        None,
        "--instructions",
        "-i",
        help="Extra guidance for AI grouping (defaults to compose.custom_instructions)",
    ),
    messages: bool = typer.Option(
        False,
        "--messages",
        help="Generate a message for every commit that has none",
    ),
    message: Optional[str] = typer.Option(
        None,
        "--message",
        "-m",
        help="Message for every commit that has none",
    ),
    do_commit: bool = typer.Option(
        False,
        "--commit",
        "-c",
        help="Create the commits and reset the branch onto them",
    ),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Skip confirmation prompt in commit mode",
    ),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Increase log verbosity"),
) -> None:
    """Compose uncommitted changes into a stack of commits.

    Staged and unstaged hunks are indexed and assigned to draft commits,
    optionally grouped by AI. By default only the plan is shown. Use
    --commit to create the commits; changes left out of the plan stay in
    the working tree.
    """
    configure_logging(verbose)
    load_config()

    async def run() -> None:
        session = ComposeSession()
        await _load(session, repo)

        if ai:
            typer.echo("Generating commit grouping...", err=True)
            outcome = await session.generate_grouping(
                instructions or global_config.get_custom_instructions()
            )
            if isinstance(outcome, Failed):
                typer.echo(f"Error generating grouping: {outcome.error}", err=True)
                raise typer.Exit(1)

        if message:
            for draft in session.assignment.drafts:
                if not draft.message.strip():
                    session.assignment.set_message(draft.id, message)

        if messages:
            for draft in session.assignment.drafts:
                if draft.hunk_indices and not draft.message.strip():
                    typer.echo(f"Generating message for {draft.id}...", err=True)
                    outcome = await session.generate_message(draft.id)
                    if isinstance(outcome, Failed):
                        typer.echo(f"Error generating message: {outcome.error}", err=True)
                        raise typer.Exit(1)

        print_state(session.state)

        if not do_commit:
            typer.echo("Plan only. Run with --commit to create these commits.", err=True)
            return

        if not yes and not typer.confirm("Create these commits?", default=False):
            raise typer.Exit(0)

        await _finalize(session)

    asyncio.run(run())


async def _finalize(session: ComposeSession) -> None:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, session.cancel_finalize)
        handler_installed = True
    except (NotImplementedError, RuntimeError):
        handler_installed = False

    try:
        result = await session.finalize()
    except SafetyValidationError as e:
        typer.echo("The repository changed since the plan was made:", err=True)
        typer.echo(str(e), err=True)
        typer.echo("Run the command again to compose from the current state.", err=True)
        raise typer.Exit(1)
    except (ComposeError, GitError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    finally:
        if handler_installed:
            loop.remove_signal_handler(signal.SIGINT)

    if not result.completed:
        typer.echo("Cancelled. The branch was not changed.", err=True)
        raise typer.Exit(1)

    typer.echo(f"Created {len(result.commit_shas)} commits:")
    for sha in result.commit_shas:
        typer.echo(f"  {sha[:7]}")
    if result.cancel_requested:
        typer.echo("Cancellation arrived after the branch was reset; the commits were kept.", err=True)
