"""CLI entry point for hunkstack.

This module provides the main CLI application that combines all commands
and subcommands into a single unified interface.
"""

from typing import Optional

import typer

from hunkstack import __version__
from hunkstack.cli.compose import compose_command, show_command
from hunkstack.cli.config import config_app

# Main application
app = typer.Typer(
    name="hunkstack",
    help="hunkstack: compose uncommitted changes into a stack of commits",
    add_completion=False,
)

# Add subcommand groups
app.add_typer(config_app, name="config")

# Add individual commands
app.command("show")(show_command)
app.command("compose")(compose_command)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"hunkstack {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
) -> None:
    """Compose uncommitted changes into a stack of commits."""


__all__ = ["app"]
