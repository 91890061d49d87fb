"""Command registration utilities for the reelbase CLI."""

from __future__ import annotations

import typer
from rich.console import Console

from reelbase.cli.commands import accounts, admin, videos
from reelbase.cli.commands.common import ExitCode
from reelbase.cli.runtime import Runtime
from reelbase.utils.logging import configure_logging


def register_commands(app: typer.Typer, console: Console, runtime: Runtime) -> None:
    """Attach command groups to the provided Typer application."""

    accounts.register(app, console, runtime)
    videos.register(app, console, runtime)
    admin.register(app, console, runtime)

    @app.callback(invoke_without_command=True)
    def main_callback(ctx: typer.Context) -> None:
        """Configure logging and show a default message when no subcommand is provided."""

        settings = runtime.settings
        configure_logging(settings.log_level, json_output=settings.log_json)
        if ctx.invoked_subcommand is None:
            console.print("[bold green]reelbase CLI ready for commands.[/bold green]")


__all__ = ["ExitCode", "register_commands"]
