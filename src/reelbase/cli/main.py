"""CLI entry point and application wiring."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from reelbase.cli.commands import register_commands
from reelbase.cli.runtime import Runtime


class CLIApplication:
    """Central orchestrator for the reelbase Typer application."""

    def __init__(self, console: Optional[Console] = None, runtime: Optional[Runtime] = None) -> None:
        self.console = console or Console()
        self.runtime = runtime or Runtime()
        self._app = typer.Typer(add_completion=False, rich_markup_mode="rich")
        register_commands(self._app, self.console, self.runtime)

    @property
    def app(self) -> typer.Typer:
        """Return the underlying Typer application instance."""

        return self._app

    def run(self, *, prog_name: Optional[str] = None, args: Optional[list[str]] = None) -> None:
        """Invoke the Typer application with optional overrides."""

        try:
            self._app(prog_name=prog_name, args=args)
        finally:
            self.runtime.close()


def create_app(console: Optional[Console] = None, runtime: Optional[Runtime] = None) -> typer.Typer:
    """Factory helper that returns the configured Typer application."""

    return CLIApplication(console=console, runtime=runtime).app


def main() -> None:
    """Console script entry point for `python -m reelbase` or the installed CLI."""

    CLIApplication().run(prog_name="reelbase")


__all__ = ["CLIApplication", "create_app", "main"]
