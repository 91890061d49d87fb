"""CLI commands for registering users and checking credentials."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from reelbase.cli.commands.common import ExitCode, cli_errors, format_timestamp
from reelbase.cli.runtime import Runtime
from reelbase.models.user import User
from reelbase.utils.passwords import PasswordBuffer


def register(app: typer.Typer, console: Console, runtime: Runtime) -> None:
    """Register user account commands."""

    @app.command("register")
    def register_user(
        email: str = typer.Argument(..., help="Email address, unique across all users"),
        first_name: Optional[str] = typer.Option(None, "--first-name", help="Given name"),
        last_name: Optional[str] = typer.Option(None, "--last-name", help="Family name"),
        password: str = typer.Option(
            ..., "--password", prompt=True, hide_input=True, confirmation_prompt=True, help="Account password"
        ),
    ) -> None:
        """Create a user and its credentials."""

        user = User(first_name=first_name, last_name=last_name, email=email)
        with cli_errors(console), PasswordBuffer.from_value(password) as secret:
            created = runtime.accounts().register(user, secret)

        if not created:
            console.print(f"[yellow]Email {escape(email)} is already registered.[/yellow]")
            raise typer.Exit(code=ExitCode.INVALID_INPUT)
        console.print(f"[green]Created user[/green] {user.user_id} ({escape(email)})")

    @app.command("login")
    def login(
        email: str = typer.Argument(..., help="Registered email address"),
        password: str = typer.Option(..., "--password", prompt=True, hide_input=True, help="Account password"),
    ) -> None:
        """Check an email/password pair and show the matching user."""

        with cli_errors(console), PasswordBuffer.from_value(password) as secret:
            user = runtime.accounts().login(email, secret)

        if user is None:
            console.print("[red]Invalid email or password.[/red]")
            raise typer.Exit(code=ExitCode.INVALID_INPUT)
        console.print(_build_user_table(user))


def _build_user_table(user: User) -> Table:
    table = Table(title="Authenticated user", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("User ID", str(user.user_id))
    table.add_row("Name", escape(" ".join(part for part in (user.first_name, user.last_name) if part)) or "-")
    table.add_row("Email", escape(user.email or "-"))
    table.add_row("Created", format_timestamp(user.created_at))
    return table


__all__ = ["register"]
