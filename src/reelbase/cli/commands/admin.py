"""Schema bootstrap and the end-to-end walkthrough command."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from reelbase.cli.commands.common import ExitCode, cli_errors
from reelbase.cli.runtime import Runtime
from reelbase.db.memory import InMemoryBackend
from reelbase.db.migrate import run_migrations
from reelbase.models.user import User
from reelbase.models.video import Video

DEMO_EMAIL = "testuser@example.com"
DEMO_PASSWORD = "password123"
DEMO_WRONG_PASSWORD = "secret123"
DEMO_TAG = "apachecassandra"


def register(app: typer.Typer, console: Console, runtime: Runtime) -> None:
    """Register administrative commands."""

    @app.command("migrate")
    def migrate() -> None:
        """Create the tables used by reelbase."""

        try:
            run_migrations(str(runtime.settings.database_url), console=console)
        except Exception as exc:
            raise typer.Exit(code=ExitCode.STORAGE_ERROR) from exc

    @app.command("demo")
    def demo(
        memory: bool = typer.Option(False, "--memory", help="Run against a throwaway in-process store"),
    ) -> None:
        """Walk through registration, login, video creation and a partial update."""

        demo_runtime = Runtime(settings=runtime.settings, backend=InMemoryBackend()) if memory else runtime
        with cli_errors(console):
            run_demo(demo_runtime, console)


def run_demo(runtime: Runtime, console: Console) -> None:
    """Exercise every coordinator once and print what the read views return."""

    accounts = runtime.accounts()
    catalog = runtime.catalog()

    user = User(first_name="test", last_name="user", email=DEMO_EMAIL)
    if accounts.register(user, DEMO_PASSWORD):
        console.print(f"Created user {user.user_id} ({escape(DEMO_EMAIL)})")
    else:
        existing = accounts.get_by_email(DEMO_EMAIL)
        if existing is None:
            raise typer.Exit(code=ExitCode.STORAGE_ERROR)
        user = existing
        console.print(f"Reusing existing user {user.user_id}")

    duplicate = User(first_name="test2", last_name="user", email=DEMO_EMAIL)
    rejected = not accounts.register(duplicate, DEMO_WRONG_PASSWORD)
    console.print(f"Second registration with {DEMO_EMAIL} rejected: {rejected}")

    for password in (DEMO_PASSWORD, DEMO_WRONG_PASSWORD):
        outcome = "Success" if accounts.login(DEMO_EMAIL, password) else "Failure"
        console.print(f"Logging in with {DEMO_EMAIL}/{password}: {outcome}")

    video = catalog.create_video(
        Video(
            user_id=user.user_id,
            name="Accelerate: A NoSQL Original Series (TRAILER)",
            location="https://www.youtube.com/watch?v=LulWy8zmrog",
            tags={DEMO_TAG, "nosql", "hybridcloud"},
        )
    )
    console.print(f"Created video {video.video_id}: {escape(video.name or '')}")

    listings = (
        (f"Videos for {user.first_name} {user.last_name}", catalog.videos_by_user(user.user_id)),
        ("Latest videos", catalog.latest_videos(video.added_date)),
        (f"Videos tagged with {DEMO_TAG}", catalog.videos_by_tag(DEMO_TAG)),
    )
    for title, rows in listings:
        lines = [f"{row.video_id}  {row.name}" for row in rows]
        console.print(Panel(Text("\n".join(lines) or "(none)"), title=escape(title)))

    catalog.update_video(Video(video_id=video.video_id, name="Accelerate: A NoSQL Original Series - join us online!"))
    updated = catalog.get_video(video.video_id)
    if updated is not None:
        console.print(f"Updated name for video {updated.video_id}: {escape(updated.name or '')}")


__all__ = ["register", "run_demo"]
