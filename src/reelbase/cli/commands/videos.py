"""CLI commands for adding, listing and renaming catalog videos."""

from __future__ import annotations

from typing import Iterable, List, Optional, Union
from uuid import UUID

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from reelbase.cli.commands.common import ExitCode, cli_errors, format_timestamp, parse_tags
from reelbase.cli.runtime import Runtime
from reelbase.models.video import LatestVideo, UserVideo, Video, VideoByTag

ViewRow = Union[UserVideo, LatestVideo, VideoByTag]


def register(app: typer.Typer, console: Console, runtime: Runtime) -> None:
    """Register catalog commands."""

    @app.command("add-video")
    def add_video(  # pylint: disable=too-many-arguments
        user_id: UUID = typer.Option(..., "--user-id", help="Owner of the video"),
        name: str = typer.Option(..., "--name", help="Display name"),
        location: str = typer.Option(..., "--location", help="Where the video is hosted"),
        tags: Optional[List[str]] = typer.Option(None, "--tag", help="Tag for the video; repeat for several"),
        description: Optional[str] = typer.Option(None, "--description", help="Free-form description"),
        preview: Optional[str] = typer.Option(None, "--preview", help="Preview image location"),
    ) -> None:
        """Create a video in the catalog and all of its read views."""

        draft = Video(
            user_id=user_id,
            name=name,
            location=location,
            tags=parse_tags(tags) or None,
            description=description,
            preview_image_location=preview,
        )
        with cli_errors(console):
            video = runtime.catalog().create_video(draft)
        console.print(f"[green]Created video[/green] {video.video_id}: {escape(video.name or '')}")

    @app.command("videos")
    def list_videos(
        user_id: Optional[UUID] = typer.Option(None, "--user-id", help="List a user's videos"),
        tag: Optional[str] = typer.Option(None, "--tag", help="List videos with a tag"),
        day: Optional[str] = typer.Option(None, "--day", help="List videos added on a UTC day (yyyymmdd)"),
    ) -> None:
        """List one denormalized view; defaults to today's uploads."""

        selected = [option for option in (user_id, tag, day) if option is not None]
        if len(selected) > 1:
            console.print("[red]Choose only one of --user-id, --tag or --day.[/red]")
            raise typer.Exit(code=ExitCode.INVALID_INPUT)

        catalog = runtime.catalog()
        with cli_errors(console):
            if user_id is not None:
                title, rows = f"Videos for user {user_id}", list(catalog.videos_by_user(user_id))
            elif tag is not None:
                title, rows = f"Videos tagged with {tag}", list(catalog.videos_by_tag(tag))
            else:
                title, rows = "Latest videos", list(catalog.latest_videos(day))
        console.print(_build_video_table(title, rows))

    @app.command("rename-video")
    def rename_video(
        video_id: UUID = typer.Argument(..., help="Video to rename"),
        name: str = typer.Argument(..., help="New display name"),
    ) -> None:
        """Change a video's name on its canonical row only."""

        catalog = runtime.catalog()
        with cli_errors(console):
            catalog.update_video(Video(video_id=video_id, name=name))
            updated = catalog.get_video(video_id)
        if updated is None:
            console.print(f"[red]Video {video_id} not found after update.[/red]")
            raise typer.Exit(code=ExitCode.STORAGE_ERROR)
        console.print(f"Updated name for video {updated.video_id}: {escape(updated.name or '')}")


def _build_video_table(title: str, rows: Iterable[ViewRow]) -> Table:
    table = Table(title=escape(title))
    table.add_column("Video ID", style="cyan")
    table.add_column("Name")
    table.add_column("Added", style="green")
    for row in rows:
        table.add_row(str(row.video_id), escape(row.name or "-"), format_timestamp(row.added_date))
    return table


__all__ = ["register"]
