"""Helpers shared by CLI command modules."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, Iterator, Optional

import typer
from rich.console import Console

from reelbase.db.backend import IncompleteKeyError, RepositoryError


class ExitCode:
    """Mapping of meaningful CLI exit codes."""

    SUCCESS = 0
    INVALID_INPUT = 1
    STORAGE_ERROR = 5


@contextmanager
def cli_errors(console: Console) -> Iterator[None]:
    """Translate contract and storage failures into CLI exit codes."""

    try:
        yield
    except (IncompleteKeyError, ValueError) as exc:
        console.print(f"[red]Invalid input:[/red] {exc}")
        raise typer.Exit(code=ExitCode.INVALID_INPUT) from exc
    except RepositoryError as exc:
        console.print(f"[red]Storage error:[/red] {exc}")
        raise typer.Exit(code=ExitCode.STORAGE_ERROR) from exc


def parse_tags(raw_tags: Optional[Iterable[str]]) -> set[str]:
    return {tag.strip() for tag in raw_tags or () if tag.strip()}


def format_timestamp(value: Optional[datetime]) -> str:
    return value.isoformat(timespec="seconds") if value else "-"


__all__ = ["ExitCode", "cli_errors", "format_timestamp", "parse_tags"]
