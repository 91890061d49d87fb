"""Utilities for executing SQL migrations stored under `db/migrations`."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from psycopg2.extensions import cursor as PsycopgCursor
from rich.console import Console
from rich.table import Table

from reelbase.config.settings import get_settings
from reelbase.db.connection import connection_from_dsn
from reelbase.utils.logging import get_logger

MIGRATIONS_ROOT = Path(__file__).resolve().parent / "migrations"

logger = get_logger(__name__)


def load_migration_files(directory: Path = MIGRATIONS_ROOT) -> List[Path]:
    """Return the migration scripts in ``directory`` in application order."""

    return sorted(directory.glob("*.sql"))


def _execute_sql_file(db_cursor: PsycopgCursor, migration_file: Path) -> None:
    statement = migration_file.read_text(encoding="utf-8")
    db_cursor.execute(statement)


def run_migrations(dsn: Optional[str] = None, console: Console | None = None) -> None:
    """Execute all SQL migrations in order inside one transaction."""

    console = console or Console()
    migrations = load_migration_files()

    if not migrations:
        console.print("[yellow]No migrations found.[/yellow]")
        return

    connection = connection_from_dsn(dsn or str(get_settings().database_url))

    table = Table(title="Database Migrations")
    table.add_column("Migration", style="cyan")
    table.add_column("Status", style="green")

    try:
        with connection.cursor() as db_cursor:
            for migration in migrations:
                _execute_sql_file(db_cursor, migration)
                logger.info("migration_applied", migration=migration.name)
                table.add_row(migration.name, "applied")
        connection.commit()
    except Exception as exc:
        connection.rollback()
        console.print(f"[red]Migration failed:[/red] {exc}")
        raise
    finally:
        connection.close()

    console.print(table)


def main() -> None:
    """Entry point for running migrations via `python -m reelbase.db.migrate`."""

    run_migrations()


if __name__ == "__main__":  # pragma: no cover
    main()
