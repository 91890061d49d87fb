"""PostgreSQL implementation of the storage backend contract.

Column-store semantics map onto PostgreSQL as follows:

- a write is ``INSERT ... ON CONFLICT (pk) DO UPDATE`` touching only the columns it carries;
- "insert if not exists" is ``ON CONFLICT (pk) DO NOTHING``, applied when one row was inserted;
  the primary-key constraint makes it linearizable;
- a logged batch is a single transaction;
- partial-key reads stream from a named server-side cursor.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple
from uuid import UUID, uuid4

import psycopg2
from psycopg2.extras import RealDictCursor

from reelbase.db import ConnectionFactory
from reelbase.db.backend import BackendError, BatchWrite, Row, RowSequence, TableSpec
from reelbase.utils.logging import get_logger

DEFAULT_FETCH_SIZE = 100

logger = get_logger(__name__)

Statement = Tuple[str, Dict[str, object]]


class PostgresBackend:
    """Storage backend executing statements through a pooled psycopg2 connection factory."""

    def __init__(self, connection_factory: ConnectionFactory, *, fetch_size: int = DEFAULT_FETCH_SIZE) -> None:
        self._connection_factory = connection_factory
        self._fetch_size = fetch_size

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def write(self, table: TableSpec, row: Mapping[str, object], *, if_not_exists: bool = False) -> bool:
        query, params = build_upsert(table, row, if_not_exists=if_not_exists)
        rowcount = self._execute(query, params)
        return rowcount == 1 if if_not_exists else True

    def delete(
        self,
        table: TableSpec,
        key: Mapping[str, object],
        *,
        if_exists: bool = False,
        if_values: Optional[Mapping[str, object]] = None,
    ) -> bool:
        query, params = build_delete(table, key, if_values=if_values)
        rowcount = self._execute(query, params)
        if if_exists or if_values:
            return rowcount > 0
        return True

    def batch_write(self, writes: Sequence[BatchWrite]) -> None:
        statements = [build_upsert(table, row) for table, row in writes]
        with self._translate_errors("batch_write"):
            with self._connection_factory() as connection:
                with connection.cursor() as cursor:
                    for query, params in statements:
                        cursor.execute(query, params)
        logger.debug("batch_applied", statements=len(statements))

    def read_by_key(self, table: TableSpec, key: Mapping[str, object]) -> Optional[Row]:
        query, params = build_select(table, key, full_key=True)
        with self._translate_errors("read_by_key"):
            with self._connection_factory() as connection:
                with connection.cursor(cursor_factory=RealDictCursor) as cursor:
                    cursor.execute(query, params)
                    row = cursor.fetchone()
        return dict(row) if row is not None else None

    def read_by_partial_key(self, table: TableSpec, partial_key: Mapping[str, object]) -> RowSequence[Row]:
        query, params = build_select(table, partial_key, full_key=False)

        def produce() -> Iterator[Row]:
            with self._translate_errors("read_by_partial_key"):
                with self._connection_factory() as connection:
                    cursor_name = f"reelbase_{uuid4().hex}"
                    with connection.cursor(name=cursor_name, cursor_factory=RealDictCursor) as cursor:
                        cursor.itersize = self._fetch_size
                        cursor.execute(query, params)
                        for row in cursor:
                            yield dict(row)

        return RowSequence(produce)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _execute(self, query: str, params: Mapping[str, object]) -> int:
        with self._translate_errors("execute"):
            with self._connection_factory() as connection:
                with connection.cursor() as cursor:
                    cursor.execute(query, params)
                    return cursor.rowcount

    @contextmanager
    def _translate_errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except psycopg2.Error as exc:
            raise BackendError(f"{operation} failed: {exc}") from exc


def build_upsert(table: TableSpec, row: Mapping[str, object], *, if_not_exists: bool = False) -> Statement:
    """Build the INSERT statement writing exactly the columns present in ``row``."""

    table.check_columns(row)
    table.key_of(row)
    columns = list(row.keys())
    params = {column: adapt_value(row[column]) for column in columns}
    placeholders = ", ".join(f"%({column})s" for column in columns)
    conflict_target = ", ".join(table.primary_key)
    query = f"INSERT INTO {table.name} ({', '.join(columns)}) VALUES ({placeholders}) ON CONFLICT ({conflict_target})"

    assignments = [f"{column} = EXCLUDED.{column}" for column in columns if column not in table.primary_key]
    if if_not_exists or not assignments:
        return f"{query} DO NOTHING", params
    return f"{query} DO UPDATE SET {', '.join(assignments)}", params


def build_delete(
    table: TableSpec,
    key: Mapping[str, object],
    *,
    if_values: Optional[Mapping[str, object]] = None,
) -> Statement:
    """Build a DELETE by full primary key, optionally guarded by expected column values."""

    table.key_of(key)
    params = {column: adapt_value(key[column]) for column in table.primary_key}
    predicates = [f"{column} = %({column})s" for column in table.primary_key]
    for column, value in (if_values or {}).items():
        table.check_columns({column: value})
        params[f"if_{column}"] = adapt_value(value)
        predicates.append(f"{column} = %(if_{column})s")
    return f"DELETE FROM {table.name} WHERE {' AND '.join(predicates)}", params


def build_select(table: TableSpec, key: Mapping[str, object], *, full_key: bool) -> Statement:
    """Build a SELECT by full primary key or by partition key plus clustering prefix."""

    if full_key:
        table.key_of(key)
        columns: List[str] = list(table.primary_key)
    else:
        table.check_partial_key(key)
        columns = [column for column in table.primary_key if column in key]

    params = {column: adapt_value(key[column]) for column in columns}
    where = " AND ".join(f"{column} = %({column})s" for column in columns)
    query = f"SELECT * FROM {table.name} WHERE {where}"
    if not full_key and table.clustering_key:
        query = f"{query} ORDER BY {', '.join(f'{column} ASC' for column in table.clustering_key)}"
    return query, params


def adapt_value(value: object) -> object:
    """Convert Python values into types psycopg2 adapts natively."""

    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    return value


__all__ = ["DEFAULT_FETCH_SIZE", "PostgresBackend", "adapt_value", "build_delete", "build_select", "build_upsert"]
