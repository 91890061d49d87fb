"""Database connection utilities using psycopg2 connection pooling."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from psycopg2 import connect
from psycopg2.extensions import connection as PsycopgConnection
from psycopg2.pool import ThreadedConnectionPool

from reelbase.config.settings import Settings

DEFAULT_MIN_CONNECTIONS = 1
DEFAULT_MAX_CONNECTIONS = 5


class DatabasePool:
    """Lightweight wrapper around psycopg2's ThreadedConnectionPool.

    The pool is created and owned by the caller and handed to the backend; there is no
    process-wide pool.
    """

    def __init__(
        self,
        dsn: str,
        *,
        min_connections: int = DEFAULT_MIN_CONNECTIONS,
        max_connections: int = DEFAULT_MAX_CONNECTIONS,
    ) -> None:
        self._pool = ThreadedConnectionPool(min_connections, max_connections, dsn)

    @classmethod
    def from_settings(cls, settings: Settings) -> DatabasePool:
        """Build a pool from the configured DSN and pool bounds."""

        return cls(
            str(settings.database_url),
            min_connections=settings.database_min_connections,
            max_connections=settings.database_max_connections,
        )

    @contextmanager
    def connection(self) -> Iterator[PsycopgConnection]:
        """Yield a transactional connection from the pool.

        The transaction commits when the block exits normally and rolls back otherwise,
        including when a consuming generator is closed early.
        """

        conn = self._pool.getconn()
        try:
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            self._pool.putconn(conn)

    def close(self) -> None:
        """Close all pooled connections."""

        self._pool.closeall()


def connection_from_dsn(dsn: str) -> PsycopgConnection:
    """Create a standalone connection using the given DSN."""

    return connect(dsn)


__all__ = ["DatabasePool", "connection_from_dsn"]
