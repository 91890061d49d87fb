"""Tests for SQL generation and error handling in the PostgreSQL backend."""

from contextlib import contextmanager
from uuid import UUID

import psycopg2
import pytest

from reelbase.db.backend import BackendError, IncompleteKeyError, TableSpec
from reelbase.db.postgres import PostgresBackend, adapt_value, build_delete, build_select, build_upsert

PROFILES = TableSpec(name="profiles", partition_key=("handle",), columns=("handle", "bio", "owner"))

ITEMS = TableSpec(
    name="items",
    partition_key=("owner",),
    clustering_key=("position", "item_id"),
    columns=("owner", "position", "item_id", "label"),
)


class FakeCursor:
    def __init__(self, connection, name=None):
        self.connection = connection
        self.name = name
        self.itersize = None
        self.rowcount = connection.rowcount

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return False

    def execute(self, query, params):
        if self.connection.error is not None:
            raise self.connection.error
        self.connection.executed.append((query, params))

    def fetchone(self):
        return self.connection.rows[0] if self.connection.rows else None

    def __iter__(self):
        return iter(self.connection.rows)


class FakeConnection:
    def __init__(self, rowcount=1, rows=None, error=None):
        self.rowcount = rowcount
        self.rows = rows or []
        self.error = error
        self.executed = []
        self.cursors = []
        self.opened = 0

    def cursor(self, name=None, cursor_factory=None):
        cursor = FakeCursor(self, name=name)
        self.cursors.append(cursor)
        return cursor


def make_backend(connection, fetch_size=100):
    @contextmanager
    def factory():
        connection.opened += 1
        yield connection

    return PostgresBackend(factory, fetch_size=fetch_size)


class TestStatementBuilders:
    """SQL text produced for each primitive."""

    def test_upsert_touches_only_present_columns(self):
        query, params = build_upsert(PROFILES, {"handle": "ada", "bio": "hi"})

        assert query == (
            "INSERT INTO profiles (handle, bio) VALUES (%(handle)s, %(bio)s) "
            "ON CONFLICT (handle) DO UPDATE SET bio = EXCLUDED.bio"
        )
        assert params == {"handle": "ada", "bio": "hi"}

    def test_conditional_insert_does_nothing_on_conflict(self):
        query, _ = build_upsert(PROFILES, {"handle": "ada", "bio": "hi"}, if_not_exists=True)

        assert query.endswith("ON CONFLICT (handle) DO NOTHING")

    def test_key_only_row(self):
        query, _ = build_upsert(PROFILES, {"handle": "ada"})

        assert query.endswith("DO NOTHING")

    def test_upsert_requires_key(self):
        with pytest.raises(IncompleteKeyError):
            build_upsert(PROFILES, {"bio": "hi"})

    def test_guarded_delete(self):
        query, params = build_delete(PROFILES, {"handle": "ada"}, if_values={"owner": "x"})

        assert query == "DELETE FROM profiles WHERE handle = %(handle)s AND owner = %(if_owner)s"
        assert params == {"handle": "ada", "if_owner": "x"}

    def test_partial_key_select_orders_by_clustering_key(self):
        query, params = build_select(ITEMS, {"owner": "ada"}, full_key=False)

        assert query == "SELECT * FROM items WHERE owner = %(owner)s ORDER BY position ASC, item_id ASC"
        assert params == {"owner": "ada"}

    def test_full_key_select(self):
        query, _ = build_select(ITEMS, {"owner": "ada", "position": 1, "item_id": 2}, full_key=True)

        assert "ORDER BY" not in query
        assert query.endswith("item_id = %(item_id)s")

    def test_adapt_value(self):
        value = UUID("12345678-1234-5678-1234-567812345678")

        assert adapt_value(value) == "12345678-1234-5678-1234-567812345678"
        assert adapt_value({"b", "a"}) == ["a", "b"]
        assert adapt_value(3) == 3


class TestPostgresBackend:
    """Backend behaviour against a fake connection."""

    def test_conditional_write_reports_rowcount(self):
        assert make_backend(FakeConnection(rowcount=1)).write(PROFILES, {"handle": "a"}, if_not_exists=True)
        assert not make_backend(FakeConnection(rowcount=0)).write(PROFILES, {"handle": "a"}, if_not_exists=True)

    def test_plain_write_always_applies(self):
        assert make_backend(FakeConnection(rowcount=0)).write(PROFILES, {"handle": "a", "bio": "b"})

    def test_conditional_delete_reports_rowcount(self):
        backend = make_backend(FakeConnection(rowcount=0))

        assert backend.delete(PROFILES, {"handle": "a"}, if_exists=True) is False
        assert backend.delete(PROFILES, {"handle": "a"}) is True

    def test_batch_uses_one_connection(self):
        connection = FakeConnection()
        backend = make_backend(connection)

        backend.batch_write([(PROFILES, {"handle": "a"}), (PROFILES, {"handle": "b", "bio": "x"})])

        assert connection.opened == 1
        assert len(connection.executed) == 2

    def test_invalid_batch_executes_nothing(self):
        connection = FakeConnection()

        with pytest.raises(IncompleteKeyError):
            make_backend(connection).batch_write([(PROFILES, {"handle": "a"}), (PROFILES, {"bio": "x"})])

        assert connection.opened == 0

    def test_read_by_key(self):
        backend = make_backend(FakeConnection(rows=[{"handle": "a", "bio": "b"}]))

        assert backend.read_by_key(PROFILES, {"handle": "a"}) == {"handle": "a", "bio": "b"}
        assert make_backend(FakeConnection()).read_by_key(PROFILES, {"handle": "a"}) is None

    def test_partial_read_is_lazy_and_uses_named_cursor(self):
        connection = FakeConnection(rows=[{"owner": "a", "position": 1, "item_id": 1}])
        rows = make_backend(connection, fetch_size=25).read_by_partial_key(ITEMS, {"owner": "a"})

        assert connection.opened == 0

        assert rows.all() == [{"owner": "a", "position": 1, "item_id": 1}]
        assert len(rows.all()) == 1
        assert connection.opened == 2
        cursor = connection.cursors[0]
        assert cursor.name.startswith("reelbase_")
        assert cursor.itersize == 25

    def test_driver_errors_become_backend_errors(self):
        backend = make_backend(FakeConnection(error=psycopg2.OperationalError("server closed the connection")))

        with pytest.raises(BackendError) as exc_info:
            backend.write(PROFILES, {"handle": "a"})

        assert isinstance(exc_info.value.__cause__, psycopg2.OperationalError)

    def test_errors_during_partial_read(self):
        backend = make_backend(FakeConnection(error=psycopg2.OperationalError("timeout")))

        with pytest.raises(BackendError):
            backend.read_by_partial_key(ITEMS, {"owner": "a"}).all()
