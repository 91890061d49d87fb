"""Shared pytest fixtures for reelbase tests."""

from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple, TypeVar

import pytest

from reelbase.db.backend import BackendError, BatchWrite, Row, RowSequence, TableSpec
from reelbase.db.memory import InMemoryBackend
from reelbase.services.accounts import AccountService
from reelbase.services.catalog import CatalogService
from reelbase.utils.passwords import PasswordHasher

T = TypeVar("T")


class FaultyBackend:
    """Delegates to another backend, raising on operations registered with :meth:`fail`.

    With ``after_apply`` the inner call runs first, modelling a write that reached the
    store but whose acknowledgement was lost.
    """

    def __init__(self, inner: InMemoryBackend) -> None:
        self.inner = inner
        self.calls: List[Tuple[str, str]] = []
        self._failures: Dict[Tuple[str, str], Tuple[Exception, bool]] = {}

    def fail(
        self,
        operation: str,
        table_name: str,
        error: Optional[Exception] = None,
        *,
        after_apply: bool = False,
    ) -> None:
        failure = error or BackendError(f"{operation} on {table_name} timed out")
        self._failures[(operation, table_name)] = (failure, after_apply)

    def _call(self, operation: str, table_name: str, action: Callable[[], T]) -> T:
        self.calls.append((operation, table_name))
        failure = self._failures.get((operation, table_name))
        if failure is None:
            return action()
        error, after_apply = failure
        if after_apply:
            action()
        raise error

    def write(self, table: TableSpec, row: Mapping[str, object], *, if_not_exists: bool = False) -> bool:
        return self._call("write", table.name, lambda: self.inner.write(table, row, if_not_exists=if_not_exists))

    def delete(self, table: TableSpec, key: Mapping[str, object], *, if_exists=False, if_values=None) -> bool:
        return self._call(
            "delete", table.name, lambda: self.inner.delete(table, key, if_exists=if_exists, if_values=if_values)
        )

    def batch_write(self, writes: Sequence[BatchWrite]) -> None:
        self._call("batch_write", "*", lambda: self.inner.batch_write(writes))

    def read_by_key(self, table: TableSpec, key: Mapping[str, object]) -> Optional[Row]:
        return self._call("read_by_key", table.name, lambda: self.inner.read_by_key(table, key))

    def read_by_partial_key(self, table: TableSpec, partial_key: Mapping[str, object]) -> RowSequence[Row]:
        return self._call(
            "read_by_partial_key", table.name, lambda: self.inner.read_by_partial_key(table, partial_key)
        )


@pytest.fixture
def backend():
    """Empty in-memory store."""
    return InMemoryBackend()


@pytest.fixture
def faulty_backend(backend):
    """Fault-injecting wrapper around the in-memory store."""
    return FaultyBackend(backend)


@pytest.fixture
def hasher():
    """bcrypt hasher at the minimum cost so tests stay fast."""
    return PasswordHasher(rounds=4)


@pytest.fixture
def accounts(backend, hasher):
    return AccountService(backend, hasher=hasher)


@pytest.fixture
def catalog(backend):
    return CatalogService(backend)
