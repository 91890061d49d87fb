"""Storage backend contract shared by every table-bound repository.

The backend models a partitioned column store: each table has a partition key
and an optional clustering key, writes are upserts that only touch the columns
they carry, and the only atomic primitives are single-row conditional writes
and logged batches.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Generic, Iterator, List, Mapping, Optional, Protocol, Sequence, Tuple, TypeVar

Row = Dict[str, object]
KeyValues = Tuple[object, ...]

T = TypeVar("T")
U = TypeVar("U")


class RepositoryError(RuntimeError):
    """Base exception raised for repository and backend failures."""


class IncompleteKeyError(RepositoryError, ValueError):
    """Raised before any storage call when a row or key lacks required key columns."""


class BackendError(RepositoryError):
    """Raised when the underlying store fails to execute a statement."""


@dataclass(frozen=True, slots=True)
class TableSpec:
    """Static description of a table: name, key layout and writable columns."""

    name: str
    partition_key: Tuple[str, ...]
    clustering_key: Tuple[str, ...] = ()
    columns: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        missing = [column for column in self.primary_key if column not in self.columns]
        if missing:
            raise ValueError(f"Key columns {missing} of table {self.name!r} are not declared as columns.")

    @property
    def primary_key(self) -> Tuple[str, ...]:
        return self.partition_key + self.clustering_key

    @property
    def value_columns(self) -> Tuple[str, ...]:
        """Columns that are not part of the primary key."""

        return tuple(column for column in self.columns if column not in self.primary_key)

    def key_of(self, values: Mapping[str, object]) -> KeyValues:
        """Return the full primary key of ``values`` in declaration order."""

        return self._extract(values, self.primary_key)

    def partition_of(self, values: Mapping[str, object]) -> KeyValues:
        """Return the partition key of ``values`` in declaration order."""

        return self._extract(values, self.partition_key)

    def clustering_of(self, values: Mapping[str, object]) -> KeyValues:
        return tuple(values[column] for column in self.clustering_key)

    def check_columns(self, values: Mapping[str, object]) -> None:
        """Reject columns the table does not declare."""

        unknown = sorted(set(values) - set(self.columns))
        if unknown:
            raise RepositoryError(f"Unknown columns for table {self.name!r}: {', '.join(unknown)}")

    def check_partial_key(self, values: Mapping[str, object]) -> None:
        """Validate a partition key optionally followed by a clustering prefix."""

        self.partition_of(values)
        allowed = set(self.partition_key)
        for column in self.clustering_key:
            if column not in values:
                break
            allowed.add(column)
        extra = sorted(set(values) - allowed)
        if extra:
            raise IncompleteKeyError(
                f"Columns {extra} do not form a key prefix of table {self.name!r} "
                f"(partition key {self.partition_key}, clustering key {self.clustering_key})."
            )

    def _extract(self, values: Mapping[str, object], columns: Sequence[str]) -> KeyValues:
        missing = [column for column in columns if values.get(column) is None]
        if missing:
            raise IncompleteKeyError(f"Missing key columns for table {self.name!r}: {', '.join(missing)}")
        return tuple(values[column] for column in columns)


class RowSequence(Generic[T]):
    """Lazy, restartable sequence of rows.

    Nothing is read until iteration starts, and each new iteration re-executes the read
    against the backend.
    """

    def __init__(self, producer: Callable[[], Iterator[T]]) -> None:
        self._producer = producer

    def __iter__(self) -> Iterator[T]:
        return self._producer()

    def map(self, transform: Callable[[T], U]) -> RowSequence[U]:
        """Return a sequence applying ``transform`` to each row, still lazy and restartable."""

        return RowSequence(lambda: (transform(item) for item in self._producer()))

    def first(self) -> Optional[T]:
        """Return the first row, or ``None`` for an empty partition."""

        for item in self:
            return item
        return None

    def all(self) -> List[T]:
        return list(self)


BatchWrite = Tuple[TableSpec, Mapping[str, object]]


class StorageBackend(Protocol):
    """Primitives every storage implementation must provide."""

    def write(self, table: TableSpec, row: Mapping[str, object], *, if_not_exists: bool = False) -> bool:
        """Upsert the columns present in ``row``; optionally only if the key is absent."""

    def delete(
        self,
        table: TableSpec,
        key: Mapping[str, object],
        *,
        if_exists: bool = False,
        if_values: Optional[Mapping[str, object]] = None,
    ) -> bool:
        """Delete a row by full primary key, optionally guarded by a condition."""

    def batch_write(self, writes: Sequence[BatchWrite]) -> None:
        """Apply every write or none of them."""

    def read_by_key(self, table: TableSpec, key: Mapping[str, object]) -> Optional[Row]:
        """Return a single row by full primary key."""

    def read_by_partial_key(self, table: TableSpec, partial_key: Mapping[str, object]) -> RowSequence[Row]:
        """Return the rows of one partition ordered by clustering key ascending."""


__all__ = [
    "BackendError",
    "BatchWrite",
    "IncompleteKeyError",
    "KeyValues",
    "RepositoryError",
    "Row",
    "RowSequence",
    "StorageBackend",
    "TableSpec",
]
