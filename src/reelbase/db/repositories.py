"""Generic repository abstractions binding pydantic models to backend tables."""

from __future__ import annotations

from typing import ClassVar, Dict, Generic, Mapping, Optional, Type, TypeVar

from reelbase.db.backend import (
    BackendError,
    IncompleteKeyError,
    RepositoryError,
    Row,
    RowSequence,
    StorageBackend,
    TableSpec,
)
from reelbase.models.base import ReelbaseModel

ModelT = TypeVar("ModelT", bound=ReelbaseModel)


class BaseRepository(Generic[ModelT]):
    """Reusable building block for table-specific repositories."""

    table: ClassVar[TableSpec]
    model_type: ClassVar[Type[ModelT]]

    def __init__(self, backend: StorageBackend) -> None:
        self._backend = backend

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def insert(self, model: ModelT, *, if_not_exists: bool = False) -> bool:
        """Persist ``model``; with ``if_not_exists`` only when its key is free.

        Returns whether the write was applied.
        """

        return self._backend.write(self.table, self.to_row(model), if_not_exists=if_not_exists)

    def update(self, template: ModelT) -> None:
        """Apply the non-``None`` fields of ``template`` to the row it addresses.

        The template must carry the full primary key. Fields left as ``None`` keep their
        stored value.
        """

        row = self.to_row(template)
        self.table.key_of(row)
        if not any(column in row for column in self.table.value_columns):
            raise RepositoryError(f"No fields provided for update of {self.table.name!r}.")
        self._backend.write(self.table, row)

    def get(self, **key: object) -> Optional[ModelT]:
        """Return a single record by its full primary key, or ``None``."""

        row = self._backend.read_by_key(self.table, key)
        return self._to_model(row) if row is not None else None

    def find_partition(self, **partial_key: object) -> RowSequence[ModelT]:
        """Return the records of one partition, ordered by clustering key."""

        return self._backend.read_by_partial_key(self.table, partial_key).map(self._to_model)

    def delete(
        self,
        *,
        if_exists: bool = False,
        if_values: Optional[Mapping[str, object]] = None,
        **key: object,
    ) -> bool:
        """Delete a record by full primary key; returns whether the delete was applied."""

        return self._backend.delete(self.table, key, if_exists=if_exists, if_values=if_values)

    def to_row(self, model: ModelT, *, include_none: bool = False) -> Row:
        """Serialize ``model`` into a row of this table's columns."""

        raw_values = model.model_dump()
        payload: Dict[str, object] = {}
        for column in self.table.columns:
            if column not in raw_values:
                continue
            value = raw_values[column]
            if value is None and not include_none:
                continue
            payload[column] = value
        return payload

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _to_model(self, row: Mapping[str, object]) -> ModelT:
        return self.model_type.model_validate({column: row.get(column) for column in self.table.columns})


__all__ = [
    "BackendError",
    "BaseRepository",
    "IncompleteKeyError",
    "RepositoryError",
]
