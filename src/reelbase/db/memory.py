"""Process-local storage backend used by the demo and the test-suite."""

from __future__ import annotations

import copy
import threading
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from reelbase.db.backend import BatchWrite, KeyValues, Row, RowSequence, TableSpec
from reelbase.utils.logging import get_logger

logger = get_logger(__name__)


class InMemoryBackend:
    """Dictionary-backed tables guarded by one re-entrant lock.

    Holding the lock for each primitive makes conditional writes linearizable and batches
    all-or-nothing, matching the guarantees a real partitioned store gives per partition.
    """

    def __init__(self) -> None:
        self._tables: Dict[str, Dict[KeyValues, Row]] = {}
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def write(self, table: TableSpec, row: Mapping[str, object], *, if_not_exists: bool = False) -> bool:
        key, values = self._prepare(table, row)
        with self._lock:
            rows = self._tables.setdefault(table.name, {})
            if if_not_exists and key in rows:
                logger.debug("conditional_write_rejected", table=table.name)
                return False
            rows.setdefault(key, {}).update(values)
        return True

    def delete(
        self,
        table: TableSpec,
        key: Mapping[str, object],
        *,
        if_exists: bool = False,
        if_values: Optional[Mapping[str, object]] = None,
    ) -> bool:
        key_values = table.key_of(key)
        with self._lock:
            rows = self._tables.get(table.name, {})
            current = rows.get(key_values)
            if if_values:
                if current is None or any(current.get(column) != value for column, value in if_values.items()):
                    return False
            elif if_exists and current is None:
                return False
            rows.pop(key_values, None)
        return True

    def batch_write(self, writes: Sequence[BatchWrite]) -> None:
        prepared: List[Tuple[TableSpec, KeyValues, Row]] = []
        for table, row in writes:
            key, values = self._prepare(table, row)
            prepared.append((table, key, values))

        with self._lock:
            for table, key, values in prepared:
                self._tables.setdefault(table.name, {}).setdefault(key, {}).update(values)

    def read_by_key(self, table: TableSpec, key: Mapping[str, object]) -> Optional[Row]:
        key_values = table.key_of(key)
        with self._lock:
            row = self._tables.get(table.name, {}).get(key_values)
            return copy.deepcopy(row) if row is not None else None

    def read_by_partial_key(self, table: TableSpec, partial_key: Mapping[str, object]) -> RowSequence[Row]:
        table.check_partial_key(partial_key)
        criteria = dict(partial_key)

        def produce() -> Iterator[Row]:
            with self._lock:
                matches = [
                    copy.deepcopy(row)
                    for row in self._tables.get(table.name, {}).values()
                    if all(row.get(column) == value for column, value in criteria.items())
                ]
            matches.sort(key=table.clustering_of)
            return iter(matches)

        return RowSequence(produce)

    def count(self, table: TableSpec) -> int:
        """Return the number of rows stored in ``table``."""

        with self._lock:
            return len(self._tables.get(table.name, {}))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _prepare(self, table: TableSpec, row: Mapping[str, object]) -> Tuple[KeyValues, Row]:
        table.check_columns(row)
        key = table.key_of(row)
        return key, copy.deepcopy(dict(row))


__all__ = ["InMemoryBackend"]
