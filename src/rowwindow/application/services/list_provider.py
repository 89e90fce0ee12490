"""In-memory row provider.

Wraps a plain Python sequence so that local data can be shown through the
same windowed engine as a remote store.  Sorting uses a stable multi-key
sort applied from the lowest-priority key to the highest.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Sequence, Set

from ...domain.models.rows import column_value
from ...domain.models.sort import SortState
from ...domain.models.window import Window
from ..interfaces import RowDataProvider

LOGGER = logging.getLogger(__name__)


def _sort_key(column: str) -> Callable[[Any], tuple]:
    # ``None`` and missing values sort before everything else in ascending
    # order; the leading flag keeps mixed None/value columns comparable.
    def key(row: Any) -> tuple:
        value = column_value(row, column, None)
        return (value is not None, value)

    return key


def sort_rows(rows: Iterable[Any], sort: SortState) -> List[Any]:
    result = list(rows)
    for entry in reversed(sort.entries):
        result.sort(key=_sort_key(entry.column), reverse=not entry.ascending)
    return result


class ListRowProvider(RowDataProvider):
    """Provider over an in-memory list of rows."""

    def __init__(
        self,
        rows: Iterable[Any] = (),
        *,
        identity: Optional[Callable[[Any], Hashable]] = None,
    ) -> None:
        self._rows: List[Any] = list(rows)
        self._identity = identity
        self._sorted: Dict[SortState, List[Any]] = {}
        self._lock = threading.Lock()

    @property
    def rows(self) -> List[Any]:
        return list(self._rows)

    def set_rows(self, rows: Iterable[Any]) -> None:
        """Replace the data; the caller is expected to reload the engine."""
        with self._lock:
            self._rows = list(rows)
            self._sorted.clear()

    def _view(self, sort: SortState) -> List[Any]:
        with self._lock:
            view = self._sorted.get(sort)
            if view is None:
                view = sort_rows(self._rows, sort) if sort else self._rows
                # Only the latest ordering is worth keeping around.
                self._sorted = {sort: view}
            return view

    # ------------------------------------------------------------------
    # RowDataProvider
    # ------------------------------------------------------------------
    def row_count(self, sort: SortState) -> int:
        with self._lock:
            return len(self._rows)

    def fetch_rows(self, window: Window, sort: SortState) -> Sequence[Any]:
        view = self._view(sort)
        return view[window.start : window.end]

    def row_identity(self, row: Any) -> Hashable:
        if self._identity is not None:
            return self._identity(row)
        return super().row_identity(row)

    def existing_identities(
        self, identities: Iterable[Hashable], sort: SortState
    ) -> Optional[Set[Hashable]]:
        wanted = set(identities)
        with self._lock:
            rows = list(self._rows)
        return {identity for identity in map(self.row_identity, rows) if identity in wanted}
