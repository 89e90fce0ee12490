"""Multi-column sort state.

Sorting is an ordered sequence of ``(column, direction)`` pairs: the first
entry is the primary key and later entries only break ties.  ``SortState`` is
immutable; the toggle helpers return new instances so the engine can compare
old and new state and reload only when the content changed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional, Tuple


class ColumnSort(str, Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"
    NONE = "none"

    def next(self) -> "ColumnSort":
        """Header click cycle: none -> ascending -> descending -> none."""
        if self is ColumnSort.NONE:
            return ColumnSort.ASCENDING
        if self is ColumnSort.ASCENDING:
            return ColumnSort.DESCENDING
        return ColumnSort.NONE

    def as_sql(self) -> Optional[str]:
        if self is ColumnSort.ASCENDING:
            return "ASC"
        if self is ColumnSort.DESCENDING:
            return "DESC"
        return None

    def as_class(self) -> str:
        if self is ColumnSort.ASCENDING:
            return "sort-asc"
        if self is ColumnSort.DESCENDING:
            return "sort-desc"
        return ""

    @classmethod
    def parse(cls, value: str) -> "ColumnSort":
        lowered = value.strip().lower()
        aliases = {
            "asc": cls.ASCENDING,
            "ascending": cls.ASCENDING,
            "desc": cls.DESCENDING,
            "descending": cls.DESCENDING,
            "none": cls.NONE,
            "": cls.NONE,
        }
        try:
            return aliases[lowered]
        except KeyError:
            raise ValueError(f"unknown sort direction: {value!r}") from None


@dataclass(frozen=True)
class SortEntry:
    column: str
    direction: ColumnSort = ColumnSort.ASCENDING

    @property
    def ascending(self) -> bool:
        return self.direction is ColumnSort.ASCENDING


@dataclass(frozen=True)
class SortState:
    """Ordered, duplicate-free sequence of sort entries.

    An empty state means the provider's default order.
    """

    entries: Tuple[SortEntry, ...] = ()

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for entry in self.entries:
            if entry.direction is ColumnSort.NONE:
                raise ValueError(f"column {entry.column!r} has no sort direction")
            if entry.column in seen:
                raise ValueError(f"column {entry.column!r} is sorted twice")
            seen.add(entry.column)

    @classmethod
    def of(cls, *pairs: Tuple[str, ColumnSort]) -> "SortState":
        return cls(tuple(SortEntry(column, direction) for column, direction in pairs))

    def __iter__(self) -> Iterator[SortEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __bool__(self) -> bool:
        return bool(self.entries)

    @property
    def columns(self) -> Tuple[str, ...]:
        return tuple(entry.column for entry in self.entries)

    def direction_for(self, column: str) -> ColumnSort:
        for entry in self.entries:
            if entry.column == column:
                return entry.direction
        return ColumnSort.NONE

    def priority_of(self, column: str) -> Optional[int]:
        """Zero-based priority of *column*, ``None`` when it is not sorted."""
        for position, entry in enumerate(self.entries):
            if entry.column == column:
                return position
        return None

    def toggle(self, column: str) -> "SortState":
        """Single-column toggle: drop every other column and cycle *column*."""
        direction = self.direction_for(column).next()
        if direction is ColumnSort.NONE:
            return SortState()
        return SortState((SortEntry(column, direction),))

    def toggle_multi(self, column: str) -> "SortState":
        """Multi-column toggle keeping the priorities of the other columns."""
        direction = self.direction_for(column).next()
        entries: list[SortEntry] = []
        found = False
        for entry in self.entries:
            if entry.column != column:
                entries.append(entry)
                continue
            found = True
            if direction is not ColumnSort.NONE:
                entries.append(SortEntry(column, direction))
        if not found:
            entries.append(SortEntry(column, direction))
        return SortState(tuple(entries))

    def as_sql(self) -> str:
        """Render the state as the body of an ``ORDER BY`` clause."""
        return ", ".join(f"{entry.column} {entry.direction.as_sql()}" for entry in self.entries)

    def __repr__(self) -> str:
        body = ", ".join(f"{entry.column}:{entry.direction.value}" for entry in self.entries)
        return f"SortState({body})"
