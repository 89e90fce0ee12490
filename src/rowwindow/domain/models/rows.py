from __future__ import annotations

import copy
import dataclasses
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ...errors import ProviderError

_MISSING = object()


class LookupState(str, Enum):
    HIT = "hit"
    PENDING = "pending"
    MISS = "miss"
    ERROR = "error"


class FetchOutcome(str, Enum):
    """What the cache did with a fetch result."""

    INSTALLED = "installed"
    FAILED = "failed"
    # Result belonged to an older reload version and was dropped.
    STALE = "stale"


@dataclass(frozen=True)
class CacheEntry:
    row: Any
    fetched_at_version: int


@dataclass(frozen=True)
class RowSlot:
    """Lookup result for one absolute row index."""

    index: int
    state: LookupState
    row: Any = None
    error: Optional[ProviderError] = None

    @property
    def is_loaded(self) -> bool:
        return self.state is LookupState.HIT


@dataclass(frozen=True)
class ExtentHint:
    """Size information a strategy hands to the rendering layer."""

    row_count: int = 0
    total_height: Optional[float] = None
    page_count: Optional[int] = None
    has_more: bool = False


def column_value(row: Any, column: str, default: Any = _MISSING) -> Any:
    """Read *column* from a mapping row or an attribute of an object row."""

    if isinstance(row, Mapping):
        if column in row:
            return row[column]
    elif hasattr(row, column):
        return getattr(row, column)
    if default is _MISSING:
        raise KeyError(column)
    return default


def replace_value(row: Any, column: str, value: Any) -> Any:
    """Return a copy of *row* with *column* set to *value*.

    The given row is left untouched: cached rows are never edited in place.
    Raises :class:`KeyError` if *row* has no *column*, whatever its type.
    """

    column_value(row, column)
    if isinstance(row, Mapping):
        if not isinstance(row, MutableMapping):
            return {**row, column: value}
        clone = copy.copy(row)
        clone[column] = value
        return clone
    if dataclasses.is_dataclass(row) and not isinstance(row, type):
        return dataclasses.replace(row, **{column: value})
    if hasattr(row, "_replace"):
        return row._replace(**{column: value})
    clone = copy.copy(row)
    setattr(clone, column, value)
    return clone
