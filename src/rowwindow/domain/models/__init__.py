from .rows import (
    CacheEntry,
    ExtentHint,
    FetchOutcome,
    LookupState,
    RowSlot,
    column_value,
    replace_value,
)
from .selection import SelectionMode, SelectionState
from .sort import ColumnSort, SortEntry, SortState
from .window import Window, contiguous_runs

__all__ = [
    "CacheEntry",
    "ColumnSort",
    "ExtentHint",
    "FetchOutcome",
    "LookupState",
    "RowSlot",
    "SelectionMode",
    "SelectionState",
    "SortEntry",
    "SortState",
    "Window",
    "column_value",
    "contiguous_runs",
    "replace_value",
]
