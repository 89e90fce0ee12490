"""Windowed row engine for large, lazily loaded tables.

Only the Qt integration under :mod:`rowwindow.gui.tasks` and
:mod:`rowwindow.gui.scroll_throttle` imports PySide6; everything exported
here is plain Python.
"""

from __future__ import annotations

from .application import RowDataProvider, SynchronousTaskRunner, TaskRunner
from .application.services import ListRowProvider, PaginatedRowProvider
from .cache import ReloadController, RowWindowCache
from .domain.models import (
    CacheEntry,
    ColumnSort,
    ExtentHint,
    FetchOutcome,
    LookupState,
    RowSlot,
    SelectionMode,
    SelectionState,
    SortEntry,
    SortState,
    Window,
)
from .errors import (
    InvalidSelectionModeError,
    ProviderError,
    RowCountError,
    RowNotLoadedError,
    RowWindowError,
)
from .gui.viewmodels import EngineStatus, RowWindowEngine
from .settings import TableOptions, load_options
from .strategies import (
    DisplayStrategy,
    DisplayStrategyKind,
    InfiniteScrollStrategy,
    PaginationStrategy,
    VirtualizationStrategy,
)

__version__ = "0.4.0"

__all__ = [
    "CacheEntry",
    "ColumnSort",
    "DisplayStrategy",
    "DisplayStrategyKind",
    "EngineStatus",
    "ExtentHint",
    "FetchOutcome",
    "InfiniteScrollStrategy",
    "InvalidSelectionModeError",
    "ListRowProvider",
    "LookupState",
    "PaginatedRowProvider",
    "PaginationStrategy",
    "ProviderError",
    "ReloadController",
    "RowCountError",
    "RowDataProvider",
    "RowNotLoadedError",
    "RowSlot",
    "RowWindowCache",
    "RowWindowEngine",
    "RowWindowError",
    "SelectionMode",
    "SelectionState",
    "SortEntry",
    "SortState",
    "SynchronousTaskRunner",
    "TableOptions",
    "TaskRunner",
    "VirtualizationStrategy",
    "Window",
    "load_options",
]
