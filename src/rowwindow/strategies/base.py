"""
Abstract base class for display strategies.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import ClassVar, Optional

from ..domain.models.rows import ExtentHint
from ..domain.models.window import Window
from ..events.signal import Signal


class DisplayStrategyKind(str, Enum):
    VIRTUALIZATION = "virtualization"
    INFINITE_SCROLL = "infinite_scroll"
    PAGINATION = "pagination"


class DisplayStrategy(ABC):
    """Decides which window of rows the table currently needs.

    Strategies are pure bookkeeping: they turn viewport, scroll and page
    signals into a :class:`Window` and emit :attr:`window_changed` when the
    answer may be different.  Fetching is left to the engine.
    """

    kind: ClassVar[DisplayStrategyKind]

    def __init__(self) -> None:
        self._row_count: Optional[int] = None
        self.window_changed = Signal(f"{type(self).__name__}.window_changed")

    @property
    def row_count(self) -> Optional[int]:
        return self._row_count

    def set_row_count(self, row_count: Optional[int]) -> None:
        """Row count last reported by the engine."""
        self._row_count = row_count

    @abstractmethod
    def required_window(self, row_count: int) -> Window:
        """Window of rows to display for a table of *row_count* rows."""

    @abstractmethod
    def extent(self, row_count: int) -> ExtentHint:
        """Size hint (scroll height or page count) for the rendering layer."""

    @abstractmethod
    def reset(self) -> None:
        """Return to the initial window."""

    def on_reload(self) -> None:
        """Forget per-index state; indices refer to different rows after a reload."""

    def retention_margin(self, configured: Optional[int]) -> Optional[int]:
        """Eviction margin to use with this strategy, ``None`` to disable."""
        return configured
