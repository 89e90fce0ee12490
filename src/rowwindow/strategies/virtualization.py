"""Virtualization: only rows overlapping the viewport are requested."""

from __future__ import annotations

from bisect import bisect_left
from typing import Dict, List

from ..config import DEFAULT_OVERSCAN, DEFAULT_ROW_HEIGHT
from ..domain.models.rows import ExtentHint
from ..domain.models.window import Window
from .base import DisplayStrategy, DisplayStrategyKind


class VirtualizationStrategy(DisplayStrategy):
    """Headless virtual-scroll model.

    Row offsets are estimated as ``index * row_height`` and corrected with the
    heights the renderer measured after layout (:meth:`set_row_height`), so
    rows of variable height still map to the right scroll position.
    """

    kind = DisplayStrategyKind.VIRTUALIZATION

    def __init__(
        self,
        row_height: float = DEFAULT_ROW_HEIGHT,
        overscan: int = DEFAULT_OVERSCAN,
    ) -> None:
        super().__init__()
        if row_height <= 0:
            raise ValueError(f"row_height must be positive, got {row_height}")
        self._row_height = float(row_height)
        self._overscan = max(0, int(overscan))
        self._scroll_top = 0.0
        self._viewport_height = 0.0
        self._measured: Dict[int, float] = {}
        # Lazily rebuilt view of ``_measured``: sorted indices and the running
        # sum of (measured - estimated) height up to and including each index.
        self._measured_keys: List[int] = []
        self._corrections: List[float] = []
        self._dirty = False

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------
    @property
    def row_height(self) -> float:
        return self._row_height

    @property
    def overscan(self) -> int:
        return self._overscan

    @property
    def scroll_top(self) -> float:
        return self._scroll_top

    @property
    def viewport_height(self) -> float:
        return self._viewport_height

    def set_viewport(self, scroll_top: float, viewport_height: float) -> None:
        scroll_top = max(0.0, float(scroll_top))
        viewport_height = max(0.0, float(viewport_height))
        if (scroll_top, viewport_height) == (self._scroll_top, self._viewport_height):
            return
        self._scroll_top = scroll_top
        self._viewport_height = viewport_height
        self.window_changed.emit()

    def set_row_height(self, index: int, height: float) -> None:
        """Record the rendered height of row *index*."""
        if index < 0:
            raise ValueError(f"row index must be >= 0, got {index}")
        height = max(0.0, float(height))
        if self._measured.get(index) == height:
            return
        self._measured[index] = height
        self._dirty = True
        self.window_changed.emit()

    def clear_measurements(self) -> None:
        if not self._measured:
            return
        self._measured.clear()
        self._dirty = True
        self.window_changed.emit()

    def reset(self) -> None:
        self._scroll_top = 0.0
        self.window_changed.emit()

    def on_reload(self) -> None:
        self.clear_measurements()

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------
    def _rebuild(self) -> None:
        self._measured_keys = sorted(self._measured)
        running = 0.0
        corrections: List[float] = []
        for index in self._measured_keys:
            running += self._measured[index] - self._row_height
            corrections.append(running)
        self._corrections = corrections
        self._dirty = False

    def offset_of(self, index: int) -> float:
        """Top pixel offset of row *index*."""
        if self._dirty:
            self._rebuild()
        # Corrections of measured rows strictly before ``index``.
        position = bisect_left(self._measured_keys, index)
        correction = self._corrections[position - 1] if position else 0.0
        return index * self._row_height + correction

    def index_at(self, offset: float, row_count: int) -> int:
        """Index of the row covering pixel *offset*."""
        if row_count <= 0:
            return 0
        lo, hi = 0, row_count - 1
        while lo < hi:
            mid = (lo + hi + 1) // 2
            if self.offset_of(mid) <= offset:
                lo = mid
            else:
                hi = mid - 1
        return lo

    def _first_index_at_or_after(self, offset: float, lo: int, row_count: int) -> int:
        hi = row_count
        while lo < hi:
            mid = (lo + hi) // 2
            if self.offset_of(mid) >= offset:
                hi = mid
            else:
                lo = mid + 1
        return lo

    def visible_range(self, row_count: int) -> Window:
        """Rows overlapping ``[scroll_top, scroll_top + viewport_height)``."""
        if row_count <= 0 or self._viewport_height <= 0:
            return Window(0, 0)
        first = self.index_at(self._scroll_top, row_count)
        bottom = self._scroll_top + self._viewport_height
        end = self._first_index_at_or_after(bottom, first + 1, row_count)
        return Window(first, end)

    # ------------------------------------------------------------------
    # DisplayStrategy
    # ------------------------------------------------------------------
    def required_window(self, row_count: int) -> Window:
        return self.visible_range(row_count).expand(self._overscan, row_count)

    def extent(self, row_count: int) -> ExtentHint:
        row_count = max(0, row_count)
        return ExtentHint(row_count=row_count, total_height=self.offset_of(row_count))
