"""Infinite scroll: the window grows a page at a time and never shrinks."""

from __future__ import annotations

import logging
import math
from typing import Optional

from ..config import DEFAULT_PAGE_SIZE, DEFAULT_ROW_HEIGHT, INFINITE_SCROLL_THRESHOLD_DIVISOR
from ..domain.models.rows import ExtentHint
from ..domain.models.window import Window
from .base import DisplayStrategy, DisplayStrategyKind

LOGGER = logging.getLogger(__name__)


def default_threshold(page_size: int) -> int:
    return max(1, page_size // INFINITE_SCROLL_THRESHOLD_DIVISOR)


class InfiniteScrollStrategy(DisplayStrategy):
    """Window ``[0, end)`` extended by one page whenever the user scrolls
    within *threshold* rows of ``end``.
    """

    kind = DisplayStrategyKind.INFINITE_SCROLL

    def __init__(
        self,
        page_size: int = DEFAULT_PAGE_SIZE,
        threshold: Optional[int] = None,
        row_height: float = DEFAULT_ROW_HEIGHT,
    ) -> None:
        super().__init__()
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        if row_height <= 0:
            raise ValueError(f"row_height must be positive, got {row_height}")
        self._page_size = page_size
        self._threshold = default_threshold(page_size) if threshold is None else max(0, threshold)
        self._row_height = float(row_height)
        self._end = page_size

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def loaded_end(self) -> int:
        return self._end

    def _exhausted(self) -> bool:
        return self._row_count is not None and self._end >= self._row_count

    def notify_visible_index(self, index: int) -> bool:
        """Report the last visible row; returns ``True`` if the window grew."""
        if self._exhausted() or index < self._end - self._threshold:
            return False
        self._end += self._page_size
        LOGGER.debug("Infinite scroll extended to %d rows", self._end)
        self.window_changed.emit()
        return True

    def set_scroll_position(self, scroll_top: float, viewport_height: float) -> bool:
        bottom = max(0.0, float(scroll_top)) + max(0.0, float(viewport_height))
        last_visible = max(0, math.ceil(bottom / self._row_height) - 1)
        return self.notify_visible_index(last_visible)

    def reset(self) -> None:
        self._end = self._page_size
        self.window_changed.emit()

    def required_window(self, row_count: int) -> Window:
        return Window(0, self._end).clamp(row_count)

    def extent(self, row_count: int) -> ExtentHint:
        shown = len(self.required_window(row_count))
        return ExtentHint(
            row_count=max(0, row_count),
            total_height=shown * self._row_height,
            has_more=self._end < row_count,
        )

    def retention_margin(self, configured: Optional[int]) -> Optional[int]:
        # The window only grows, so nothing ever falls out of it.
        return None
