"""Pagination: one page of rows at a time, driven by the page number only."""

from __future__ import annotations

from ..config import DEFAULT_PAGE_SIZE
from ..domain.models.rows import ExtentHint
from ..domain.models.window import Window
from .base import DisplayStrategy, DisplayStrategyKind


class PaginationStrategy(DisplayStrategy):
    kind = DisplayStrategyKind.PAGINATION

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        super().__init__()
        if page_size <= 0:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self._page_size = page_size
        self._page = 0

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def page(self) -> int:
        """Requested zero-based page; may exceed the last page."""
        return self._page

    def set_page(self, page: int) -> None:
        page = max(0, int(page))
        if page == self._page:
            return
        self._page = page
        self.window_changed.emit()

    def next_page(self) -> bool:
        if self._row_count is not None:
            last = self.page_count(self._row_count) - 1
            if self.current_page(self._row_count) >= last:
                return False
        self.set_page(self._page + 1)
        return True

    def previous_page(self) -> bool:
        if self._page == 0:
            return False
        if self._row_count is not None:
            self._page = self.current_page(self._row_count)
        self.set_page(self._page - 1)
        return True

    def page_count(self, row_count: int) -> int:
        if row_count <= 0:
            return 0
        return (row_count + self._page_size - 1) // self._page_size

    def current_page(self, row_count: int) -> int:
        """Page actually shown: the requested page clamped to the last one."""
        pages = self.page_count(row_count)
        if pages == 0:
            return 0
        return min(self._page, pages - 1)

    def reset(self) -> None:
        self._page = 0
        self.window_changed.emit()

    def required_window(self, row_count: int) -> Window:
        start = self.current_page(row_count) * self._page_size
        return Window(start, start + self._page_size).clamp(row_count)

    def extent(self, row_count: int) -> ExtentHint:
        page = self.current_page(row_count)
        pages = self.page_count(row_count)
        return ExtentHint(
            row_count=max(0, row_count),
            page_count=pages,
            has_more=page < pages - 1,
        )
