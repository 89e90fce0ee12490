"""Adapter for backends that can only serve fixed-size pages.

Many REST endpoints expose ``?page=N`` instead of arbitrary offsets.
Subclasses implement :meth:`PaginatedRowProvider.fetch_page` and the adapter
maps every requested window onto the pages that cover it.
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from typing import Any, List, Sequence

from ...domain.models.sort import SortState
from ...domain.models.window import Window
from ..interfaces import RowDataProvider

LOGGER = logging.getLogger(__name__)

DEFAULT_PAGE_ROW_COUNT: int = 50


class PaginatedRowProvider(RowDataProvider):
    """Row provider backed by a page-based fetch."""

    #: Number of rows the backend returns per full page.
    page_row_count: int = DEFAULT_PAGE_ROW_COUNT

    @abstractmethod
    def fetch_page(self, page_index: int, sort: SortState) -> Sequence[Any]:
        """Return page *page_index* (zero-based).

        A page shorter than :attr:`page_row_count` marks the end of the data.
        """
        pass

    def pages_for(self, window: Window) -> range:
        if window.is_empty:
            return range(0)
        size = self._page_size()
        first = window.start // size
        last = (window.end - 1) // size
        return range(first, last + 1)

    def fetch_rows(self, window: Window, sort: SortState) -> Sequence[Any]:
        size = self._page_size()
        rows: List[Any] = []
        pages = self.pages_for(window)
        for page_index in pages:
            page = list(self.fetch_page(page_index, sort))
            page_start = page_index * size
            lo = max(window.start - page_start, 0)
            hi = min(window.end - page_start, len(page))
            if hi > lo:
                rows.extend(page[lo:hi])
            if len(page) < size:
                LOGGER.debug("Page %d is short (%d rows); end of data", page_index, len(page))
                break
        return rows

    def _page_size(self) -> int:
        if self.page_row_count <= 0:
            raise ValueError(f"page_row_count must be positive, got {self.page_row_count}")
        return self.page_row_count
