from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from .base import DisplayStrategy, DisplayStrategyKind
from .infinite_scroll import InfiniteScrollStrategy
from .pagination import PaginationStrategy
from .virtualization import VirtualizationStrategy

if TYPE_CHECKING:
    from ..settings.schema import TableOptions


def create_strategy(
    options: "TableOptions", kind: Optional[DisplayStrategyKind] = None
) -> DisplayStrategy:
    """Build the strategy named by *kind* (default: ``options.display_strategy``)."""

    kind = DisplayStrategyKind(kind or options.display_strategy)
    if kind is DisplayStrategyKind.VIRTUALIZATION:
        return VirtualizationStrategy(row_height=options.row_height, overscan=options.overscan)
    if kind is DisplayStrategyKind.INFINITE_SCROLL:
        return InfiniteScrollStrategy(
            page_size=options.page_size,
            threshold=options.infinite_scroll_threshold,
            row_height=options.row_height,
        )
    return PaginationStrategy(page_size=options.page_size)


__all__ = [
    "DisplayStrategy",
    "DisplayStrategyKind",
    "InfiniteScrollStrategy",
    "PaginationStrategy",
    "VirtualizationStrategy",
    "create_strategy",
]
