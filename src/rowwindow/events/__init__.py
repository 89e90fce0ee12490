from .signal import Signal
from .table_events import (
    CellEditedEvent,
    RowCountChangedEvent,
    SelectionChangedEvent,
    SortChangedEvent,
    TableEvent,
)

__all__ = [
    "CellEditedEvent",
    "RowCountChangedEvent",
    "SelectionChangedEvent",
    "Signal",
    "SortChangedEvent",
    "TableEvent",
]
