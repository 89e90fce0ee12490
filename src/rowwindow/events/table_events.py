"""Events emitted by :class:`~rowwindow.gui.viewmodels.RowWindowEngine`."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Hashable, Optional
from uuid import uuid4

from ..domain.models.sort import SortState


@dataclass(frozen=True)
class TableEvent:
    event_id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=datetime.now)
    version: int = 0


@dataclass(frozen=True)
class SelectionChangedEvent(TableEvent):
    selected: tuple[Hashable, ...] = ()
    added: frozenset = frozenset()
    removed: frozenset = frozenset()


@dataclass(frozen=True)
class CellEditedEvent(TableEvent):
    """A cell was edited in the transient copy held by the cache.

    Persisting the change is up to the receiver; the engine never writes back
    to the provider.
    """

    row_index: int = 0
    identity: Hashable = None
    column: str = ""
    old_value: Any = None
    new_value: Any = None
    row: Any = None


@dataclass(frozen=True)
class SortChangedEvent(TableEvent):
    sort: SortState = field(default_factory=SortState)
    previous: SortState = field(default_factory=SortState)


@dataclass(frozen=True)
class RowCountChangedEvent(TableEvent):
    row_count: int = 0
    previous: Optional[int] = None
    inferred: bool = False
