"""Row window engine in pure Python, with no Qt dependency.

Composes the reload controller, row cache, display strategy, sort state and
selection state into one object per table.  The rendering layer pulls rows
with :meth:`RowWindowEngine.current_rows` whenever :attr:`rows_changed`
fires and routes every user action (header click, row click, cell edit,
scroll, page change) through the engine so side effects such as reloads and
notifications happen together.
"""

from __future__ import annotations

import logging
from enum import Enum
from functools import partial
from typing import Any, Callable, Hashable, Iterable, List, Optional, Tuple, Union

from ...application.interfaces import RowDataProvider, TaskRunner
from ...application.runners import SynchronousTaskRunner
from ...cache.reload_controller import ReloadController
from ...cache.row_cache import RowWindowCache
from ...domain.models.rows import ExtentHint, RowSlot, column_value, replace_value
from ...domain.models.selection import SelectionMode, SelectionState
from ...domain.models.sort import SortState
from ...domain.models.window import Window
from ...errors import ProviderError, RowCountError, RowNotLoadedError
from ...events.signal import Signal
from ...events.table_events import (
    CellEditedEvent,
    RowCountChangedEvent,
    SelectionChangedEvent,
    SortChangedEvent,
)
from ...settings.schema import TableOptions
from ...strategies import DisplayStrategy, DisplayStrategyKind, create_strategy

LOGGER = logging.getLogger(__name__)


class EngineStatus(str, Enum):
    IDLE = "idle"
    COUNTING = "counting"
    READY = "ready"
    # The row count could not be obtained; nothing can be displayed.
    ERROR = "error"


class RowWindowEngine:
    """Table engine producing the rows of the current display window.

    Signals
    -------
    rows_changed()
        The result of :meth:`current_rows` may differ; re-render.
    row_count_changed(RowCountChangedEvent)
    sort_changed(SortChangedEvent)
    selection_changed(SelectionChangedEvent)
        Emitted once per effective change of the selected set.
    cell_edited(CellEditedEvent)
    error_occurred(ProviderError)
    strategy_changed(DisplayStrategy)
    """

    def __init__(
        self,
        provider: RowDataProvider,
        options: Optional[TableOptions] = None,
        *,
        runner: Optional[TaskRunner] = None,
        sort: Optional[SortState] = None,
    ) -> None:
        self._provider = provider
        self._options = options or TableOptions()
        self._runner = runner if runner is not None else SynchronousTaskRunner()
        self._reload = ReloadController()
        self._strategy = create_strategy(self._options)
        self._cache = RowWindowCache(
            provider,
            self._reload,
            self._runner,
            retention_margin=self._strategy.retention_margin(self._options.retention_margin),
        )
        self._sort = sort or SortState()
        self._cache.set_sort(self._sort)
        self._selection = SelectionState(self._options.selection_mode)

        self._status = EngineStatus.IDLE
        self._row_count: Optional[int] = None
        self._row_count_error: Optional[RowCountError] = None
        self._count_version: Optional[int] = None

        self.rows_changed = Signal("rows_changed")
        self.row_count_changed = Signal("row_count_changed")
        self.sort_changed = Signal("sort_changed")
        self.selection_changed = Signal("selection_changed")
        self.cell_edited = Signal("cell_edited")
        self.error_occurred = Signal("error_occurred")
        self.strategy_changed = Signal("strategy_changed")

        # The cache connected first, so it is already empty when
        # ``_on_reloaded`` runs.
        self._reload.reloaded.connect(self._on_reloaded)
        self._cache.rows_loaded.connect(self._on_rows_loaded)
        self._cache.fetch_failed.connect(self._on_fetch_failed)
        self._cache.end_of_data.connect(self._on_end_of_data)
        self._strategy.window_changed.connect(self._on_window_changed)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------
    @property
    def provider(self) -> RowDataProvider:
        return self._provider

    @property
    def options(self) -> TableOptions:
        return self._options

    @property
    def cache(self) -> RowWindowCache:
        """The engine's cache; mutate it only through engine operations."""
        return self._cache

    @property
    def reload_controller(self) -> ReloadController:
        return self._reload

    @property
    def version(self) -> int:
        return self._reload.current_version()

    @property
    def strategy(self) -> DisplayStrategy:
        return self._strategy

    @property
    def status(self) -> EngineStatus:
        return self._status

    @property
    def row_count(self) -> Optional[int]:
        return self._row_count

    @property
    def row_count_error(self) -> Optional[RowCountError]:
        return self._row_count_error

    @property
    def sort_state(self) -> SortState:
        return self._sort

    @property
    def selection(self) -> SelectionState:
        """Snapshot of the selection; mutating it has no effect on the engine."""
        return self._selection.copy()

    @property
    def selection_mode(self) -> SelectionMode:
        return self._selection.mode

    @property
    def selected(self) -> Tuple[Hashable, ...]:
        return self._selection.selected

    def is_selected(self, identity: Hashable) -> bool:
        return self._selection.is_selected(identity)

    def required_window(self) -> Optional[Window]:
        if self._row_count is None:
            return None
        return self._strategy.required_window(self._row_count)

    def extent(self) -> Optional[ExtentHint]:
        if self._row_count is None:
            return None
        return self._strategy.extent(self._row_count)

    def identity_at(self, index: int) -> Optional[Hashable]:
        slot = self._cache.lookup(index)
        if not slot.is_loaded:
            return None
        return self._provider.row_identity(slot.row)

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------
    def current_rows(self) -> List[RowSlot]:
        """Rows of the active strategy's window, fetching what is missing."""

        if self._status is EngineStatus.ERROR:
            return []
        if self._row_count is None:
            self._request_row_count()
            if self._row_count is None:
                return []

        window = self._strategy.required_window(self._row_count)
        self._cache.evict(window)
        self._cache.ensure(window)
        # A short fetch may have lowered the row count inside ``ensure``.
        window = self._strategy.required_window(self._row_count)
        return self._cache.get(window)

    def reload(self) -> int:
        """Discard cached rows and recount; returns the new version."""
        return self._reload.invalidate()

    def retry(self, window: Optional[Window] = None) -> List[Window]:
        """Retry after a failure: recount, or refetch errored rows of *window*."""

        if self._status is EngineStatus.ERROR:
            self._request_row_count()
            return []
        if window is None:
            window = self.required_window()
            if window is None:
                return []
        return self._cache.retry(window)

    def set_display_strategy(self, strategy: Union[DisplayStrategyKind, str, DisplayStrategy]) -> bool:
        """Switch strategy without invalidating the rows already cached."""

        if not isinstance(strategy, DisplayStrategy):
            kind = DisplayStrategyKind(strategy)
            if kind is self._strategy.kind:
                return False
            strategy = create_strategy(self._options, kind)
        elif strategy is self._strategy:
            return False

        self._strategy.window_changed.disconnect(self._on_window_changed)
        strategy.reset()
        strategy.set_row_count(self._row_count)
        self._strategy = strategy
        self._strategy.window_changed.connect(self._on_window_changed)
        self._cache.retention_margin = strategy.retention_margin(self._options.retention_margin)
        LOGGER.debug("Display strategy switched to %s", strategy.kind.value)
        self.strategy_changed.emit(strategy)
        self.rows_changed.emit()
        return True

    # ------------------------------------------------------------------
    # Sorting
    # ------------------------------------------------------------------
    def set_sort(self, sort: SortState) -> bool:
        """Replace the sort state; any content change reloads exactly once."""

        if sort == self._sort:
            return False
        previous = self._sort
        self._sort = sort
        self._cache.set_sort(sort)
        LOGGER.debug("Sort changed from %r to %r", previous, sort)
        self.sort_changed.emit(SortChangedEvent(sort=sort, previous=previous, version=self.version))
        self._reload.invalidate()
        return True

    def toggle_sort(self, column: str, *, multi: Optional[bool] = None) -> SortState:
        """Header click on *column*; *multi* defaults to ``options.multi_sort``."""

        if multi is None:
            multi = self._options.multi_sort
        sort = self._sort.toggle_multi(column) if multi else self._sort.toggle(column)
        self.set_sort(sort)
        return self._sort

    def toggle_sort_multi(self, column: str) -> SortState:
        return self.toggle_sort(column, multi=True)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def _mutate_selection(self, mutation: Callable[..., bool], *args: Any) -> bool:
        before = self._selection.selected
        changed = mutation(*args)
        if changed:
            self._emit_selection_changed(before)
        return changed

    def _emit_selection_changed(self, before: Tuple[Hashable, ...]) -> None:
        after = self._selection.selected
        self.selection_changed.emit(
            SelectionChangedEvent(
                selected=after,
                added=frozenset(after) - frozenset(before),
                removed=frozenset(before) - frozenset(after),
                version=self.version,
            )
        )

    def select(self, identity: Hashable) -> bool:
        return self._mutate_selection(self._selection.select, identity)

    def deselect(self, identity: Hashable) -> bool:
        return self._mutate_selection(self._selection.deselect, identity)

    def toggle_selection(self, identity: Hashable) -> bool:
        return self._mutate_selection(self._selection.toggle, identity)

    def toggle_row(self, index: int) -> bool:
        """Toggle the selection of the loaded row at *index*."""
        identity = self.identity_at(index)
        if identity is None:
            raise RowNotLoadedError(f"row {index} is not loaded")
        return self.toggle_selection(identity)

    def clear_selection(self) -> bool:
        return self._mutate_selection(self._selection.clear)

    def select_all(self, identities: Optional[Iterable[Hashable]] = None) -> bool:
        """Select *identities*, or every cached row when omitted."""
        if identities is None:
            identities = [
                self._provider.row_identity(self._cache.lookup(index).row)
                for index in self._cache.loaded_indices
            ]
        return self._mutate_selection(self._selection.select_all, list(identities))

    def set_selection_mode(self, mode: Union[SelectionMode, str]) -> bool:
        return self._mutate_selection(self._selection.set_mode, SelectionMode(mode))

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------
    def apply_cell_edit(self, identity: Hashable, column: str, value: Any) -> Any:
        """Apply an edit to the cached copy of the row with *identity*.

        The provider is not called; persisting the change is up to the
        receiver of :attr:`cell_edited`.
        """
        index = self._cache.index_of(identity)
        if index is None:
            raise RowNotLoadedError(f"row {identity!r} is not loaded")
        return self.edit_cell_at(index, column, value)

    def edit_cell_at(self, index: int, column: str, value: Any) -> Any:
        """Edit the cached row at *index*; unknown columns raise :class:`KeyError`."""
        entry = self._cache.entry(index)
        if entry is None:
            raise RowNotLoadedError(f"row {index} is not loaded")
        old_row = entry.row
        old_value = column_value(old_row, column)
        edited = replace_value(old_row, column, value)
        self._cache.replace_row(index, edited)
        self.cell_edited.emit(
            CellEditedEvent(
                row_index=index,
                identity=self._provider.row_identity(edited),
                column=column,
                old_value=old_value,
                new_value=value,
                row=edited,
                version=self.version,
            )
        )
        self.rows_changed.emit()
        return edited

    # ------------------------------------------------------------------
    # Row count
    # ------------------------------------------------------------------
    def _request_row_count(self) -> None:
        version = self._reload.current_version()
        if self._count_version == version:
            return
        self._count_version = version
        self._status = EngineStatus.COUNTING
        sort = self._sort
        selected = self._selection.selected
        provider = self._provider

        def count_rows() -> Tuple[int, Optional[set], Tuple[Hashable, ...]]:
            count = provider.row_count(sort)
            survivors = provider.existing_identities(selected, sort) if selected else None
            return count, survivors, selected

        LOGGER.debug("Counting rows at version %d", version)
        self._runner.submit(count_rows, partial(self._on_row_count_done, version))

    def _on_row_count_done(self, version: int, result: Any, error: Optional[BaseException]) -> None:
        if version != self._reload.current_version():
            LOGGER.debug("Discarding row count from version %d", version)
            return
        self._count_version = None

        if error is not None:
            if isinstance(error, RowCountError):
                failure = error
            else:
                failure = RowCountError(f"{error.__class__.__name__}: {error}")
                failure.__cause__ = error
            self._row_count_error = failure
            self._status = EngineStatus.ERROR
            LOGGER.error("Failed to count rows: %s", failure)
            self.error_occurred.emit(failure)
            self.rows_changed.emit()
            return

        count, survivors, asked = result
        self._row_count_error = None
        self._status = EngineStatus.READY
        self._set_row_count(max(0, int(count)))
        if survivors is not None:
            self._drop_vanished_selection(asked, survivors)
        self.rows_changed.emit()

    def _set_row_count(self, count: int, *, inferred: bool = False) -> None:
        previous = self._row_count
        if previous == count:
            return
        self._row_count = count
        self._strategy.set_row_count(count)
        self.row_count_changed.emit(
            RowCountChangedEvent(
                row_count=count, previous=previous, inferred=inferred, version=self.version
            )
        )

    def _drop_vanished_selection(self, asked: Iterable[Hashable], survivors: Iterable[Hashable]) -> None:
        # Only identities that were asked about can be judged; anything
        # selected while the count was in flight stays.
        alive = set(survivors)
        gone = {identity for identity in asked if identity not in alive}
        if not gone:
            return
        keep = [identity for identity in self._selection.selected if identity not in gone]
        if self._mutate_selection(self._selection.retain, keep):
            LOGGER.debug("Dropped %d vanished rows from the selection", len(gone))

    # ------------------------------------------------------------------
    # Signal handlers
    # ------------------------------------------------------------------
    def _on_reloaded(self, version: int) -> None:
        self._status = EngineStatus.IDLE
        self._row_count_error = None
        # rows_changed is emitted once below.
        with self._strategy.window_changed.blocked():
            self._strategy.on_reload()
        self._request_row_count()
        self.rows_changed.emit()

    def _on_rows_loaded(self, window: Window) -> None:
        self.rows_changed.emit()

    def _on_fetch_failed(self, window: Window, error: ProviderError) -> None:
        self.error_occurred.emit(error)
        self.rows_changed.emit()

    def _on_end_of_data(self, row_count: int) -> None:
        if self._row_count is None or row_count < self._row_count:
            LOGGER.debug("Provider ran out of rows at %d", row_count)
            self._set_row_count(row_count, inferred=True)

    def _on_window_changed(self) -> None:
        self.rows_changed.emit()

    def dispose(self) -> None:
        """Disconnect from the collaborators; the engine is unusable afterwards."""
        self._reload.reloaded.disconnect(self._on_reloaded)
        self._cache.rows_loaded.disconnect(self._on_rows_loaded)
        self._cache.fetch_failed.disconnect(self._on_fetch_failed)
        self._cache.end_of_data.disconnect(self._on_end_of_data)
        self._strategy.window_changed.disconnect(self._on_window_changed)
