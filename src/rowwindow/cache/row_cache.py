"""Cache of fetched rows keyed by absolute row index."""

from __future__ import annotations

import logging
from functools import partial
from typing import Any, Dict, Hashable, List, Optional, Sequence, Set, Tuple

from ..application.interfaces import RowDataProvider, TaskRunner
from ..config import DEFAULT_RETENTION_MARGIN
from ..domain.models.rows import CacheEntry, FetchOutcome, LookupState, RowSlot
from ..domain.models.sort import SortState
from ..domain.models.window import Window, contiguous_runs
from ..errors import ProviderError
from ..events.signal import Signal
from .reload_controller import ReloadController

LOGGER = logging.getLogger(__name__)


def as_provider_error(error: BaseException) -> ProviderError:
    if isinstance(error, ProviderError):
        return error
    wrapped = ProviderError(f"{error.__class__.__name__}: {error}")
    wrapped.__cause__ = error
    return wrapped


class RowWindowCache:
    """Windowed row cache filled through a :class:`RowDataProvider`.

    Reads (:meth:`get`) never block.  :meth:`ensure` starts provider fetches
    for missing indices through the task runner and results come back via
    :meth:`on_fetch_result`, which installs them only if they were fetched
    under the current reload version.
    """

    def __init__(
        self,
        provider: RowDataProvider,
        reload_controller: ReloadController,
        runner: TaskRunner,
        *,
        retention_margin: Optional[int] = DEFAULT_RETENTION_MARGIN,
    ) -> None:
        self._provider = provider
        self._reload = reload_controller
        self._runner = runner
        self._retention_margin = retention_margin
        self._sort = SortState()

        self._entries: Dict[int, CacheEntry] = {}
        self._errors: Dict[int, ProviderError] = {}
        self._pending: Set[int] = set()
        # Evicted while their fetch at the current version is still running.
        self._detached: Set[int] = set()
        self._retained: Optional[Window] = None
        self._in_flight: List[Tuple[int, Window]] = []

        self.rows_loaded = Signal("rows_loaded")
        self.fetch_failed = Signal("fetch_failed")
        self.end_of_data = Signal("end_of_data")

        self._reload.reloaded.connect(self._on_reloaded)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    @property
    def retention_margin(self) -> Optional[int]:
        return self._retention_margin

    @retention_margin.setter
    def retention_margin(self, margin: Optional[int]) -> None:
        if margin is not None and margin < 0:
            raise ValueError(f"retention margin must be >= 0, got {margin}")
        self._retention_margin = margin

    @property
    def sort(self) -> SortState:
        return self._sort

    def set_sort(self, sort: SortState) -> None:
        """Sort passed to subsequent fetches.

        Changing the sort does not clear the cache by itself; the engine
        pairs it with a reload.
        """
        self._sort = sort

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def lookup(self, index: int) -> RowSlot:
        entry = self._entries.get(index)
        if entry is not None:
            return RowSlot(index, LookupState.HIT, row=entry.row)
        if index in self._pending or index in self._detached:
            return RowSlot(index, LookupState.PENDING)
        error = self._errors.get(index)
        if error is not None:
            return RowSlot(index, LookupState.ERROR, error=error)
        return RowSlot(index, LookupState.MISS)

    def get(self, window: Window) -> List[RowSlot]:
        return [self.lookup(index) for index in window]

    def entry(self, index: int) -> Optional[CacheEntry]:
        return self._entries.get(index)

    def missing_runs(self, window: Window) -> List[Window]:
        missing = (
            index
            for index in window
            if index not in self._entries
            and index not in self._pending
            and index not in self._detached
            and index not in self._errors
        )
        return contiguous_runs(missing)

    def index_of(self, identity: Hashable) -> Optional[int]:
        for index in sorted(self._entries):
            if self._provider.row_identity(self._entries[index].row) == identity:
                return index
        return None

    @property
    def loaded_indices(self) -> List[int]:
        return sorted(self._entries)

    @property
    def pending_indices(self) -> List[int]:
        return sorted(self._pending | self._detached)

    @property
    def in_flight(self) -> int:
        """Number of provider fetches issued and not yet reported back."""
        return len(self._in_flight)

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------
    def ensure(self, window: Window) -> List[Window]:
        """Start one fetch per maximal contiguous run of missing indices.

        Indices whose fetch for the current version is still running are
        never requested twice, even if they were evicted in the meantime.
        """

        revived = {index for index in self._detached if index in window}
        if revived:
            self._detached -= revived
            self._pending |= revived
        runs = self.missing_runs(window)
        if not runs:
            return []
        version = self._reload.current_version()
        sort = self._sort
        # Mark everything pending before submitting: a synchronous runner
        # reports back inside ``submit`` and handlers may call ``ensure`` again.
        for run in runs:
            self._pending.update(run)
            self._in_flight.append((version, run))
        for run in runs:
            LOGGER.debug("Fetching %r at version %d", run, version)
            self._runner.submit(
                partial(self._provider.fetch_rows, run, sort),
                partial(self._on_task_done, run, version),
            )
        return runs

    def retry(self, window: Window) -> List[Window]:
        """Forget recorded errors inside *window* and fetch again."""
        for index in window:
            self._errors.pop(index, None)
        return self.ensure(window)

    def _on_task_done(
        self,
        window: Window,
        version: int,
        result: Any,
        error: Optional[BaseException],
    ) -> None:
        if error is not None:
            self.on_fetch_result(window, version, error=as_provider_error(error))
        else:
            self.on_fetch_result(window, version, rows=result)

    def on_fetch_result(
        self,
        window: Window,
        version: int,
        rows: Optional[Sequence[Any]] = None,
        error: Optional[ProviderError] = None,
    ) -> FetchOutcome:
        try:
            self._in_flight.remove((version, window))
        except ValueError:
            pass
        current = self._reload.current_version()
        if version != current:
            LOGGER.debug("Discarding %r fetched at version %d (current %d)", window, version, current)
            return FetchOutcome.STALE

        if error is not None:
            LOGGER.warning("Fetching %r failed: %s", window, error)
            for index in window:
                if self._release(index):
                    self._errors[index] = error
            self.fetch_failed.emit(window, error)
            return FetchOutcome.FAILED

        fetched = list(rows or ())
        if len(fetched) > len(window):
            LOGGER.warning(
                "Provider returned %d rows for %r; ignoring the surplus", len(fetched), window
            )
            del fetched[len(window):]

        for offset, row in enumerate(fetched):
            index = window.start + offset
            if self._release(index):
                self._errors.pop(index, None)
                self._entries[index] = CacheEntry(row, version)

        if len(fetched) < len(window):
            for index in range(window.start + len(fetched), window.end):
                self._release(index)
            self.end_of_data.emit(window.start + len(fetched))

        if fetched:
            self.rows_loaded.emit(Window(window.start, window.start + len(fetched)))
        return FetchOutcome.INSTALLED

    def _release(self, index: int) -> bool:
        """Drop the in-flight mark of *index*; ``True`` if its result is wanted.

        An index evicted while its fetch was running is only accepted if the
        keep window has since moved back over it.
        """
        if index in self._pending:
            self._pending.discard(index)
            return True
        if index in self._detached:
            self._detached.discard(index)
            return self._retained is None or index in self._retained
        return False

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------
    def evict(self, keep: Window) -> int:
        """Drop everything outside *keep* grown by the retention margin."""

        if self._retention_margin is None:
            self._retained = None
            return 0
        retained = keep.expand(self._retention_margin)
        self._retained = retained
        doomed = [index for index in self._entries if index not in retained]
        for index in doomed:
            del self._entries[index]
        stale_errors = [index for index in self._errors if index not in retained]
        for index in stale_errors:
            del self._errors[index]
        stale_pending = {index for index in self._pending if index not in retained}
        self._pending -= stale_pending
        self._detached |= stale_pending
        removed = len(doomed) + len(stale_errors) + len(stale_pending)
        if removed:
            LOGGER.debug("Evicted %d slots outside %r", removed, retained)
        return removed

    def replace_row(self, index: int, row: Any) -> CacheEntry:
        if index not in self._entries:
            raise KeyError(index)
        entry = CacheEntry(row, self._reload.current_version())
        self._entries[index] = entry
        return entry

    def clear(self) -> None:
        self._entries.clear()
        self._errors.clear()
        self._pending.clear()
        self._detached.clear()
        self._retained = None

    def _on_reloaded(self, version: int) -> None:
        LOGGER.debug(
            "Clearing %d cached rows for version %d (%d fetches now stale)",
            len(self._entries),
            version,
            len(self._in_flight),
        )
        self.clear()
