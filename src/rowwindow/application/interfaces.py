from abc import ABC, abstractmethod
from typing import Any, Callable, Hashable, Iterable, Optional, Protocol, Sequence, Set

from ..config import DEFAULT_IDENTITY_COLUMN
from ..domain.models.rows import column_value
from ..domain.models.sort import SortState
from ..domain.models.window import Window

DoneCallback = Callable[[Any, Optional[BaseException]], None]


class RowDataProvider(ABC):
    """Supplier of rows and row counts for a table.

    Implementations may block (database query, HTTP request); the engine
    always calls them through a :class:`TaskRunner`.  Calls for
    non-overlapping windows can run concurrently, so implementations must be
    safe to invoke from several worker threads at once.
    """

    @abstractmethod
    def row_count(self, sort: SortState) -> int:
        """Total number of rows in the logical sequence under *sort*."""
        pass

    @abstractmethod
    def fetch_rows(self, window: Window, sort: SortState) -> Sequence[Any]:
        """
        Return the rows of *window* in ascending index order.
        Fewer rows than ``len(window)`` means the data ends inside the window.
        """
        pass

    def row_identity(self, row: Any) -> Hashable:
        """Stable identity of *row*, used for selection and cell edits."""
        return column_value(row, DEFAULT_IDENTITY_COLUMN, row)

    def existing_identities(
        self, identities: Iterable[Hashable], sort: SortState
    ) -> Optional[Set[Hashable]]:
        """Return which of *identities* still exist, or ``None`` if unknown.

        Called after a reload to drop selections whose rows disappeared.
        """
        return None


class TaskRunner(Protocol):
    """Runs provider calls and reports completion on the UI loop."""

    def submit(self, task: Callable[[], Any], on_done: DoneCallback) -> None: ...
