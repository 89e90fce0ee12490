"""Half-open index ranges used to address rows."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional


@dataclass(frozen=True, order=True)
class Window:
    """Contiguous range ``[start, end)`` of absolute row indices."""

    start: int = 0
    end: int = 0

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError(f"window start must be >= 0, got {self.start}")
        if self.end < self.start:
            raise ValueError(f"window end {self.end} is before start {self.start}")

    def __len__(self) -> int:
        return self.end - self.start

    def __iter__(self) -> Iterator[int]:
        return iter(range(self.start, self.end))

    def __contains__(self, index: object) -> bool:
        return isinstance(index, int) and self.start <= index < self.end

    @property
    def is_empty(self) -> bool:
        return self.end == self.start

    def clamp(self, row_count: int) -> "Window":
        """Restrict the window to ``[0, row_count)``."""
        limit = max(0, row_count)
        start = min(self.start, limit)
        return Window(start, max(start, min(self.end, limit)))

    def expand(self, margin: int, row_count: Optional[int] = None) -> "Window":
        """Grow the window by *margin* rows on both sides."""
        margin = max(0, margin)
        grown = Window(max(0, self.start - margin), self.end + margin)
        if row_count is not None:
            return grown.clamp(row_count)
        return grown

    def intersect(self, other: "Window") -> "Window":
        start = max(self.start, other.start)
        end = min(self.end, other.end)
        if end <= start:
            return Window(start, start)
        return Window(start, end)

    def __repr__(self) -> str:
        return f"Window[{self.start}, {self.end})"


def contiguous_runs(indices: Iterable[int]) -> List[Window]:
    """Group *indices* into the minimal list of contiguous windows."""

    runs: List[Window] = []
    run_start: Optional[int] = None
    previous: Optional[int] = None
    for index in sorted(set(indices)):
        if run_start is None:
            run_start = index
        elif index != previous + 1:
            runs.append(Window(run_start, previous + 1))
            run_start = index
        previous = index
    if run_start is not None:
        runs.append(Window(run_start, previous + 1))
    return runs
