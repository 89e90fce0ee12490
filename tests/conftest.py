"""Shared fixtures for the rowwindow test-suite."""

from __future__ import annotations

import os
from typing import Any, Callable, List, Optional, Tuple

import pytest

from rowwindow.application.interfaces import DoneCallback
from rowwindow.application.services import ListRowProvider
from rowwindow.cache import ReloadController

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


class DeferredTaskRunner:
    """Task runner that holds submissions until a test resolves them.

    Lets tests deliver provider results in any order, or after a reload,
    the way a thread pool would.
    """

    def __init__(self) -> None:
        self.queue: List[Tuple[Callable[[], Any], DoneCallback]] = []

    @property
    def pending(self) -> int:
        return len(self.queue)

    def submit(self, task: Callable[[], Any], on_done: DoneCallback) -> None:
        self.queue.append((task, on_done))

    def run(self, position: int = 0) -> None:
        """Execute the queued task at *position* and deliver its outcome."""
        task, on_done = self.queue.pop(position)
        try:
            result = task()
        except Exception as exc:
            on_done(None, exc)
            return
        on_done(result, None)

    def fail(self, error: BaseException, position: int = 0) -> None:
        _, on_done = self.queue.pop(position)
        on_done(None, error)

    def run_all(self) -> None:
        while self.queue:
            self.run()


class RecordingProvider(ListRowProvider):
    """List provider that records every call made to it."""

    def __init__(self, rows=(), **kwargs: Any) -> None:
        super().__init__(rows, **kwargs)
        self.fetch_calls: List[Any] = []
        self.count_calls = 0
        self.fail_fetch: Optional[BaseException] = None
        self.fail_count: Optional[BaseException] = None

    def row_count(self, sort):
        self.count_calls += 1
        if self.fail_count is not None:
            raise self.fail_count
        return super().row_count(sort)

    def fetch_rows(self, window, sort):
        self.fetch_calls.append((window, sort))
        if self.fail_fetch is not None:
            raise self.fail_fetch
        return super().fetch_rows(window, sort)


def make_rows(count: int) -> List[dict]:
    return [{"id": index, "name": f"row-{index:04d}", "score": (index * 7) % 13} for index in range(count)]


@pytest.fixture
def deferred_runner() -> DeferredTaskRunner:
    return DeferredTaskRunner()


@pytest.fixture
def rows() -> List[dict]:
    return make_rows(100)


@pytest.fixture
def provider(rows) -> RecordingProvider:
    return RecordingProvider(rows)


@pytest.fixture
def reload_controller() -> ReloadController:
    return ReloadController()


@pytest.fixture
def provider_factory() -> Callable[..., RecordingProvider]:
    def factory(count: int = 100, **kwargs: Any) -> RecordingProvider:
        return RecordingProvider(make_rows(count), **kwargs)

    return factory
