"""Run provider calls on a thread pool and report back on the UI thread."""

from __future__ import annotations

import itertools
import logging
from typing import Any, Callable, Dict

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal, Slot

from ...application.interfaces import DoneCallback

LOGGER = logging.getLogger(__name__)


class ProviderCallSignals(QObject):
    finished = Signal(int, object, object)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)


class ProviderCallWorker(QRunnable):
    """Background worker that performs a single provider call."""

    def __init__(self, token: int, task: Callable[[], Any]) -> None:
        super().__init__()
        self.setAutoDelete(True)
        self._token = token
        self._task = task
        self.signals = ProviderCallSignals()

    def run(self) -> None:  # pragma: no cover - runs in background thread
        try:
            result = self._task()
        except Exception as exc:
            LOGGER.debug("Provider call %d failed: %s", self._token, exc)
            self.signals.finished.emit(self._token, None, exc)
            return
        self.signals.finished.emit(self._token, result, None)


class QtTaskRunner(QObject):
    """Task runner backed by a :class:`QThreadPool`.

    Completion callbacks are invoked through a queued connection on the
    thread this runner lives in, i.e. the Qt event loop driving the table.
    The engine therefore never observes a result from a worker thread.
    """

    def __init__(self, pool: QThreadPool | None = None, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._pool = pool or QThreadPool.globalInstance()
        self._tokens = itertools.count(1)
        self._callbacks: Dict[int, DoneCallback] = {}
        # Keep the signal objects alive until their result was delivered.
        self._signals: Dict[int, ProviderCallSignals] = {}

    @property
    def pending(self) -> int:
        return len(self._callbacks)

    def submit(self, task: Callable[[], Any], on_done: DoneCallback) -> None:
        token = next(self._tokens)
        worker = ProviderCallWorker(token, task)
        self._callbacks[token] = on_done
        self._signals[token] = worker.signals
        worker.signals.finished.connect(self._on_finished)
        self._pool.start(worker)

    @Slot(int, object, object)
    def _on_finished(self, token: int, result: Any, error: Any) -> None:
        self._signals.pop(token, None)
        callback = self._callbacks.pop(token, None)
        if callback is None:
            return
        callback(result, error)
