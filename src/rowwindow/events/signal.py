"""Pure Python signal used for engine notifications.

Engine state is mutated on the UI loop only, so a signal here is a plain
observer list.  Qt is needed only where work crosses threads (see
:mod:`rowwindow.gui.tasks.provider_worker`).
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator

_logger = logging.getLogger(__name__)


class Signal:
    """Observer-pattern callback list.

    Exceptions raised by individual handlers are caught and logged so that
    one failing handler does not prevent the remaining handlers from running.
    """

    def __init__(self, name: str = "") -> None:
        self._name = name
        self._handlers: list[Callable[..., Any]] = []
        self._lock = threading.Lock()
        self._blocked = 0

    def connect(self, handler: Callable[..., Any]) -> Callable[..., Any]:
        with self._lock:
            if handler not in self._handlers:
                self._handlers.append(handler)
        return handler

    def disconnect(self, handler: Callable[..., Any]) -> None:
        with self._lock:
            try:
                self._handlers.remove(handler)
            except ValueError:
                pass

    def emit(self, *args: Any, **kwargs: Any) -> None:
        if self._blocked:
            return
        with self._lock:
            handlers = list(self._handlers)
        for handler in handlers:
            try:
                handler(*args, **kwargs)
            except Exception:
                _logger.exception("Handler %r for signal %s failed", handler, self._name or "?")

    @contextmanager
    def blocked(self) -> Iterator[None]:
        """Suppress emissions for the duration of the ``with`` block."""
        self._blocked += 1
        try:
            yield
        finally:
            self._blocked -= 1

    @property
    def handler_count(self) -> int:
        with self._lock:
            return len(self._handlers)

    def __repr__(self) -> str:
        return f"Signal({self._name!r}, handlers={self.handler_count})"
