"""Task runner for synchronous providers and headless use."""

from __future__ import annotations

import logging
from typing import Any, Callable

from .interfaces import DoneCallback

LOGGER = logging.getLogger(__name__)


class SynchronousTaskRunner:
    """Run provider calls inline and report the result immediately.

    Suitable for in-memory providers and command line tools where there is no
    event loop to keep responsive.  Qt applications should use
    :class:`rowwindow.gui.tasks.QtTaskRunner` instead.
    """

    def __init__(self) -> None:
        self._submitted = 0

    @property
    def submitted(self) -> int:
        return self._submitted

    def submit(self, task: Callable[[], Any], on_done: DoneCallback) -> None:
        self._submitted += 1
        try:
            result = task()
        except Exception as exc:
            LOGGER.debug("Synchronous task failed: %s", exc)
            on_done(None, exc)
            return
        on_done(result, None)
