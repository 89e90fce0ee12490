"""Versioned invalidation signal for the row cache."""

from __future__ import annotations

import logging

from ..events.signal import Signal

LOGGER = logging.getLogger(__name__)


class ReloadController:
    """Monotonic reload counter.

    Every fetch is tagged with the version current when it was issued.
    Bumping the version makes all outstanding fetches stale without tracking
    which rows changed: results tagged with an older version are dropped on
    arrival, so no result can race a reload.
    """

    def __init__(self) -> None:
        self._version = 0
        self.reloaded = Signal("reloaded")

    def current_version(self) -> int:
        return self._version

    def invalidate(self) -> int:
        self._version += 1
        LOGGER.debug("Reload requested; version is now %d", self._version)
        self.reloaded.emit(self._version)
        return self._version
