"""Coalesce scroll events to one strategy update per animation frame."""

from __future__ import annotations

from typing import Callable, Optional, Tuple

from PySide6.QtCore import QObject, QTimer

from ..config import FRAME_INTERVAL_MS


class ScrollThrottle(QObject):
    """Forward only the latest scroll position, at most once per frame.

    Wire the scroll bar's ``valueChanged`` to :meth:`push` and pass e.g.
    ``VirtualizationStrategy.set_viewport`` as *apply*.
    """

    def __init__(
        self,
        apply: Callable[[float, float], object],
        interval_ms: int = FRAME_INTERVAL_MS,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._apply = apply
        self._latest: Optional[Tuple[float, float]] = None
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(max(0, interval_ms))
        self._timer.timeout.connect(self.flush)

    def push(self, scroll_top: float, viewport_height: float) -> None:
        self._latest = (scroll_top, viewport_height)
        if not self._timer.isActive():
            self._timer.start()

    def is_pending(self) -> bool:
        return self._latest is not None

    def flush(self) -> None:
        self._timer.stop()
        latest, self._latest = self._latest, None
        if latest is not None:
            self._apply(*latest)
