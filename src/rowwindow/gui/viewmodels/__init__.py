from .row_window_engine import EngineStatus, RowWindowEngine

__all__ = [
    "EngineStatus",
    "RowWindowEngine",
]
