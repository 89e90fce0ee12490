from .reload_controller import ReloadController
from .row_cache import RowWindowCache

__all__ = ["ReloadController", "RowWindowCache"]
