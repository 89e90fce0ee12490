from .interfaces import RowDataProvider, TaskRunner
from .runners import SynchronousTaskRunner

__all__ = ["RowDataProvider", "SynchronousTaskRunner", "TaskRunner"]
