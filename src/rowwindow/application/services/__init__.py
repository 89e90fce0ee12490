from .list_provider import ListRowProvider, sort_rows
from .paginated_provider import PaginatedRowProvider

__all__ = ["ListRowProvider", "PaginatedRowProvider", "sort_rows"]
