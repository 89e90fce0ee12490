"""Custom exception hierarchy for rowwindow."""

from __future__ import annotations


class RowWindowError(Exception):
    """Base class for all custom errors raised by rowwindow."""


# --- Provider errors ---

class ProviderError(RowWindowError):
    """Raised when a data provider fails to fetch rows."""


class RowCountError(ProviderError):
    """Raised when a data provider cannot report the number of rows.

    Without a row count the total extent of the table is unknown, so the
    engine treats this as a top-level failure instead of a per-row one.
    """


# --- State errors ---

class InvalidSelectionModeError(RowWindowError):
    """Raised when a selection mutation is not allowed in the current mode."""


class RowNotLoadedError(RowWindowError):
    """Raised when an operation targets a row that is not in the cache."""


# --- Options errors ---

class OptionsLoadError(RowWindowError):
    """Raised when an options file cannot be read."""


class OptionsValidationError(RowWindowError):
    """Raised when table options fail schema validation."""


__all__ = [
    "InvalidSelectionModeError",
    "OptionsLoadError",
    "OptionsValidationError",
    "ProviderError",
    "RowCountError",
    "RowNotLoadedError",
    "RowWindowError",
]
