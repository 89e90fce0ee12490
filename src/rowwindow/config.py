"""Default configuration values for rowwindow."""

from __future__ import annotations

from typing import Final

# Rows rendered above and below the visible range when virtualizing.  A few
# extra rows hide the fetch latency during slow scrolling.
DEFAULT_OVERSCAN: Final[int] = 5

# Page size shared by the pagination and infinite-scroll strategies.
DEFAULT_PAGE_SIZE: Final[int] = 25

# Rows kept on each side of the window when evicting.  Small scroll jitter
# must not evict rows that come straight back into view.
DEFAULT_RETENTION_MARGIN: Final[int] = 50

# Estimated height of a row in pixels before the renderer reports real sizes.
DEFAULT_ROW_HEIGHT: Final[float] = 24.0

# Infinite scroll loads the next page when the last visible row comes within
# ``page_size // INFINITE_SCROLL_THRESHOLD_DIVISOR`` rows of the loaded end.
INFINITE_SCROLL_THRESHOLD_DIVISOR: Final[int] = 10

# Scroll updates are coalesced to one recomputation per animation frame.
FRAME_INTERVAL_MS: Final[int] = 16

# Column read by ``RowDataProvider.row_identity`` when no identity function
# is configured.
DEFAULT_IDENTITY_COLUMN: Final[str] = "id"

OPTIONS_SCHEMA_ID: Final[str] = "rowwindow/options@1"
