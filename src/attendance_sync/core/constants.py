"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///attendance_queue.db"
DEFAULT_REMOTE_TIMEOUT_SECONDS = 15.0
DEFAULT_REMOTE_VIEW_TTL_SECONDS = 30.0
DEFAULT_CONNECTIVITY_POLL_SECONDS = 5.0
DEFAULT_CONNECTIVITY_PROBE_TIMEOUT_SECONDS = 2.0
DEFAULT_SYNC_INTERVAL_SECONDS = 60.0
DEFAULT_HISTORY_PAGE_SIZE = 10

# Query-string fields carrying the person's name in a badge form URL.
DEFAULT_BADGE_LAST_NAME_FIELD = "entry.1575753690"
DEFAULT_BADGE_FIRST_NAME_FIELD = "entry.1621774329"

REMOTE_SUCCESS_STATUS = "success"
