import os

from ..core import constants

DATABASE_URL = os.getenv("DATABASE_URL", constants.DEFAULT_DATABASE_URL)
DATABASE_ECHO = bool(int(os.getenv("DATABASE_ECHO", "0")))

# Remote system of record (spreadsheet web app endpoint)
REMOTE_ENDPOINT_URL = os.getenv("REMOTE_ENDPOINT_URL", "")
REMOTE_TIMEOUT_SECONDS = float(os.getenv("REMOTE_TIMEOUT_SECONDS", str(constants.DEFAULT_REMOTE_TIMEOUT_SECONDS)))
REMOTE_VIEW_TTL_SECONDS = float(os.getenv("REMOTE_VIEW_TTL_SECONDS", str(constants.DEFAULT_REMOTE_VIEW_TTL_SECONDS)))

CONNECTIVITY_PROBE_URL = os.getenv("CONNECTIVITY_PROBE_URL", "https://www.google.com")
CONNECTIVITY_POLL_SECONDS = float(
    os.getenv("CONNECTIVITY_POLL_SECONDS", str(constants.DEFAULT_CONNECTIVITY_POLL_SECONDS))
)
SYNC_INTERVAL_SECONDS = float(os.getenv("SYNC_INTERVAL_SECONDS", str(constants.DEFAULT_SYNC_INTERVAL_SECONDS)))

# Identity handed over by the sign-in collaborator
SESSION_UID = os.getenv("SESSION_UID", "")
SESSION_EMAIL = os.getenv("SESSION_EMAIL", "")

BADGE_LAST_NAME_FIELD = os.getenv("BADGE_LAST_NAME_FIELD", constants.DEFAULT_BADGE_LAST_NAME_FIELD)
BADGE_FIRST_NAME_FIELD = os.getenv("BADGE_FIRST_NAME_FIELD", constants.DEFAULT_BADGE_FIRST_NAME_FIELD)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "")
