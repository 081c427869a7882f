import os

from .base import *  # noqa: F401,F403

DEBUG = False
TESTING = True

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
REMOTE_ENDPOINT_URL = os.getenv("REMOTE_ENDPOINT_URL", "http://localhost:8765/exec")
SYNC_INTERVAL_SECONDS = 1.0
