import os

from .base import *  # noqa: F401,F403

DEBUG = False

# Production devices keep the queue outside the working directory.
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///" + os.path.expanduser("~/.attendance_sync/queue.db"))
