import os

from .base import *  # noqa: F401,F403

DEBUG = bool(int(os.getenv("DEBUG", "1")))

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
