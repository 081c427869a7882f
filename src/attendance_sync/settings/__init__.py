import importlib
import os
from types import ModuleType

from dotenv import load_dotenv


def get_settings_module() -> str:
    # Chọn cấu hình theo biến APP_ENV, mặc định là 'development'
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "attendance_sync.settings.production"

    if env in {"test", "testing"}:
        return "attendance_sync.settings.testing"

    return "attendance_sync.settings.development"


def load_settings() -> ModuleType:
    # .env must be applied before the settings module reads os.environ.
    load_dotenv(override=False)
    return importlib.import_module(get_settings_module())
