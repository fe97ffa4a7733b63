"""
Settings Manager for lead-harvester.

All configuration comes from environment variables (a ``.env`` file is loaded
by the CLI before this is read).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

# Project root directory - used by various modules for file paths
PROJECT_ROOT = Path(__file__).parent.parent.resolve()


class SettingsManager:
    """Manages runtime configuration via environment variables."""

    DEFAULTS = {
        "headless": False,
        "user_data_dir": str(PROJECT_ROOT / "chrome-data"),
        "storage_state": "",
        "data_dir": str(PROJECT_ROOT / "data"),
        "output_dir": ".",
        "api_host": "127.0.0.1",
        "api_port": 8000,
        "navigation_timeout": 30,
    }

    def __init__(self) -> None:
        self._cache: dict = {}
        self._load_from_env()

    def _load_from_env(self) -> None:
        env_mappings = {
            "headless": "HARVESTER_HEADLESS",
            "user_data_dir": "HARVESTER_USER_DATA_DIR",
            "storage_state": "HARVESTER_STORAGE_STATE",
            "data_dir": "HARVESTER_DATA_DIR",
            "output_dir": "HARVESTER_OUTPUT_DIR",
            "api_host": "HARVESTER_API_HOST",
            "api_port": "HARVESTER_API_PORT",
            "navigation_timeout": "HARVESTER_NAV_TIMEOUT",
        }

        for setting_key, env_key in env_mappings.items():
            env_value = os.getenv(env_key)
            if env_value:
                self.set(setting_key, env_value)

    def get(self, key: str, default=None):
        if default is None:
            default = self.DEFAULTS.get(key, "")

        value = self._cache.get(key, default)

        if isinstance(value, str) and value.lower() in ("true", "false", "1", "0"):
            return value.lower() in ("true", "1")

        if isinstance(value, str) and value.isdigit():
            return int(value)

        return value

    def set(self, key: str, value):
        self._cache[key] = value

    def get_all(self) -> dict:
        return {key: self.get(key) for key in self.DEFAULTS}

    def reload(self) -> None:
        self._load_from_env()

    @property
    def headless(self) -> bool:
        return bool(self.get("headless"))

    @property
    def user_data_dir(self) -> Path:
        return Path(self.get("user_data_dir"))

    @property
    def storage_state(self) -> Path | None:
        value = self.get("storage_state")
        return Path(value) if value else None

    @property
    def data_dir(self) -> Path:
        return Path(self.get("data_dir"))

    @property
    def output_dir(self) -> Path:
        return Path(self.get("output_dir"))

    @property
    def navigation_timeout_ms(self) -> int:
        return int(self.get("navigation_timeout")) * 1000


settings = SettingsManager()
