import os
from pathlib import Path
from typing import Dict, Any
from urllib.parse import urlparse

from webreplay.core.constants import DEFAULT_MOUSE_MOVE_THROTTLE, DEFAULT_NAVIGATION_TIMEOUT
from webreplay.utils.file_io import safe_read_json, safe_write_json


def _default_cache_dir() -> Path:
    override = os.environ.get("WEBREPLAY_CACHE_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".webreplay"


class ConfigManager:
    """Manages the per-installation cache directory and user settings."""

    CACHE_DIR = _default_cache_dir()
    SETTINGS_FILE = CACHE_DIR / "settings.json"

    DEFAULT_CONFIG = {
        "host": "127.0.0.1",
        "port": 3000,
        "headless": False,
        "record_mouse_moves": False,
        "mouse_move_throttle": DEFAULT_MOUSE_MOVE_THROTTLE,
        # None keeps the browser window's natural, resizable viewport
        "viewport": None,
        "navigation_timeout": DEFAULT_NAVIGATION_TIMEOUT,
    }

    @classmethod
    def ensure_cache_dir(cls) -> Path:
        """Ensure the cache directory exists."""
        cls.CACHE_DIR.mkdir(parents=True, exist_ok=True)
        return cls.CACHE_DIR

    @classmethod
    def recordings_dir(cls) -> Path:
        return cls.CACHE_DIR / "recordings"

    @classmethod
    def screenshots_dir(cls) -> Path:
        return cls.CACHE_DIR / "screenshots"

    @classmethod
    def logs_dir(cls) -> Path:
        return cls.CACHE_DIR / "logs"

    @classmethod
    def load_config(cls) -> Dict[str, Any]:
        """Load settings.json on top of the defaults."""
        config = cls.DEFAULT_CONFIG.copy()
        file_config = safe_read_json(cls.SETTINGS_FILE, default={})
        if isinstance(file_config, dict):
            config.update(file_config)
        return config

    @classmethod
    def save_config(cls, config: Dict[str, Any]) -> bool:
        """Persist settings.json."""
        cls.ensure_cache_dir()
        return safe_write_json(cls.SETTINGS_FILE, config)

    @staticmethod
    def validate_url(url: str) -> str:
        """Robust URL validation using urllib.parse."""
        if url == "about:blank":
            return url
        try:
            parsed = urlparse(url)
        except Exception as e:
            raise ValueError(f"URL parsing failed: {e}")
        if not (parsed.scheme in ("http", "https") and parsed.netloc):
            raise ValueError(f"Invalid URL: '{url}' - Must be http/https with a valid domain.")
        return url
