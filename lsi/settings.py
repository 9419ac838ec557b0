import json
import sys
import logging
from pathlib import Path
from typing import Optional, Dict, Any

from lsi.steam_paths import SteamPathDetector

logger = logging.getLogger(__name__)

SETTINGS_FILE_NAME = "linux-steam-integration.json"


def is_64bit() -> bool:
    """Whether we are running on a 64-bit host."""
    return sys.maxsize > 2 ** 32


class SettingsManager:
    """
    Manages the persistent Linux Steam Integration settings using a JSON file
    in the user's config directory.
    """

    DEFAULT_SETTINGS = {
        "force_32": False,
        "use_native_runtime": True,
    }

    def __init__(self, settings_file: Optional[Path] = None):
        if settings_file is None:
            settings_file = SteamPathDetector.get_user_config_dir() / SETTINGS_FILE_NAME
        self.settings_file = Path(settings_file)
        self._settings = self.load_settings()

    def load_settings(self) -> Dict[str, Any]:
        """
        Loads settings from disk, or returns defaults if file doesn't exist.
        """
        if not self.settings_file.exists():
            return self.DEFAULT_SETTINGS.copy()

        try:
            with open(self.settings_file, "r") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Error loading settings from {self.settings_file}: {e}")
            return self.DEFAULT_SETTINGS.copy()

        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed settings in {self.settings_file}")
            return self.DEFAULT_SETTINGS.copy()

        # Merge with defaults to ensure all keys exist
        settings = self.DEFAULT_SETTINGS.copy()
        settings.update(data)
        return settings

    def save_settings(self) -> bool:
        """
        Saves current settings to disk.
        """
        try:
            self.settings_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.settings_file, "w") as f:
                json.dump(self._settings, f, indent=4)
        except OSError as e:
            logger.error(f"Failed to save configuration to {self.settings_file}: {e}")
            return False
        return True

    def get(self, key: str, default: Any = None) -> Any:
        return self._settings.get(key, default)

    def set(self, key: str, value: Any) -> bool:
        self._settings[key] = value
        return self.save_settings()

    def update(self, values: Dict[str, Any]) -> bool:
        """Stores several settings with a single write."""
        self._settings.update(values)
        return self.save_settings()

    @property
    def force_32(self) -> bool:
        """
        Force Steam to run in 32-bit mode. Never honoured on 32-bit hosts,
        where it is the only mode anyway.
        """
        return bool(self._settings.get("force_32")) and is_64bit()

    @force_32.setter
    def force_32(self, enabled: bool):
        self.set("force_32", bool(enabled))

    @property
    def use_native_runtime(self) -> bool:
        return bool(self._settings.get("use_native_runtime"))

    @use_native_runtime.setter
    def use_native_runtime(self, enabled: bool):
        self.set("use_native_runtime", bool(enabled))
