"""Persistent preference manager with JSON storage and environment fallback."""

import copy
import json
import os
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Optional

from ..utils.logger import setup_logger
from .settings import Config

logger = setup_logger(__name__)


class SettingsManager:
    """
    Manages user preferences with JSON persistence.

    Preferences are loaded from a JSON file with fallback to environment
    variables. Changes are immediately persisted to disk.

    The repository receives an instance of this class instead of reading
    process-wide state, so each caller (and each test) can own its own file.

    Usage:
        settings = SettingsManager("settings.json")
        book = settings.get("LAST_OPEN_BOOK", "Default")
        settings.set("LAST_OPEN_BOOK", "Verbs")
    """

    # Default values for all preferences
    DEFAULTS: Dict[str, Any] = {
        # Name of the book opened last; read once at startup
        "LAST_OPEN_BOOK": Config.DEFAULT_BOOK_NAME,

        # Custom storage root. Empty means Config.STORAGE_DIR
        "STORAGE_DIR": "",

        # Importer decoding priority
        "IMPORT_ENCODINGS": list(Config.IMPORT_ENCODINGS),

        "LOG_LEVEL": Config.LOG_LEVEL,
    }

    # Environment variable names mapped to preference keys
    ENV_OVERRIDES: Dict[str, str] = {
        "TYPELEX_LAST_OPEN_BOOK": "LAST_OPEN_BOOK",
        "TYPELEX_CUSTOM_STORAGE_DIR": "STORAGE_DIR",
        "TYPELEX_LOG_LEVEL": "LOG_LEVEL",
    }

    def __init__(self, settings_file: Optional[str] = None) -> None:
        """
        Initialize the settings manager.

        Args:
            settings_file: Path to the settings JSON file.
                          Defaults to Config.SETTINGS_FILE.
        """
        self._settings_file: Path = Path(settings_file or Config.SETTINGS_FILE)
        self._settings: Dict[str, Any] = {}
        self._file_lock: Lock = Lock()

        self._load_settings()

    @property
    def settings_file(self) -> Path:
        """Location of the backing JSON file."""
        return self._settings_file

    def _load_settings(self) -> None:
        """Load settings from JSON file with environment variable fallback."""
        # Start with defaults
        self._settings = copy.deepcopy(self.DEFAULTS)

        # Load from file if exists
        if self._settings_file.exists():
            try:
                with open(self._settings_file, "r", encoding="utf-8") as f:
                    file_settings = json.load(f)
                if isinstance(file_settings, dict):
                    self._settings.update(file_settings)
                else:
                    logger.warning("Ignoring settings file %s: not a JSON object", self._settings_file)
            except (json.JSONDecodeError, IOError) as e:
                # Log error but continue with defaults
                logger.warning("Could not load settings file: %s", e)

        # Override with environment variables (highest priority)
        for env_key, key in self.ENV_OVERRIDES.items():
            env_value = os.environ.get(env_key)
            if env_value is not None:
                self._settings[key] = env_value

    def _save_settings(self) -> None:
        """Save current settings to JSON file."""
        with self._file_lock:
            try:
                # Ensure parent directory exists
                self._settings_file.parent.mkdir(parents=True, exist_ok=True)

                with open(self._settings_file, "w", encoding="utf-8") as f:
                    json.dump(self._settings, f, indent=2, ensure_ascii=False)
            except IOError as e:
                logger.warning("Could not save settings file: %s", e)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value.

        Returns a deep copy for mutable objects (dict, list) to prevent
        accidental modification of internal state.
        """
        value = self._settings.get(key, default)
        if isinstance(value, (dict, list)):
            return copy.deepcopy(value)
        return value

    def set(self, key: str, value: Any, persist: bool = True) -> None:
        """
        Set a setting value and (by default) immediately persist to disk.

        Args:
            key: The setting key
            value: The value to set
            persist: Write the file right away
        """
        self._settings[key] = value
        if persist:
            self._save_settings()

    def get_all(self) -> Dict[str, Any]:
        """Get a copy of all current settings."""
        return copy.deepcopy(self._settings)

    def reset(self, key: Optional[str] = None) -> None:
        """
        Reset settings to defaults.

        Args:
            key: Specific key to reset. If None, resets all settings.
        """
        if key is not None:
            if key in self.DEFAULTS:
                self._settings[key] = copy.deepcopy(self.DEFAULTS[key])
        else:
            self._settings = copy.deepcopy(self.DEFAULTS)

        self._save_settings()

    def reload(self) -> None:
        """Reload settings from disk."""
        self._load_settings()
