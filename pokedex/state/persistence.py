"""Settings persistence to JSON file."""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from pokedex.domain.settings import AppSettings

logger = logging.getLogger(__name__)


class SettingsStore:
    """Persists settings to JSON file.

    Settings are stored in the user's home directory by default.

    Example:
        >>> store = SettingsStore()
        >>> settings = store.load()
        >>> settings.search.debounce_ms = 300
        >>> store.save(settings)
    """

    DEFAULT_PATH = Path.home() / ".pokedex_settings.json"

    def __init__(self, path: Optional[Path] = None):
        """Initialize settings store.

        Args:
            path: Optional custom path for settings file.
                  Defaults to ~/.pokedex_settings.json
        """
        self._path = path or self.DEFAULT_PATH

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def load(self) -> AppSettings:
        """Load settings from file.

        Returns:
            AppSettings instance. If file doesn't exist or is invalid,
            returns default settings.
        """
        if not self._path.exists():
            return AppSettings()

        try:
            data = json.loads(self._path.read_text())
            data = self._migrate_settings(data)
            return AppSettings.model_validate(data)
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"Could not load settings from {self._path}: {e}")
            return AppSettings()

    def _migrate_settings(self, data: dict) -> dict:
        """Migrate old settings formats to current format.

        The format has not changed yet; only the root shape is checked.

        Args:
            data: Raw settings dictionary

        Returns:
            Migrated settings dictionary
        """
        if not isinstance(data, dict):
            raise ValueError("Settings root must be an object")

        return data

    def save(self, settings: AppSettings) -> None:
        """Save settings to file.

        Args:
            settings: AppSettings to save
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(settings.model_dump_json(indent=2))

    def delete(self) -> bool:
        """Delete settings file.

        Returns:
            True if file was deleted, False if it didn't exist
        """
        if self._path.exists():
            self._path.unlink()
            return True
        return False
