"""Persisted selection of the application shell.

The store remembers the last picked workbook files and output directory in a
small JSON file. Loading never fails: a missing file gives empty settings and
an unreadable one is logged and ignored.
"""

import json
from pathlib import Path
from typing import Optional, Union

from excel_sheet_csv.models.data_models import Settings
from excel_sheet_csv.utils.logger import get_processing_logger


DEFAULT_SETTINGS_PATH = Path.home() / ".excel_sheet_csv" / "settings.json"


class SettingsError(Exception):
    """Raised when settings cannot be saved."""
    pass


class SettingsStore:
    """JSON-backed key-value store for the remembered selection.

    Example:
        >>> store = SettingsStore()
        >>> settings = store.load()
        >>> settings.last_output_dir = Path("/tmp/csv")
        >>> store.save(settings)
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else DEFAULT_SETTINGS_PATH
        self.logger = get_processing_logger(__name__)

    def load(self) -> Settings:
        """Load settings, falling back to defaults.

        Returns:
            Stored settings, or empty settings if none can be read
        """
        if not self.path.exists():
            return Settings()

        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
            if not isinstance(data, dict):
                raise ValueError("settings root must be an object")
            return Settings.from_dict(data)
        except (OSError, ValueError, TypeError) as e:
            self.logger.warning(f"Ignoring unreadable settings file {self.path}: {e}")
            return Settings()

    def save(self, settings: Settings) -> None:
        """Persist settings atomically.

        Args:
            settings: Settings to write

        Raises:
            SettingsError: If the file cannot be written
        """
        tmp_path = self.path.with_suffix(".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as handle:
                json.dump(settings.to_dict(), handle, ensure_ascii=False, indent=2)
            tmp_path.replace(self.path)
        except OSError as e:
            raise SettingsError(f"Cannot save settings to {self.path}: {e}") from e

        self.logger.debug(f"Saved settings to {self.path}")

    def clear(self) -> None:
        """Forget the remembered selection."""
        self.save(Settings())
