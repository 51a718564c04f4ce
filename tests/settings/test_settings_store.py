"""Tests for the remembered-selection store."""

import json
import pytest
from pathlib import Path
from unittest.mock import patch

from excel_sheet_csv.models.data_models import Settings
from excel_sheet_csv.settings.settings_store import (
    DEFAULT_SETTINGS_PATH,
    SettingsError,
    SettingsStore,
)


class TestSettingsStore:
    """Test cases for SettingsStore."""

    def test_default_path(self):
        assert SettingsStore().path == DEFAULT_SETTINGS_PATH

    def test_missing_file_gives_defaults(self, temp_dir: Path):
        settings = SettingsStore(temp_dir / "settings.json").load()

        assert settings == Settings()

    def test_round_trip(self, temp_dir: Path):
        store = SettingsStore(temp_dir / "deep" / "settings.json")
        settings = Settings(
            last_files=[temp_dir / "a.xlsx", temp_dir / "보고서.xlsx"],
            last_output_dir=temp_dir / "out"
        )

        store.save(settings)

        assert store.load() == settings
        assert not store.path.with_suffix(".tmp").exists()

    def test_file_layout(self, temp_dir: Path):
        store = SettingsStore(temp_dir / "settings.json")

        store.save(Settings(last_files=["a.xlsx"], last_output_dir="out"))

        data = json.loads(store.path.read_text(encoding="utf-8"))
        assert data == {"lastFiles": ["a.xlsx"], "lastOutputDir": "out"}

    @pytest.mark.parametrize("content", [
        "{not json",
        "[1, 2]",
        '{"lastFiles": "a.xlsx"}',
        '{"lastFiles": [1, 2]}',
    ])
    def test_corrupt_file_gives_defaults(self, temp_dir: Path, content: str):
        path = temp_dir / "settings.json"
        path.write_text(content, encoding="utf-8")

        assert SettingsStore(path).load() == Settings()

    def test_clear(self, temp_dir: Path):
        store = SettingsStore(temp_dir / "settings.json")
        store.save(Settings(last_files=["a.xlsx"], last_output_dir="out"))

        store.clear()

        assert store.load() == Settings()

    def test_save_failure(self, temp_dir: Path):
        store = SettingsStore(temp_dir / "settings.json")

        with patch.object(Path, "replace", side_effect=OSError("read-only file system")):
            with pytest.raises(SettingsError, match="read-only"):
                store.save(Settings())
