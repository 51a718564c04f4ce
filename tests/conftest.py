"""Pytest configuration and shared fixtures for Excel sheet to CSV tests."""

import logging
import os
import tempfile
import pytest
from pathlib import Path
from typing import Callable, Dict, Generator, List

import openpyxl
import yaml

from excel_sheet_csv.config.config_manager import config_manager


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path: Path) -> Generator[Path, None, None]:
    """Keep configuration, settings and log handlers local to each test.

    Removes EXCEL_SHEET_CSV_* variables, points the settings file into a
    temporary directory, and drops any root log handlers a test installed.
    """
    for key in list(os.environ):
        if key.startswith("EXCEL_SHEET_CSV_"):
            monkeypatch.delenv(key)

    settings_path = tmp_path / "state" / "settings.json"
    monkeypatch.setenv("EXCEL_SHEET_CSV_SETTINGS_PATH", str(settings_path))
    monkeypatch.chdir(tmp_path)
    config_manager.clear_cache()

    root_logger = logging.getLogger()
    handlers_before = list(root_logger.handlers)

    yield settings_path

    for handler in root_logger.handlers[:]:
        if handler not in handlers_before:
            root_logger.removeHandler(handler)
            handler.close()
    config_manager.clear_cache()


@pytest.fixture
def make_workbook(temp_dir: Path) -> Callable[..., Path]:
    """Factory writing an .xlsx file with the given sheets.

    Usage:
        path = make_workbook("book.xlsx", {"Data": [["A", "B"], [1, 2]]})
    """
    def _make(name: str, sheets: Dict[str, List[list]], directory: Path = None) -> Path:
        workbook = openpyxl.Workbook()
        workbook.remove(workbook.active)
        for title, rows in sheets.items():
            worksheet = workbook.create_sheet(title=title)
            for row in rows:
                worksheet.append(row)

        path = (directory or temp_dir) / name
        workbook.save(path)
        return path

    return _make


@pytest.fixture
def sample_workbook(make_workbook) -> Path:
    """Workbook with one ASCII-named and one Korean-named sheet."""
    return make_workbook(
        "report.xlsx",
        {
            "Data": [["A", None, "C"], [1, None, 3]],
            "데이터": [["x"], [1]],
        },
    )


@pytest.fixture
def invalid_excel_file(temp_dir: Path) -> Path:
    """Create an invalid Excel file for testing."""
    invalid_file = temp_dir / "invalid.xlsx"
    invalid_file.write_text("This is not an Excel file")
    return invalid_file


@pytest.fixture
def output_dir(temp_dir: Path) -> Path:
    """Output directory that does not exist yet."""
    return temp_dir / "out" / "csv"


@pytest.fixture
def sample_config_dict() -> dict:
    """Sample configuration dictionary for testing."""
    return {
        "output": {
            "folder": "./exports",
            "delimiter": ";",
            "include_bom": False,
            "only_ascii_sheets": True,
            "overwrite_existing": True,
        },
        "columns": {
            "remove_empty": True,
            "remove_script_headers": False,
        },
        "processing": {
            "max_file_size": 25,
        },
        "logging": {
            "level": "DEBUG",
            "file": {
                "enabled": False,
                "path": "./logs/test.log",
            },
        },
    }


@pytest.fixture
def sample_config_file(temp_dir: Path, sample_config_dict: dict) -> Path:
    """Create a sample configuration file for testing."""
    config_file = temp_dir / "test_config.yaml"
    with open(config_file, 'w') as f:
        yaml.dump(sample_config_dict, f)
    return config_file
