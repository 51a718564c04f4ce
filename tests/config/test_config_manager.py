"""Unit tests for configuration manager."""

import pytest
from pathlib import Path

import yaml

from excel_sheet_csv.config.config_manager import ConfigManager, ConfigurationError
from excel_sheet_csv.models.data_models import DEFAULT_SCRIPT_PATTERN


class TestConfigManager:
    """Test cases for ConfigManager class."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("EXCEL_SHEET_CSV_SETTINGS_PATH")

        config = ConfigManager().load_config()

        assert config.output_config.folder is None
        assert config.output_config.delimiter == ","
        assert config.output_config.include_bom is True
        assert config.output_config.only_ascii_sheets is True
        assert config.output_config.overwrite_existing is False
        assert config.column_cleanup.script_pattern == DEFAULT_SCRIPT_PATTERN
        assert config.max_file_size_mb == 100
        assert config.settings_path is None
        assert config.logging.level == "INFO"

    def test_load_file(self, sample_config_file: Path):
        config = ConfigManager().load_config(sample_config_file)

        assert config.output_config.folder == Path("./exports")
        assert config.output_config.delimiter == ";"
        assert config.output_config.include_bom is False
        assert config.output_config.overwrite_existing is True
        assert config.column_cleanup.remove_script_headers is False
        assert config.column_cleanup.script_pattern == DEFAULT_SCRIPT_PATTERN
        assert config.max_file_size_mb == 25
        assert config.logging.level == "DEBUG"

    def test_default_file_in_working_directory(self, tmp_path: Path):
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        (config_dir / "default.yaml").write_text(yaml.safe_dump({"output": {"delimiter": "|"}}))

        config = ConfigManager().load_config()

        assert config.output_config.delimiter == "|"

    def test_env_overrides(self, monkeypatch, sample_config_file: Path):
        monkeypatch.setenv("EXCEL_SHEET_CSV_DELIMITER", "\t")
        monkeypatch.setenv("EXCEL_SHEET_CSV_INCLUDE_BOM", "true")
        monkeypatch.setenv("EXCEL_SHEET_CSV_MAX_FILE_SIZE", "12.5")
        monkeypatch.setenv("EXCEL_SHEET_CSV_REMOVE_EMPTY_COLUMNS", "false")
        monkeypatch.setenv("EXCEL_SHEET_CSV_OUTPUT_FOLDER", "/data/csv")
        monkeypatch.setenv("EXCEL_SHEET_CSV_LOG_LEVEL", "warning")

        config = ConfigManager().load_config(sample_config_file)

        assert config.output_config.delimiter == "\t"
        assert config.output_config.include_bom is True
        assert config.max_file_size_mb == 12.5
        assert config.column_cleanup.remove_empty is False
        assert config.output_config.folder == Path("/data/csv")
        assert config.logging.level == "WARNING"

    def test_numeric_delimiter_stays_string(self, monkeypatch):
        monkeypatch.setenv("EXCEL_SHEET_CSV_DELIMITER", "1")

        assert ConfigManager().load_config().output_config.delimiter == "1"

    def test_settings_path_override(self, isolated_environment: Path):
        config = ConfigManager().load_config()

        assert config.settings_path == isolated_environment

    def test_env_overrides_disabled(self, monkeypatch):
        monkeypatch.setenv("EXCEL_SHEET_CSV_DELIMITER", ";")

        config = ConfigManager().load_config(use_env_overrides=False)

        assert config.output_config.delimiter == ","

    def test_caching(self):
        manager = ConfigManager()

        assert manager.load_config() is manager.load_config()

        manager.clear_cache()
        assert manager._config_cache == {}

    def test_missing_file(self, temp_dir: Path):
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigManager().load_config(temp_dir / "nope.yaml")

    def test_invalid_yaml(self, temp_dir: Path):
        bad = temp_dir / "bad.yaml"
        bad.write_text("output: [unclosed")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            ConfigManager().load_config(bad)

    def test_non_mapping_root(self, temp_dir: Path):
        bad = temp_dir / "list.yaml"
        bad.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            ConfigManager().load_config(bad)

    @pytest.mark.parametrize("override", [
        {"output": {"delimiter": ";;"}},
        {"columns": {"script_pattern": "[unclosed"}},
        {"logging": {"level": "LOUD"}},
        {"processing": {"max_file_size": -1}},
    ])
    def test_invalid_values(self, temp_dir: Path, override: dict):
        config_file = temp_dir / "invalid.yaml"
        config_file.write_text(yaml.safe_dump(override))

        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            ConfigManager().load_config(config_file)

    def test_clear_cache_picks_up_file_changes(self, temp_dir: Path):
        config_file = temp_dir / "live.yaml"
        config_file.write_text(yaml.safe_dump({"output": {"delimiter": ";"}}))
        manager = ConfigManager()
        assert manager.load_config(config_file).output_config.delimiter == ";"

        config_file.write_text(yaml.safe_dump({"output": {"delimiter": "|"}}))
        assert manager.load_config(config_file).output_config.delimiter == ";"

        manager.clear_cache()
        assert manager.load_config(config_file).output_config.delimiter == "|"
