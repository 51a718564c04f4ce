"""Configuration management for the Excel sheet to CSV converter.

This module provides centralized configuration loading with support for YAML
files, environment variable overrides, and validation.
"""

import copy
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from excel_sheet_csv.models.data_models import (
    DEFAULT_SCRIPT_PATTERN,
    ColumnCleanupConfig,
    Config,
    LoggingConfig,
    OutputConfig,
)


logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""
    pass


class ConfigManager:
    """Manages application configuration loading and validation.

    Configuration Loading Order:
    1. If config_path is provided, load that file
    2. If config_path is None, try to load config/default.yaml
    3. If config/default.yaml doesn't exist, use built-in defaults
    4. Apply EXCEL_SHEET_CSV_* environment overrides

    Example:
        >>> config = ConfigManager().load_config()
        >>> config.output_config.delimiter
        ','
    """

    # Environment variable prefix
    ENV_PREFIX = "EXCEL_SHEET_CSV_"

    DEFAULT_CONFIG_PATH = Path("config/default.yaml")

    # Default configuration values
    DEFAULT_CONFIG = {
        "output": {
            "folder": None,
            "delimiter": ",",
            "include_bom": True,
            "only_ascii_sheets": True,
            "overwrite_existing": False,
        },
        "columns": {
            "remove_empty": True,
            "remove_script_headers": True,
            "script_pattern": DEFAULT_SCRIPT_PATTERN,
        },
        "processing": {
            "max_file_size": 100,
        },
        "settings": {
            "path": None,
        },
        "logging": {
            "level": "INFO",
            "format": "%(asctime)s | %(levelname)-8s | %(run_id)s | %(name)s | %(message)s",
            "file": {
                "enabled": False,
                "path": "./logs/excel_sheet_csv.log",
            },
            "console": {
                "enabled": True,
            },
        },
    }

    # Environment variable suffix -> configuration path
    ENV_MAPPINGS = {
        "OUTPUT_FOLDER": ["output", "folder"],
        "DELIMITER": ["output", "delimiter"],
        "INCLUDE_BOM": ["output", "include_bom"],
        "ONLY_ASCII_SHEETS": ["output", "only_ascii_sheets"],
        "OVERWRITE_EXISTING": ["output", "overwrite_existing"],
        "REMOVE_EMPTY_COLUMNS": ["columns", "remove_empty"],
        "REMOVE_SCRIPT_HEADERS": ["columns", "remove_script_headers"],
        "MAX_FILE_SIZE": ["processing", "max_file_size"],
        "LOG_LEVEL": ["logging", "level"],
        "SETTINGS_PATH": ["settings", "path"],
    }

    # Values that must stay strings even when they look numeric
    STRING_KEYS = {"DELIMITER", "OUTPUT_FOLDER", "SETTINGS_PATH", "LOG_LEVEL"}

    def __init__(self) -> None:
        self._config_cache: Dict[str, Config] = {}

    def load_config(
        self,
        config_path: Optional[Union[str, Path]] = None,
        use_env_overrides: bool = True
    ) -> Config:
        """Load configuration from file with optional environment overrides.

        Args:
            config_path: Path to configuration file. If None, config/default.yaml
                        is used when present, otherwise built-in defaults
            use_env_overrides: Whether to apply environment variable overrides

        Returns:
            Loaded and validated configuration

        Raises:
            ConfigurationError: If configuration loading or validation fails
        """
        cache_key = f"{config_path}:{use_env_overrides}"
        if cache_key in self._config_cache:
            logger.debug(f"Using cached configuration for {cache_key}")
            return self._config_cache[cache_key]

        try:
            config_dict = self._load_config_dict(config_path)

            if use_env_overrides:
                config_dict = self._apply_env_overrides(config_dict)

            config = self._dict_to_config(config_dict)
        except ConfigurationError:
            raise
        except (ValueError, TypeError, re.error) as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        self._config_cache[cache_key] = config
        logger.debug(f"Configuration loaded from {config_path or 'defaults'}")
        return config

    def _load_config_dict(self, config_path: Optional[Union[str, Path]]) -> Dict[str, Any]:
        """Load configuration dictionary from file or defaults.

        Args:
            config_path: Path to configuration file

        Returns:
            Configuration dictionary merged over the defaults
        """
        defaults = copy.deepcopy(self.DEFAULT_CONFIG)

        if config_path is None:
            if not self.DEFAULT_CONFIG_PATH.exists():
                return defaults
            config_path = self.DEFAULT_CONFIG_PATH

        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_file}")

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                file_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_file}: {e}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot read {config_file}: {e}") from e

        if not isinstance(file_config, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {config_file}")

        logger.debug(f"Loaded configuration from {config_file}")
        return self._deep_merge(defaults, file_config)

    def _apply_env_overrides(self, config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration.

        Args:
            config_dict: Base configuration dictionary

        Returns:
            Configuration dictionary with environment overrides applied
        """
        for suffix, config_path in self.ENV_MAPPINGS.items():
            env_var = f"{self.ENV_PREFIX}{suffix}"
            env_value = os.getenv(env_var)
            if env_value is None:
                continue

            value = env_value if suffix in self.STRING_KEYS else self._convert_env_value(env_value)
            self._set_nested_value(config_dict, config_path, value)
            logger.debug(f"Applied environment override: {env_var}={value!r}")

        return config_dict

    def _convert_env_value(self, value: str) -> Any:
        """Convert environment variable string to bool, int, float or str."""
        if value.lower() in ("true", "false"):
            return value.lower() == "true"

        try:
            if "." not in value:
                return int(value)
            return float(value)
        except ValueError:
            return value

    def _set_nested_value(self, dictionary: Dict[str, Any], path: List[str], value: Any) -> None:
        for key in path[:-1]:
            dictionary = dictionary.setdefault(key, {})
        dictionary[path[-1]] = value

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries, with override taking precedence."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> Config:
        """Convert configuration dictionary to Config object.

        Args:
            config_dict: Configuration dictionary

        Returns:
            Config object
        """
        output = config_dict.get("output", {})
        columns = config_dict.get("columns", {})
        processing = config_dict.get("processing", {})
        settings = config_dict.get("settings", {})
        logging_section = config_dict.get("logging", {})

        output_config = OutputConfig(
            folder=Path(output["folder"]) if output.get("folder") else None,
            delimiter=str(output.get("delimiter", ",")),
            include_bom=bool(output.get("include_bom", True)),
            only_ascii_sheets=bool(output.get("only_ascii_sheets", True)),
            overwrite_existing=bool(output.get("overwrite_existing", False)),
        )

        column_cleanup = ColumnCleanupConfig(
            remove_empty=bool(columns.get("remove_empty", True)),
            remove_script_headers=bool(columns.get("remove_script_headers", True)),
            script_pattern=str(columns.get("script_pattern") or DEFAULT_SCRIPT_PATTERN),
        )
        # Fail at load time rather than on first use
        re.compile(column_cleanup.script_pattern)

        logging_config = LoggingConfig(
            level=str(logging_section.get("level", "INFO")),
            format=logging_section.get("format", self.DEFAULT_CONFIG["logging"]["format"]),
            file_enabled=bool(logging_section.get("file", {}).get("enabled", False)),
            file_path=Path(logging_section.get("file", {}).get("path", "./logs/excel_sheet_csv.log")),
            console_enabled=bool(logging_section.get("console", {}).get("enabled", True)),
        )

        return Config(
            output_config=output_config,
            column_cleanup=column_cleanup,
            logging=logging_config,
            settings_path=Path(settings["path"]) if settings.get("path") else None,
            max_file_size_mb=processing.get("max_file_size", 100),
        )

    def clear_cache(self) -> None:
        """Clear configuration cache."""
        self._config_cache.clear()


# Global configuration manager instance
config_manager = ConfigManager()
