"""Logging utilities for the Excel sheet to CSV converter.

This module provides logging setup with support for:
- Console and rotating file handlers
- Run ID injection into every log record
- Domain-specific logging methods for conversion events
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

from excel_sheet_csv.models.data_models import LoggingConfig
from excel_sheet_csv.utils.run_context import RunContext


class RunIdFormatter(logging.Formatter):
    """Formatter exposing the active run ID as ``%(run_id)s``."""

    def format(self, record: logging.LogRecord) -> str:
        record.run_id = RunContext.get_run_id() or "-"
        return super().format(record)


class ProcessingLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter for conversion-specific logging.

    Merges per-call ``extra`` with the adapter context instead of replacing
    it, and offers helpers for the events the pipeline reports.
    """

    def __init__(self, logger: logging.Logger, extra: Optional[Dict[str, Any]] = None):
        super().__init__(logger, extra or {})

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        kwargs.setdefault("extra", {})
        kwargs["extra"].update(self.extra)
        return msg, kwargs

    def log_sheet_skipped(self, file_path: Union[str, Path], sheet_name: str, reason: str) -> None:
        """Log a sheet rejected by the sheet filter.

        Args:
            file_path: Workbook the sheet belongs to
            sheet_name: Name of the rejected sheet
            reason: Short reason code
        """
        self.info(
            f"Skipped sheet '{sheet_name}' in {file_path} ({reason})",
            extra={
                "structured": {
                    "event_type": "sheet_skipped",
                    "file_path": str(file_path),
                    "sheet_name": sheet_name,
                    "reason": reason,
                }
            }
        )

    def log_columns_removed(
        self,
        sheet_name: str,
        empty_columns: Iterable[int],
        script_header_columns: Iterable[int]
    ) -> None:
        """Log the columns removed from a sheet.

        Args:
            sheet_name: Name of the sheet
            empty_columns: Column indices classified as empty
            script_header_columns: Column indices with a script header
        """
        empty = sorted(empty_columns)
        script = sorted(script_header_columns)
        self.info(
            f"Removing columns from '{sheet_name}': "
            f"{len(empty)} empty, {len(script)} script-header",
            extra={
                "structured": {
                    "event_type": "columns_removed",
                    "sheet_name": sheet_name,
                    "empty_columns": empty,
                    "script_header_columns": script,
                }
            }
        )

    def log_csv_written(self, output_path: Union[str, Path], sheet_name: str, size: int) -> None:
        """Log a written CSV file.

        Args:
            output_path: Destination path
            sheet_name: Source sheet name
            size: Number of bytes written
        """
        self.info(
            f"Wrote {output_path} from sheet '{sheet_name}' ({size:,} bytes)",
            extra={
                "structured": {
                    "event_type": "csv_written",
                    "output_path": str(output_path),
                    "sheet_name": sheet_name,
                    "file_size": size,
                }
            }
        )

    def log_file_failed(self, file_path: Union[str, Path], error: BaseException) -> None:
        """Log a workbook that could not be converted.

        Args:
            file_path: Failed workbook
            error: Exception that ended processing of the file
        """
        self.error(
            f"Failed to convert {file_path}: {error}",
            exc_info=error,
            extra={
                "structured": {
                    "event_type": "file_failed",
                    "file_path": str(file_path),
                    "error_type": type(error).__name__,
                    "error_message": str(error),
                }
            }
        )


class LoggerManager:
    """Manages logger setup and adapter caching."""

    def __init__(self):
        self._adapters: Dict[str, ProcessingLoggerAdapter] = {}

    def setup_logging(self, config: LoggingConfig) -> None:
        """Set up logging configuration.

        Args:
            config: Logging configuration
        """
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            handler.close()

        root_logger.setLevel(config.log_level)
        formatter = RunIdFormatter(fmt=config.format, datefmt="%Y-%m-%d %H:%M:%S")

        if config.console_enabled:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(config.log_level)
            console_handler.setFormatter(formatter)
            root_logger.addHandler(console_handler)

        if config.file_enabled:
            config.file_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                filename=config.file_path,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding='utf-8'
            )
            file_handler.setLevel(config.log_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        # Reduce verbosity of third-party libraries
        logging.getLogger("openpyxl").setLevel(logging.WARNING)
        logging.getLogger("pandas").setLevel(logging.WARNING)

        logging.getLogger(__name__).debug(
            f"Logging configured: level={config.level}, console={config.console_enabled}, "
            f"file={config.file_path if config.file_enabled else 'disabled'}"
        )

    def get_processing_logger(
        self,
        name: str,
        context: Optional[Dict[str, Any]] = None
    ) -> ProcessingLoggerAdapter:
        cache_key = f"{name}:{sorted((context or {}).items())}"
        if cache_key not in self._adapters:
            self._adapters[cache_key] = ProcessingLoggerAdapter(logging.getLogger(name), context)
        return self._adapters[cache_key]


# Global logger manager instance
logger_manager = LoggerManager()


def setup_logging(config: LoggingConfig) -> None:
    """Set up application logging.

    Args:
        config: Logging configuration
    """
    logger_manager.setup_logging(config)


def get_processing_logger(
    name: str,
    context: Optional[Dict[str, Any]] = None
) -> ProcessingLoggerAdapter:
    """Get processing logger with context.

    Args:
        name: Logger name (typically __name__)
        context: Additional context for log records

    Returns:
        Processing logger adapter
    """
    return logger_manager.get_processing_logger(name, context)
