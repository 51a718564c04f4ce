"""Core data models for the Excel sheet to CSV converter.

This module contains the dataclasses used throughout the application:
- Cell, CellRange, Sheet and Workbook describe loaded spreadsheet content
- ConversionRequest and ConversionSummary describe one pipeline run
- Settings holds the remembered file/output selection
- Config and its sections hold application configuration
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Tuple, Union

import numpy as np


CellValue = Union[str, int, float, bool, date, datetime, time, timedelta, None]

# Hangul syllables block
DEFAULT_SCRIPT_PATTERN = "[가-힣]"


def _render_duration(value: timedelta) -> str:
    seconds = round(value.total_seconds())
    sign = "-" if seconds < 0 else ""
    hours, rest = divmod(abs(seconds), 3600)
    minutes, secs = divmod(rest, 60)
    return f"{sign}{hours}:{minutes:02d}:{secs:02d}"


def render_value(value: CellValue) -> str:
    """Render a cell value as locale-independent text.

    Floats are written in plain decimal notation, never in exponent form.
    Durations are written as total hours, ``H:MM:SS``.

    Args:
        value: Raw cell value

    Returns:
        Text form used for CSV output and header checks
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return np.format_float_positional(value, trim="-")
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.strftime("%Y-%m-%d")
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, time):
        return value.strftime("%H:%M:%S")
    if isinstance(value, timedelta):
        return _render_duration(value)
    return str(value)


@dataclass(frozen=True)
class Cell:
    """A single value at a (row, column) position."""

    value: CellValue = None

    @property
    def text(self) -> str:
        """Text form of the cell value."""
        return render_value(self.value)


@dataclass(frozen=True)
class CellRange:
    """Declared rectangular extent of a sheet (0-based, inclusive).

    Attributes:
        min_row: First row index
        min_col: First column index
        max_row: Last row index
        max_col: Last column index
    """
    min_row: int
    min_col: int
    max_row: int
    max_col: int

    def __post_init__(self) -> None:
        """Validate range bounds after initialization."""
        if self.min_row < 0 or self.min_col < 0:
            raise ValueError("range coordinates must be non-negative")

        if self.max_row < self.min_row or self.max_col < self.min_col:
            raise ValueError("range end must not precede range start")

    @property
    def row_indices(self) -> range:
        return range(self.min_row, self.max_row + 1)

    @property
    def column_indices(self) -> range:
        return range(self.min_col, self.max_col + 1)

    @property
    def column_count(self) -> int:
        return self.max_col - self.min_col + 1

    @property
    def row_count(self) -> int:
        return self.max_row - self.min_row + 1

    def contains_column(self, col: int) -> bool:
        return self.min_col <= col <= self.max_col


@dataclass
class Sheet:
    """Sparse worksheet content.

    Attributes:
        cells: Mapping from (row, column) to Cell
        dimensions: Declared range, None when the sheet has no columns
        metadata: Auxiliary entries carried through transformations
    """
    cells: Dict[Tuple[int, int], Cell] = field(default_factory=dict)
    dimensions: Optional[CellRange] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_rows(
        cls,
        rows: List[List[CellValue]],
        metadata: Optional[Dict[str, Any]] = None
    ) -> "Sheet":
        """Build a sheet anchored at (0, 0) from a list of row values.

        None values are left out of the cell mapping. The declared range
        covers every row and the widest row.

        Args:
            rows: Row-major cell values
            metadata: Optional auxiliary metadata

        Returns:
            New Sheet instance
        """
        cells = {}
        width = max((len(row) for row in rows), default=0)
        for r, row in enumerate(rows):
            for c, value in enumerate(row):
                if value is not None:
                    cells[(r, c)] = Cell(value)

        dimensions = CellRange(0, 0, len(rows) - 1, width - 1) if rows and width else None
        return cls(cells=cells, dimensions=dimensions, metadata=dict(metadata or {}))

    def get(self, row: int, col: int) -> Optional[Cell]:
        return self.cells.get((row, col))

    @property
    def column_count(self) -> int:
        return self.dimensions.column_count if self.dimensions else 0

    @property
    def is_empty(self) -> bool:
        return self.dimensions is None

    def iter_rows(self) -> Iterator[List[Optional[Cell]]]:
        """Iterate rows of the declared range, one entry per column."""
        if self.dimensions is None:
            return
        columns = self.dimensions.column_indices
        for row in self.dimensions.row_indices:
            yield [self.cells.get((row, col)) for col in columns]


@dataclass
class Workbook:
    """Loaded workbook: ordered (sheet name, sheet) pairs.

    Attributes:
        source_file: Path the workbook was read from
        sheets: Sheets in declared workbook order
    """
    source_file: Path
    sheets: List[Tuple[str, Sheet]] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not isinstance(self.source_file, Path):
            self.source_file = Path(self.source_file)

    @property
    def sheet_names(self) -> List[str]:
        return [name for name, _ in self.sheets]


@dataclass(frozen=True)
class ColumnAnalysis:
    """Columns scheduled for removal from one sheet.

    Attributes:
        empty_columns: Columns classified as empty
        script_header_columns: Columns whose header is in the target script
    """
    empty_columns: FrozenSet[int] = frozenset()
    script_header_columns: FrozenSet[int] = frozenset()

    @property
    def columns_to_remove(self) -> FrozenSet[int]:
        return self.empty_columns | self.script_header_columns


@dataclass(frozen=True)
class ConversionRequest:
    """Immutable input to one pipeline run.

    Attributes:
        files: Workbook paths, processed in order
        output_dir: Directory receiving the CSV files
        only_ascii_sheets: Skip sheets whose name is not visible ASCII
        delimiter: CSV field delimiter
        include_bom: Prefix output with the UTF-8 byte-order mark
        overwrite_existing: Overwrite instead of picking a free name
    """
    files: Tuple[Path, ...] = ()
    output_dir: Optional[Path] = None
    only_ascii_sheets: bool = True
    delimiter: str = ","
    include_bom: bool = True
    overwrite_existing: bool = False

    def __post_init__(self) -> None:
        """Normalize paths and validate the delimiter."""
        object.__setattr__(self, "files", tuple(Path(f) for f in self.files or ()))

        if self.output_dir == "":
            object.__setattr__(self, "output_dir", None)
        elif self.output_dir is not None and not isinstance(self.output_dir, Path):
            object.__setattr__(self, "output_dir", Path(self.output_dir))

        if not isinstance(self.delimiter, str) or len(self.delimiter) != 1:
            raise ValueError("delimiter must be a single character")


@dataclass
class ConversionError:
    """Failure record for one input file."""
    file: Path
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"file": str(self.file), "message": self.message}


@dataclass
class ConversionSummary:
    """Accumulated results of one pipeline run.

    Attributes:
        converted_count: Sheets written as CSV
        skipped_sheet_count: Sheets rejected by the sheet filter
        removed_empty_column_count: Columns removed for being empty
        removed_script_header_column_count: Columns removed for their header script
        errors: One record per failed file, in input order
        output_files: Written CSV paths, in write order
    """
    converted_count: int = 0
    skipped_sheet_count: int = 0
    removed_empty_column_count: int = 0
    removed_script_header_column_count: int = 0
    errors: List[ConversionError] = field(default_factory=list)
    output_files: List[Path] = field(default_factory=list)

    def add_error(self, file: Union[str, Path], message: str) -> None:
        self.errors.append(ConversionError(file=Path(file), message=message))

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the summary for reporting."""
        return {
            "converted_count": self.converted_count,
            "skipped_sheet_count": self.skipped_sheet_count,
            "removed_empty_column_count": self.removed_empty_column_count,
            "removed_script_header_column_count": self.removed_script_header_column_count,
            "errors": [error.to_dict() for error in self.errors],
            "output_files": [str(path) for path in self.output_files],
        }


@dataclass
class Settings:
    """Remembered selection of the application shell.

    Attributes:
        last_files: Last picked workbook paths
        last_output_dir: Last picked output directory
    """
    last_files: List[Path] = field(default_factory=list)
    last_output_dir: Optional[Path] = None

    def __post_init__(self) -> None:
        self.last_files = [Path(f) for f in self.last_files]
        if self.last_output_dir is not None and not isinstance(self.last_output_dir, Path):
            self.last_output_dir = Path(self.last_output_dir)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lastFiles": [str(f) for f in self.last_files],
            "lastOutputDir": str(self.last_output_dir) if self.last_output_dir else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        files = data.get("lastFiles") or []
        if not isinstance(files, list):
            raise ValueError("lastFiles must be a list")
        return cls(last_files=files, last_output_dir=data.get("lastOutputDir") or None)


@dataclass
class OutputConfig:
    """Configuration for CSV output.

    Attributes:
        folder: Default output directory (None to require one per run)
        delimiter: CSV field delimiter
        include_bom: Whether to prefix the UTF-8 byte-order mark
        only_ascii_sheets: Whether to skip sheets with non-ASCII names
        overwrite_existing: Whether to overwrite existing CSV files
    """
    folder: Optional[Path] = None
    delimiter: str = ","
    include_bom: bool = True
    only_ascii_sheets: bool = True
    overwrite_existing: bool = False

    def __post_init__(self) -> None:
        """Validate output configuration after initialization."""
        if self.folder is not None and not isinstance(self.folder, Path):
            self.folder = Path(self.folder)

        if len(self.delimiter) != 1:
            raise ValueError("delimiter must be a single character")


@dataclass
class ColumnCleanupConfig:
    """Configuration for column removal rules.

    Attributes:
        remove_empty: Remove empty columns
        remove_script_headers: Remove columns whose header matches script_pattern
        script_pattern: Regular expression for the target script
    """
    remove_empty: bool = True
    remove_script_headers: bool = True
    script_pattern: str = DEFAULT_SCRIPT_PATTERN

    def __post_init__(self) -> None:
        if not self.script_pattern:
            raise ValueError("script_pattern cannot be empty")


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level
        format: Log message format string
        file_enabled: Whether to log to file
        file_path: Path for log file
        console_enabled: Whether to log to console
    """
    level: str = "INFO"
    format: str = "%(asctime)s | %(levelname)-8s | %(run_id)s | %(name)s | %(message)s"
    file_enabled: bool = False
    file_path: Path = Path("./logs/excel_sheet_csv.log")
    console_enabled: bool = True

    def __post_init__(self) -> None:
        """Validate logging configuration after initialization."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.level.upper() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}")

        self.level = self.level.upper()

        if not isinstance(self.file_path, Path):
            self.file_path = Path(self.file_path)

    @property
    def log_level(self) -> int:
        """Get numeric logging level."""
        return getattr(logging, self.level)


@dataclass
class Config:
    """Main configuration for the converter.

    Attributes:
        output_config: CSV output settings
        column_cleanup: Column removal rules
        logging: Logging configuration
        settings_path: Location of the remembered-selection file
        max_file_size_mb: Maximum workbook size in MB
    """
    output_config: OutputConfig = field(default_factory=OutputConfig)
    column_cleanup: ColumnCleanupConfig = field(default_factory=ColumnCleanupConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    settings_path: Optional[Path] = None
    max_file_size_mb: float = 100

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.settings_path is not None and not isinstance(self.settings_path, Path):
            self.settings_path = Path(self.settings_path)

        if self.max_file_size_mb <= 0:
            raise ValueError("max_file_size_mb must be positive")

    @property
    def max_file_size_bytes(self) -> int:
        """Get maximum file size in bytes."""
        return int(self.max_file_size_mb * 1024 * 1024)
