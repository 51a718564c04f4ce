"""Workbook reading for the Excel sheet to CSV converter.

This module loads workbooks into sparse Sheet models:
- .xlsx/.xlsm/.xltx/.xltm through openpyxl (cached values, no formulas)
- legacy .xls through pandas (xlrd engine)
- File validation (existence, type, size) before parsing
- Every failure surfaced as WorkbookParseError
"""

from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

import numpy as np
import openpyxl
import pandas as pd
from openpyxl.worksheet.worksheet import Worksheet

from excel_sheet_csv.models.data_models import Cell, CellRange, CellValue, Sheet, Workbook
from excel_sheet_csv.utils.logger import get_processing_logger
from excel_sheet_csv.utils.logging_decorators import log_operation, operation_context


class WorkbookParseError(Exception):
    """Raised when a workbook cannot be read."""
    pass


class ExcelProcessor:
    """Reads workbook files into Workbook models.

    Example:
        >>> processor = ExcelProcessor()
        >>> workbook = processor.read_workbook("report.xlsx")
        >>> workbook.sheet_names
        ['Data', 'Summary']
    """

    # Extensions read through pandas instead of openpyxl
    LEGACY_EXTENSIONS = {'.xls'}

    def __init__(self, max_file_size_mb: float = 100):
        """Initialize Excel processor.

        Args:
            max_file_size_mb: Maximum file size to process in MB
        """
        self.max_file_size_mb = max_file_size_mb
        self.logger = get_processing_logger(__name__)

    @log_operation("read_workbook")
    def read_workbook(self, file_path: Union[str, Path]) -> Workbook:
        """Read a workbook file.

        Args:
            file_path: Path to the workbook

        Returns:
            Workbook with sheets in declared order

        Raises:
            WorkbookParseError: If the file is missing, too large or unreadable
        """
        file_path = Path(file_path)

        with operation_context("workbook_read", self.logger, file_path=str(file_path)) as operation:
            self._validate_file(file_path)

            try:
                if file_path.suffix.lower() in self.LEGACY_EXTENSIONS:
                    sheets = self._read_with_pandas(file_path)
                    operation.add_metadata("engine", "pandas")
                else:
                    sheets = self._read_with_openpyxl(file_path)
                    operation.add_metadata("engine", "openpyxl")
            except Exception as e:
                raise WorkbookParseError(f"Cannot read workbook {file_path.name}: {e}") from e

            operation.add_metadata("sheet_count", len(sheets))
            self.logger.info(
                f"Read {file_path}: {len(sheets)} sheet(s)",
                extra={
                    "structured": {
                        "operation": "workbook_read",
                        "file_path": str(file_path),
                        "sheet_names": [name for name, _ in sheets],
                    }
                }
            )
            return Workbook(source_file=file_path, sheets=sheets)

    def _validate_file(self, file_path: Path) -> None:
        """Validate a workbook path before parsing.

        Args:
            file_path: Path to check

        Raises:
            WorkbookParseError: If validation fails
        """
        if not file_path.exists():
            raise WorkbookParseError(f"File not found: {file_path}")

        if not file_path.is_file():
            raise WorkbookParseError(f"Path is not a file: {file_path}")

        file_size_mb = file_path.stat().st_size / (1024 * 1024)
        if file_size_mb > self.max_file_size_mb:
            raise WorkbookParseError(
                f"File too large: {file_size_mb:.1f}MB > {self.max_file_size_mb}MB"
            )

    def _read_with_openpyxl(self, file_path: Path) -> List[Tuple[str, Sheet]]:
        workbook = openpyxl.load_workbook(file_path, data_only=True, keep_links=False)
        try:
            return [(ws.title, self._worksheet_to_sheet(ws)) for ws in workbook.worksheets]
        finally:
            workbook.close()

    def _worksheet_to_sheet(self, ws: Worksheet) -> Sheet:
        """Convert an openpyxl worksheet to a sparse Sheet.

        Args:
            ws: Loaded worksheet

        Returns:
            Sheet with 0-based coordinates
        """
        cells: Dict[Tuple[int, int], Cell] = {}
        for row in ws.iter_rows(
            min_row=ws.min_row, max_row=ws.max_row,
            min_col=ws.min_column, max_col=ws.max_column
        ):
            for cell in row:
                if cell.value is not None:
                    cells[(cell.row - 1, cell.column - 1)] = Cell(cell.value)

        dimensions = None
        if cells:
            dimensions = CellRange(
                min_row=ws.min_row - 1,
                min_col=ws.min_column - 1,
                max_row=ws.max_row - 1,
                max_col=ws.max_column - 1,
            )

        metadata: Dict[str, Any] = {
            "source_engine": "openpyxl",
            "sheet_state": ws.sheet_state,
            "merged_cells": [str(r) for r in ws.merged_cells.ranges],
            "freeze_panes": ws.freeze_panes,
        }
        return Sheet(cells=cells, dimensions=dimensions, metadata=metadata)

    def _read_with_pandas(self, file_path: Path) -> List[Tuple[str, Sheet]]:
        frames = pd.read_excel(file_path, sheet_name=None, header=None, dtype=object)
        return [(str(name), self._frame_to_sheet(frame)) for name, frame in frames.items()]

    def _frame_to_sheet(self, frame: pd.DataFrame) -> Sheet:
        """Convert a headerless DataFrame to a sparse Sheet.

        Args:
            frame: DataFrame read with ``header=None``

        Returns:
            Sheet anchored at (0, 0)
        """
        cells: Dict[Tuple[int, int], Cell] = {}
        for r, row in enumerate(frame.itertuples(index=False, name=None)):
            for c, value in enumerate(row):
                value = _to_python_value(value)
                if value is not None:
                    cells[(r, c)] = Cell(value)

        dimensions = None
        if cells:
            dimensions = CellRange(0, 0, len(frame.index) - 1, len(frame.columns) - 1)

        return Sheet(cells=cells, dimensions=dimensions, metadata={"source_engine": "pandas"})


def _to_python_value(value: Any) -> CellValue:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if pd.isna(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, np.generic):
        return value.item()
    return value
