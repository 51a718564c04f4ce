"""Unit tests for workbook reading."""

import pytest
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

import numpy as np
import openpyxl
import pandas as pd

from excel_sheet_csv.models.data_models import Cell, CellRange
from excel_sheet_csv.processors.excel_processor import ExcelProcessor, WorkbookParseError


class TestExcelProcessor:
    """Test cases for ExcelProcessor class."""

    def test_init(self):
        processor = ExcelProcessor()
        assert processor.max_file_size_mb == 100

    def test_sheet_order_and_names(self, make_workbook):
        path = make_workbook("book.xlsx", {"Zeta": [["z"]], "데이터": [["k"]], "Alpha": [["a"]]})

        workbook = ExcelProcessor().read_workbook(path)

        assert workbook.source_file == path
        assert workbook.sheet_names == ["Zeta", "데이터", "Alpha"]

    def test_cells_are_zero_based(self, make_workbook):
        path = make_workbook("book.xlsx", {"Data": [["A", None, "C"], [1, None, 3.5]]})

        workbook = ExcelProcessor().read_workbook(path)
        _, sheet = workbook.sheets[0]

        assert sheet.dimensions == CellRange(0, 0, 1, 2)
        assert sheet.get(0, 0) == Cell("A")
        assert sheet.get(1, 2) == Cell(3.5)
        assert sheet.get(0, 1) is None
        assert sheet.metadata["source_engine"] == "openpyxl"

    def test_offset_range(self, temp_dir: Path):
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "Offset"
        ws["C3"] = "Header"
        ws["C4"] = datetime(2024, 5, 6)
        path = temp_dir / "offset.xlsx"
        wb.save(path)

        _, sheet = ExcelProcessor().read_workbook(path).sheets[0]

        assert sheet.dimensions == CellRange(2, 2, 3, 2)
        assert sheet.get(3, 2).text == "2024-05-06"

    def test_empty_sheet_has_no_range(self, make_workbook):
        path = make_workbook("book.xlsx", {"Blank": []})

        _, sheet = ExcelProcessor().read_workbook(path).sheets[0]

        assert sheet.dimensions is None
        assert sheet.cells == {}

    def test_cached_formula_values(self, temp_dir: Path):
        wb = openpyxl.Workbook()
        wb.active["A1"] = "=1+1"
        path = temp_dir / "formula.xlsx"
        wb.save(path)

        _, sheet = ExcelProcessor().read_workbook(path).sheets[0]

        # Files never opened by Excel carry no cached result
        assert sheet.get(0, 0) is None

    def test_nonexistent_file(self, temp_dir: Path):
        with pytest.raises(WorkbookParseError, match="File not found"):
            ExcelProcessor().read_workbook(temp_dir / "missing.xlsx")

    def test_directory_path(self, temp_dir: Path):
        with pytest.raises(WorkbookParseError, match="not a file"):
            ExcelProcessor().read_workbook(temp_dir)

    def test_invalid_format(self, invalid_excel_file: Path):
        with pytest.raises(WorkbookParseError, match="invalid.xlsx"):
            ExcelProcessor().read_workbook(invalid_excel_file)

    def test_file_too_large(self, temp_dir: Path):
        processor = ExcelProcessor(max_file_size_mb=0.001)
        large_file = temp_dir / "large.xlsx"
        large_file.write_bytes(b"x" * 2000)

        with pytest.raises(WorkbookParseError, match="File too large"):
            processor.read_workbook(large_file)


class TestLegacyWorkbooks:
    """Test cases for .xls reading through pandas."""

    def test_frame_conversion(self):
        frame = pd.DataFrame(
            [["Name", "When", "Count"], ["x", pd.Timestamp("2024-01-02"), np.int64(3)], [np.nan, None, 1.0]],
            dtype=object
        )

        sheet = ExcelProcessor()._frame_to_sheet(frame)

        assert sheet.dimensions == CellRange(0, 0, 2, 2)
        assert sheet.get(1, 1) == Cell(datetime(2024, 1, 2))
        assert sheet.get(1, 2) == Cell(3)
        assert sheet.get(2, 0) is None
        assert sheet.get(2, 1) is None
        assert sheet.metadata == {"source_engine": "pandas"}

    def test_xls_uses_pandas(self, temp_dir: Path):
        path = temp_dir / "legacy.xls"
        path.write_bytes(b"placeholder")
        frames = {"Old": pd.DataFrame([["A"], [1]], dtype=object)}

        with patch("excel_sheet_csv.processors.excel_processor.pd.read_excel", return_value=frames) as mock_read:
            workbook = ExcelProcessor().read_workbook(path)

        mock_read.assert_called_once_with(path, sheet_name=None, header=None, dtype=object)
        assert workbook.sheet_names == ["Old"]
        assert workbook.sheets[0][1].get(1, 0) == Cell(1)

    def test_xls_read_failure(self, temp_dir: Path):
        path = temp_dir / "legacy.xls"
        path.write_bytes(b"placeholder")

        with patch("excel_sheet_csv.processors.excel_processor.pd.read_excel",
                   side_effect=ValueError("unsupported format")):
            with pytest.raises(WorkbookParseError, match="unsupported format"):
                ExcelProcessor().read_workbook(path)
