"""Excel Sheet to CSV.

Converts every sheet of one or more Excel workbooks into its own CSV file,
skipping sheets with non-ASCII names and removing empty columns and columns
whose header is written in Korean script.
"""

__version__ = "1.0.0"

from excel_sheet_csv.models.data_models import (
    Cell,
    CellRange,
    Config,
    ConversionRequest,
    ConversionSummary,
    Sheet,
    Workbook,
)
from excel_sheet_csv.sheet_csv_converter import ConversionPipeline, InvalidInputError
from excel_sheet_csv.processors.excel_processor import ExcelProcessor, WorkbookParseError
from excel_sheet_csv.analysis.column_analyzer import ColumnAnalyzer
from excel_sheet_csv.transform.sheet_transformer import SheetTransformer
from excel_sheet_csv.generators.csv_generator import CSVGenerator, FileWriteError

__all__ = [
    "Cell",
    "CellRange",
    "Config",
    "ConversionRequest",
    "ConversionSummary",
    "Sheet",
    "Workbook",
    "ConversionPipeline",
    "InvalidInputError",
    "ExcelProcessor",
    "WorkbookParseError",
    "ColumnAnalyzer",
    "SheetTransformer",
    "CSVGenerator",
    "FileWriteError",
]
