"""CSV generation for the Excel sheet to CSV converter.

This module turns a Sheet into CSV bytes and writes them to disk:
- One field per column of the declared range
- Fully blank rows dropped
- Standard quoting with a configurable delimiter
- Optional UTF-8 byte-order mark
"""

import csv
from pathlib import Path
from typing import List, Union

import pandas as pd

from excel_sheet_csv.models.data_models import Sheet
from excel_sheet_csv.utils.logger import get_processing_logger
from excel_sheet_csv.utils.logging_decorators import log_operation, operation_context


UTF8_BOM = b"\xef\xbb\xbf"

LINE_TERMINATOR = "\n"

# Rows are written with CRLF so the csv writer quotes fields holding a bare CR or LF.
_WRITER_TERMINATOR = "\r\n"

QUOTE_CHAR = '"'


def _normalize_terminators(text: str) -> str:
    """Turn CRLF row separators into ``\\n``, leaving quoted field text alone."""
    parts = text.split(QUOTE_CHAR)
    parts[::2] = [part.replace(_WRITER_TERMINATOR, LINE_TERMINATOR) for part in parts[::2]]
    return QUOTE_CHAR.join(parts)


class FileWriteError(Exception):
    """Raised when a CSV file cannot be written."""

    def __init__(self, message: str, file_path: Path):
        super().__init__(message)
        self.file_path = file_path


class CSVGenerator:
    """Serializes sheets to CSV and writes the result.

    Example:
        >>> generator = CSVGenerator()
        >>> data = generator.encode(sheet, delimiter=";", include_bom=False)
        >>> generator.write(data, Path("out/Data.csv"))
    """

    def __init__(self):
        self.logger = get_processing_logger(__name__)

    def sheet_to_rows(self, sheet: Sheet) -> List[List[str]]:
        """Render the declared range as text rows, dropping blank rows.

        Args:
            sheet: Sheet to render

        Returns:
            Rows of field text, none of them fully empty
        """
        rows = []
        for cells in sheet.iter_rows():
            fields = [cell.text if cell is not None else "" for cell in cells]
            if any(fields):
                rows.append(fields)
        return rows

    def to_text(self, sheet: Sheet, delimiter: str = ",") -> str:
        """Serialize a sheet to delimited text.

        Args:
            sheet: Sheet to serialize
            delimiter: Field delimiter (single character)

        Returns:
            CSV text; lines separated by ``\\n`` without a trailing terminator
        """
        if len(delimiter) != 1:
            raise ValueError("delimiter must be a single character")

        rows = self.sheet_to_rows(sheet)
        if not rows:
            return ""

        frame = pd.DataFrame(rows, dtype=object)
        text = frame.to_csv(
            sep=delimiter,
            index=False,
            header=False,
            quoting=csv.QUOTE_MINIMAL,
            quotechar=QUOTE_CHAR,
            doublequote=True,
            lineterminator=_WRITER_TERMINATOR,
        )
        text = _normalize_terminators(text)
        if text.endswith(LINE_TERMINATOR):
            text = text[:-len(LINE_TERMINATOR)]
        return text

    @log_operation("encode_csv", log_args=False)
    def encode(self, sheet: Sheet, delimiter: str = ",", include_bom: bool = True) -> bytes:
        """Serialize a sheet to CSV bytes.

        Args:
            sheet: Sheet to serialize
            delimiter: Field delimiter
            include_bom: Prefix the UTF-8 byte-order mark

        Returns:
            UTF-8 encoded CSV content
        """
        data = self.to_text(sheet, delimiter).encode("utf-8")
        return UTF8_BOM + data if include_bom else data

    def write(self, data: bytes, output_path: Union[str, Path]) -> Path:
        """Write CSV bytes to ``output_path``.

        Args:
            data: Encoded CSV content
            output_path: Destination path (overwritten if present)

        Returns:
            The written path

        Raises:
            FileWriteError: If the file cannot be written
        """
        output_path = Path(output_path)
        with operation_context("csv_file_write", self.logger, output_path=str(output_path)) as operation:
            try:
                output_path.write_bytes(data)
            except OSError as e:
                operation.add_metadata("write_success", False)
                raise FileWriteError(
                    f"Cannot write {output_path}: {e.strerror or e}", output_path
                ) from e

            operation.add_metadata("write_success", True)
            operation.add_metadata("file_size_bytes", len(data))
        return output_path
