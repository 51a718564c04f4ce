"""Column analysis for sheet cleanup.

The ColumnAnalyzer classifies each column of a sheet's declared range:
- Empty columns: blank header, or nothing below the header
- Script-header columns: header text written in the configured script
  (Hangul syllables by default)

Both rules are evaluated independently so callers can count each removal
reason even when one column matches both.
"""

import re
from typing import Optional, Pattern, Union

from excel_sheet_csv.models.data_models import (
    DEFAULT_SCRIPT_PATTERN,
    Cell,
    ColumnAnalysis,
    Sheet,
)
from excel_sheet_csv.utils.logger import get_processing_logger


def _is_blank_data_cell(cell: Optional[Cell]) -> bool:
    return cell is None or cell.value is None or cell.value == ""


class ColumnAnalyzer:
    """Finds columns to remove from a sheet.

    Example:
        >>> analyzer = ColumnAnalyzer()
        >>> analysis = analyzer.analyze(sheet)
        >>> sorted(analysis.columns_to_remove)
        [1, 3]
    """

    def __init__(
        self,
        remove_empty: bool = True,
        remove_script_headers: bool = True,
        script_pattern: Union[str, Pattern[str]] = DEFAULT_SCRIPT_PATTERN
    ):
        """Initialize column analyzer.

        Args:
            remove_empty: Whether empty columns are scheduled for removal
            remove_script_headers: Whether script-header columns are scheduled
            script_pattern: Regular expression matching the target script
        """
        self.remove_empty = remove_empty
        self.remove_script_headers = remove_script_headers
        self.script_pattern = re.compile(script_pattern) if isinstance(script_pattern, str) else script_pattern
        self.logger = get_processing_logger(__name__)

    def _header(self, sheet: Sheet, col: int) -> Optional[Cell]:
        if sheet.dimensions is None:
            return None
        return sheet.get(sheet.dimensions.min_row, col)

    def is_empty_column(self, sheet: Sheet, col: int) -> bool:
        """Check whether a column counts as empty.

        A blank header (absent, None, or whitespace-only text) makes the
        column empty regardless of the data below it. Otherwise the column is
        empty when every cell below the header is absent, None or ``""``.

        Args:
            sheet: Sheet to inspect
            col: Column index within the declared range

        Returns:
            True if the column is empty
        """
        if sheet.dimensions is None:
            return True

        header = self._header(sheet, col)
        if header is None or header.value is None or not header.text.strip():
            return True

        below = range(sheet.dimensions.min_row + 1, sheet.dimensions.max_row + 1)
        return all(_is_blank_data_cell(sheet.get(row, col)) for row in below)

    def has_script_header(self, sheet: Sheet, col: int) -> bool:
        """Check whether the header text contains the target script.

        Args:
            sheet: Sheet to inspect
            col: Column index within the declared range

        Returns:
            True if the header matches the script pattern
        """
        header = self._header(sheet, col)
        if header is None or header.value is None:
            return False
        return self.script_pattern.search(header.text) is not None

    def analyze(self, sheet: Sheet) -> ColumnAnalysis:
        """Classify every column of the sheet's declared range.

        Args:
            sheet: Sheet to analyze

        Returns:
            ColumnAnalysis with empty and script-header column sets
        """
        if sheet.dimensions is None:
            return ColumnAnalysis()

        empty = set()
        script = set()
        for col in sheet.dimensions.column_indices:
            if self.remove_empty and self.is_empty_column(sheet, col):
                empty.add(col)
            if self.remove_script_headers and self.has_script_header(sheet, col):
                script.add(col)

        self.logger.debug(
            f"Column analysis: {sheet.dimensions.column_count} columns, "
            f"{len(empty)} empty, {len(script)} script-header"
        )
        return ColumnAnalysis(empty_columns=frozenset(empty), script_header_columns=frozenset(script))
