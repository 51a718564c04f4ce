"""Column removal for sheets.

SheetTransformer produces a new Sheet without the given columns; remaining
columns are renumbered from 0 in their original order and rows keep their
indices. The input sheet is never modified.
"""

from typing import AbstractSet, Dict

from excel_sheet_csv.models.data_models import CellRange, Sheet
from excel_sheet_csv.utils.logger import get_processing_logger


class SheetTransformer:
    """Rewrites sheets by excising columns."""

    def __init__(self):
        self.logger = get_processing_logger(__name__)

    def remove_columns(self, sheet: Sheet, columns: AbstractSet[int]) -> Sheet:
        """Return a copy of ``sheet`` without ``columns``.

        Args:
            sheet: Source sheet
            columns: Column indices to remove, within the declared range

        Returns:
            The source sheet when ``columns`` is empty, otherwise a new Sheet

        Raises:
            ValueError: If a column lies outside the declared range
        """
        if not columns:
            return sheet

        dims = sheet.dimensions
        if dims is None:
            raise ValueError("cannot remove columns from a sheet without a range")

        outside = sorted(c for c in columns if not dims.contains_column(c))
        if outside:
            raise ValueError(
                f"columns {outside} outside range {dims.min_col}..{dims.max_col}"
            )

        mapping: Dict[int, int] = {}
        for col in dims.column_indices:
            if col not in columns:
                mapping[col] = len(mapping)

        cells = {
            (row, mapping[col]): cell
            for (row, col), cell in sheet.cells.items()
            if col in mapping
        }

        retained = len(mapping)
        dimensions = CellRange(dims.min_row, 0, dims.max_row, retained - 1) if retained else None

        self.logger.debug(
            f"Removed {dims.column_count - retained} of {dims.column_count} columns"
        )
        return Sheet(cells=cells, dimensions=dimensions, metadata=dict(sheet.metadata))
