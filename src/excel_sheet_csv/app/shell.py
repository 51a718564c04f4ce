"""Application shell for the Excel sheet to CSV converter.

The shell owns the current selection (workbook files and output directory),
keeps it in the settings store, and turns it into conversion requests for
the pipeline.
"""

from pathlib import Path
from typing import List, Optional

from excel_sheet_csv.app.dialogs import DialogProvider
from excel_sheet_csv.models.data_models import Config, ConversionRequest, ConversionSummary
from excel_sheet_csv.settings.settings_store import SettingsStore
from excel_sheet_csv.sheet_csv_converter import ConversionPipeline, InvalidInputError
from excel_sheet_csv.utils.logger import get_processing_logger


def format_summary(summary: ConversionSummary) -> List[str]:
    """Render a run summary as user-facing log lines.

    Args:
        summary: Completed run summary

    Returns:
        Lines in display order
    """
    lines = [
        f"Converted: {summary.converted_count} sheet(s)",
        f"Skipped (non-ASCII sheet names): {summary.skipped_sheet_count}",
    ]
    if summary.removed_empty_column_count:
        lines.append(f"Removed empty columns: {summary.removed_empty_column_count}")
    if summary.removed_script_header_column_count:
        lines.append(
            f"Removed script-header columns: {summary.removed_script_header_column_count}"
        )
    if summary.errors:
        lines.append(f"Failed files: {len(summary.errors)}")
        lines.extend(f"- {error.file}: {error.message}" for error in summary.errors)
    return lines


class ConverterApp:
    """Front end tying dialogs, settings and the pipeline together.

    Example:
        >>> app = ConverterApp(ConversionPipeline(), SettingsStore(), ConsoleDialogs())
        >>> app.pick_files()
        >>> app.pick_output_directory()
        >>> for line in format_summary(app.convert()):
        ...     print(line)
    """

    def __init__(
        self,
        pipeline: ConversionPipeline,
        settings_store: SettingsStore,
        dialogs: DialogProvider,
        config: Optional[Config] = None
    ):
        self.pipeline = pipeline
        self.settings_store = settings_store
        self.dialogs = dialogs
        self.config = config or Config()
        self.logger = get_processing_logger(__name__)

        self.settings = self.settings_store.load()
        if self.settings.last_output_dir is None and self.config.output_config.folder:
            self.settings.last_output_dir = self.config.output_config.folder

    @property
    def selected_files(self) -> List[Path]:
        return list(self.settings.last_files)

    @property
    def output_dir(self) -> Optional[Path]:
        return self.settings.last_output_dir

    def pick_files(self) -> bool:
        """Ask for workbook files and remember them.

        Returns:
            True if a selection was made
        """
        result = self.dialogs.pick_files()
        if not result.accepted or not result.files:
            return False

        self.settings.last_files = list(result.files)
        self.settings_store.save(self.settings)
        self.logger.info(f"Selected {len(result.files)} workbook file(s)")
        return True

    def pick_output_directory(self) -> bool:
        """Ask for the output directory and remember it.

        Returns:
            True if a directory was chosen
        """
        result = self.dialogs.pick_output_directory()
        if not result.accepted or result.directory is None:
            return False

        self.settings.last_output_dir = result.directory
        self.settings_store.save(self.settings)
        self.logger.info(f"Selected output directory {result.directory}")
        return True

    def build_request(
        self,
        only_ascii_sheets: Optional[bool] = None,
        overwrite_existing: Optional[bool] = None
    ) -> ConversionRequest:
        """Build a request from the current selection and configuration.

        Raises:
            InvalidInputError: If no files or no output directory are selected
        """
        if not self.settings.last_files:
            raise InvalidInputError("Select at least one Excel file first.")
        if self.settings.last_output_dir is None:
            raise InvalidInputError("Select an output folder first.")

        output = self.config.output_config
        return ConversionRequest(
            files=tuple(self.settings.last_files),
            output_dir=self.settings.last_output_dir,
            only_ascii_sheets=(
                output.only_ascii_sheets if only_ascii_sheets is None else only_ascii_sheets
            ),
            delimiter=output.delimiter,
            include_bom=output.include_bom,
            overwrite_existing=(
                output.overwrite_existing if overwrite_existing is None else overwrite_existing
            ),
        )

    def convert(
        self,
        only_ascii_sheets: Optional[bool] = None,
        overwrite_existing: Optional[bool] = None
    ) -> ConversionSummary:
        """Convert the current selection.

        Args:
            only_ascii_sheets: Override the configured sheet filter
            overwrite_existing: Override the configured overwrite behavior

        Returns:
            Run summary

        Raises:
            InvalidInputError: If nothing is selected
        """
        request = self.build_request(only_ascii_sheets, overwrite_existing)
        return self.pipeline.submit(request).result()
