"""Conversion pipeline for the Excel sheet to CSV converter.

This module coordinates the components that turn a batch of workbooks into
CSV files:
- Workbook reading with per-file failure isolation
- Sheet-name filtering
- Empty / script-header column removal
- CSV encoding and collision-safe output naming
- Run summary accumulation
"""

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from excel_sheet_csv.analysis.column_analyzer import ColumnAnalyzer
from excel_sheet_csv.filters.sheet_filter import SheetFilter
from excel_sheet_csv.generators.csv_generator import CSVGenerator, FileWriteError
from excel_sheet_csv.generators.output_paths import resolve_unique_path, sanitize_sheet_name
from excel_sheet_csv.models.data_models import (
    ConversionRequest,
    ConversionSummary,
    Sheet,
    Workbook,
)
from excel_sheet_csv.processors.excel_processor import ExcelProcessor, WorkbookParseError
from excel_sheet_csv.transform.sheet_transformer import SheetTransformer
from excel_sheet_csv.utils.logger import get_processing_logger
from excel_sheet_csv.utils.logging_decorators import operation_context
from excel_sheet_csv.utils.run_context import RunContext


class InvalidInputError(Exception):
    """Raised when a conversion request cannot be started."""
    pass


class ConversionPipeline:
    """Converts workbooks into one CSV file per eligible sheet.

    Files are processed sequentially in request order. A file that cannot be
    read or written is recorded in the summary and the run continues with the
    next file.

    Example:
        >>> pipeline = ConversionPipeline()
        >>> summary = pipeline.run(ConversionRequest(files=("a.xlsx",), output_dir="out"))
        >>> summary.converted_count
        2
    """

    def __init__(
        self,
        excel_processor: Optional[ExcelProcessor] = None,
        column_analyzer: Optional[ColumnAnalyzer] = None,
        sheet_transformer: Optional[SheetTransformer] = None,
        csv_generator: Optional[CSVGenerator] = None
    ):
        """Initialize conversion pipeline.

        Args:
            excel_processor: Workbook reader (default ExcelProcessor())
            column_analyzer: Column classifier (default ColumnAnalyzer())
            sheet_transformer: Column remover (default SheetTransformer())
            csv_generator: CSV encoder/writer (default CSVGenerator())
        """
        self.excel_processor = excel_processor or ExcelProcessor()
        self.column_analyzer = column_analyzer or ColumnAnalyzer()
        self.sheet_transformer = sheet_transformer or SheetTransformer()
        self.csv_generator = csv_generator or CSVGenerator()
        self.logger = get_processing_logger(__name__)
        self._executor: Optional[ThreadPoolExecutor] = None

    def validate_request(self, request: ConversionRequest) -> None:
        """Check that a request can be run.

        Raises:
            InvalidInputError: If no files are given or no output directory is set
        """
        if not request.files:
            raise InvalidInputError("No workbook files were selected.")
        if request.output_dir is None:
            raise InvalidInputError("No output directory was specified.")

    def run(self, request: ConversionRequest) -> ConversionSummary:
        """Run one conversion.

        Args:
            request: Files, output directory and options

        Returns:
            Summary of converted, skipped and failed items

        Raises:
            InvalidInputError: If the request is incomplete (nothing is written)
            FileWriteError: If the output directory cannot be created
        """
        self.validate_request(request)

        with RunContext() as run_id:
            self.logger.info(
                f"Starting conversion of {len(request.files)} file(s) into {request.output_dir}",
                extra={
                    "structured": {
                        "operation": "conversion_start",
                        "run_id": run_id,
                        "files": [str(f) for f in request.files],
                        "output_dir": str(request.output_dir),
                        "only_ascii_sheets": request.only_ascii_sheets,
                        "delimiter": request.delimiter,
                        "include_bom": request.include_bom,
                        "overwrite_existing": request.overwrite_existing,
                    }
                }
            )

            try:
                request.output_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise FileWriteError(
                    f"Cannot create output directory {request.output_dir}: {e.strerror or e}",
                    request.output_dir
                ) from e

            summary = ConversionSummary()
            sheet_filter = SheetFilter(request.only_ascii_sheets)

            for file_path in request.files:
                with operation_context("convert_file", self.logger, file_path=str(file_path)):
                    try:
                        workbook = self.excel_processor.read_workbook(file_path)
                        self._convert_workbook(workbook, request, sheet_filter, summary)
                    except (WorkbookParseError, FileWriteError) as e:
                        summary.add_error(file_path, str(e))
                        self.logger.log_file_failed(file_path, e)

            self.logger.info(
                f"Conversion finished: {summary.converted_count} converted, "
                f"{summary.skipped_sheet_count} skipped, {len(summary.errors)} failed file(s)",
                extra={"structured": {"operation": "conversion_complete", **summary.to_dict()}}
            )
            return summary

    def submit(self, request: ConversionRequest) -> "Future[ConversionSummary]":
        """Run a conversion on the background worker.

        Runs submitted this way execute one at a time in submission order.
        Validation happens immediately so an incomplete request raises here.

        Args:
            request: Files, output directory and options

        Returns:
            Future resolving to the run summary
        """
        self.validate_request(request)
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ConversionRun")
        return self._executor.submit(self.run, request)

    def shutdown(self, wait: bool = True) -> None:
        """Stop the background worker."""
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None

    def _convert_workbook(
        self,
        workbook: Workbook,
        request: ConversionRequest,
        sheet_filter: SheetFilter,
        summary: ConversionSummary
    ) -> None:
        for sheet_name, sheet in workbook.sheets:
            if not sheet_filter.accepts(sheet_name):
                summary.skipped_sheet_count += 1
                self.logger.log_sheet_skipped(workbook.source_file, sheet_name, "non_ascii_name")
                continue

            cleaned = self._clean_sheet(sheet_name, sheet, summary)
            data = self.csv_generator.encode(cleaned, request.delimiter, request.include_bom)

            target = request.output_dir / f"{sanitize_sheet_name(sheet_name)}.csv"
            if not request.overwrite_existing:
                target = resolve_unique_path(target)

            written = self.csv_generator.write(data, target)
            summary.converted_count += 1
            summary.output_files.append(written)
            self.logger.log_csv_written(written, sheet_name, len(data))

    def _clean_sheet(self, sheet_name: str, sheet: Sheet, summary: ConversionSummary) -> Sheet:
        analysis = self.column_analyzer.analyze(sheet)
        summary.removed_empty_column_count += len(analysis.empty_columns)
        summary.removed_script_header_column_count += len(analysis.script_header_columns)

        if not analysis.columns_to_remove:
            return sheet

        self.logger.log_columns_removed(
            sheet_name, analysis.empty_columns, analysis.script_header_columns
        )
        return self.sheet_transformer.remove_columns(sheet, analysis.columns_to_remove)


def build_pipeline(config) -> ConversionPipeline:
    """Build a pipeline wired from application configuration.

    Args:
        config: Loaded Config

    Returns:
        ConversionPipeline using the configured column rules and size limit
    """
    cleanup = config.column_cleanup
    return ConversionPipeline(
        excel_processor=ExcelProcessor(max_file_size_mb=config.max_file_size_mb),
        column_analyzer=ColumnAnalyzer(
            remove_empty=cleanup.remove_empty,
            remove_script_headers=cleanup.remove_script_headers,
            script_pattern=cleanup.script_pattern,
        ),
    )
