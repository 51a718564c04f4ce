"""Command-line interface for the Excel sheet to CSV converter.

This module provides a CLI with support for:
- Batch conversion of workbooks into one CSV file per sheet
- Interactive conversion with remembered selection
- Configuration validation
- Inspecting and clearing the remembered selection
"""

import sys
from pathlib import Path
from typing import Optional, Tuple

import click

from excel_sheet_csv import __version__
from excel_sheet_csv.app.dialogs import ConsoleDialogs
from excel_sheet_csv.app.shell import ConverterApp, format_summary
from excel_sheet_csv.config.config_manager import ConfigurationError, config_manager
from excel_sheet_csv.generators.csv_generator import FileWriteError
from excel_sheet_csv.models.data_models import Config, ConversionRequest
from excel_sheet_csv.settings.settings_store import SettingsError, SettingsStore
from excel_sheet_csv.sheet_csv_converter import InvalidInputError, build_pipeline
from excel_sheet_csv.utils.logger import setup_logging
from excel_sheet_csv.utils.metrics import get_metrics_collector


def _load_config(ctx: click.Context) -> Config:
    """Load configuration for a subcommand and set up logging."""
    try:
        config = config_manager.load_config(ctx.obj.get('config_path'))
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    setup_logging(config.logging)
    return config


def _echo_summary(summary) -> None:
    for line in format_summary(summary):
        click.echo(line)


def _echo_operation_stats() -> None:
    """Display per-operation timings of the run that just finished."""
    collector = get_metrics_collector()
    run_id = collector.latest_run_id()
    click.echo()
    click.echo(f"=== Operation Timings (run {run_id or '-'}) ===")
    for row in collector.stats(run_id):
        line = (
            f"{row.name}: {row.count} run(s), {row.failures} failed, "
            f"avg {row.average_ms:.1f}ms, max {row.max_ms:.1f}ms"
        )
        if row.errors:
            line += " (" + ", ".join(f"{k}: {v}" for k, v in sorted(row.errors.items())) + ")"
        click.echo(line)


@click.group(invoke_without_command=True)
@click.option('--config', '-c', type=click.Path(exists=True), help='Configuration file path')
@click.option('--version', is_flag=True, help='Show version information')
@click.pass_context
def main(ctx: click.Context, config: Optional[str], version: bool) -> None:
    """Excel Sheet to CSV - convert every sheet of a workbook to its own CSV file.

    Sheets with non-ASCII names are skipped, and empty columns and columns
    with Korean headers are removed before writing.
    """
    if version:
        click.echo(f"Excel Sheet to CSV v{__version__}")
        return

    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@main.command()
@click.argument('files', nargs=-1, type=click.Path(path_type=Path))
@click.option('--output', '-o', type=click.Path(file_okay=False, path_type=Path),
              help='Output directory')
@click.option('--all-sheets', is_flag=True, help='Also convert sheets with non-ASCII names')
@click.option('--overwrite', is_flag=True, help='Overwrite existing CSV files')
@click.option('--delimiter', '-d', default=None, help='CSV field delimiter (one character)')
@click.option('--no-bom', is_flag=True, help='Do not write the UTF-8 byte-order mark')
@click.option('--use-last', is_flag=True,
              help='Use the remembered files and output directory when not given')
@click.option('--stats', is_flag=True, help='Print per-operation timings after the summary')
@click.pass_context
def convert(
    ctx: click.Context,
    files: Tuple[Path, ...],
    output: Optional[Path],
    all_sheets: bool,
    overwrite: bool,
    delimiter: Optional[str],
    no_bom: bool,
    use_last: bool,
    stats: bool
) -> None:
    """Convert workbooks to CSV files, one file per sheet.

    FILES: Paths to the Excel workbooks to convert
    """
    config = _load_config(ctx)
    output_config = config.output_config
    store = SettingsStore(config.settings_path)
    settings = store.load()

    if not files and use_last:
        files = tuple(settings.last_files)
    if output is None and use_last:
        output = settings.last_output_dir
    if output is None:
        output = output_config.folder

    try:
        request = ConversionRequest(
            files=files,
            output_dir=output,
            only_ascii_sheets=output_config.only_ascii_sheets and not all_sheets,
            delimiter=delimiter if delimiter is not None else output_config.delimiter,
            include_bom=output_config.include_bom and not no_bom,
            overwrite_existing=output_config.overwrite_existing or overwrite,
        )
        pipeline = build_pipeline(config)
        pipeline.validate_request(request)
    except (ValueError, InvalidInputError) as e:
        click.echo(f"Invalid input: {e}", err=True)
        sys.exit(1)

    settings.last_files = list(request.files)
    settings.last_output_dir = request.output_dir
    try:
        store.save(settings)
    except SettingsError as e:
        click.echo(f"Warning: {e}", err=True)

    try:
        summary = pipeline.run(request)
    except FileWriteError as e:
        click.echo(f"Conversion error: {e}", err=True)
        sys.exit(1)
    finally:
        pipeline.shutdown()

    _echo_summary(summary)
    if stats:
        _echo_operation_stats()
    if summary.has_errors:
        sys.exit(1)


@main.command()
@click.option('--all-sheets', is_flag=True, help='Also convert sheets with non-ASCII names')
@click.option('--overwrite', is_flag=True, help='Overwrite existing CSV files')
@click.pass_context
def interactive(ctx: click.Context, all_sheets: bool, overwrite: bool) -> None:
    """Pick files and an output directory at the prompt, then convert.

    The previous selection is offered again and kept when a pick is cancelled.
    """
    config = _load_config(ctx)
    pipeline = build_pipeline(config)
    app = ConverterApp(pipeline, SettingsStore(config.settings_path), ConsoleDialogs(), config)

    try:
        if app.selected_files:
            click.echo("Remembered files:")
            for path in app.selected_files:
                click.echo(f"  {path}")
        if not app.pick_files() and app.selected_files:
            click.echo("Keeping remembered files")

        if app.output_dir:
            click.echo(f"Remembered output directory: {app.output_dir}")
        if not app.pick_output_directory() and app.output_dir:
            click.echo("Keeping remembered output directory")

        summary = app.convert(
            only_ascii_sheets=False if all_sheets else None,
            overwrite_existing=True if overwrite else None,
        )
    except InvalidInputError as e:
        click.echo(f"Invalid input: {e}", err=True)
        sys.exit(1)
    except (SettingsError, FileWriteError) as e:
        click.echo(f"Conversion error: {e}", err=True)
        sys.exit(1)
    finally:
        pipeline.shutdown()

    _echo_summary(summary)
    if summary.has_errors:
        sys.exit(1)


@main.command()
@click.pass_context
def config_check(ctx: click.Context) -> None:
    """Validate and display current configuration."""
    config_path = ctx.obj.get('config_path')

    try:
        click.echo("Loading and validating configuration...")
        config = config_manager.load_config(config_path)
    except ConfigurationError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)

    output = config.output_config
    cleanup = config.column_cleanup
    click.echo("✓ Configuration loaded successfully")
    click.echo()
    click.echo("Configuration Summary:")
    click.echo(f"  Output folder: {output.folder or 'Not set'}")
    click.echo(f"  Delimiter: {output.delimiter!r}")
    click.echo(f"  Include BOM: {output.include_bom}")
    click.echo(f"  Only ASCII sheet names: {output.only_ascii_sheets}")
    click.echo(f"  Overwrite existing: {output.overwrite_existing}")
    click.echo(f"  Remove empty columns: {cleanup.remove_empty}")
    click.echo(f"  Remove script-header columns: {cleanup.remove_script_headers}")
    click.echo(f"  Script pattern: {cleanup.script_pattern}")
    click.echo(f"  Max file size: {config.max_file_size_mb}MB")
    click.echo(f"  Settings file: {SettingsStore(config.settings_path).path}")
    click.echo(f"  Logging level: {config.logging.level}")


@main.command()
@click.option('--clear', is_flag=True, help='Forget the remembered selection')
@click.pass_context
def settings(ctx: click.Context, clear: bool) -> None:
    """Show or clear the remembered files and output directory."""
    config = _load_config(ctx)
    store = SettingsStore(config.settings_path)

    if clear:
        try:
            store.clear()
        except SettingsError as e:
            click.echo(f"Settings error: {e}", err=True)
            sys.exit(1)
        click.echo("Remembered selection cleared")
        return

    current = store.load()
    click.echo(f"Settings file: {store.path}")
    click.echo(f"Last output directory: {current.last_output_dir or 'Not set'}")
    click.echo(f"Last files: {len(current.last_files)}")
    for path in current.last_files:
        click.echo(f"  {path}")


if __name__ == '__main__':
    main()
