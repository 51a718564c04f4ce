"""Interactive front end for the Excel sheet to CSV converter.

This module provides the application shell that keeps the current file and
output directory selection, persists it between sessions, and runs
conversions through the pipeline.
"""

from .dialogs import (
    ConsoleDialogs,
    DialogProvider,
    DirectoryPickResult,
    FilePickResult,
)
from .shell import ConverterApp, format_summary

__all__ = [
    'ConsoleDialogs',
    'ConverterApp',
    'DialogProvider',
    'DirectoryPickResult',
    'FilePickResult',
    'format_summary',
]
