"""File and directory pickers used by the application shell.

Dialog providers are defined as a Protocol so the shell can be driven by the
console prompts below, by a GUI front end, or by a test double.
"""

import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, runtime_checkable

import click


# Extensions offered by the workbook picker
WORKBOOK_EXTENSIONS = (".xlsx", ".xlsm", ".xltx", ".xltm", ".xls")


@dataclass
class FilePickResult:
    """Outcome of a workbook file pick."""
    accepted: bool
    files: List[Path] = field(default_factory=list)


@dataclass
class DirectoryPickResult:
    """Outcome of an output directory pick."""
    accepted: bool
    directory: Optional[Path] = None


@runtime_checkable
class DialogProvider(Protocol):
    """Picks workbook files and an output directory."""

    def pick_files(self) -> FilePickResult:
        """Ask for one or more workbook files."""
        ...

    def pick_output_directory(self) -> DirectoryPickResult:
        """Ask for the output directory."""
        ...


def parse_path_list(text: str) -> List[Path]:
    """Split a prompt answer into paths.

    Paths are separated by whitespace. Single or double quotes keep a path
    containing spaces or commas together. Backslashes are taken literally.

    Args:
        text: Raw answer, possibly spanning several lines

    Returns:
        Paths with ``~`` expanded, in the order given

    Raises:
        ValueError: If a quote is left open
    """
    lexer = shlex.shlex(text or "", posix=True)
    lexer.whitespace_split = True
    lexer.escape = ""
    lexer.commenters = ""
    return [Path(token).expanduser() for token in lexer if token]


class ConsoleDialogs:
    """Dialog provider backed by click prompts.

    Entering nothing cancels the pick. Files without a workbook extension
    are kept, with a warning on stderr.
    """

    def __init__(self, extensions=WORKBOOK_EXTENSIONS):
        self.extensions = tuple(ext.lower() for ext in extensions)

    def pick_files(self) -> FilePickResult:
        text = click.prompt(
            "Workbook files (space separated, quote paths with spaces; empty to cancel)",
            default="", show_default=False
        )
        try:
            files = parse_path_list(text)
        except ValueError as e:
            click.echo(f"Cannot read file list: {e}", err=True)
            return FilePickResult(accepted=False)

        for path in files:
            if path.suffix.lower() not in self.extensions:
                click.echo(f"Warning: {path} does not look like an Excel workbook", err=True)

        if not files:
            return FilePickResult(accepted=False)
        return FilePickResult(accepted=True, files=files)

    def pick_output_directory(self) -> DirectoryPickResult:
        text = click.prompt(
            "Output directory (empty to cancel)", default="", show_default=False
        ).strip()
        if not text:
            return DirectoryPickResult(accepted=False)
        return DirectoryPickResult(accepted=True, directory=Path(text).expanduser())
