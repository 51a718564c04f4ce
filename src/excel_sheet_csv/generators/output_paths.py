"""Output file naming for generated CSV files.

Sheet names become file base names through ``sanitize_sheet_name``;
``resolve_unique_path`` then picks a destination that does not clobber an
existing file.
"""

import re
from pathlib import Path
from typing import Optional, Union


DEFAULT_SHEET_FALLBACK = "sheet"

_WHITESPACE_RUN = re.compile(r"\s+")
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_sheet_name(name: Optional[str], fallback: str = DEFAULT_SHEET_FALLBACK) -> str:
    """Turn a sheet name into a safe file base name.

    Whitespace runs become a single underscore and every character other
    than ASCII letters, digits, ``.``, ``_`` and ``-`` is dropped.

    Args:
        name: Raw sheet name, possibly empty or None
        fallback: Value returned when nothing survives sanitizing

    Returns:
        Sanitized base name (never empty when fallback is non-empty)

    Example:
        >>> sanitize_sheet_name("  Q1 sales / 2024 ")
        'Q1_sales__2024'
    """
    cleaned = _WHITESPACE_RUN.sub("_", (name or "").strip())
    cleaned = _UNSAFE_CHARS.sub("", cleaned)
    return cleaned or fallback


def resolve_unique_path(path: Union[str, Path]) -> Path:
    """Return ``path`` or the first free ``<stem>_<n><suffix>`` variant.

    Only checks for existence; nothing is created.

    Args:
        path: Desired output path

    Returns:
        Path at which no file currently exists
    """
    path = Path(path)
    if not path.exists():
        return path

    counter = 1
    while True:
        candidate = path.with_name(f"{path.stem}_{counter}{path.suffix}")
        if not candidate.exists():
            return candidate
        counter += 1
