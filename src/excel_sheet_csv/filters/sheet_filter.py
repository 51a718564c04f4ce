"""Sheet eligibility by name."""

import re


VISIBLE_ASCII_NAME = re.compile(r"[\x20-\x7E]+")


class SheetFilter:
    """Decides whether a sheet is converted, based on its name.

    With ``only_ascii_sheets`` set, only non-empty names made entirely of
    visible ASCII characters (U+0020 to U+007E) are accepted.
    """

    def __init__(self, only_ascii_sheets: bool = True):
        self.only_ascii_sheets = only_ascii_sheets

    def accepts(self, sheet_name: str) -> bool:
        if not self.only_ascii_sheets:
            return True
        return bool(sheet_name) and VISIBLE_ASCII_NAME.fullmatch(sheet_name) is not None
