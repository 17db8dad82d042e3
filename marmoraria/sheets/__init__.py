"""
Marmoraria Sheets Module

CSV import/export and published Google Sheet sync.
"""

from marmoraria.sheets.adapters import (
    HeaderCsvAdapter,
    ParseResult,
    PublishedSheetAdapter,
    SpreadsheetAdapter,
)
from marmoraria.sheets.export import export_csv, export_filename, export_xlsx
from marmoraria.sheets.sync import SheetSync, SyncResult, get_sheet_url, set_sheet_url

__all__ = [
    "HeaderCsvAdapter",
    "ParseResult",
    "PublishedSheetAdapter",
    "SheetSync",
    "SpreadsheetAdapter",
    "SyncResult",
    "export_csv",
    "export_filename",
    "export_xlsx",
    "get_sheet_url",
    "set_sheet_url",
]
