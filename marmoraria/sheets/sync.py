"""
Published-sheet sync.

Fetches the shop's published Google Sheet (CSV output), parses it with a
spreadsheet adapter, and swaps every synced project in the store for the
fresh set. Manually entered projects are never touched.

Usage (CLI):
    marmoraria sheets url "https://docs.google.com/.../pub?output=csv"
    marmoraria sheets sync

Usage (Python):
    from marmoraria.sheets.sync import SheetSync, get_sheet_url
    with get_db() as conn:
        store = ProjectStore.load(conn)
        result = SheetSync().run(conn, store, get_sheet_url(conn))
"""

import csv
import sqlite3
from dataclasses import dataclass, field
from typing import List, Optional

import requests

from marmoraria.core import get_config_value, get_logger
from marmoraria.core.db import delete_value, get_value, set_value
from marmoraria.projects.store import ProjectStore
from marmoraria.sheets.adapters import PublishedSheetAdapter, SpreadsheetAdapter

logger = get_logger("marmoraria.sheets.sync")

DEFAULT_SHEET_URL_KEY = "marmore-sheet-url"
DEFAULT_TIMEOUT_SECONDS = 15

SYNC_ERROR_NOTICE = "Could not read the spreadsheet. Check that the link is correct and published as CSV."
NO_URL_NOTICE = "No spreadsheet link configured."


@dataclass
class SyncResult:
    ok: bool
    message: str
    parsed: int = 0
    skipped: int = 0
    added: List[str] = field(default_factory=list)
    replaced: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "message": self.message,
            "parsed": self.parsed,
            "skipped": self.skipped,
            "added": self.added,
            "replaced": self.replaced,
            "removed": self.removed,
        }


class SheetSync:
    """
    One fetch-parse-replace cycle against a published sheet.

    ``in_progress`` is set for the duration of ``run`` so a UI can disable its
    sync control; it does not block a second call.
    """

    def __init__(
        self,
        adapter: Optional[SpreadsheetAdapter] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.adapter = adapter or PublishedSheetAdapter()
        self.timeout = timeout or get_config_value(
            "sync", "timeout_seconds", default=DEFAULT_TIMEOUT_SECONDS
        )
        self.session = session or requests.Session()
        self.in_progress = False

    def fetch(self, url: str) -> str:
        """Download the sheet text. Raises requests.RequestException on failure."""
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        response.encoding = "utf-8"
        return response.text

    def run(self, conn: sqlite3.Connection, store: ProjectStore, url: Optional[str]) -> SyncResult:
        """
        Fetch, parse and merge. Network and parse failures come back as a
        failed SyncResult; a failure to persist raises PersistenceError.
        """
        if not url:
            return SyncResult(ok=False, message=NO_URL_NOTICE)

        if self.in_progress:
            logger.warning("Sync requested while another is running; last one wins")

        self.in_progress = True
        try:
            text = self.fetch(url)
            parsed = self.adapter.parse(text)
            if not parsed.projects:
                logger.warning("Sync parsed no rows from %s", url)
                return SyncResult(ok=False, message=parsed.notice, skipped=parsed.skipped)

            merge = store.replace_external(parsed.projects)
            store.save(conn)
        except requests.RequestException as e:
            logger.error("Sync fetch failed for %s: %s", url, e)
            return SyncResult(ok=False, message=SYNC_ERROR_NOTICE)
        except (ValueError, ArithmeticError, csv.Error) as e:
            logger.error("Sync parse failed for %s: %s", url, e)
            return SyncResult(ok=False, message=SYNC_ERROR_NOTICE)
        finally:
            self.in_progress = False

        logger.info(
            "Sync complete: %d added, %d updated, %d removed",
            len(merge.added), len(merge.replaced), len(merge.removed),
        )
        return SyncResult(
            ok=True,
            message=f"Synced {len(parsed.projects)} project(s) from the spreadsheet.",
            parsed=len(parsed.projects),
            skipped=parsed.skipped,
            added=merge.added,
            replaced=merge.replaced,
            removed=merge.removed,
        )


# ---------------------------------------------------------------------------
# Sheet URL setting
# ---------------------------------------------------------------------------


def sheet_url_key() -> str:
    return get_config_value("storage", "sheet_url_key", default=DEFAULT_SHEET_URL_KEY)


def get_sheet_url(conn: sqlite3.Connection) -> str:
    return get_value(conn, sheet_url_key()) or ""


def set_sheet_url(conn: sqlite3.Connection, url: str) -> str:
    """Persist the published sheet link; a blank link clears it."""
    url = (url or "").strip()
    if not url:
        delete_value(conn, sheet_url_key())
        return ""
    if not url.lower().startswith(("http://", "https://")):
        raise ValueError(f"Spreadsheet link must be an http(s) URL: {url}")
    set_value(conn, sheet_url_key(), url)
    logger.info("Spreadsheet link set")
    return url


def clear_sheet_source(conn: sqlite3.Connection, store: ProjectStore) -> int:
    """Forget the sheet link and drop every synced project. Returns the count removed."""
    delete_value(conn, sheet_url_key())
    removed = store.remove_external()
    store.save(conn)
    return removed


def should_auto_sync(store: ProjectStore, url: Optional[str]) -> bool:
    """A freshly configured link on an empty store syncs straight away."""
    return bool(url) and len(store) == 0
