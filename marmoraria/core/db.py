"""
Database access for Marmoraria.

Provides connection management, schema migration and the key-value blob
store that holds the project list and the spreadsheet URL.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from marmoraria.core.config import PATHS


def get_db_path() -> Path:
    """Get database path from config."""
    return PATHS.database


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.

    The data directory is created on first use; the connection is closed
    on exit.

    Yields:
        sqlite3.Connection with Row factory enabled
    """
    db_path = get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))

    try:
        conn.execute("PRAGMA journal_mode = WAL")
        conn.row_factory = sqlite3.Row
        yield conn
    finally:
        conn.close()


# Schema files applied by migrate_all, relative to the package directory.
SCHEMA_ORDER = [
    "core",
]


def migrate_all():
    """
    Run all module schemas in order.

    Each schema.sql uses CREATE TABLE IF NOT EXISTS,
    making this safe to run repeatedly (idempotent).
    """
    from marmoraria.core.logging import get_logger

    logger = get_logger("marmoraria.migrate")
    package_dir = Path(__file__).parent.parent

    with get_db() as conn:
        for module_name in SCHEMA_ORDER:
            schema_file = package_dir / module_name / "schema.sql"
            if schema_file.exists():
                logger.info(f"Applying schema: {module_name}/schema.sql")
                conn.executescript(schema_file.read_text(encoding="utf-8"))
            else:
                logger.debug(f"No schema for module: {module_name}")

        conn.commit()
        logger.info("All schemas applied successfully")


# ---------------------------------------------------------------------------
# Key-value blobs
# ---------------------------------------------------------------------------


def get_value(conn: sqlite3.Connection, key: str) -> Optional[str]:
    """Return the blob stored under ``key``, or None."""
    row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
    return row["value"] if row else None


def set_value(conn: sqlite3.Connection, key: str, value: str) -> None:
    """Insert or replace the blob stored under ``key``."""
    conn.execute(
        """INSERT INTO kv_store (key, value, updated_at)
           VALUES (?, ?, datetime('now'))
           ON CONFLICT(key) DO UPDATE SET
               value = excluded.value,
               updated_at = excluded.updated_at""",
        (key, value),
    )
    conn.commit()


def delete_value(conn: sqlite3.Connection, key: str) -> bool:
    """Delete the blob stored under ``key``. Returns True if a row was removed."""
    cur = conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
    conn.commit()
    return cur.rowcount > 0
