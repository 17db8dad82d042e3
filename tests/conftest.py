"""
Shared test fixtures for Marmoraria.

Provides an in-memory database with all schemas, a CLI runner, a Flask
test client and small project builders for isolated testing.
"""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from unittest.mock import patch

import pytest

# Imported up front so module loggers bind to the real stdout, not to a
# CliRunner's temporary stream.
import marmoraria.api.projects  # noqa: F401
import marmoraria.summary  # noqa: F401
from marmoraria.core.db import SCHEMA_ORDER


@pytest.fixture
def memory_db():
    """Provide an in-memory SQLite database with all schemas applied."""
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row

    schema_dir = Path(marmoraria.__file__).parent
    for module in SCHEMA_ORDER:
        schema_file = schema_dir / module / "schema.sql"
        if schema_file.exists():
            conn.executescript(schema_file.read_text(encoding="utf-8"))

    yield conn
    conn.close()


@pytest.fixture
def mock_db(memory_db):
    """Patch get_db everywhere to return the in-memory database."""

    @contextmanager
    def _get_db():
        yield memory_db

    with patch("marmoraria.core.db.get_db", _get_db), \
         patch("marmoraria.core.get_db", _get_db), \
         patch("marmoraria.api.projects.get_db", _get_db):
        yield memory_db


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()


@pytest.fixture
def app(mock_db):
    """Flask app wired to the in-memory database."""
    from marmoraria.api import create_app

    app = create_app(secret_key="test")
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()

