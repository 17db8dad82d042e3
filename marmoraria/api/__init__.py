"""
Marmoraria Web Application Factory

Flask app that registers the projects blueprint.
Mirrors how cli/main.py assembles module CLIs.
"""

import os
from pathlib import Path

from flask import Flask, jsonify

import marmoraria


def _get_or_create_secret() -> str:
    """Resolve SECRET_KEY with priority: env var > config > file > generate.

    On first run with no key configured, generates a random key and persists
    it next to the database so sessions survive server restarts.
    """
    from marmoraria.core.config import get_config_value, PATHS

    # 1. Environment variable
    env_key = os.environ.get("MARMORARIA_SECRET_KEY")
    if env_key:
        return env_key

    # 2. config.yaml server.secret_key
    cfg_key = get_config_value("server", "secret_key")
    if cfg_key:
        return cfg_key

    # 3. Persistent file in data directory
    key_file = Path(PATHS.database).parent / ".secret_key"
    if key_file.exists():
        stored = key_file.read_text().strip()
        if stored:
            return stored

    # 4. Generate, persist, and return
    new_key = os.urandom(32).hex()
    key_file.parent.mkdir(parents=True, exist_ok=True)
    key_file.write_text(new_key)
    return new_key


def create_app(secret_key: str = None) -> Flask:
    """Create and configure the Marmoraria Flask application."""
    app = Flask(__name__)

    app.config["SECRET_KEY"] = secret_key or _get_or_create_secret()
    app.json.sort_keys = False

    # ── Security headers ─────────────────────────────────────────────────
    @app.after_request
    def set_security_headers(response):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        return response

    # ── Long-lived services (one per process) ────────────────────────────
    from marmoraria.sheets.sync import SheetSync
    from marmoraria.summary import SummaryService

    app.extensions["summary_service"] = SummaryService()
    app.extensions["sheet_sync"] = SheetSync()

    # ── Blueprints ───────────────────────────────────────────────────────
    from marmoraria.api.projects import bp as projects_bp

    app.register_blueprint(projects_bp)

    @app.route("/health")
    def health():
        return jsonify({"status": "ok", "version": marmoraria.__version__})

    return app
