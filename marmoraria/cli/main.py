"""
Marmoraria CLI - Main Entry Point

Unified Typer CLI that assembles the module sub-commands.

Usage:
    marmoraria version
    marmoraria migrate
    marmoraria serve
    marmoraria projects [command]
    marmoraria sheets [command]
"""

import importlib

import typer

import marmoraria

app = typer.Typer(
    name="marmoraria",
    help="Project tracking for a marble and granite workshop.",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level"),
):
    """Project tracking for a marble and granite workshop."""
    if verbose:
        from marmoraria.core.logging import set_log_level

        set_log_level("DEBUG")


@app.command()
def version():
    """Show the installed version."""
    typer.echo(f"marmoraria {marmoraria.__version__}")


@app.command()
def migrate():
    """Create or update the database schema."""
    from marmoraria.core.db import migrate_all

    migrate_all()
    typer.echo("Database migration complete.")


@app.command()
def serve(
    port: int = typer.Option(None, "--port", "-p", help="Port number (default from config)"),
    host: str = typer.Option(None, "--host", "-h", help="Host address (default: 0.0.0.0 prod, 127.0.0.1 debug)"),
    debug: bool = typer.Option(False, "--debug", help="Use Flask dev server with auto-reload (localhost only)"),
    threads: int = typer.Option(None, "--threads", "-t", help="Waitress worker threads (production only)"),
):
    """Launch the JSON API.

    Default: Waitress production server on 0.0.0.0 (LAN accessible).
    With --debug: Flask dev server on 127.0.0.1 with auto-reload.
    """
    from marmoraria.api import create_app
    from marmoraria.core import get_config_value
    from marmoraria.core.db import migrate_all

    port = port or get_config_value("server", "port", default=5000)
    threads = threads or get_config_value("server", "threads", default=8)

    migrate_all()
    web = create_app()

    if debug:
        _host = host or "127.0.0.1"
        typer.echo(f"Starting Flask dev server at http://{_host}:{port}")
        web.run(host=_host, port=port, debug=True)
        return

    from waitress import serve as waitress_serve

    _host = host or "0.0.0.0"
    typer.echo(f"Starting Waitress production server on {_host}:{port} ({threads} threads)")
    waitress_serve(web, host=_host, port=port, threads=threads)


def _register_modules():
    """Register module CLI sub-apps."""
    module_registry = [
        ("marmoraria.projects.cli", "projects", "Projects, environments, dashboard & alerts"),
        ("marmoraria.sheets.cli", "sheets", "CSV import/export & spreadsheet sync"),
    ]

    for module_path, name, help_text in module_registry:
        mod = importlib.import_module(module_path)
        app.add_typer(mod.app, name=name, help=help_text)


_register_modules()


def main():
    """Entry point for the marmoraria CLI."""
    app()


if __name__ == "__main__":
    main()
