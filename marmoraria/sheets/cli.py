"""Sheets CLI sub-commands: CSV import/export and published-sheet sync."""

from pathlib import Path

import typer

app = typer.Typer(no_args_is_help=True)


def _load_store(conn):
    from marmoraria.projects.store import PersistenceError, ProjectStore

    try:
        return ProjectStore.load(conn)
    except PersistenceError as e:
        typer.echo(f"Storage error: {e} (run `marmoraria migrate` first)", err=True)
        raise typer.Exit(1)


def _print_sync(result) -> None:
    if not result.ok:
        typer.echo(f"Sync failed: {result.message}", err=True)
        raise typer.Exit(1)
    typer.echo(result.message)
    typer.echo(
        f"  {len(result.added)} new, {len(result.replaced)} updated, "
        f"{len(result.removed)} removed, {result.skipped} row(s) skipped"
    )


@app.command("import")
def import_csv(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV file with a header row"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
):
    """Import projects from a CSV file (header row required)."""
    from marmoraria.core import get_db
    from marmoraria.sheets.adapters import HeaderCsvAdapter, load_text

    parsed = HeaderCsvAdapter().parse(load_text(file))
    if not parsed.projects:
        typer.echo(parsed.notice, err=True)
        raise typer.Exit(1)

    typer.echo(f"Found {len(parsed.projects)} project(s) in {file.name}")
    if parsed.skipped:
        typer.echo(f"  {parsed.skipped} row(s) without a client name will be skipped")
    if not yes and not typer.confirm("Import them?"):
        typer.echo("Cancelled.")
        raise typer.Exit()

    with get_db() as conn:
        store = _load_store(conn)
        added = store.add_many(parsed.projects)
        store.save(conn)
    typer.echo(f"Imported {added} project(s).")


@app.command()
def export(
    output: Path = typer.Option(None, "--output", "-o", help="Output file (default: exports dir)"),
    fmt: str = typer.Option("csv", "--format", "-f", help="csv or xlsx"),
    search: str = typer.Option(None, "--search", "-q", help="Client name or order number"),
    status: str = typer.Option(None, "--status", "-s", help="Filter by status"),
):
    """Export projects (optionally filtered) to CSV or Excel."""
    from marmoraria.core import PATHS, get_db
    from marmoraria.projects.filters import ProjectFilter, filter_projects
    from marmoraria.sheets.export import export_csv, export_filename, export_xlsx

    if fmt not in ("csv", "xlsx"):
        typer.echo(f"Unknown format: {fmt}", err=True)
        raise typer.Exit(1)
    try:
        criteria = ProjectFilter.from_input(search, status)
    except ValueError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)

    with get_db() as conn:
        store = _load_store(conn)
    projects = filter_projects(store.projects, criteria)

    if output is None:
        output = PATHS.exports / export_filename(extension=fmt)
    output.parent.mkdir(parents=True, exist_ok=True)

    if fmt == "xlsx":
        output.write_bytes(export_xlsx(projects).getvalue())
    else:
        with open(output, "w", encoding="utf-8", newline="") as f:
            f.write(export_csv(projects))

    typer.echo(f"Exported {len(projects)} project(s) to {output}")


@app.command()
def sync(
    url: str = typer.Option(None, "--url", help="Published sheet URL (default: saved link)"),
):
    """Replace synced projects with the current contents of the published sheet."""
    from marmoraria.core import get_db
    from marmoraria.sheets.sync import SheetSync, get_sheet_url

    with get_db() as conn:
        store = _load_store(conn)
        result = SheetSync().run(conn, store, url or get_sheet_url(conn))
    _print_sync(result)


@app.command()
def url(
    new_url: str = typer.Argument(None, help="Published CSV link to save (omit to show the current one)"),
):
    """Show or set the published sheet link. Setting it on an empty board syncs at once."""
    from marmoraria.core import get_db
    from marmoraria.sheets.sync import (
        SheetSync,
        get_sheet_url,
        set_sheet_url,
        should_auto_sync,
    )

    if new_url is None:
        with get_db() as conn:
            current = get_sheet_url(conn)
        typer.echo(current or "No spreadsheet link configured.")
        return

    with get_db() as conn:
        try:
            saved = set_sheet_url(conn, new_url)
        except ValueError as e:
            typer.echo(str(e), err=True)
            raise typer.Exit(1)
        typer.echo(f"Spreadsheet link saved: {saved}" if saved else "Spreadsheet link removed.")

        store = _load_store(conn)
        if should_auto_sync(store, saved):
            _print_sync(SheetSync().run(conn, store, saved))


@app.command()
def clear(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
):
    """Forget the sheet link and remove every synced project."""
    from marmoraria.core import get_db
    from marmoraria.sheets.sync import clear_sheet_source

    if not yes and not typer.confirm("Remove the sheet link and all synced projects?"):
        typer.echo("Cancelled.")
        raise typer.Exit()

    with get_db() as conn:
        store = _load_store(conn)
        removed = clear_sheet_source(conn, store)
    typer.echo(f"Spreadsheet source cleared; {removed} synced project(s) removed.")
