"""Projects CLI sub-commands."""

from contextlib import contextmanager
from dataclasses import replace
from datetime import date
from typing import List

import typer

app = typer.Typer(no_args_is_help=True)


@contextmanager
def _open_store():
    """Yield (conn, store); storage errors exit with status 1."""
    from marmoraria.core import get_db
    from marmoraria.projects.store import PersistenceError, ProjectStore

    with get_db() as conn:
        try:
            store = ProjectStore.load(conn)
        except PersistenceError as e:
            typer.echo(f"Storage error: {e} (run `marmoraria migrate` first)", err=True)
            raise typer.Exit(1)
        yield conn, store


def _status(text: str):
    from marmoraria.projects.models import ProjectStatus

    try:
        return ProjectStatus.parse(text, strict=True)
    except ValueError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)


def _get_or_exit(store, project_id: str):
    project = store.get(project_id)
    if not project:
        typer.echo(f"Project {project_id} not found.")
        raise typer.Exit(1)
    return project


def _print_project_line(p) -> None:
    from marmoraria.core.output import format_currency
    from marmoraria.projects.calculations import commission, project_total

    order = f"#{p.order_number}" if p.order_number else "-"
    sync = " [SHEET]" if p.is_external else ""
    typer.echo(
        f"  {p.id[:12]:<12} {order:<10} {p.client_name[:30]:<30} {p.status.value:<13} "
        f"{format_currency(project_total(p)):>15} {format_currency(commission(p)):>12}{sync}"
    )


def _environment(name: str, value: str, material: str = None):
    from marmoraria.projects.models import Environment
    from marmoraria.sheets.adapters import parse_amount

    if not name.strip():
        typer.echo(f"Invalid environment: {name}={value} (expected NAME=VALUE)", err=True)
        raise typer.Exit(1)
    try:
        return Environment(name=name.strip(), value=parse_amount(value), material=material)
    except ValueError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)


def _date(text: str, label: str):
    """Normalize a YYYY-MM-DD or DD/MM/YYYY option; blank clears it."""
    from marmoraria.projects.calculations import parse_date

    if not text or not text.strip():
        return None
    parsed = parse_date(text)
    if parsed is None:
        typer.echo(f"Invalid {label} date: {text!r} (use YYYY-MM-DD or DD/MM/YYYY)", err=True)
        raise typer.Exit(1)
    return parsed.isoformat()


def _find_env(p, environment: str):
    env = next(
        (e for e in p.environments if e.id == environment or e.name == environment),
        None,
    )
    if env is None:
        typer.echo(f"Environment {environment} not found in project {p.id}.")
        raise typer.Exit(1)
    return env


@app.command("list")
def list_projects(
    search: str = typer.Option(None, "--search", "-q", help="Client name or order number"),
    status: str = typer.Option(None, "--status", "-s", help="Filter by status (e.g. 'Em Andamento')"),
):
    """List projects, optionally filtered."""
    from marmoraria.projects.filters import ProjectFilter, filter_projects

    try:
        criteria = ProjectFilter.from_input(search, status)
    except ValueError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)

    with _open_store() as (conn, store):
        projects = filter_projects(store.projects, criteria)

    if not projects:
        typer.echo("No projects found.")
        return

    for p in projects:
        _print_project_line(p)
    typer.echo(f"\n  {len(projects)} project(s)")


@app.command()
def show(project_id: str = typer.Argument(..., help="Project id")):
    """Show one project with environments, totals and alerts."""
    from marmoraria.core.output import format_currency
    from marmoraria.projects.calculations import (
        alerts,
        commission,
        completed_total,
        project_total,
    )

    with _open_store() as (conn, store):
        p = _get_or_exit(store, project_id)

    typer.echo(f"Project: {p.client_name} ({p.id})")
    if p.order_number:
        typer.echo(f"  Order:    #{p.order_number}")
    typer.echo(f"  Status:   {p.status.value}")
    if p.client_phone or p.client_email:
        typer.echo(f"  Contact:  {p.client_phone or '-'}  |  {p.client_email or '-'}")
    typer.echo(f"  Received: {p.received_date}")
    if p.measurement_date:
        typer.echo(f"  Measured: {p.measurement_date}")
    if p.deadline_date:
        typer.echo(f"  Deadline: {p.deadline_date}")
    if p.finished_date:
        typer.echo(f"  Finished: {p.finished_date}")
    if p.is_external:
        typer.echo("  Source:   spreadsheet sync")

    if p.environments:
        typer.echo("\n  Environments:")
        for env in p.environments:
            mark = "x" if env.completed else " "
            material = f"  ({env.material})" if env.material else ""
            typer.echo(f"    [{mark}] {env.name:<30} {format_currency(env.value):>15}{material}")

    typer.echo(f"\n  Total:      {format_currency(project_total(p))}")
    typer.echo(f"  Completed:  {format_currency(completed_total(p))}")
    typer.echo(f"  Commission: {format_currency(commission(p))} ({p.commission_percentage}%)")

    for alert in alerts(p, date.today()):
        typer.echo(f"  ! {alert.severity.upper()}: {alert.message}")
    if p.notes:
        typer.echo(f"\n  Notes: {p.notes}")


@app.command()
def add(
    client: str = typer.Option(..., "--client", "-c", help="Client name"),
    order: str = typer.Option(None, "--order", "-o", help="Order number"),
    email: str = typer.Option(None, "--email", help="Client email"),
    phone: str = typer.Option(None, "--phone", help="Client phone"),
    status: str = typer.Option("Em Espera", "--status", "-s", help="Project status"),
    received: str = typer.Option(None, "--received", help="Received date (YYYY-MM-DD, default today)"),
    measurement: str = typer.Option(None, "--measurement", help="Measurement date"),
    deadline: str = typer.Option(None, "--deadline", help="Deadline date"),
    commission_pct: float = typer.Option(0.0, "--commission", help="Commission percentage (0.5 = 0.5%)"),
    env: List[str] = typer.Option(None, "--env", "-e", help="Environment as NAME=VALUE (repeatable)"),
    notes: str = typer.Option("", "--notes", help="Free text notes"),
):
    """Create a project."""
    from marmoraria.projects.models import Project

    environments = []
    for item in env or []:
        name, _, value = item.partition("=")
        environments.append(_environment(name, value))

    try:
        project = Project(
            client_name=client,
            order_number=order,
            client_email=email,
            client_phone=phone,
            status=_status(status),
            received_date=_date(received, "received") or date.today().isoformat(),
            measurement_date=_date(measurement, "measurement"),
            deadline_date=_date(deadline, "deadline"),
            environments=environments,
            commission_percentage=commission_pct,
            notes=notes,
        )
    except ValueError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)

    with _open_store() as (conn, store):
        store.create(project)
        store.save(conn)
    typer.echo(f"Created project {project.id} for {project.client_name}.")


@app.command()
def edit(
    project_id: str = typer.Argument(..., help="Project id"),
    client: str = typer.Option(None, "--client", "-c", help="Client name"),
    order: str = typer.Option(None, "--order", "-o", help="Order number ('' clears)"),
    email: str = typer.Option(None, "--email", help="Client email ('' clears)"),
    phone: str = typer.Option(None, "--phone", help="Client phone ('' clears)"),
    status: str = typer.Option(None, "--status", "-s", help="Project status"),
    received: str = typer.Option(None, "--received", help="Received date"),
    measurement: str = typer.Option(None, "--measurement", help="Measurement date ('' clears)"),
    deadline: str = typer.Option(None, "--deadline", help="Deadline date ('' clears)"),
    finished: str = typer.Option(None, "--finished", help="Finished date ('' clears)"),
    commission_pct: float = typer.Option(None, "--commission", help="Commission percentage"),
    notes: str = typer.Option(None, "--notes", help="Free text notes"),
):
    """Change any field of a project. Omitted options stay as they are."""
    changes = {}
    for field_name, text in (
        ("order_number", order), ("client_email", email), ("client_phone", phone),
    ):
        if text is not None:
            changes[field_name] = text.strip() or None
    for field_name, text, label in (
        ("measurement_date", measurement, "measurement"),
        ("deadline_date", deadline, "deadline"),
        ("finished_date", finished, "finished"),
    ):
        if text is not None:
            changes[field_name] = _date(text, label)
    if received is not None:
        changes["received_date"] = _date(received, "received") or date.today().isoformat()
    if client is not None:
        changes["client_name"] = client
    if status is not None:
        changes["status"] = _status(status)
    if commission_pct is not None:
        changes["commission_percentage"] = commission_pct
    if notes is not None:
        changes["notes"] = notes

    if not changes:
        typer.echo("Nothing to change.")
        return

    with _open_store() as (conn, store):
        p = _get_or_exit(store, project_id)
        try:
            updated = replace(p, **changes)
        except ValueError as e:
            typer.echo(str(e), err=True)
            raise typer.Exit(1)
        store.update(updated)
        store.save(conn)
    typer.echo(f"Updated {updated.client_name}: {', '.join(sorted(changes))}.")


@app.command("add-env")
def add_env(
    project_id: str = typer.Argument(..., help="Project id"),
    name: str = typer.Argument(..., help="Environment name (e.g. Cozinha)"),
    value: str = typer.Argument(..., help="Value (e.g. 1500,00)"),
    material: str = typer.Option(None, "--material", "-m", help="Stone/material"),
):
    """Add an environment to a project."""
    environment = _environment(name, value, material)
    with _open_store() as (conn, store):
        p = _get_or_exit(store, project_id)
        p.environments.append(environment)
        store.update(p)
        store.save(conn)
    typer.echo(f"Added {environment.name} to {p.client_name}.")


@app.command("remove-env")
def remove_env(
    project_id: str = typer.Argument(..., help="Project id"),
    environment: str = typer.Argument(..., help="Environment id or name"),
):
    """Remove an environment from a project."""
    with _open_store() as (conn, store):
        p = _get_or_exit(store, project_id)
        env = _find_env(p, environment)
        p.environments.remove(env)
        store.update(p)
        store.save(conn)
    typer.echo(f"Removed {env.name} from {p.client_name}.")


@app.command("toggle-env")
def toggle_env(
    project_id: str = typer.Argument(..., help="Project id"),
    environment: str = typer.Argument(..., help="Environment id or name"),
):
    """Flip an environment between completed and pending."""
    with _open_store() as (conn, store):
        p = _get_or_exit(store, project_id)
        env = _find_env(p, environment)
        env.completed = not env.completed
        store.update(p)
        store.save(conn)
    state = "completed" if env.completed else "pending"
    typer.echo(f"{env.name} marked {state}.")


@app.command("set-status")
def set_status(
    project_id: str = typer.Argument(..., help="Project id"),
    status: str = typer.Argument(..., help="New status"),
):
    """Change a project's status."""
    new_status = _status(status)
    with _open_store() as (conn, store):
        p = _get_or_exit(store, project_id)
        p.status = new_status
        store.update(p)
        store.save(conn)
    typer.echo(f"{p.client_name}: {p.status.value}")


@app.command()
def delete(
    project_id: str = typer.Argument(..., help="Project id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
):
    """Delete a manually entered project."""
    with _open_store() as (conn, store):
        p = _get_or_exit(store, project_id)
        if p.is_external:
            typer.echo("Projects synced from the spreadsheet cannot be deleted.", err=True)
            raise typer.Exit(1)
        if not yes and not typer.confirm(f"Delete project {p.client_name}?"):
            typer.echo("Cancelled.")
            raise typer.Exit()
        store.delete(project_id)
        store.save(conn)
    typer.echo(f"Deleted {p.client_name}.")


@app.command()
def dashboard(
    month: int = typer.Option(None, "--month", "-m", min=1, max=12, help="Month (default current)"),
    year: int = typer.Option(None, "--year", "-y", help="Year (default current)"),
    fmt: str = typer.Option("human", "--format", "-f", help="human, json or markdown"),
):
    """Revenue, commission and status counts for a month."""
    from marmoraria.core.output import OutputFormat, format_result
    from marmoraria.projects.filters import dashboard_stats

    with _open_store() as (conn, store):
        stats = dashboard_stats(store.projects, month=month, year=year, today=date.today())

    try:
        output_format = OutputFormat(fmt)
    except ValueError:
        typer.echo(f"Unknown format: {fmt}", err=True)
        raise typer.Exit(1)
    typer.echo(format_result(stats.summary(), output_format, title="Dashboard"))


@app.command("alerts")
def list_alerts():
    """Projects waiting too long after measurement or close to their deadline."""
    from marmoraria.projects.filters import urgent_projects

    with _open_store() as (conn, store):
        urgent = urgent_projects(store.projects, date.today())

    if not urgent:
        typer.echo("No urgent actions.")
        return

    typer.echo(f"Urgent actions ({len(urgent)}):")
    for p, found in urgent:
        for alert in found:
            typer.echo(f"  [{alert.severity:<7}] {p.client_name:<30} {alert.message}")


@app.command()
def summary(project_id: str = typer.Argument(..., help="Project id")):
    """AI-generated summary of a project."""
    from marmoraria.summary import SummaryService

    with _open_store() as (conn, store):
        p = _get_or_exit(store, project_id)

    typer.echo(f"{p.client_name}:")
    typer.echo(SummaryService().summarize(p))
