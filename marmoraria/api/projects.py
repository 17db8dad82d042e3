"""
Projects Blueprint: JSON routes for the project board.

Thin delivery layer: all business logic lives in marmoraria.projects and
marmoraria.sheets. Every mutating route loads the store, applies one change
and saves it before responding.
"""

from contextlib import contextmanager
from datetime import date

from flask import Blueprint, Response, current_app, jsonify, request, send_file

from marmoraria.core import get_db, get_logger
from marmoraria.projects.calculations import (
    alerts,
    commission,
    completed_total,
    has_pending_environments,
    project_total,
)
from marmoraria.projects.filters import (
    ProjectFilter,
    available_years,
    dashboard_stats,
    filter_projects,
)
from marmoraria.projects.models import Project, ProjectStatus
from marmoraria.projects.store import PersistenceError, ProjectStore
from marmoraria.sheets.adapters import HeaderCsvAdapter
from marmoraria.sheets.export import export_csv, export_filename, export_xlsx
from marmoraria.sheets.sync import (
    clear_sheet_source,
    get_sheet_url,
    set_sheet_url,
    should_auto_sync,
)

logger = get_logger("marmoraria.api.projects")

bp = Blueprint("projects", __name__, url_prefix="/projects")


@contextmanager
def _open_store():
    with get_db() as conn:
        yield conn, ProjectStore.load(conn)


def _confirmed() -> bool:
    """Destructive routes need ?confirm=true (or "confirm": true in the body)."""
    flag = request.args.get("confirm")
    if flag is None and request.is_json:
        flag = (request.get_json(silent=True) or {}).get("confirm")
    return str(flag).lower() in ("1", "true", "yes")


def _project_view(project: Project, today: date) -> dict:
    data = project.to_dict()
    data.update({
        "total": float(project_total(project)),
        "completedTotal": float(completed_total(project)),
        "commission": round(float(commission(project)), 2),
        "pending": has_pending_environments(project) and project.status != ProjectStatus.FINISHED,
        "alerts": [a.to_dict() for a in alerts(project, today)],
    })
    return data


def _filter_from_args() -> ProjectFilter:
    return ProjectFilter.from_input(request.args.get("search"), request.args.get("status"))


@bp.errorhandler(PersistenceError)
def _persistence_error(e):
    logger.error("Storage failure: %s", e)
    return jsonify({"error": f"Storage error: {e}"}), 500


# ---------------------------------------------------------------------------
# Projects API
# ---------------------------------------------------------------------------


@bp.route("/api/projects", methods=["GET"])
def api_list_projects():
    today = date.today()
    try:
        criteria = _filter_from_args()
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    with _open_store() as (_, store):
        projects = filter_projects(store.projects, criteria)
    return jsonify({
        "projects": [_project_view(p, today) for p in projects],
        "statuses": [s.value for s in ProjectStatus],
    })


@bp.route("/api/projects/<project_id>", methods=["GET"])
def api_get_project(project_id):
    with _open_store() as (_, store):
        project = store.get(project_id)
    if not project:
        return jsonify({"error": "Project not found"}), 404
    data = _project_view(project, date.today())
    data["summary"] = current_app.extensions["summary_service"].cached(project_id)
    return jsonify(data)


@bp.route("/api/projects", methods=["POST"])
def api_create_project():
    data = request.get_json(silent=True) or {}
    data.pop("id", None)
    try:
        project = Project.from_dict(data)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    with _open_store() as (conn, store):
        store.create(project)
        store.save(conn)
    return jsonify(_project_view(project, date.today())), 201


@bp.route("/api/projects/<project_id>", methods=["PUT"])
def api_update_project(project_id):
    data = request.get_json(silent=True) or {}
    data["id"] = project_id
    try:
        project = Project.from_dict(data)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    with _open_store() as (conn, store):
        try:
            store.update(project)
        except KeyError:
            return jsonify({"error": "Project not found"}), 404
        store.save(conn)
    return jsonify(_project_view(project, date.today()))


@bp.route("/api/projects/<project_id>", methods=["DELETE"])
def api_delete_project(project_id):
    if not _confirmed():
        return jsonify({"error": "Deleting a project requires confirm=true"}), 400

    with _open_store() as (conn, store):
        try:
            store.delete(project_id)
        except KeyError:
            return jsonify({"error": "Project not found"}), 404
        except ValueError as e:
            return jsonify({"error": str(e)}), 400
        store.save(conn)
    return jsonify({"message": "Project deleted successfully"})


@bp.route("/api/projects/<project_id>/summary", methods=["GET"])
def api_project_summary(project_id):
    with _open_store() as (_, store):
        project = store.get(project_id)
    if not project:
        return jsonify({"error": "Project not found"}), 404
    summary = current_app.extensions["summary_service"].summarize(project)
    return jsonify({"id": project_id, "summary": summary})


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


@bp.route("/api/dashboard", methods=["GET"])
def api_dashboard():
    today = date.today()
    month = request.args.get("month", type=int)
    year = request.args.get("year", type=int)

    with _open_store() as (_, store):
        projects = store.projects
    try:
        stats = dashboard_stats(projects, month=month, year=year, today=today)
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({
        "month": stats.month,
        "year": stats.year,
        "projectCount": stats.project_count,
        "totalRevenue": float(stats.total_revenue),
        "totalCommissions": round(float(stats.total_commission), 2),
        "activeProjects": stats.active_projects,
        "completedProjects": stats.completed_projects,
        "statusCounts": stats.status_counts,
        "availableYears": available_years(projects, today),
        "urgent": [
            {"id": p.id, "clientName": p.client_name, "alerts": [a.to_dict() for a in found]}
            for p, found in stats.urgent
        ],
    })


# ---------------------------------------------------------------------------
# Import / export
# ---------------------------------------------------------------------------


@bp.route("/api/export", methods=["GET"])
def api_export():
    fmt = request.args.get("format", "csv")
    try:
        criteria = _filter_from_args()
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    with _open_store() as (_, store):
        projects = filter_projects(store.projects, criteria)

    if fmt == "xlsx":
        return send_file(
            export_xlsx(projects),
            mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            as_attachment=True,
            download_name=export_filename(extension="xlsx"),
        )
    if fmt != "csv":
        return jsonify({"error": f"Unknown export format: {fmt}"}), 400

    return Response(
        export_csv(projects),
        mimetype="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={export_filename()}"},
    )


@bp.route("/api/import", methods=["POST"])
def api_import():
    """Parse an uploaded CSV; commit only when confirmed, else return a preview."""
    if request.mimetype == "multipart/form-data":
        upload = request.files.get("file")
        if not upload:
            return jsonify({"error": "No file uploaded"}), 400
        text = upload.read().decode("utf-8-sig", errors="replace")
    else:
        text = request.get_data(as_text=True)

    parsed = HeaderCsvAdapter().parse(text)
    if not parsed.projects:
        return jsonify({"error": parsed.notice, "skipped": parsed.skipped}), 400

    if not _confirmed():
        return jsonify({
            "preview": True,
            "rows": len(parsed.projects),
            "skipped": parsed.skipped,
            "message": f"{len(parsed.projects)} project(s) ready to import. Resend with confirm=true.",
        })

    with _open_store() as (conn, store):
        added = store.add_many(parsed.projects)
        store.save(conn)
    return jsonify({"imported": added, "skipped": parsed.skipped}), 201


# ---------------------------------------------------------------------------
# Sheet sync
# ---------------------------------------------------------------------------


@bp.route("/api/sync", methods=["POST"])
def api_sync():
    syncer = current_app.extensions["sheet_sync"]
    with _open_store() as (conn, store):
        result = syncer.run(conn, store, get_sheet_url(conn))
    return jsonify(result.to_dict()), (200 if result.ok else 502)


@bp.route("/api/settings/sheet-url", methods=["GET"])
def api_get_sheet_url():
    with get_db() as conn:
        url = get_sheet_url(conn)
    return jsonify({"url": url, "syncing": current_app.extensions["sheet_sync"].in_progress})


@bp.route("/api/settings/sheet-url", methods=["PUT"])
def api_set_sheet_url():
    data = request.get_json(silent=True) or {}
    with _open_store() as (conn, store):
        try:
            url = set_sheet_url(conn, data.get("url", ""))
        except ValueError as e:
            return jsonify({"error": str(e)}), 400

        response = {"url": url, "sync": None}
        if should_auto_sync(store, url):
            result = current_app.extensions["sheet_sync"].run(conn, store, url)
            response["sync"] = result.to_dict()
    return jsonify(response)


@bp.route("/api/settings/sheet-url", methods=["DELETE"])
def api_clear_sheet_source():
    if not _confirmed():
        return jsonify({"error": "Clearing the spreadsheet source requires confirm=true"}), 400
    with _open_store() as (conn, store):
        removed = clear_sheet_source(conn, store)
    return jsonify({"url": "", "removed": removed})
