"""Tests for totals, commission and deadline alerts."""

from datetime import date, datetime
from decimal import Decimal

from marmoraria.projects.calculations import (
    alerts,
    commission,
    completed_total,
    days_between,
    has_pending_environments,
    parse_date,
    project_total,
)
from marmoraria.projects.models import Environment, Project, ProjectStatus

TODAY = date(2024, 6, 10)


def _project(status=ProjectStatus.WAITING, **kwargs):
    return Project(client_name="Acme", status=status, **kwargs)


def _kitchen_and_bath():
    return _project(
        environments=[
            Environment(name="Cozinha", value=1000, completed=True),
            Environment(name="Banheiro", value=500),
        ],
        commission_percentage="0.5",
    )


class TestTotals:
    def test_project_total(self):
        assert project_total(_kitchen_and_bath()) == Decimal("1500.00")

    def test_completed_total(self):
        assert completed_total(_kitchen_and_bath()) == Decimal("1000.00")

    def test_commission_on_completed_value(self):
        assert commission(_kitchen_and_bath()) == Decimal("5.00")

    def test_empty_project(self):
        p = _project()
        assert project_total(p) == Decimal("0")
        assert completed_total(p) == Decimal("0")
        assert commission(p) == Decimal("0")

    def test_completed_never_exceeds_total(self):
        p = _kitchen_and_bath()
        for env in p.environments:
            env.completed = True
        assert completed_total(p) == project_total(p)

    def test_pending_environments(self):
        assert has_pending_environments(_kitchen_and_bath()) is True
        assert has_pending_environments(_project()) is False


class TestParseDate:
    def test_iso(self):
        assert parse_date("2024-06-06") == date(2024, 6, 6)

    def test_iso_with_time(self):
        assert parse_date("2024-06-06T15:30:00") == date(2024, 6, 6)

    def test_brazilian(self):
        assert parse_date("06/07/2024") == date(2024, 7, 6)

    def test_datetime_passthrough(self):
        assert parse_date(datetime(2024, 6, 6, 23, 59)) == date(2024, 6, 6)

    def test_invalid(self):
        assert parse_date("31/02/2024") is None
        assert parse_date("soon") is None
        assert parse_date("") is None
        assert parse_date(None) is None


class TestDaysBetween:
    def test_forward_and_backward(self):
        assert days_between("2024-06-06", TODAY) == 4
        assert days_between(TODAY, "2024-06-06") == -4

    def test_time_of_day_ignored(self):
        assert days_between(datetime(2024, 6, 6, 23, 0), datetime(2024, 6, 7, 1, 0)) == 1

    def test_unparseable(self):
        assert days_between("nope", TODAY) is None


class TestAlerts:
    def test_waiting_past_measurement(self):
        found = alerts(_project(measurement_date="2024-06-06"), TODAY)
        assert len(found) == 1
        assert found[0].severity == "danger"
        assert found[0].kind == "waiting"
        assert found[0].message == "waiting 4 days past measurement"

    def test_waiting_below_threshold(self):
        assert alerts(_project(measurement_date="2024-06-08"), TODAY) == []

    def test_waiting_only_applies_to_waiting_status(self):
        p = _project(ProjectStatus.IN_PROGRESS, measurement_date="2024-06-01")
        assert alerts(p, TODAY) == []

    def test_overdue(self):
        found = alerts(_project(ProjectStatus.IN_PROGRESS, deadline_date="2024-06-09"), TODAY)
        assert [(a.severity, a.message) for a in found] == [("danger", "overdue by 1 day")]

    def test_due_soon(self):
        found = alerts(_project(ProjectStatus.IN_PROGRESS, deadline_date="2024-06-11"), TODAY)
        assert [(a.severity, a.message) for a in found] == [("warning", "due in 1 day")]

    def test_due_today(self):
        found = alerts(_project(ProjectStatus.IN_PROGRESS, deadline_date="2024-06-10"), TODAY)
        assert found[0].message == "due in 0 days"

    def test_far_deadline(self):
        assert alerts(_project(ProjectStatus.IN_PROGRESS, deadline_date="2024-06-20"), TODAY) == []

    def test_finished_has_no_deadline_alert(self):
        p = _project(ProjectStatus.FINISHED, deadline_date="2024-06-01")
        assert alerts(p, TODAY) == []

    def test_waiting_and_overdue_together(self):
        p = _project(measurement_date="2024-06-01", deadline_date="2024-06-05")
        kinds = [a.kind for a in alerts(p, TODAY)]
        assert kinds == ["waiting", "overdue"]

    def test_brazilian_dates(self):
        found = alerts(_project(measurement_date="06/06/2024"), TODAY)
        assert found[0].days == 4
