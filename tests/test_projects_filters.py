"""Tests for list filtering and dashboard aggregation."""

from datetime import date
from decimal import Decimal

import pytest

from marmoraria.projects.filters import (
    ALL_STATUSES,
    ProjectFilter,
    available_years,
    dashboard_stats,
    filter_projects,
    urgent_projects,
)
from marmoraria.projects.models import Environment, Project, ProjectStatus

TODAY = date(2024, 6, 10)


def _seed_projects():
    return [
        Project(client_name="Acme Ltda", order_number="100", status=ProjectStatus.IN_PROGRESS,
                received_date="2024-06-01",
                environments=[Environment(name="Cozinha", value=1000, completed=True)],
                commission_percentage="1"),
        Project(client_name="Beto Silva", order_number="200", status=ProjectStatus.FINISHED,
                received_date="2024-06-05",
                environments=[Environment(name="Sala", value=400, completed=True),
                              Environment(name="Lavabo", value=100)],
                commission_percentage="0.5"),
        Project(client_name="Carla", order_number="A100", status=ProjectStatus.WAITING,
                received_date="2024-05-20", measurement_date="2024-06-01"),
    ]


class TestProjectFilter:
    def test_search_client_case_insensitive(self):
        result = filter_projects(_seed_projects(), ProjectFilter(search="acme"))
        assert [p.client_name for p in result] == ["Acme Ltda"]

    def test_search_matches_order_number(self):
        result = filter_projects(_seed_projects(), ProjectFilter(search="100"))
        assert [p.client_name for p in result] == ["Acme Ltda", "Carla"]

    def test_status_filter(self):
        criteria = ProjectFilter.from_input(status="Finalizado")
        assert [p.client_name for p in filter_projects(_seed_projects(), criteria)] == ["Beto Silva"]

    def test_all_sentinel_means_no_status_filter(self):
        criteria = ProjectFilter.from_input(status=ALL_STATUSES)
        assert criteria.status is None
        assert len(filter_projects(_seed_projects(), criteria)) == 3

    def test_unknown_status_rejected(self):
        with pytest.raises(ValueError, match="Unknown status"):
            ProjectFilter.from_input(status="Perdido")

    def test_search_and_status_combined(self):
        criteria = ProjectFilter.from_input(search="100", status="Em Espera")
        assert [p.client_name for p in filter_projects(_seed_projects(), criteria)] == ["Carla"]

    def test_empty_filter_keeps_order(self):
        projects = _seed_projects()
        assert filter_projects(projects, ProjectFilter()) == projects


class TestDashboardStats:
    def test_month_aggregates(self):
        stats = dashboard_stats(_seed_projects(), month=6, year=2024, today=TODAY)
        assert stats.project_count == 2
        assert stats.total_revenue == Decimal("1400.00")
        assert stats.total_commission == Decimal("12.00")
        assert stats.active_projects == 1
        assert stats.completed_projects == 1

    def test_status_counts_cover_every_status(self):
        stats = dashboard_stats(_seed_projects(), month=6, year=2024, today=TODAY)
        assert stats.status_counts == {
            "Em Espera": 0,
            "Em Andamento": 1,
            "Impedido": 0,
            "Finalizado": 1,
        }

    def test_urgent_spans_all_months(self):
        stats = dashboard_stats(_seed_projects(), month=6, year=2024, today=TODAY)
        assert [p.client_name for p, _ in stats.urgent] == ["Carla"]

    def test_defaults_to_current_month(self):
        stats = dashboard_stats(_seed_projects(), today=date(2024, 5, 31))
        assert (stats.month, stats.year) == (5, 2024)
        assert stats.project_count == 1

    def test_invalid_month(self):
        with pytest.raises(ValueError):
            dashboard_stats(_seed_projects(), month=13, year=2024, today=TODAY)

    def test_summary_period_label(self):
        summary = dashboard_stats(_seed_projects(), month=6, year=2024, today=TODAY).summary()
        assert summary["period"] == "Junho 2024"
        assert summary["urgent"] == ["Carla: waiting 9 days past measurement"]


def test_urgent_projects_empty():
    assert urgent_projects([Project(client_name="Quiet")], TODAY) == []


def test_available_years_newest_first():
    projects = [
        Project(client_name="A", received_date="2022-01-10"),
        Project(client_name="B", received_date="2024-03-02"),
        Project(client_name="C", received_date="not a date"),
    ]
    assert available_years(projects, today=date(2025, 1, 1)) == [2025, 2024, 2022]
