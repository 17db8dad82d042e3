"""
List filtering and dashboard aggregation.

Thin presentation helpers over the project list; nothing here mutates
projects or touches storage.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from marmoraria.projects.calculations import (
    alerts,
    commission,
    completed_total,
    parse_date,
)
from marmoraria.projects.models import Alert, Project, ProjectStatus

# Sentinel accepted from user input for "no status filter".
ALL_STATUSES = "Todos"

MONTHS = [
    "Janeiro", "Fevereiro", "Março", "Abril", "Maio", "Junho",
    "Julho", "Agosto", "Setembro", "Outubro", "Novembro", "Dezembro",
]


@dataclass
class ProjectFilter:
    """Search text plus an optional exact status; None status means all."""
    search: str = ""
    status: Optional[ProjectStatus] = None

    @classmethod
    def from_input(cls, search: Optional[str] = None, status: Optional[str] = None) -> "ProjectFilter":
        """Build from user input; an unrecognised status raises ValueError."""
        if not status or status == ALL_STATUSES:
            return cls(search=search or "", status=None)
        return cls(search=search or "", status=ProjectStatus.parse(status, strict=True))

    def matches(self, project: Project) -> bool:
        term = self.search.strip().lower()
        if term:
            in_client = term in project.client_name.lower()
            in_order = bool(project.order_number) and term in project.order_number.lower()
            if not (in_client or in_order):
                return False
        return self.status is None or project.status == self.status


def filter_projects(projects: Iterable[Project], criteria: ProjectFilter) -> List[Project]:
    """Apply ``criteria`` keeping the input order."""
    return [p for p in projects if criteria.matches(p)]


@dataclass
class DashboardStats:
    month: int
    year: int
    project_count: int = 0
    total_revenue: Decimal = Decimal("0.00")
    total_commission: Decimal = Decimal("0.00")
    active_projects: int = 0
    completed_projects: int = 0
    status_counts: Dict[str, int] = field(default_factory=dict)
    urgent: List[Tuple[Project, List[Alert]]] = field(default_factory=list)

    def summary(self) -> Dict[str, Any]:
        """Flat view for CLI/JSON output."""
        return {
            "period": f"{MONTHS[self.month - 1]} {self.year}",
            "project_count": self.project_count,
            "total_revenue": self.total_revenue,
            "total_commission": self.total_commission.quantize(Decimal("0.01")),
            "active_projects": self.active_projects,
            "completed_projects": self.completed_projects,
            "status_counts": self.status_counts,
            "urgent": [
                f"{p.client_name}: " + "; ".join(a.message for a in found)
                for p, found in self.urgent
            ],
        }


def in_month(project: Project, month: int, year: int) -> bool:
    received = parse_date(project.received_date)
    return received is not None and received.month == month and received.year == year


def urgent_projects(projects: Iterable[Project], today: date) -> List[Tuple[Project, List[Alert]]]:
    """Every project with at least one alert, in input order."""
    result = []
    for p in projects:
        found = alerts(p, today)
        if found:
            result.append((p, found))
    return result


def dashboard_stats(
    projects: List[Project],
    month: Optional[int] = None,
    year: Optional[int] = None,
    today: Optional[date] = None,
) -> DashboardStats:
    """
    Aggregate the month's projects (by received date) for the dashboard.

    Urgent actions are computed over the whole collection, not just the month.
    """
    today = today or date.today()
    month = month or today.month
    year = year or today.year
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")

    selected = [p for p in projects if in_month(p, month, year)]

    stats = DashboardStats(month=month, year=year, project_count=len(selected))
    for p in selected:
        stats.total_revenue += completed_total(p)
        stats.total_commission += commission(p)
        if p.status == ProjectStatus.FINISHED:
            stats.completed_projects += 1
        else:
            stats.active_projects += 1

    stats.status_counts = {
        s.value: sum(1 for p in selected if p.status == s) for s in ProjectStatus
    }
    stats.urgent = urgent_projects(projects, today)
    return stats


def available_years(projects: Iterable[Project], today: Optional[date] = None) -> List[int]:
    """Years with received projects plus the current year, newest first."""
    today = today or date.today()
    years = {today.year}
    for p in projects:
        received = parse_date(p.received_date)
        if received:
            years.add(received.year)
    return sorted(years, reverse=True)
