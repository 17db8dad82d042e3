"""
Marmoraria Projects Module

Project model, derived figures, list filters and the persisted project store.
"""

from marmoraria.projects.calculations import (
    alerts,
    commission,
    completed_total,
    days_between,
    parse_date,
    project_total,
)
from marmoraria.projects.filters import ProjectFilter, dashboard_stats, filter_projects
from marmoraria.projects.models import Alert, Environment, Project, ProjectStatus
from marmoraria.projects.store import MergeResult, PersistenceError, ProjectStore

__all__ = [
    "Alert",
    "Environment",
    "MergeResult",
    "PersistenceError",
    "Project",
    "ProjectFilter",
    "ProjectStatus",
    "ProjectStore",
    "alerts",
    "commission",
    "completed_total",
    "dashboard_stats",
    "days_between",
    "filter_projects",
    "parse_date",
    "project_total",
]
