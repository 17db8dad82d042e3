"""
Derived project figures: totals, commission, and deadline alerts.

All functions are pure; ``today`` is always passed in so results are
reproducible. Day counts are whole calendar days (no clock time, no
timezone), which is what the ceiling of a midnight-to-midnight delta gives.
"""

import math
import re
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Union

from marmoraria.projects.models import Alert, Project, ProjectStatus

# Alert thresholds (days)
WAITING_ALERT_DAYS = 3
DEADLINE_WARNING_DAYS = 2

_SECONDS_PER_DAY = 86_400
_BR_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")

DateLike = Union[date, datetime, str, None]


def project_total(project: Project) -> Decimal:
    """Sum of every environment value."""
    return sum((env.value or Decimal("0") for env in project.environments), Decimal("0.00"))


def completed_total(project: Project) -> Decimal:
    """Sum of the values of completed environments only."""
    return sum(
        (env.value or Decimal("0") for env in project.environments if env.completed),
        Decimal("0.00"),
    )


def commission(project: Project) -> Decimal:
    """Commission owed on the completed value."""
    return completed_total(project) * project.commission_percentage / Decimal(100)


def has_pending_environments(project: Project) -> bool:
    return any(not env.completed for env in project.environments)


def parse_date(value: DateLike) -> Optional[date]:
    """
    Parse an ISO date (``YYYY-MM-DD``, optionally with a time part) or a
    ``DD/MM/YYYY`` spreadsheet date. Returns None when the value is unusable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    if not text:
        return None

    m = _BR_DATE.match(text)
    if m:
        day, month, year = (int(g) for g in m.groups())
        try:
            return date(year, month, day)
        except ValueError:
            return None

    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def days_between(start: DateLike, end: DateLike) -> Optional[int]:
    """
    Whole days from ``start`` to ``end`` (negative if ``end`` is earlier).

    Time of day is dropped before subtracting and the delta is rounded up,
    so partial days never shorten the count.
    """
    d1, d2 = parse_date(start), parse_date(end)
    if d1 is None or d2 is None:
        return None
    seconds = (datetime.combine(d2, datetime.min.time())
               - datetime.combine(d1, datetime.min.time())).total_seconds()
    return math.ceil(seconds / _SECONDS_PER_DAY)


def _days(n: int) -> str:
    return f"{n} day" if n == 1 else f"{n} days"


def alerts(project: Project, today: DateLike = None) -> List[Alert]:
    """Staleness and deadline alerts for a project as of ``today``."""
    today = parse_date(today) or date.today()
    found: List[Alert] = []

    if project.status == ProjectStatus.WAITING and project.measurement_date:
        waited = days_between(project.measurement_date, today)
        if waited is not None and waited >= WAITING_ALERT_DAYS:
            found.append(Alert(
                severity="danger",
                message=f"waiting {_days(waited)} past measurement",
                kind="waiting",
                days=waited,
            ))

    if project.status != ProjectStatus.FINISHED and project.deadline_date:
        remaining = days_between(today, project.deadline_date)
        if remaining is not None:
            if remaining < 0:
                found.append(Alert(
                    severity="danger",
                    message=f"overdue by {_days(-remaining)}",
                    kind="overdue",
                    days=-remaining,
                ))
            elif remaining <= DEADLINE_WARNING_DAYS:
                found.append(Alert(
                    severity="warning",
                    message=f"due in {_days(remaining)}",
                    kind="due_soon",
                    days=remaining,
                ))

    return found
