"""
Project store: the in-memory project list and its persistence.

The whole list is one JSON blob in the kv_store table. Mutations change
memory only; callers commit with ``save(conn)`` after each one, so a failed
write (PersistenceError) is distinguishable from a rejected change
(ValueError / KeyError).

Usage:
    from marmoraria.core import get_db
    from marmoraria.projects.store import ProjectStore

    with get_db() as conn:
        store = ProjectStore.load(conn)
        store.create(project)
        store.save(conn)
"""

import json
import sqlite3
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional

from marmoraria.core import get_config_value, get_logger
from marmoraria.core.db import get_value, set_value
from marmoraria.projects.models import Project, ProjectStatus, new_id

logger = get_logger("marmoraria.projects.store")

DEFAULT_PROJECTS_KEY = "marmore-projects"


class PersistenceError(Exception):
    """Reading or writing the persisted project list failed."""


def projects_key() -> str:
    return get_config_value("storage", "projects_key", default=DEFAULT_PROJECTS_KEY)


@dataclass
class MergeResult:
    """Outcome of swapping in a fresh set of external projects."""
    added: List[str] = field(default_factory=list)
    replaced: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)


def _fill_finished_date(project: Project, today: Optional[date] = None) -> None:
    if project.status == ProjectStatus.FINISHED and not project.finished_date:
        project.finished_date = (today or date.today()).isoformat()


class ProjectStore:
    """Ordered, id-unique list of projects."""

    def __init__(self, projects: Optional[Iterable[Project]] = None):
        self._projects: List[Project] = list(projects or [])

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, conn: sqlite3.Connection) -> "ProjectStore":
        """Load the persisted list. A missing blob is an empty store."""
        try:
            raw = get_value(conn, projects_key())
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not read projects: {e}") from e

        if not raw:
            return cls()

        try:
            records = json.loads(raw)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Stored project list is corrupt: {e}") from e
        if not isinstance(records, list):
            raise PersistenceError(
                f"Stored project list is corrupt: expected a list, got {type(records).__name__}"
            )

        projects = []
        for record in records:
            if not isinstance(record, dict):
                logger.warning("Skipping unreadable project record: %r", record)
                continue
            try:
                projects.append(Project.from_dict(record))
            except ValueError as e:
                logger.warning("Skipping unreadable project %s: %s", record.get("id"), e)
        return cls(projects)

    def save(self, conn: sqlite3.Connection) -> None:
        """Write the whole list back under the projects key."""
        payload = json.dumps([p.to_dict() for p in self._projects], ensure_ascii=False)
        try:
            set_value(conn, projects_key(), payload)
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not save projects: {e}") from e
        logger.debug("Saved %d project(s)", len(self._projects))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def projects(self) -> List[Project]:
        return list(self._projects)

    def __len__(self) -> int:
        return len(self._projects)

    def get(self, project_id: str) -> Optional[Project]:
        return next((p for p in self._projects if p.id == project_id), None)

    def _index(self, project_id: str) -> int:
        for i, p in enumerate(self._projects):
            if p.id == project_id:
                return i
        raise KeyError(f"Project not found: {project_id}")

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, project: Project, today: Optional[date] = None) -> Project:
        """Append a manually entered project."""
        if not project.id or self.get(project.id):
            project.id = new_id()
        project.is_external = False
        _fill_finished_date(project, today)
        self._projects.append(project)
        logger.info("Created project %s (%s)", project.id, project.client_name)
        return project

    def update(self, project: Project, today: Optional[date] = None) -> Project:
        """Replace the project with the same id, keeping its position and origin."""
        idx = self._index(project.id)
        project.is_external = self._projects[idx].is_external
        _fill_finished_date(project, today)
        self._projects[idx] = project
        logger.info("Updated project %s", project.id)
        return project

    def delete(self, project_id: str) -> Project:
        """Remove a manual project. Synced projects can only go away via sync."""
        idx = self._index(project_id)
        project = self._projects[idx]
        if project.is_external:
            raise ValueError(
                "Cannot delete a project synced from the spreadsheet; "
                "remove it from the sheet or clear the sheet source instead"
            )
        del self._projects[idx]
        logger.info("Deleted project %s (%s)", project_id, project.client_name)
        return project

    def add_many(self, projects: Iterable[Project]) -> int:
        """Append imported manual projects, giving fresh ids on collision."""
        count = 0
        for p in projects:
            if self.get(p.id):
                p.id = new_id()
            self._projects.append(p)
            count += 1
        logger.info("Added %d imported project(s)", count)
        return count

    def replace_external(self, incoming: Iterable[Project]) -> MergeResult:
        """
        Swap every external project for ``incoming`` in one step.

        Manual projects are untouched. Incoming rows sharing an id collapse to
        the last one, so a sync never produces duplicates.
        """
        fresh = {}
        for p in incoming:
            p.is_external = True
            fresh[p.id] = p

        old_ids = {p.id for p in self._projects if p.is_external}
        manual = [p for p in self._projects if not p.is_external]

        result = MergeResult(
            added=[pid for pid in fresh if pid not in old_ids],
            replaced=[pid for pid in fresh if pid in old_ids],
            removed=sorted(old_ids - set(fresh)),
        )
        self._projects = manual + list(fresh.values())

        if result.removed:
            logger.info("Sync dropped %d project(s) no longer in the sheet: %s",
                        len(result.removed), ", ".join(result.removed))
        return result

    def remove_external(self) -> int:
        """Drop every synced project. Returns how many were removed."""
        before = len(self._projects)
        self._projects = [p for p in self._projects if not p.is_external]
        removed = before - len(self._projects)
        logger.info("Removed %d synced project(s)", removed)
        return removed
