"""
Project data model.

Project, Environment and ProjectStatus are plain data; all arithmetic lives
in projects.calculations. Serialization uses the camelCase keys of the
persisted project blob so existing saved data stays loadable.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Optional

CENTS = Decimal("0.01")


class ProjectStatus(str, Enum):
    WAITING = "Em Espera"
    IN_PROGRESS = "Em Andamento"
    BLOCKED = "Impedido"
    FINISHED = "Finalizado"

    @classmethod
    def parse(cls, text: Any, strict: bool = False) -> "ProjectStatus":
        """Match a label, member name or English label; unknown text is WAITING."""
        if isinstance(text, ProjectStatus):
            return text
        key = str(text or "").strip().lower()
        for status in cls:
            if key in _STATUS_ALIASES[status]:
                return status
        if strict:
            choices = ", ".join(s.value for s in cls)
            raise ValueError(f"Unknown status: {text!r} (expected one of {choices})")
        return cls.WAITING


_STATUS_ALIASES = {
    ProjectStatus.WAITING: {"em espera", "waiting", "espera"},
    ProjectStatus.IN_PROGRESS: {"em andamento", "in_progress", "inprogress", "in progress", "andamento"},
    ProjectStatus.BLOCKED: {"impedido", "blocked"},
    ProjectStatus.FINISHED: {"finalizado", "finished"},
}


def new_id() -> str:
    return uuid.uuid4().hex


def to_decimal(value: Any) -> Decimal:
    """Coerce a number or numeric string to a 2-place Decimal; garbage is 0."""
    if value is None or value == "":
        return Decimal("0.00")
    try:
        amount = Decimal(str(value).strip())
        if not amount.is_finite():
            return Decimal("0.00")
        return amount.quantize(CENTS)
    except (InvalidOperation, ValueError):
        # also raised by quantize when the value exceeds the context precision
        return Decimal("0.00")


def _opt(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass
class Environment:
    """One billable room or unit inside a project."""
    name: str
    value: Decimal = Decimal("0.00")
    completed: bool = False
    material: Optional[str] = None
    id: str = field(default_factory=new_id)

    def __post_init__(self):
        self.value = to_decimal(self.value)
        if self.value < 0:
            raise ValueError(f"Environment value cannot be negative: {self.value}")

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "value": float(self.value),
            "completed": self.completed,
        }
        if self.material:
            data["material"] = self.material
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Environment":
        value = to_decimal(data.get("value"))
        return cls(
            id=str(data.get("id") or new_id()),
            name=str(data.get("name") or ""),
            value=max(value, Decimal("0.00")),
            completed=bool(data.get("completed", False)),
            material=_opt(data.get("material")),
        )


def _environment(data: Any) -> Environment:
    if not isinstance(data, dict):
        raise ValueError(f"Environment must be an object, got {data!r}")
    return Environment.from_dict(data)


@dataclass
class Project:
    """A client engagement: contact details, dates and billable environments."""
    client_name: str
    id: str = field(default_factory=new_id)
    status: ProjectStatus = ProjectStatus.WAITING
    received_date: str = field(default_factory=lambda: date.today().isoformat())
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    order_number: Optional[str] = None
    measurement_date: Optional[str] = None
    deadline_date: Optional[str] = None
    finished_date: Optional[str] = None
    environments: List[Environment] = field(default_factory=list)
    commission_percentage: Decimal = Decimal("0.00")
    notes: str = ""
    is_external: bool = False

    def __post_init__(self):
        if not (self.client_name or "").strip():
            raise ValueError("Client name is required")
        self.status = ProjectStatus.parse(self.status)
        self.commission_percentage = to_decimal(self.commission_percentage)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "clientName": self.client_name,
            "clientEmail": self.client_email,
            "clientPhone": self.client_phone,
            "orderNumber": self.order_number,
            "status": self.status.value,
            "receivedDate": self.received_date,
            "measurementDate": self.measurement_date,
            "deadlineDate": self.deadline_date,
            "finishedDate": self.finished_date,
            "environments": [env.to_dict() for env in self.environments],
            "commissionPercentage": float(self.commission_percentage),
            "notes": self.notes,
            "isExternal": self.is_external,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        return cls(
            id=str(data.get("id") or new_id()),
            client_name=str(data.get("clientName") or ""),
            client_email=_opt(data.get("clientEmail")),
            client_phone=_opt(data.get("clientPhone")),
            order_number=_opt(data.get("orderNumber")),
            status=ProjectStatus.parse(data.get("status")),
            received_date=_opt(data.get("receivedDate")) or date.today().isoformat(),
            measurement_date=_opt(data.get("measurementDate")),
            deadline_date=_opt(data.get("deadlineDate")),
            finished_date=_opt(data.get("finishedDate")),
            environments=[_environment(e) for e in data.get("environments") or []],
            commission_percentage=to_decimal(data.get("commissionPercentage")),
            notes=str(data.get("notes") or ""),
            is_external=bool(data.get("isExternal", False)),
        )


@dataclass
class Alert:
    """A deadline or staleness warning raised for one project."""
    severity: str  # 'warning' | 'danger'
    message: str
    kind: str      # 'waiting' | 'overdue' | 'due_soon'
    days: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity,
            "message": self.message,
            "kind": self.kind,
            "days": self.days,
        }
