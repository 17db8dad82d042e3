"""
Spreadsheet adapters: turn delimited text into Projects.

Two strategies behind one interface, picked explicitly by the caller:

    HeaderCsvAdapter        Any CSV with a header row (client, value, status...).
                            Used for manual file imports.
    PublishedSheetAdapter   The shop's published Google Sheet, a fixed layout:
                            four banner lines, then fixed column positions.
                            Used by sheet sync.

Parsing never raises on bad cells: unreadable amounts are 0, unknown
statuses are "Em Espera", short rows are padded.

Usage:
    from marmoraria.sheets.adapters import HeaderCsvAdapter
    result = HeaderCsvAdapter().parse(text)
    result.projects, result.skipped, result.notice
"""

import csv
import io
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from marmoraria.core import get_config_value, get_logger
from marmoraria.projects.calculations import parse_date
from marmoraria.projects.models import Environment, Project, ProjectStatus, to_decimal

logger = get_logger("marmoraria.sheets.adapters")

NO_DATA_NOTICE = (
    "No valid data found. Check that the file has a header row with a "
    "client column (Cliente/Nome) and that the data rows follow it."
)


@dataclass
class ParseResult:
    projects: List[Project] = field(default_factory=list)
    skipped: int = 0

    @property
    def notice(self) -> Optional[str]:
        """User-facing message when nothing usable was parsed."""
        return None if self.projects else NO_DATA_NOTICE


class SpreadsheetAdapter(ABC):
    """Parses the text of one spreadsheet export into projects."""

    name = "spreadsheet"

    @abstractmethod
    def parse(self, text: str) -> ParseResult:
        ...


def load_text(path: Path) -> str:
    """Read a CSV file, dropping a UTF-8 byte-order mark if present."""
    return Path(path).read_text(encoding="utf-8-sig")


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        value = value[1:-1].replace('""', '"')
    return value.strip()


# ---------------------------------------------------------------------------
# Header-driven CSV
# ---------------------------------------------------------------------------

# Lowercased header names per field; the first synonym present wins.
HEADER_SYNONYMS: Dict[str, Sequence[str]] = {
    "client": ("cliente", "nome", "client"),
    "order": ("pedido", "order", "numero"),
    "email": ("email", "e-mail"),
    "phone": ("telefone", "phone", "celular"),
    "status": ("status",),
    "value": ("valor", "total"),
    "notes": ("observacoes", "notas"),
    "commission": ("comissao", "%"),
    "received": ("recebido", "data"),
    "measurement": ("medicao",),
    "deadline": ("prazo",),
}

IMPORTED_ENVIRONMENT_NAME = "Imported Environment"

_NUMERIC_CELL = re.compile(r"^\s*-?(R\$\s*)?[\d.]+\s*$")
_DECIMAL_TAIL = re.compile(r"^\s*\d{1,2}\s*$")


def parse_amount(text: Optional[str]) -> Decimal:
    """
    Parse a user-typed amount: ``1500``, ``1500,00``, ``1.500,00``, ``R$ 80``.

    Anything unparseable is 0.
    """
    cleaned = (text or "").replace("R$", "").replace(" ", "").strip()
    if "," in cleaned and "." in cleaned:
        cleaned = cleaned.replace(".", "")
    return to_decimal(cleaned.replace(",", "."))


def _rejoin_decimal_commas(cells: List[str], width: int) -> List[str]:
    """
    Undo unquoted decimal commas (``1500,00``) that split an amount in two.

    Only applied while the row is wider than the header.
    """
    cells = list(cells)
    i = 0
    while len(cells) > width and i < len(cells) - 1:
        if _NUMERIC_CELL.match(cells[i]) and _DECIMAL_TAIL.match(cells[i + 1]):
            cells[i:i + 2] = [f"{cells[i].strip()},{cells[i + 1].strip()}"]
        else:
            i += 1
    return cells


def _pick(fields: Dict[str, str], key: str) -> str:
    for synonym in HEADER_SYNONYMS[key]:
        if synonym in fields:
            return fields[synonym]
    return ""


class HeaderCsvAdapter(SpreadsheetAdapter):
    """CSV with a header row; delimiter is ``;`` if the header has one, else ``,``."""

    name = "csv"

    def __init__(self, today: Optional[date] = None):
        self.today = today

    @staticmethod
    def detect_delimiter(header_line: str) -> str:
        return ";" if ";" in header_line else ","

    def parse(self, text: str) -> ParseResult:
        result = ParseResult()
        text = (text or "").lstrip("\ufeff")
        lines = text.splitlines()
        while lines and not lines[0].strip():
            lines.pop(0)
        if not lines:
            return result

        delimiter = self.detect_delimiter(lines[0])
        reader = csv.reader(io.StringIO("\n".join(lines)), delimiter=delimiter)
        headers = [_unquote(h).lower() for h in next(reader)]

        for row in reader:
            if not any(cell.strip() for cell in row):
                continue
            if delimiter == "," and len(row) > len(headers):
                row = _rejoin_decimal_commas(row, len(headers))
            fields = {h: _unquote(v) for h, v in zip(headers, row)}

            project = self._build_project(fields)
            if project is None:
                result.skipped += 1
                continue
            result.projects.append(project)

        logger.info("CSV import parsed %d project(s), skipped %d row(s)",
                    len(result.projects), result.skipped)
        return result

    def _build_project(self, fields: Dict[str, str]) -> Optional[Project]:
        client = _pick(fields, "client")
        if not client:
            return None

        status = ProjectStatus.parse(_pick(fields, "status"))
        received = parse_date(_pick(fields, "received")) or self.today or date.today()
        measurement = parse_date(_pick(fields, "measurement"))
        deadline = parse_date(_pick(fields, "deadline"))

        return Project(
            client_name=client,
            order_number=_pick(fields, "order") or None,
            client_email=_pick(fields, "email") or None,
            client_phone=_pick(fields, "phone") or None,
            status=status,
            received_date=received.isoformat(),
            measurement_date=measurement.isoformat() if measurement else None,
            deadline_date=deadline.isoformat() if deadline else None,
            environments=[
                Environment(
                    name=IMPORTED_ENVIRONMENT_NAME,
                    value=max(parse_amount(_pick(fields, "value")), Decimal("0")),
                    completed=status == ProjectStatus.FINISHED,
                )
            ],
            commission_percentage=parse_amount(_pick(fields, "commission")),
            notes=_pick(fields, "notes"),
            is_external=False,
        )


# ---------------------------------------------------------------------------
# Published sheet (fixed layout)
# ---------------------------------------------------------------------------

DATA_START_LINE = 4
COL_DATE = 6
COL_CLIENT = 7
COL_ROOM = 8
COL_MEASUREMENT = 9
COL_ORDER = 10
COL_VALUE = 11

HEADER_SENTINEL = "CLIENTE"
DEFAULT_ROOM_NAME = "Geral"
DEFAULT_SHEET_COMMISSION = Decimal("0.5")

_COMMA_OUTSIDE_QUOTES = re.compile(r',(?=(?:[^"]*"[^"]*")*[^"]*$)')


def split_sheet_line(line: str) -> List[str]:
    """Split on commas that are not inside double quotes."""
    return [_unquote(v) for v in _COMMA_OUTSIDE_QUOTES.split(line)]


def clean_sheet_value(text: str) -> Decimal:
    """``R$ 1.234,56`` -> 1234.56; anything unparseable is 0."""
    cleaned = (text or "").replace("R$", "").replace(".", "").replace(",", ".", 1).strip()
    return to_decimal(cleaned)


def sheet_project_id(order: str, client: str, room: str) -> str:
    """Deterministic id so re-syncing a row overwrites it."""
    return f"sheet-{order}-{client}-{room}"


class PublishedSheetAdapter(SpreadsheetAdapter):
    """The shop's published order sheet (CSV output of Google Sheets)."""

    name = "sheet"

    def __init__(self, default_commission=None, today: Optional[date] = None):
        if default_commission is None:
            default_commission = get_config_value(
                "sync", "default_commission", default=DEFAULT_SHEET_COMMISSION
            )
        self.default_commission = to_decimal(default_commission)
        self.today = today

    def parse(self, text: str) -> ParseResult:
        result = ParseResult()
        lines = (text or "").lstrip("\ufeff").splitlines()

        for line in lines[DATA_START_LINE:]:
            if not line.strip():
                continue
            cells = split_sheet_line(line)
            cells += [""] * (COL_VALUE + 1 - len(cells))

            project = self._build_project(cells)
            if project is None:
                result.skipped += 1
                continue
            result.projects.append(project)

        logger.info("Sheet parsed %d project(s), skipped %d row(s)",
                    len(result.projects), result.skipped)
        return result

    def _build_project(self, cells: List[str]) -> Optional[Project]:
        client = cells[COL_CLIENT]
        if not client or client == HEADER_SENTINEL:
            return None

        room = cells[COL_ROOM]
        order = cells[COL_ORDER]
        value = clean_sheet_value(cells[COL_VALUE])
        if value <= 0 and not room:
            return None

        received = parse_date(cells[COL_DATE])
        if received:
            received_date = received.isoformat()
        else:
            received_date = cells[COL_DATE] or (self.today or date.today()).isoformat()

        return Project(
            id=sheet_project_id(order, client, room),
            client_name=client,
            order_number=order or None,
            received_date=received_date,
            status=ProjectStatus.IN_PROGRESS,
            environments=[
                Environment(name=room or DEFAULT_ROOM_NAME, value=max(value, Decimal("0")))
            ],
            commission_percentage=self.default_commission,
            is_external=True,
            notes=f"Imported via Google Sheets. Measurement: {cells[COL_MEASUREMENT]}",
        )
