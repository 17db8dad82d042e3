"""
Project export: CSV for spreadsheet tools, XLSX via openpyxl.

Both formats share one 15-column layout. The CSV is what HeaderCsvAdapter
reads back (client, status and total value survive the round trip; the
environments collapse into one imported environment).
"""

from datetime import date
from decimal import Decimal
from io import BytesIO
from typing import Iterable, List, Optional

from marmoraria.core import get_logger
from marmoraria.projects.calculations import commission, completed_total, project_total
from marmoraria.projects.models import Project

logger = get_logger("marmoraria.sheets.export")

BOM = "\ufeff"

EXPORT_HEADERS = [
    "Pedido",
    "Cliente",
    "Telefone",
    "Email",
    "Status",
    "Recebido",
    "Medicao",
    "Prazo",
    "Finalizado Em",
    "Ambientes",
    "Total",
    "Concluido",
    "Comissao",
    "Valor Comissao",
    "Observacoes",
]


def _money(value: Decimal) -> str:
    return f"{value:.2f}"


def environment_summary(project: Project) -> str:
    """``Cozinha [Completed] (R$1500.00); Banheiro (R$800.00)``"""
    parts = []
    for env in project.environments:
        done = " [Completed]" if env.completed else ""
        parts.append(f"{env.name}{done} (R${_money(env.value)})")
    return "; ".join(parts)


def quote_field(value: Optional[str], delimiter: str = ",") -> str:
    """Quote a text field if it holds the delimiter, a quote or a line break."""
    text = "" if value is None else str(value)
    if any(ch in text for ch in (delimiter, '"', "\n", "\r")):
        return '"' + text.replace('"', '""') + '"'
    return text


def export_row(project: Project) -> List[str]:
    """One project as the 15 export cells (unquoted)."""
    return [
        project.order_number or "",
        project.client_name,
        project.client_phone or "",
        project.client_email or "",
        project.status.value,
        project.received_date or "",
        project.measurement_date or "",
        project.deadline_date or "",
        project.finished_date or "",
        environment_summary(project),
        _money(project_total(project)),
        _money(completed_total(project)),
        _money(project.commission_percentage),
        _money(commission(project)),
        project.notes or "",
    ]


def export_csv(projects: Iterable[Project], delimiter: str = ",") -> str:
    """Serialize ``projects`` (usually the filtered list) to BOM-prefixed CSV."""
    lines = [delimiter.join(EXPORT_HEADERS)]
    count = 0
    for p in projects:
        lines.append(delimiter.join(quote_field(cell, delimiter) for cell in export_row(p)))
        count += 1
    logger.info("Exported %d project(s) to CSV", count)
    return BOM + "\r\n".join(lines) + "\r\n"


def export_filename(today: Optional[date] = None, extension: str = "csv") -> str:
    return f"projetos_{(today or date.today()).isoformat()}.{extension}"


def export_xlsx(projects: Iterable[Project]) -> BytesIO:
    """Same layout as the CSV, as an Excel workbook with numeric money cells."""
    from openpyxl import Workbook
    from openpyxl.utils import get_column_letter

    wb = Workbook()
    ws = wb.active
    ws.title = "Projetos"

    for col, header in enumerate(EXPORT_HEADERS, 1):
        ws.cell(row=1, column=col, value=header)

    numeric_cols = {11, 12, 13, 14}
    for row_num, p in enumerate(projects, start=2):
        for col, cell in enumerate(export_row(p), 1):
            value = float(cell) if col in numeric_cols else cell
            ws.cell(row=row_num, column=col, value=value)

    widths = [10, 28, 16, 26, 14, 12, 12, 12, 14, 50, 12, 12, 10, 14, 40]
    for i, w in enumerate(widths, 1):
        ws.column_dimensions[get_column_letter(i)].width = w

    output = BytesIO()
    wb.save(output)
    output.seek(0)
    return output
