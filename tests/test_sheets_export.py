"""Tests for CSV and XLSX project export."""

from datetime import date
from decimal import Decimal

from openpyxl import load_workbook

from marmoraria.projects.filters import ProjectFilter, filter_projects
from marmoraria.projects.models import Environment, Project, ProjectStatus
from marmoraria.sheets.adapters import HeaderCsvAdapter
from marmoraria.sheets.export import (
    BOM,
    EXPORT_HEADERS,
    environment_summary,
    export_csv,
    export_filename,
    export_row,
    export_xlsx,
    quote_field,
)


def _acme():
    return Project(
        client_name="Acme",
        order_number="100",
        status=ProjectStatus.IN_PROGRESS,
        received_date="2024-06-01",
        environments=[
            Environment(name="Cozinha", value=1500, completed=True),
            Environment(name="Banheiro", value=800),
        ],
        commission_percentage="0.5",
        notes='Pia, cuba "inox"',
    )


def test_headers_have_fifteen_columns():
    assert len(EXPORT_HEADERS) == 15


def test_environment_summary():
    assert environment_summary(_acme()) == "Cozinha [Completed] (R$1500.00); Banheiro (R$800.00)"


def test_export_row_numbers_two_decimals():
    row = export_row(_acme())
    assert row[10:14] == ["2300.00", "1500.00", "0.50", "7.50"]
    assert row[0] == "100"
    assert row[4] == "Em Andamento"


def test_quote_field():
    assert quote_field("plain") == "plain"
    assert quote_field("a,b") == '"a,b"'
    assert quote_field('say "hi"') == '"say ""hi"""'
    assert quote_field(None) == ""


def test_export_csv_layout():
    text = export_csv([_acme()])
    assert text.startswith(BOM)
    lines = text[len(BOM):].split("\r\n")
    assert lines[0] == ",".join(EXPORT_HEADERS)
    assert lines[1].endswith('"Pia, cuba ""inox"""')
    assert lines[2] == ""


def test_export_filename():
    assert export_filename(date(2024, 6, 10)) == "projetos_2024-06-10.csv"
    assert export_filename(date(2024, 6, 10), "xlsx") == "projetos_2024-06-10.xlsx"


def test_export_xlsx():
    wb = load_workbook(export_xlsx([_acme()]))
    ws = wb.active
    assert ws.title == "Projetos"
    assert ws["B1"].value == "Cliente"
    assert ws["B2"].value == "Acme"
    assert ws["K2"].value == 2300.0
    assert ws.column_dimensions["B"].width == 28
    assert ws.column_dimensions["O"].width == 40


def test_round_trip_through_header_import():
    finished = Project(
        client_name="Beto",
        status=ProjectStatus.FINISHED,
        environments=[Environment(name="Sala", value=400, completed=True)],
    )
    projects = filter_projects([_acme(), finished], ProjectFilter())
    imported = HeaderCsvAdapter().parse(export_csv(projects)).projects

    assert [p.client_name for p in imported] == ["Acme", "Beto"]
    assert [p.status for p in imported] == [ProjectStatus.IN_PROGRESS, ProjectStatus.FINISHED]
    assert [p.environments[0].value for p in imported] == [Decimal("2300.00"), Decimal("400.00")]
    assert imported[0].notes == 'Pia, cuba "inox"'
    assert imported[0].order_number == "100"
