"""Tests for the header-driven CSV and published-sheet adapters."""

from datetime import date
from decimal import Decimal

from marmoraria.projects.models import ProjectStatus
from marmoraria.sheets.adapters import (
    IMPORTED_ENVIRONMENT_NAME,
    NO_DATA_NOTICE,
    HeaderCsvAdapter,
    PublishedSheetAdapter,
    clean_sheet_value,
    load_text,
    parse_amount,
    sheet_project_id,
    split_sheet_line,
)

TODAY = date(2024, 6, 10)


class TestParseAmount:
    def test_plain_and_decimal_comma(self):
        assert parse_amount("1500") == Decimal("1500.00")
        assert parse_amount("1500,00") == Decimal("1500.00")

    def test_thousands_separator(self):
        assert parse_amount("1.500,50") == Decimal("1500.50")

    def test_currency_prefix(self):
        assert parse_amount("R$ 80") == Decimal("80.00")

    def test_garbage(self):
        assert parse_amount("a combinar") == Decimal("0.00")
        assert parse_amount(None) == Decimal("0.00")


class TestHeaderCsvAdapter:
    def test_unquoted_decimal_comma_row(self):
        result = HeaderCsvAdapter(today=TODAY).parse("Cliente,Valor,Status\nAcme,1500,00,Finalizado")
        assert len(result.projects) == 1
        p = result.projects[0]
        assert p.client_name == "Acme"
        assert p.status is ProjectStatus.FINISHED
        assert len(p.environments) == 1
        env = p.environments[0]
        assert env.name == IMPORTED_ENVIRONMENT_NAME
        assert env.value == Decimal("1500.00")
        assert env.completed is True
        assert p.is_external is False

    def test_semicolon_delimiter(self):
        text = "Nome;Valor;Status;Pedido;Telefone\nBeto;2.500,50;Em Andamento;42;11 9999-0000\n"
        p = HeaderCsvAdapter(today=TODAY).parse(text).projects[0]
        assert p.client_name == "Beto"
        assert p.environments[0].value == Decimal("2500.50")
        assert p.environments[0].completed is False
        assert p.status is ProjectStatus.IN_PROGRESS
        assert p.order_number == "42"
        assert p.client_phone == "11 9999-0000"

    def test_header_only_yields_notice(self):
        result = HeaderCsvAdapter().parse("Cliente,Valor,Status\n")
        assert result.projects == []
        assert result.notice == NO_DATA_NOTICE

    def test_empty_text(self):
        assert HeaderCsvAdapter().parse("").projects == []

    def test_rows_without_client_skipped(self):
        result = HeaderCsvAdapter(today=TODAY).parse("Cliente,Valor\n,100\nAcme,200\n")
        assert [p.client_name for p in result.projects] == ["Acme"]
        assert result.skipped == 1

    def test_defaults_for_bad_cells(self):
        p = HeaderCsvAdapter(today=TODAY).parse("cliente,valor,status\nAcme,abc,Pendurado").projects[0]
        assert p.environments[0].value == Decimal("0.00")
        assert p.status is ProjectStatus.WAITING
        assert p.received_date == "2024-06-10"

    def test_oversized_value_defaults_to_zero(self):
        result = HeaderCsvAdapter(today=TODAY).parse("Cliente,Valor,Status\nAcme,1e30,Finalizado\n")
        assert result.projects[0].environments[0].value == Decimal("0.00")
        assert result.projects[0].status is ProjectStatus.FINISHED

    def test_blank_lines_bom_and_short_rows(self):
        text = "\ufeff\nCliente,Valor,Status,Observacoes\n\nAcme,100\n\n\n"
        result = HeaderCsvAdapter(today=TODAY).parse(text)
        assert len(result.projects) == 1
        assert result.projects[0].notes == ""

    def test_quoted_fields(self):
        text = 'Cliente,Valor,Observacoes\n"Silva, Ana",100,"diz ""oi"""\n'
        p = HeaderCsvAdapter(today=TODAY).parse(text).projects[0]
        assert p.client_name == "Silva, Ana"
        assert p.notes == 'diz "oi"'

    def test_first_synonym_wins(self):
        p = HeaderCsvAdapter(today=TODAY).parse("Nome,Cliente\nWrong,Right").projects[0]
        assert p.client_name == "Right"

    def test_dates_and_commission(self):
        text = "Cliente,Recebido,Prazo,Comissao\nAcme,01/06/2024,2024-06-20,\"0,5\"\n"
        p = HeaderCsvAdapter(today=TODAY).parse(text).projects[0]
        assert p.received_date == "2024-06-01"
        assert p.deadline_date == "2024-06-20"
        assert p.commission_percentage == Decimal("0.50")

    def test_load_text_strips_bom(self, tmp_path):
        path = tmp_path / "in.csv"
        path.write_bytes("\ufeffCliente\nAcme\n".encode("utf-8"))
        assert load_text(path).startswith("Cliente")


SHEET_TEXT = "\n".join([
    "Controle de Pedidos",
    ",,,,,,,,,,,",
    "",
    ",,,,,,DATA,CLIENTE,AMBIENTE,MEDICAO,PEDIDO,VALOR",
    ',,,,,,06/06/2024,Acme,Kitchen,medido 05/06,100,"R$ 1.500,00"',
    ",,,,,,,CLIENTE,,,,",
    ",,,,,,07/06/2024,,Sala,,101,200",
    ",,,,,,07/06/2024,Beto,,,102,",
    ',,,,,,08/06/2024,Carla,,,103,"R$ 300,00"',
    ",,,,,,,Dora,Sala",
    "",
])


class TestPublishedSheetAdapter:
    def _parse(self):
        return PublishedSheetAdapter(default_commission="0.5", today=TODAY).parse(SHEET_TEXT)

    def test_rows_parsed(self):
        result = self._parse()
        assert [p.client_name for p in result.projects] == ["Acme", "Carla", "Dora"]

    def test_skipped_rows_counted(self):
        # the CLIENTE sentinel row plus two rows lacking a client or an amount
        assert self._parse().skipped == 3

    def test_project_fields(self):
        p = self._parse().projects[0]
        assert p.id == "sheet-100-Acme-Kitchen"
        assert p.order_number == "100"
        assert p.received_date == "2024-06-06"
        assert p.status is ProjectStatus.IN_PROGRESS
        assert p.is_external is True
        assert p.commission_percentage == Decimal("0.50")
        assert p.environments[0].name == "Kitchen"
        assert p.environments[0].value == Decimal("1500.00")
        assert p.notes == "Imported via Google Sheets. Measurement: medido 05/06"

    def test_empty_room_uses_default_name(self):
        carla = self._parse().projects[1]
        assert carla.environments[0].name == "Geral"
        assert carla.environments[0].value == Decimal("300.00")

    def test_short_row_padded(self):
        dora = self._parse().projects[2]
        assert dora.environments[0].value == Decimal("0.00")
        assert dora.received_date == "2024-06-10"

    def test_oversized_value_defaults_to_zero(self):
        text = "\n".join(SHEET_TEXT.splitlines()[:4] + [",,,,,,06/06/2024,Acme,Kitchen,,100," + "9" * 30])
        p = PublishedSheetAdapter(today=TODAY).parse(text).projects[0]
        assert p.environments[0].value == Decimal("0.00")

    def test_banner_only(self):
        result = PublishedSheetAdapter().parse("a\nb\nc\nd\n")
        assert result.projects == []
        assert result.notice == NO_DATA_NOTICE


def test_split_sheet_line_respects_quotes():
    assert split_sheet_line('a,"b,c",d') == ["a", "b,c", "d"]


def test_clean_sheet_value():
    assert clean_sheet_value("R$ 1.234,56") == Decimal("1234.56")
    assert clean_sheet_value("") == Decimal("0.00")


def test_sheet_project_id():
    assert sheet_project_id("100", "Acme", "Kitchen") == "sheet-100-Acme-Kitchen"
