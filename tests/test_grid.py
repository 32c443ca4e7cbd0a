"""Tests for the sheet hosts and header helpers."""

from datetime import date

import pytest
from openpyxl import Workbook, load_workbook

from sheetjira.models.mapping import MappingEntry, MappingTarget
from sheetjira.sheets.columns import SheetTable, cell_text, is_flag_set
from sheetjira.sheets.grid import Hyperlink, InMemorySheet, WorkbookFile


@pytest.fixture
def workbook_path(tmp_path):
    path = tmp_path / "tickets.xlsx"
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Backlog"
    sheet.append(["Summary", "Due", "Ticket Key", "#"])
    sheet.append(["Fix login", date(2026, 3, 9), None, None])
    workbook.create_sheet("Archive")
    workbook.save(path)
    return path


class TestWorkbookFile:
    def test_reads_tabs_and_values(self, workbook_path):
        workbook = WorkbookFile(str(workbook_path))

        assert workbook.sheet_names == ["Backlog", "Archive"]
        values = workbook.sheet("Backlog").get_values()
        assert values[0] == ["Summary", "Due", "Ticket Key", "#"]
        assert values[1][0] == "Fix login"

    def test_write_back_with_hyperlink(self, workbook_path):
        workbook = WorkbookFile(str(workbook_path))
        sheet = workbook.sheet("Backlog")
        sheet.set_value(2, 3, "OPS-1")
        sheet.set_value(2, 4, Hyperlink("https://example.atlassian.net/browse/OPS-1", "OPS-1"))
        workbook.save()

        saved = load_workbook(workbook_path)["Backlog"]
        assert saved.cell(row=2, column=3).value == "OPS-1"
        assert saved.cell(row=2, column=4).value == "OPS-1"
        assert saved.cell(row=2, column=4).hyperlink.target == "https://example.atlassian.net/browse/OPS-1"

    def test_unknown_tab(self, workbook_path):
        with pytest.raises(KeyError):
            WorkbookFile(str(workbook_path)).sheet("Roadmap")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            WorkbookFile(str(tmp_path / "absent.xlsx")).open()


class TestSheetTable:
    def test_rows_are_padded_to_headers(self):
        sheet = InMemorySheet("Backlog", [["Summary", "Status", "Ticket Key"], ["Fix"]])
        table = SheetTable(sheet)

        assert table.row(2) == ["Fix", None, None]
        assert table.row(9) == [None, None, None]
        assert list(table.row_numbers()) == [2]

    def test_ticket_key_from_literal_or_mapped_column(self):
        sheet = InMemorySheet("Backlog", [["Summary", "Ref", "Ticket Key"], ["Fix", "OPS-4", ""]])
        table = SheetTable(sheet)

        assert table.ticket_key(2, {}) == ""
        assert table.ticket_key(2, {"Ref": MappingEntry(target=MappingTarget.TICKET_ID)}) == "OPS-4"

    def test_write_updates_sheet_and_cache(self):
        sheet = InMemorySheet("Backlog", [["Summary", "Ticket Key", "#"], ["Fix"]])
        table = SheetTable(sheet)

        table.write(2, 2, "OPS-1")
        table.write_link(2, "https://example.atlassian.net/browse/OPS-1", "OPS-1")

        assert sheet.get_value(2, 2) == "OPS-1"
        assert table.ticket_key(2, {}) == "OPS-1"
        assert str(sheet.get_value(2, 3)) == "OPS-1"

    def test_write_link_without_link_column(self):
        sheet = InMemorySheet("Backlog", [["Summary"], ["Fix"]])
        SheetTable(sheet).write_link(2, "https://example.atlassian.net/browse/OPS-1", "OPS-1")
        assert sheet.rows == [["Summary"], ["Fix"]]


@pytest.mark.parametrize(
    "value, expected",
    [(3.0, "3"), (2.5, "2.5"), ("  text ", "text"), (None, ""), (42, "42")],
)
def test_cell_text(value, expected):
    assert cell_text(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [(True, True), ("x", True), ("Yes", True), ("✓", True), (1, True), ("", False), (None, False), ("no", False), (False, False)],
)
def test_is_flag_set(value, expected):
    assert is_flag_set(value) == expected
