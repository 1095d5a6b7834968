"""Tests for the grid sheet layout and the .xlsx writer."""
from pathlib import Path

import pytest
from openpyxl import load_workbook

from roster_board.errors import ValidationError
from roster_board.export import SHEET_NAME, table_to_sheet, to_sheet, write_workbook
from roster_board.models import FlatRows, GroupedRows, ShiftGroup, Table


def _table() -> Table:
    return Table(
        schools  = ("A", "B"),
        rows     = FlatRows(("H1", "H2")),
        schedule = {"A": {"H1": "Alice"}, "B": {"H2": "Former Employee"}},
    )


def test_sheet_layout() -> None:
    assert table_to_sheet(_table()) == [
        [" ", "A", "B"],
        ["H1", "Alice", ""],
        ["H2", "", "Former Employee"],
    ]


def test_school_missing_from_schedule_exports_blank() -> None:
    assert to_sheet(["A", "Z"], ["H1"], {"A": {"H1": "Alice"}}) == [
        [" ", "A", "Z"],
        ["H1", "Alice", ""],
    ]


def test_grouped_rows_use_composite_keys() -> None:
    table = Table(
        schools  = ("A",),
        rows     = GroupedRows((ShiftGroup("AM", ("1",)), ShiftGroup("PM", ("1",)))),
        schedule = {"A": {"PM-1": "Bob"}},
    )
    assert table_to_sheet(table)[1:] == [["AM-1", ""], ["PM-1", "Bob"]]


def test_inconsistent_table_is_refused() -> None:
    stale = Table(schools=("A",), rows=FlatRows(("H1",)), schedule={"Gone": {"H1": "X"}})
    with pytest.raises(ValidationError, match="Gone"):
        table_to_sheet(stale)


def test_write_workbook(tmp_path: Path) -> None:
    out = write_workbook(_table(), tmp_path / "out" / "schedule.xlsx")
    assert out.exists()

    wb = load_workbook(out)
    assert wb.sheetnames == [SHEET_NAME]
    ws = wb[SHEET_NAME]
    values = [[c or "" for c in row] for row in ws.iter_rows(values_only=True)]
    assert values[0][1:] == ["A", "B"]
    assert values[1] == ["H1", "Alice", ""]
    assert values[2] == ["H2", "", "Former Employee"]
