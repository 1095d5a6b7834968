"""Spreadsheet export for a table's current grid."""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from roster_board.models import Table
from roster_board.solver.precheck import ensure_consistent

SHEET_NAME = "Schedule"
CORNER     = " "


def to_sheet(schools: Sequence[str], row_keys: Sequence[str],
             schedule: Mapping[str, Mapping[str, str]]) -> List[List[str]]:
    """Rows = slots, columns = schools; the header row leads with a blank corner."""
    rows = [[CORNER, *schools]]
    for key in row_keys:
        rows.append([key, *(schedule.get(s, {}).get(key) or "" for s in schools)])
    return rows


def table_to_sheet(table: Table) -> List[List[str]]:
    ensure_consistent(table)
    return to_sheet(table.schools, table.row_keys(), table.schedule)


def write_workbook(table: Table, path: str | Path) -> Path:
    rows = table_to_sheet(table)

    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_NAME
    for row in rows:
        ws.append(row)

    for cell in ws[1]:
        cell.font = Font(bold=True)
    for col_idx in range(1, len(rows[0]) + 1):
        width = max(len(str(r[col_idx - 1])) for r in rows)
        ws.column_dimensions[get_column_letter(col_idx)].width = width + 2

    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    wb.save(p)
    return p
