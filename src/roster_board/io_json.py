"""
JSON serialisation / deserialisation for board documents.

Uses only the Python standard-library json module. The same dict shape is
used on disk and over the wire to the backing store:

    {
      "tables": {
        "<name>": {
          "schools":  ["A", "B"],
          "hours":    ["H1", "H2"],                      # flat rows, or
          "slots":    [{"shift": "AM", "slots": ["1"]}], # grouped rows
          "schedule": {"A": {"H1": "Alice"}}
        }
      },
      "employees":    ["Alice", "Bob"],
      "employeeData": {"Alice": {"0": "x", "3": "-", "visual_0": "x"}}
    }

Every top-level field is optional and defaults to empty. Structural problems
(wrong JSON types) raise DocumentError before any domain object is built.

Reference: Python docs — json
https://docs.python.org/3/library/json.html
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

from roster_board.models import (BoardDocument, BoardSet, EmployeeData,
    FlatRows, GroupedRows, Mark, RowSpec, Schedule, ShiftGroup, Table,
    is_reserved_key, parse_mark)


class DocumentError(ValueError):
    """Raised when a board document is structurally invalid."""


def _require(obj: Dict[str, Any], key: str, ctx: str) -> Any:
    if key not in obj:
        raise DocumentError(f"Missing required key '{key}' in {ctx}")
    return obj[key]


def _as_list(obj: Any, ctx: str) -> List[Any]:
    if not isinstance(obj, list):
        raise DocumentError(f"Expected a JSON array in {ctx}, got {type(obj).__name__}")
    return obj


def _as_dict(obj: Any, ctx: str) -> Dict[str, Any]:
    if not isinstance(obj, dict):
        raise DocumentError(
            f"Expected a JSON object in {ctx}, got {type(obj).__name__}"
        )
    return obj


def _get(obj: Dict[str, Any], key: str, default: Any) -> Any:
    """Like dict.get, but an explicit null also falls back to the default."""
    value = obj.get(key)
    return default if value is None else value


def _rows_from_dict(raw: Dict[str, Any], ctx: str) -> RowSpec:
    slots = raw.get("slots")
    if slots is not None:
        slots = _as_list(slots, f"{ctx}.slots")
        if slots and all(isinstance(s, str) for s in slots):
            return FlatRows(tuple(slots))
        groups = []
        for i, g in enumerate(slots):
            g = _as_dict(g, f"{ctx}.slots[{i}]")
            groups.append(ShiftGroup(
                shift = str(_require(g, "shift", f"{ctx}.slots[{i}]")),
                slots = tuple(str(s) for s in _as_list(_get(g, "slots", []),
                                                       f"{ctx}.slots[{i}].slots")),
            ))
        return GroupedRows(tuple(groups))
    hours = _as_list(_get(raw, "hours", []), f"{ctx}.hours")
    return FlatRows(tuple(str(h) for h in hours))


def _schedule_from_dict(raw: Any, ctx: str) -> Schedule:
    schedule: Schedule = {}
    for school, cells in _as_dict(raw if raw is not None else {}, ctx).items():
        cells = _as_dict(cells if cells is not None else {}, f"{ctx}.{school}")
        # unassigned cells may come back as null or ""
        schedule[str(school)] = {str(k): str(v) for k, v in cells.items() if v}
    return schedule


def table_from_dict(raw: Any, ctx: str = "table") -> Table:
    raw = _as_dict(raw, ctx)
    return Table(
        schools  = tuple(str(s) for s in _as_list(_get(raw, "schools", []), f"{ctx}.schools")),
        rows     = _rows_from_dict(raw, ctx),
        schedule = _schedule_from_dict(raw.get("schedule"), f"{ctx}.schedule"),
    )


def table_to_dict(table: Table) -> Dict[str, Any]:
    out: Dict[str, Any] = {"schools": list(table.schools)}
    if isinstance(table.rows, GroupedRows):
        out["slots"] = [{"shift": g.shift, "slots": list(g.slots)} for g in table.rows.groups]
    else:
        out["hours"] = list(table.rows.labels)
    out["schedule"] = {s: dict(cells) for s, cells in table.schedule.items()}
    return out


def _employee_data_from_dict(raw: Any) -> EmployeeData:
    data: EmployeeData = {}
    for employee, marks in _as_dict(raw if raw is not None else {}, "employeeData").items():
        marks = _as_dict(marks if marks is not None else {}, f"employeeData.{employee}")
        clean: Dict[str, Any] = {}
        for key, value in marks.items():
            if is_reserved_key(key):
                clean[key] = value
                continue
            mark = parse_mark(value)
            if mark is not Mark.AVAILABLE:
                clean[str(key)] = mark
        data[str(employee)] = clean
    return data


def _employee_data_to_dict(data: EmployeeData) -> Dict[str, Any]:
    return {
        emp: {k: (v.value if isinstance(v, Mark) else v) for k, v in marks.items()}
        for emp, marks in data.items()
    }


def document_from_dict(raw: Any) -> BoardDocument:
    """Build a BoardDocument; the first table (if any) becomes current."""
    raw = _as_dict(raw if raw is not None else {}, "root")

    tables_raw = _as_dict(_get(raw, "tables", {}), "tables")
    tables = {str(name): table_from_dict(t, f"tables.{name}") for name, t in tables_raw.items()}

    employees = [str(e) for e in _as_list(_get(raw, "employees", []), "employees")]
    if len(set(employees)) != len(employees):
        dupes = sorted({e for e in employees if employees.count(e) > 1})
        raise DocumentError(f"Duplicate employees: {dupes}")

    return BoardDocument(
        board         = BoardSet(tables=tables, current=next(iter(tables), None)),
        employees     = employees,
        employee_data = _employee_data_from_dict(raw.get("employeeData")),
    )


def document_to_dict(doc: BoardDocument) -> Dict[str, Any]:
    return {
        "tables":       {name: table_to_dict(t) for name, t in doc.board.tables.items()},
        "employees":    list(doc.employees),
        "employeeData": _employee_data_to_dict(doc.employee_data),
    }


def load_document(path: str | Path) -> BoardDocument:
    """Load a board document from a JSON file."""
    with Path(path).open("r", encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as e:
            raise DocumentError(f"Not valid JSON: {e}") from e
    return document_from_dict(raw)


def save_document(doc: BoardDocument, path: str | Path) -> None:
    """Serialise a board document to JSON, creating parent directories if needed."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as f:
        # ensure_ascii=False keeps non-Latin labels readable on disk.
        json.dump(document_to_dict(doc), f, ensure_ascii=False, indent=2)
