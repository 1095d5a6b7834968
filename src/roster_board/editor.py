"""
Table / column / row editing.

Every function here takes a BoardSet or Table value and returns a new one;
inputs are never modified. The invariant kept by every operation: each
(school, row_key) pair present in a table's schedule names a school in
table.schools and a row produced by table.row_keys().

Column and row positions are 0-based. Slot operations address the
linearised row sequence, so the same index works for flat and grouped rows.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Dict, Iterable, Optional, Set

from roster_board.errors import NotFoundError, ValidationError
from roster_board.models import (BoardSet, FlatRows, GroupedRows, Schedule,
    ShiftGroup, Table, composite_key, copy_schedule)

DEFAULT_SCHOOL = "School {}"
DEFAULT_HOUR   = "Hour {}"
DEFAULT_SHIFT  = "Shift {}"
DEFAULT_SLOT   = "Slot {}"


# ── helpers ──────────────────────────────────────────────────────────────────

def _next_label(pattern: str, existing: Iterable[str]) -> str:
    taken = set(existing)
    n = len(taken) + 1
    while pattern.format(n) in taken:
        n += 1
    return pattern.format(n)


def _clean(label: Optional[str], what: str) -> str:
    label = (label or "").strip()
    if not label:
        raise ValidationError(f"{what} cannot be empty")
    return label


def _rekey_rows(schedule: Schedule, mapping: Dict[str, str]) -> Schedule:
    out: Schedule = {}
    for school, cells in schedule.items():
        out[school] = {mapping.get(key, key): emp for key, emp in cells.items()}
    return out


def _drop_rows(schedule: Schedule, keys: Set[str]) -> Schedule:
    return {
        school: {key: emp for key, emp in cells.items() if key not in keys}
        for school, cells in schedule.items()
    }


def _school_at(table: Table, index: int) -> str:
    if not 0 <= index < len(table.schools):
        raise NotFoundError(f"No school at index {index}")
    return table.schools[index]


def _group_at(rows: GroupedRows, index: int) -> ShiftGroup:
    if not 0 <= index < len(rows.groups):
        raise NotFoundError(f"No shift at index {index}")
    return rows.groups[index]


def _replace_group(rows: GroupedRows, index: int, group: Optional[ShiftGroup]) -> GroupedRows:
    groups = list(rows.groups)
    if group is None:
        del groups[index]
    else:
        groups[index] = group
    return GroupedRows(tuple(groups))


# ── tables ───────────────────────────────────────────────────────────────────

def new_table() -> Table:
    return Table(
        schools  = (DEFAULT_SCHOOL.format(1),),
        rows     = FlatRows((DEFAULT_HOUR.format(1), DEFAULT_HOUR.format(2))),
        schedule = {},
    )


def current_table(board: BoardSet) -> Optional[Table]:
    return board.tables.get(board.current) if board.current is not None else None


def add_table(board: BoardSet) -> BoardSet:
    """Add a seeded table under a fresh key and make it current."""
    n = len(board.tables) + 1
    while f"table{n}" in board.tables:
        n += 1
    key = f"table{n}"
    tables = dict(board.tables)
    tables[key] = new_table()
    return BoardSet(tables=tables, current=key)


def select_table(board: BoardSet, key: str) -> BoardSet:
    board.get(key)
    return replace(board, current=key)


def delete_table(board: BoardSet, key: str) -> BoardSet:
    board.get(key)
    tables = {k: t for k, t in board.tables.items() if k != key}
    current = board.current
    if current == key:
        current = next(iter(tables), None)
    return BoardSet(tables=tables, current=current)


def rename_table(board: BoardSet, old: str, new: str) -> BoardSet:
    """
    Move table `old` to `new`, keeping its position in the mapping.
    The name is kept as typed; it is only trimmed to check it is not blank.
    """
    board.get(old)
    _clean(new, "Table name")
    if new == old:
        return board
    if new in board.tables:
        raise ValidationError(f"A table named '{new}' already exists")
    tables = {(new if k == old else k): t for k, t in board.tables.items()}
    current = new if board.current == old else board.current
    return BoardSet(tables=tables, current=current)


def update_table(board: BoardSet, key: str,
                 fn: Callable[..., Table], *args, **kwargs) -> BoardSet:
    """Apply a table-level edit to one table of the board."""
    table = board.get(key)
    tables = dict(board.tables)
    tables[key] = fn(table, *args, **kwargs)
    return replace(board, tables=tables)


# ── schools (columns) ────────────────────────────────────────────────────────

def add_school(table: Table, label: Optional[str] = None) -> Table:
    if label is None:
        label = _next_label(DEFAULT_SCHOOL, table.schools)
    label = _clean(label, "School label")
    if label in table.schools:
        raise ValidationError(f"School '{label}' already exists")
    return replace(table, schools=table.schools + (label,))


def rename_school(table: Table, index: int, label: str) -> Table:
    old   = _school_at(table, index)
    label = _clean(label, "School label")
    if label == old:
        return table
    if label in table.schools:
        raise ValidationError(f"School '{label}' already exists")
    schools  = tuple(label if i == index else s for i, s in enumerate(table.schools))
    schedule = copy_schedule(table.schedule)
    schedule.pop(label, None)
    if old in schedule:
        schedule[label] = schedule.pop(old)
    return replace(table, schools=schools, schedule=schedule)


def delete_school(table: Table, index: int) -> Table:
    old      = _school_at(table, index)
    schools  = tuple(s for i, s in enumerate(table.schools) if i != index)
    schedule = {s: dict(cells) for s, cells in table.schedule.items() if s != old}
    return replace(table, schools=schools, schedule=schedule)


# ── slots (rows) ─────────────────────────────────────────────────────────────

def add_slot(table: Table, group: Optional[int] = None) -> Table:
    """
    Append a row. Flat tables get "Hour N"; grouped tables get "Slot N"
    appended to shift `group` (default: the last shift, created if none).
    """
    rows = table.rows
    if isinstance(rows, FlatRows):
        if group is not None:
            raise ValidationError("Flat rows have no shifts")
        label = _next_label(DEFAULT_HOUR, rows.labels)
        return replace(table, rows=FlatRows(rows.labels + (label,)))

    if not rows.groups:
        return add_shift(table)
    g_i   = len(rows.groups) - 1 if group is None else group
    shift = _group_at(rows, g_i)
    # the composite key must be unique across all shifts, not just this one
    taken = set(rows.row_keys())
    n = len(shift.slots) + 1
    while composite_key(shift.shift, DEFAULT_SLOT.format(n)) in taken:
        n += 1
    label = DEFAULT_SLOT.format(n)
    return replace(table, rows=_replace_group(
        rows, g_i, ShiftGroup(shift.shift, shift.slots + (label,))))


def rename_slot(table: Table, index: int, label: str) -> Table:
    keys  = table.row_keys()
    if not 0 <= index < len(keys):
        raise NotFoundError(f"No row at index {index}")
    label = _clean(label, "Slot label")
    rows  = table.rows

    if isinstance(rows, FlatRows):
        new_rows = FlatRows(tuple(label if i == index else l
                                  for i, l in enumerate(rows.labels)))
    else:
        g_i, s_i = rows.locate(index)
        shift = rows.groups[g_i]
        slots = tuple(label if i == s_i else s for i, s in enumerate(shift.slots))
        new_rows = _replace_group(rows, g_i, ShiftGroup(shift.shift, slots))

    old_key = keys[index]
    new_key = new_rows.row_keys()[index]
    if new_key == old_key:
        return table
    if new_key in keys:
        raise ValidationError(f"Row '{new_key}' already exists")
    schedule = _rekey_rows(table.schedule, {old_key: new_key})
    return replace(table, rows=new_rows, schedule=schedule)


def delete_slot(table: Table, index: int) -> Table:
    keys = table.row_keys()
    if not 0 <= index < len(keys):
        raise NotFoundError(f"No row at index {index}")
    rows = table.rows

    if isinstance(rows, FlatRows):
        new_rows = FlatRows(tuple(l for i, l in enumerate(rows.labels) if i != index))
    else:
        g_i, s_i = rows.locate(index)
        shift = rows.groups[g_i]
        slots = tuple(s for i, s in enumerate(shift.slots) if i != s_i)
        new_rows = _replace_group(rows, g_i, ShiftGroup(shift.shift, slots))

    schedule = _drop_rows(table.schedule, {keys[index]})
    return replace(table, rows=new_rows, schedule=schedule)


# ── shifts (grouped rows only) ───────────────────────────────────────────────

def _grouped(table: Table) -> GroupedRows:
    rows = table.rows
    if isinstance(rows, GroupedRows):
        return rows
    if rows.labels:
        raise ValidationError("Table uses flat hour rows; remove them before adding shifts")
    return GroupedRows()


def add_shift(table: Table, shift: Optional[str] = None) -> Table:
    """Append a shift with one default sub-slot."""
    rows  = _grouped(table)
    names = [g.shift for g in rows.groups]
    if shift is None:
        shift = _next_label(DEFAULT_SHIFT, names)
    shift = _clean(shift, "Shift name")
    if shift in names:
        raise ValidationError(f"Shift '{shift}' already exists")
    group    = ShiftGroup(shift, (DEFAULT_SLOT.format(1),))
    new_rows = GroupedRows(rows.groups + (group,))
    if composite_key(shift, group.slots[0]) in rows.row_keys():
        raise ValidationError(f"Shift '{shift}' clashes with an existing row")
    return replace(table, rows=new_rows)


def rename_shift(table: Table, index: int, shift: str) -> Table:
    rows  = _grouped(table)
    old   = _group_at(rows, index)
    shift = _clean(shift, "Shift name")
    if shift == old.shift:
        return table
    if any(g.shift == shift for g in rows.groups):
        raise ValidationError(f"Shift '{shift}' already exists")

    mapping = {composite_key(old.shift, s): composite_key(shift, s) for s in old.slots}
    others  = set(rows.row_keys()) - set(mapping)
    if others & set(mapping.values()):
        raise ValidationError(f"Shift '{shift}' clashes with an existing row")
    new_rows = _replace_group(rows, index, ShiftGroup(shift, old.slots))
    return replace(table, rows=new_rows, schedule=_rekey_rows(table.schedule, mapping))


def delete_shift(table: Table, index: int) -> Table:
    rows  = _grouped(table)
    group = _group_at(rows, index)
    gone  = {composite_key(group.shift, s) for s in group.slots}
    return replace(table,
                   rows=_replace_group(rows, index, None),
                   schedule=_drop_rows(table.schedule, gone))


# ── cells ────────────────────────────────────────────────────────────────────

def assign(table: Table, school: str, row_key: str,
           employee: Optional[str]) -> Table:
    """Set one cell, or clear it when `employee` is empty."""
    if school not in table.schools:
        raise NotFoundError(f"No school named '{school}'")
    if row_key not in table.row_keys():
        raise NotFoundError(f"No row keyed '{row_key}'")
    schedule = copy_schedule(table.schedule)
    cells = schedule.setdefault(school, {})
    if employee:
        cells[row_key] = employee
    else:
        cells.pop(row_key, None)
    return replace(table, schedule=schedule)
