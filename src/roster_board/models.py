"""
Data model layer for the roster board.

Every domain object is a frozen dataclass. Editor and decoder functions never
mutate a value in place; they build a new one with dataclasses.replace().

Reference: Python Software Foundation. "dataclasses — Data Classes."
https://docs.python.org/3/library/dataclasses.html

Design note — row addressing:
  A table's rows are either a flat list of labels ("hours") or a list of
  shifts, each with its own sub-slots. Both variants expose row_keys(), and
  everything that walks rows (decoder, exporter, editor, precheck) goes
  through that one linearisation. Grouped rows are keyed "{shift}-{slot}".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from roster_board.errors import NotFoundError

RESERVED_PREFIX = "visual_"


class Mark(str, Enum):
    """An employee's availability for one time index."""
    UNAVAILABLE   = "x"
    PREFER_NOT_TO = "-"
    AVAILABLE     = ""


def parse_mark(value: Any) -> Mark:
    """Normalise a raw mark. Legacy boolean True means hard-unavailable."""
    if isinstance(value, Mark):
        return value
    if value is True or value == Mark.UNAVAILABLE.value:
        return Mark.UNAVAILABLE
    if value == Mark.PREFER_NOT_TO.value:
        return Mark.PREFER_NOT_TO
    return Mark.AVAILABLE


def is_reserved_key(key: str) -> bool:
    return str(key).startswith(RESERVED_PREFIX)


def composite_key(shift: str, slot: str) -> str:
    return f"{shift}-{slot}"


@dataclass(frozen=True)
class ShiftGroup:
    """One shift, e.g. "Morning", with its ordered sub-slots."""
    shift: str
    slots: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FlatRows:
    labels: Tuple[str, ...] = ()

    def row_keys(self) -> List[str]:
        return list(self.labels)


@dataclass(frozen=True)
class GroupedRows:
    groups: Tuple[ShiftGroup, ...] = ()

    def row_keys(self) -> List[str]:
        return [composite_key(g.shift, s) for g in self.groups for s in g.slots]

    def locate(self, index: int) -> Tuple[int, int]:
        """Map a linear row index to (group index, slot index within group)."""
        if index >= 0:
            remaining = index
            for g_i, group in enumerate(self.groups):
                if remaining < len(group.slots):
                    return g_i, remaining
                remaining -= len(group.slots)
        raise NotFoundError(f"No row at index {index}")


RowSpec = Union[FlatRows, GroupedRows]

Schedule = Dict[str, Dict[str, str]]


@dataclass(frozen=True)
class Table:
    schools:  Tuple[str, ...] = ()
    rows:     RowSpec         = field(default_factory=FlatRows)
    schedule: Schedule        = field(default_factory=dict)

    @property
    def is_grouped(self) -> bool:
        return isinstance(self.rows, GroupedRows)

    def row_keys(self) -> List[str]:
        return self.rows.row_keys()

    def cell(self, school: str, row_key: str) -> Optional[str]:
        return self.schedule.get(school, {}).get(row_key)


@dataclass(frozen=True)
class BoardSet:
    """All tables of one user plus the currently selected table key."""
    tables:  Dict[str, Table] = field(default_factory=dict)
    current: Optional[str]    = None

    def __post_init__(self) -> None:
        if self.current is not None and self.current not in self.tables:
            raise NotFoundError(f"Current table '{self.current}' does not exist")

    def get(self, key: str) -> Table:
        try:
            return self.tables[key]
        except KeyError:
            raise NotFoundError(f"No table named '{key}'") from None


EmployeeData = Dict[str, Dict[str, Any]]


def copy_schedule(schedule: Schedule) -> Schedule:
    """Two-level copy; inner maps are never shared between table values."""
    return {school: dict(cells) for school, cells in schedule.items()}


@dataclass
class BoardDocument:
    """Everything persisted for one user: tables, employees and their marks."""
    board:         BoardSet     = field(default_factory=BoardSet)
    employees:     List[str]    = field(default_factory=list)
    employee_data: EmployeeData = field(default_factory=dict)
