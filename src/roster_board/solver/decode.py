"""
Decode the solver's flat assignment back into a school -> row -> employee grid.

The solver numbers cells row-major over the table as it was sent:

    index = row_index * len(schools) + school_index

Grouped tables are linearised shift-major, slot-minor (see
models.GroupedRows.row_keys), so the same arithmetic covers both layouts.

Partial or stale solver output must never break the board, so indices that
don't parse or fall outside the current grid are dropped, not raised.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping, Optional, Sequence, Tuple

from roster_board.models import BoardSet, Schedule, Table

logger = logging.getLogger(__name__)


def encode_index(row_index: int, school_index: int, school_count: int) -> int:
    return row_index * school_count + school_index


def locate_index(index: int, school_count: int) -> Tuple[int, int]:
    """Inverse of encode_index: (row_index, school_index)."""
    return index // school_count, index % school_count


def _parse_index(key: Any) -> Optional[int]:
    try:
        idx = int(key)
    except (TypeError, ValueError):
        return None
    return idx if idx >= 0 else None


def decode(raw: Mapping[str, Any], schools: Sequence[str],
           row_keys: Sequence[str]) -> Schedule:
    schedule: Schedule = {school: {} for school in schools}
    if not schools:
        return schedule

    dropped = 0
    for key, employee in raw.items():
        idx = _parse_index(key)
        if idx is None or employee is None or employee == "":
            dropped += 1
            continue
        row_i, school_i = locate_index(idx, len(schools))
        if row_i >= len(row_keys):
            dropped += 1
            continue
        schedule[schools[school_i]][row_keys[row_i]] = str(employee)

    if dropped:
        logger.debug("Dropped %d solver cell(s) outside a %dx%d grid",
                     dropped, len(row_keys), len(schools))
    return schedule


def decode_for_table(raw: Mapping[str, Any], table: Table) -> Schedule:
    return decode(raw, table.schools, table.row_keys())


def apply_solution(board: BoardSet, key: str, raw: Mapping[str, Any]) -> BoardSet:
    """Replace table `key`'s schedule with the decoded solver output."""
    table = board.get(key)
    tables = dict(board.tables)
    tables[key] = replace(table, schedule=decode_for_table(raw, table))
    return replace(board, tables=tables)
