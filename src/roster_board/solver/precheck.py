"""
Consistency checks run before a table is sent to the solver or exported.

A table loaded from disk or the store may carry stale schedule entries or
duplicate labels; catching those here gives plain-English messages instead
of a misaligned grid downstream.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from roster_board.errors import ValidationError
from roster_board.models import Table


@dataclass(frozen=True)
class GridIndex:
    school_to_idx: Dict[str, int]
    row_to_idx:    Dict[str, int]


def build_index(table: Table) -> GridIndex:
    return GridIndex(
        school_to_idx = {s: i for i, s in enumerate(table.schools)},
        row_to_idx    = {k: i for i, k in enumerate(table.row_keys())},
    )


def precheck(table: Table,
             employees: Optional[Sequence[str]] = None) -> Tuple[List[str], List[str]]:
    """Return (errors, warnings). errors = the grid is not safe to address."""
    errors:   List[str] = []
    warnings: List[str] = []

    idx = build_index(table)

    dup_schools = sorted(s for s, n in Counter(table.schools).items() if n > 1)
    if dup_schools:
        errors.append(f"Duplicate school label(s): {dup_schools}")

    dup_rows = sorted(k for k, n in Counter(table.row_keys()).items() if n > 1)
    if dup_rows:
        errors.append(f"Duplicate row key(s): {dup_rows}")

    if not table.schools:
        warnings.append("Table has no schools.")
    if not idx.row_to_idx:
        warnings.append("Table has no rows.")

    known = set(employees) if employees is not None else None
    dangling: set = set()
    for school, cells in table.schedule.items():
        if school not in idx.school_to_idx:
            errors.append(f"Schedule references unknown school '{school}'.")
            continue
        bad = sorted(k for k in cells if k not in idx.row_to_idx)
        if bad:
            errors.append(f"School '{school}' has assignments in unknown row(s): {bad}")
        if known is not None:
            dangling.update(e for e in cells.values() if e not in known)

    if dangling:
        warnings.append(
            f"Assigned employee(s) no longer on the employee list: {sorted(dangling)}"
        )

    return errors, warnings


def ensure_consistent(table: Table) -> None:
    errors, _ = precheck(table)
    if errors:
        raise ValidationError("\n".join(errors))
