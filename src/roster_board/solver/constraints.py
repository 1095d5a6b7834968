"""
Turn per-employee marks into the two constraint maps the solver expects.

Time indices are the solver's own cell numbering, so they are passed through
as-is; the deriver does not need the table layout to interpret them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence

from roster_board.models import Mark, is_reserved_key, parse_mark


@dataclass(frozen=True)
class ConstraintSet:
    unavailable:   Dict[str, List[int]] = field(default_factory=dict)
    prefer_not_to: Dict[str, List[int]] = field(default_factory=dict)


def _index(key: Any) -> int:
    """Parse a mark key; -1 for anything that is not a non-negative int."""
    try:
        value = int(key)
    except (TypeError, ValueError):
        return -1
    return value if value >= 0 else -1


def derive(employees: Sequence[str],
           employee_data: Mapping[str, Mapping[str, Any]]) -> ConstraintSet:
    """
    Employees with nothing in a bucket are left out of that bucket, for
    both buckets alike. Unparseable keys are dropped without complaint.
    """
    unavailable:   Dict[str, List[int]] = {}
    prefer_not_to: Dict[str, List[int]] = {}

    for employee in employees:
        hard: set = set()
        soft: set = set()
        for key, raw in (employee_data.get(employee) or {}).items():
            if is_reserved_key(key):
                continue
            idx = _index(key)
            if idx < 0:
                continue
            mark = parse_mark(raw)
            if mark is Mark.UNAVAILABLE:
                hard.add(idx)
            elif mark is Mark.PREFER_NOT_TO:
                soft.add(idx)
        if hard:
            unavailable[employee] = sorted(hard)
        if soft:
            prefer_not_to[employee] = sorted(soft)

    return ConstraintSet(unavailable=unavailable, prefer_not_to=prefer_not_to)
