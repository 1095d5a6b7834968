from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from roster_board.errors import TransportError
from roster_board.solver.constraints import ConstraintSet


@dataclass(frozen=True)
class SolveRequest:
    workers:                 List[str]
    unavailable_constraints: Dict[str, List[int]] = field(default_factory=dict)
    prefer_not_to:           Dict[str, List[int]] = field(default_factory=dict)
    user:                    Optional[str]        = None   # organisation tag
    managers:                Optional[List[str]]  = None

    @classmethod
    def build(cls, workers: List[str], constraints: ConstraintSet,
              user: Optional[str] = None,
              managers: Optional[List[str]] = None) -> "SolveRequest":
        return cls(
            workers                 = list(workers),
            unavailable_constraints = dict(constraints.unavailable),
            prefer_not_to           = dict(constraints.prefer_not_to),
            user                    = user,
            managers                = list(managers) if managers else None,
        )

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "workers":                 list(self.workers),
            "unavailable_constraints": {k: list(v) for k, v in self.unavailable_constraints.items()},
            "prefer_not_to":           {k: list(v) for k, v in self.prefer_not_to.items()},
        }
        if self.user:
            payload["user"] = self.user
        if self.managers:
            payload["managers"] = list(self.managers)
        return payload


@dataclass(frozen=True)
class SolveResponse:
    schedule: Dict[str, Any] = field(default_factory=dict)   # "index" -> employee

    @classmethod
    def from_payload(cls, data: Any) -> "SolveResponse":
        if not isinstance(data, dict):
            raise TransportError(
                f"Solver returned {type(data).__name__}, expected a JSON object"
            )
        schedule = data.get("schedule")
        if not isinstance(schedule, dict):
            raise TransportError("Solver response has no 'schedule' object")
        return cls(schedule={str(k): v for k, v in schedule.items()})
