"""
Editing session — the single owner of one user's board.

The session holds the current BoardDocument and routes every change through
the pure functions in editor.py, replacing its snapshot with the result.
Callers that keep a reference to an older snapshot never see it change.

Network actions (load, save, solve) are guarded: only one may be in flight
at a time. A second call while one is outstanding raises BusyError rather
than sending a duplicate request. Transport failures are turned into a
"try again" message on session.error and a False return; the board is left
exactly as it was.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Optional

from roster_board import editor
from roster_board.errors import BusyError, NotFoundError, TransportError, ValidationError
from roster_board.export import write_workbook
from roster_board.models import (BoardDocument, BoardSet, EmployeeData, Mark,
    Table, parse_mark)
from roster_board.solver.api import SolverClient
from roster_board.solver.constraints import ConstraintSet, derive
from roster_board.solver.decode import apply_solution
from roster_board.solver.precheck import precheck
from roster_board.solver.result import SolveRequest
from roster_board.store import BoardStore

logger = logging.getLogger(__name__)

LOAD_FAILED  = "Failed to load data. Please try again."
SAVE_FAILED  = "Failed to save data. Please try again."
SOLVE_FAILED = "Failed to solve constraints. Please try again."


class BoardSession:
    def __init__(self, user: str,
                 store: Optional[BoardStore] = None,
                 solver: Optional[SolverClient] = None,
                 organization: Optional[str] = None,
                 managers: Optional[List[str]] = None,
                 doc: Optional[BoardDocument] = None) -> None:
        self.user         = user
        self.store        = store
        self.solver       = solver
        self.organization = organization
        self.managers     = list(managers or [])
        self.doc          = doc or BoardDocument()
        self.error: Optional[str] = None
        self._inflight = threading.Lock()
        self._action: Optional[str] = None

    # ---- snapshots -----------------------------------------------------------

    @property
    def board(self) -> BoardSet:
        return self.doc.board

    @property
    def employees(self) -> List[str]:
        return list(self.doc.employees)

    @property
    def employee_data(self) -> EmployeeData:
        return self.doc.employee_data

    @property
    def current(self) -> Optional[str]:
        return self.doc.board.current

    @property
    def table(self) -> Optional[Table]:
        return editor.current_table(self.doc.board)

    @property
    def busy(self) -> bool:
        return self._inflight.locked()

    def _set_board(self, board: BoardSet) -> None:
        self.doc = BoardDocument(board, self.doc.employees, self.doc.employee_data)

    def _require_current(self) -> str:
        if self.doc.board.current is None:
            raise NotFoundError("No table selected")
        return self.doc.board.current

    def _edit(self, fn, *args) -> None:
        self._set_board(editor.update_table(self.doc.board, self._require_current(), fn, *args))

    # ---- in-flight guard -----------------------------------------------------

    @contextmanager
    def _request(self, action: str) -> Iterator[None]:
        if not self._inflight.acquire(blocking=False):
            raise BusyError(f"Cannot {action}: {self._action} already in progress")
        self._action = action
        self.error   = None
        try:
            yield
        finally:
            self._action = None
            self._inflight.release()

    # ---- store ---------------------------------------------------------------

    def load(self) -> bool:
        if self.store is None:
            raise TransportError("No board store configured")
        with self._request("load"):
            try:
                self.doc = self.store.load(self.user)
            except TransportError:
                logger.exception("Loading board for %s failed", self.user)
                self.error = LOAD_FAILED
                return False
        logger.info("Loaded %d table(s) for %s", len(self.doc.board.tables), self.user)
        return True

    def save(self) -> bool:
        if self.store is None:
            raise TransportError("No board store configured")
        with self._request("save"):
            try:
                self.store.save(self.user, self.doc)
            except TransportError:
                logger.exception("Saving board for %s failed", self.user)
                self.error = SAVE_FAILED
                return False
        return True

    # ---- solve ---------------------------------------------------------------

    def constraints(self) -> ConstraintSet:
        return derive(self.doc.employees, self.doc.employee_data)

    def build_request(self) -> SolveRequest:
        return SolveRequest.build(
            self.doc.employees, self.constraints(),
            user=self.organization, managers=self.managers,
        )

    def solve(self) -> bool:
        """Solve the current table and merge the result into the board."""
        if self.solver is None:
            raise TransportError("No solver configured")
        key = self._require_current()
        errors, _ = precheck(self.doc.board.get(key))
        if errors:
            raise ValidationError("\n".join(errors))

        with self._request("solve"):
            try:
                response = self.solver.solve(self.build_request())
            except TransportError:
                logger.exception("Solve for table %s failed", key)
                self.error = SOLVE_FAILED
                return False
            # the table may have been deleted or renamed while solving
            if key not in self.doc.board.tables:
                logger.warning("Table %s went away during solve; result discarded", key)
                return False
            self._set_board(apply_solution(self.doc.board, key, response.schedule))
        return True

    def export(self, path: str | Path) -> Path:
        table = self.table
        if table is None:
            raise NotFoundError("No table selected")
        return write_workbook(table, path)

    # ---- tables --------------------------------------------------------------

    def add_table(self) -> str:
        self._set_board(editor.add_table(self.doc.board))
        return self._require_current()

    def select_table(self, key: str) -> None:
        self._set_board(editor.select_table(self.doc.board, key))

    def delete_table(self, key: Optional[str] = None) -> None:
        key = key if key is not None else self._require_current()
        self._set_board(editor.delete_table(self.doc.board, key))

    def rename_table(self, new: str, old: Optional[str] = None) -> bool:
        old = old if old is not None else self._require_current()
        try:
            self._set_board(editor.rename_table(self.doc.board, old, new))
        except ValidationError as e:
            logger.warning("Rename of table %s refused: %s", old, e)
            return False
        return True

    # ---- columns / rows / cells ---------------------------------------------

    def add_school(self) -> None:
        self._edit(editor.add_school)

    def rename_school(self, index: int, label: str) -> None:
        self._edit(editor.rename_school, index, label)

    def delete_school(self, index: int) -> None:
        self._edit(editor.delete_school, index)

    def add_slot(self, group: Optional[int] = None) -> None:
        self._edit(editor.add_slot, group)

    def rename_slot(self, index: int, label: str) -> None:
        self._edit(editor.rename_slot, index, label)

    def delete_slot(self, index: int) -> None:
        self._edit(editor.delete_slot, index)

    def add_shift(self, shift: Optional[str] = None) -> None:
        self._edit(editor.add_shift, shift)

    def rename_shift(self, index: int, shift: str) -> None:
        self._edit(editor.rename_shift, index, shift)

    def delete_shift(self, index: int) -> None:
        self._edit(editor.delete_shift, index)

    def assign(self, school: str, row_key: str, employee: Optional[str]) -> None:
        self._edit(editor.assign, school, row_key, employee)

    # ---- employees -----------------------------------------------------------

    def add_employee(self, name: str) -> bool:
        name = (name or "").strip()
        if not name or name in self.doc.employees:
            return False
        self.doc = BoardDocument(self.doc.board, self.doc.employees + [name],
                                 self.doc.employee_data)
        return True

    def remove_employee(self, index: int) -> str:
        """Drop an employee and their marks. Existing assignments stay as text."""
        if not 0 <= index < len(self.doc.employees):
            raise NotFoundError(f"No employee at index {index}")
        name = self.doc.employees[index]
        employees = [e for i, e in enumerate(self.doc.employees) if i != index]
        data = {e: m for e, m in self.doc.employee_data.items() if e != name}
        self.doc = BoardDocument(self.doc.board, employees, data)
        return name

    def set_mark(self, employee: str, index: int, mark: Any) -> None:
        if employee not in self.doc.employees:
            raise NotFoundError(f"No employee named '{employee}'")
        if index < 0:
            raise ValueError("Time index must be >= 0")
        marks = dict(self.doc.employee_data.get(employee, {}))
        value = parse_mark(mark)
        if value is Mark.AVAILABLE:
            marks.pop(str(index), None)
        else:
            marks[str(index)] = value
        data = dict(self.doc.employee_data)
        data[employee] = marks
        self.doc = BoardDocument(self.doc.board, self.doc.employees, data)
