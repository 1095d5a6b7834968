"""Tests for table / column / row editing and the schedule invariant."""
import random

import pytest

from roster_board import editor
from roster_board.errors import NotFoundError, ValidationError
from roster_board.models import BoardSet, FlatRows, GroupedRows, ShiftGroup, Table


def _table() -> Table:
    return Table(
        schools  = ("A", "B", "C"),
        rows     = FlatRows(("H1", "H2", "H3")),
        schedule = {
            "A": {"H1": "Alice", "H2": "Bob"},
            "B": {"H1": "Carol", "H3": "Dave"},
            "C": {"H2": "Eve"},
        },
    )


def _grouped() -> Table:
    return Table(
        schools  = ("A", "B"),
        rows     = GroupedRows((ShiftGroup("AM", ("1", "2")), ShiftGroup("PM", ("1",)))),
        schedule = {"A": {"AM-1": "Alice", "PM-1": "Bob"}, "B": {"AM-2": "Carol"}},
    )


def _board() -> BoardSet:
    return BoardSet(tables={"one": _table(), "two": _grouped()}, current="one")


def _assert_consistent(table: Table) -> None:
    rows = set(table.row_keys())
    for school, cells in table.schedule.items():
        assert school in table.schools
        assert set(cells) <= rows


# ── tables ───────────────────────────────────────────────────────────────────

def test_add_table_seeds_defaults_and_selects_it() -> None:
    board = editor.add_table(BoardSet())
    assert board.current == "table1"
    t = board.tables["table1"]
    assert t.schools == ("School 1",)
    assert t.row_keys() == ["Hour 1", "Hour 2"]
    assert t.schedule == {}


def test_add_table_key_is_unique() -> None:
    board = BoardSet(tables={"table2": Table()}, current=None)
    board = editor.add_table(board)
    assert board.current == "table3"
    assert set(board.tables) == {"table2", "table3"}


def test_delete_current_table_repoints_current() -> None:
    board = editor.delete_table(_board(), "one")
    assert list(board.tables) == ["two"]
    assert board.current == "two"


def test_delete_last_table_clears_current() -> None:
    board = BoardSet(tables={"only": Table()}, current="only")
    board = editor.delete_table(board, "only")
    assert board.tables == {}
    assert board.current is None


def test_delete_other_table_keeps_current() -> None:
    board = editor.delete_table(_board(), "two")
    assert board.current == "one"


def test_delete_missing_table_raises() -> None:
    with pytest.raises(NotFoundError):
        editor.delete_table(_board(), "nope")


def test_rename_table_moves_payload_and_current() -> None:
    before = _board()
    board  = editor.rename_table(before, "one", "Week 1")
    assert "one" not in board.tables
    assert board.tables["Week 1"] == before.tables["one"]
    assert board.current == "Week 1"


def test_rename_table_to_existing_name_is_refused() -> None:
    before = _board()
    with pytest.raises(ValidationError):
        editor.rename_table(before, "one", "two")
    assert before == _board()


@pytest.mark.parametrize("name", ["", "   "])
def test_rename_table_blank_is_refused(name: str) -> None:
    with pytest.raises(ValidationError):
        editor.rename_table(_board(), "one", name)


def test_rename_table_to_itself_is_noop() -> None:
    board = _board()
    assert editor.rename_table(board, "one", "one") is board


def test_select_missing_table_raises() -> None:
    with pytest.raises(NotFoundError):
        editor.select_table(_board(), "missing")


def test_board_rejects_dangling_current() -> None:
    with pytest.raises(NotFoundError):
        BoardSet(tables={}, current="ghost")


# ── schools ──────────────────────────────────────────────────────────────────

def test_add_school_appends_unique_default() -> None:
    t = editor.add_school(Table(schools=("School 2",)))
    assert t.schools == ("School 2", "School 3")


def test_delete_school_purges_only_its_column() -> None:
    before = _table()
    after  = editor.delete_school(before, 1)
    assert after.schools == ("A", "C")
    assert "B" not in after.schedule
    assert after.schedule["A"] == before.schedule["A"]
    assert after.schedule["C"] == before.schedule["C"]


def test_rename_school_carries_assignments() -> None:
    after = editor.rename_school(_table(), 0, "North")
    assert after.schools == ("North", "B", "C")
    assert after.schedule["North"] == {"H1": "Alice", "H2": "Bob"}
    assert "A" not in after.schedule


def test_rename_school_to_existing_label_is_refused() -> None:
    with pytest.raises(ValidationError):
        editor.rename_school(_table(), 0, "B")


def test_school_index_out_of_range() -> None:
    with pytest.raises(NotFoundError):
        editor.delete_school(_table(), 3)


# ── slots ────────────────────────────────────────────────────────────────────

def test_add_slot_flat() -> None:
    t = editor.add_slot(_table())
    assert t.row_keys() == ["H1", "H2", "H3", "Hour 4"]


def test_delete_slot_purges_row_from_every_school() -> None:
    before = _table()
    after  = editor.delete_slot(before, 0)
    assert after.row_keys() == ["H2", "H3"]
    assert after.schedule == {
        "A": {"H2": "Bob"},
        "B": {"H3": "Dave"},
        "C": {"H2": "Eve"},
    }


def test_rename_slot_carries_assignments() -> None:
    after = editor.rename_slot(_table(), 0, "08:00")
    assert after.row_keys() == ["08:00", "H2", "H3"]
    assert after.schedule["A"] == {"08:00": "Alice", "H2": "Bob"}
    assert after.schedule["B"] == {"08:00": "Carol", "H3": "Dave"}


def test_rename_slot_to_existing_label_is_refused() -> None:
    with pytest.raises(ValidationError):
        editor.rename_slot(_table(), 0, "H2")


def test_slot_index_out_of_range() -> None:
    with pytest.raises(NotFoundError):
        editor.delete_slot(_table(), -1)


def test_grouped_slot_ops_use_linear_index() -> None:
    t = _grouped()
    assert t.row_keys() == ["AM-1", "AM-2", "PM-1"]

    renamed = editor.rename_slot(t, 2, "late")
    assert renamed.row_keys() == ["AM-1", "AM-2", "PM-late"]
    assert renamed.schedule["A"] == {"AM-1": "Alice", "PM-late": "Bob"}

    deleted = editor.delete_slot(t, 1)
    assert deleted.row_keys() == ["AM-1", "PM-1"]
    assert deleted.schedule["B"] == {}


def test_grouped_add_slot_goes_to_last_shift_by_default() -> None:
    t = editor.add_slot(_grouped())
    assert t.row_keys() == ["AM-1", "AM-2", "PM-1", "PM-Slot 2"]
    t = editor.add_slot(t, group=0)
    assert t.row_keys()[:3] == ["AM-1", "AM-2", "AM-Slot 3"]


# ── shifts ───────────────────────────────────────────────────────────────────

def test_add_shift_on_empty_flat_table_switches_to_groups() -> None:
    t = editor.add_shift(Table(schools=("A",)), "Night")
    assert t.is_grouped
    assert t.row_keys() == ["Night-Slot 1"]


def test_add_shift_refused_on_populated_flat_table() -> None:
    with pytest.raises(ValidationError):
        editor.add_shift(_table())


def test_rename_shift_rekeys_its_rows() -> None:
    t = editor.rename_shift(_grouped(), 0, "Morning")
    assert t.row_keys() == ["Morning-1", "Morning-2", "PM-1"]
    assert t.schedule == {
        "A": {"Morning-1": "Alice", "PM-1": "Bob"},
        "B": {"Morning-2": "Carol"},
    }


def test_delete_shift_purges_its_rows() -> None:
    t = editor.delete_shift(_grouped(), 0)
    assert t.row_keys() == ["PM-1"]
    assert t.schedule == {"A": {"PM-1": "Bob"}, "B": {}}


# ── cells ────────────────────────────────────────────────────────────────────

def test_assign_sets_and_clears() -> None:
    t = editor.assign(Table(schools=("A",), rows=FlatRows(("H1",))), "A", "H1", "Zed")
    assert t.schedule == {"A": {"H1": "Zed"}}
    t = editor.assign(t, "A", "H1", "")
    assert t.schedule == {"A": {}}


def test_assign_unknown_cell_raises() -> None:
    with pytest.raises(NotFoundError):
        editor.assign(_table(), "Z", "H1", "Alice")
    with pytest.raises(NotFoundError):
        editor.assign(_table(), "A", "H9", "Alice")


def test_inputs_are_never_mutated() -> None:
    before = _table()
    editor.delete_school(before, 0)
    editor.delete_slot(before, 0)
    editor.rename_school(before, 1, "X")
    editor.rename_slot(before, 1, "Y")
    editor.assign(before, "C", "H3", "Zed")
    assert before == _table()


def test_update_table_only_touches_target() -> None:
    board = editor.update_table(_board(), "one", editor.delete_school, 0)
    assert board.tables["one"].schools == ("B", "C")
    assert board.tables["two"] == _grouped()
    assert board.current == "one"


def test_invariant_holds_under_random_edits() -> None:
    rng = random.Random(7)
    t = _table()
    for step in range(300):
        op = rng.choice(["add_school", "add_slot", "del_school", "del_slot",
                         "ren_school", "ren_slot", "assign"])
        try:
            if op == "add_school":
                t = editor.add_school(t)
            elif op == "add_slot":
                t = editor.add_slot(t)
            elif op == "del_school" and t.schools:
                t = editor.delete_school(t, rng.randrange(len(t.schools)))
            elif op == "del_slot" and t.row_keys():
                t = editor.delete_slot(t, rng.randrange(len(t.row_keys())))
            elif op == "ren_school" and t.schools:
                t = editor.rename_school(t, rng.randrange(len(t.schools)), f"S{rng.randrange(8)}")
            elif op == "ren_slot" and t.row_keys():
                t = editor.rename_slot(t, rng.randrange(len(t.row_keys())), f"R{rng.randrange(8)}")
            elif op == "assign" and t.schools and t.row_keys():
                t = editor.assign(t, rng.choice(t.schools), rng.choice(t.row_keys()),
                                  rng.choice(["", "Alice", "Bob"]))
        except ValidationError:
            pass   # label collision; table unchanged
        _assert_consistent(t)


def test_grouped_add_slot_skips_keys_taken_by_other_shifts() -> None:
    t = Table(
        schools  = ("A",),
        rows     = GroupedRows((ShiftGroup("X-Y", ("Slot 1",)), ShiftGroup("X", ("Y-Slot 2",)))),
        schedule = {"A": {"X-Y-Slot 2": "Alice"}},
    )
    t2 = editor.add_slot(t, group=0)
    assert t2.row_keys() == ["X-Y-Slot 1", "X-Y-Slot 3", "X-Y-Slot 2"]
    t3 = editor.delete_slot(t2, 1)
    assert t3.schedule == {"A": {"X-Y-Slot 2": "Alice"}}


def test_rename_table_keeps_name_as_typed() -> None:
    board = editor.rename_table(_board(), "one", " Week 1 ")
    assert " Week 1 " in board.tables
    assert board.current == " Week 1 "


def test_invariant_holds_under_random_grouped_edits() -> None:
    rng    = random.Random(11)
    names  = ["X", "X-Y", "Y", "AM", "AM-1"]
    labels = ["1", "Slot 1", "Slot 2", "Y-Slot 1", "Y-Slot 2", "1-Slot 1"]
    t = _grouped()
    for step in range(400):
        op = rng.choice(["add_shift", "ren_shift", "del_shift", "add_slot", "del_slot",
                         "ren_slot", "add_school", "assign"])
        groups = t.rows.groups
        try:
            if op == "add_shift":
                t = editor.add_shift(t, rng.choice(names + [None]))
            elif op == "ren_shift" and groups:
                t = editor.rename_shift(t, rng.randrange(len(groups)), rng.choice(names))
            elif op == "del_shift" and groups and rng.random() < 0.3:
                t = editor.delete_shift(t, rng.randrange(len(groups)))
            elif op == "add_slot":
                t = editor.add_slot(t, rng.randrange(len(groups)) if groups else None)
            elif op == "del_slot" and t.row_keys():
                t = editor.delete_slot(t, rng.randrange(len(t.row_keys())))
            elif op == "ren_slot" and t.row_keys():
                t = editor.rename_slot(t, rng.randrange(len(t.row_keys())), rng.choice(labels))
            elif op == "add_school":
                t = editor.add_school(t)
            elif op == "assign" and t.schools and t.row_keys():
                t = editor.assign(t, rng.choice(t.schools), rng.choice(t.row_keys()),
                                  rng.choice(["", "Alice", "Bob"]))
        except ValidationError:
            pass
        keys = t.row_keys()
        assert len(keys) == len(set(keys)), keys
        _assert_consistent(t)
