"""
Command-line interface for the roster board.

Usage examples:
    roster-board --board boards/me.json tables
    roster-board --board boards/me.json add-table
    roster-board --board boards/me.json show --table table1
    roster-board --board boards/me.json --settings settings.json solve
    roster-board --board boards/me.json export --out schedule.xlsx
    roster-board --board boards/me.json --user me pull
    roster-board --board boards/me.json --user me push

Commands that change the board write it back to the same file. pull and push
move the board between that file and the backing store named in the settings
(store_url with a token, or a per-user file under store_dir).

Exit codes:
    0  success
    1  bad arguments, unreadable file, unknown table, or refused edit
    2  the solver or the backing store could not be reached or returned garbage
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional

from roster_board.errors import NotFoundError, TransportError, ValidationError
from roster_board.export import table_to_sheet
from roster_board.io_json import DocumentError, load_document, save_document
from roster_board.session import BoardSession
from roster_board.settings import ConfigError, load_settings
from roster_board.solver.api import SolverClient
from roster_board.solver.precheck import precheck
from roster_board.store import store_from_settings


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="roster-board",
        description="Roster board editor — command-line mode",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  roster-board --board me.json add-table\n"
            "  roster-board --board me.json --settings cfg.json solve --table table1\n"
        ),
    )
    parser.add_argument("--board", required=True, metavar="FILE",
                        help="path to the board JSON (created if missing)")
    parser.add_argument("--settings", default=None, metavar="FILE",
                        help="settings JSON (solver URL, organisation, managers)")
    parser.add_argument("--user", default=None,
                        help="store user (default: settings organization, else \"local\")")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="debug logging")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("tables", help="list tables")

    p = sub.add_parser("show", help="print a table's grid")
    p.add_argument("--table", default=None)

    sub.add_parser("add-table", help="add a new table with default rows/columns")

    p = sub.add_parser("rename-table", help="rename a table")
    p.add_argument("old")
    p.add_argument("new")

    p = sub.add_parser("delete-table", help="delete a table")
    p.add_argument("name")

    sub.add_parser("constraints", help="print the constraints sent to the solver")

    p = sub.add_parser("solve", help="solve a table and store the result")
    p.add_argument("--table", default=None)

    sub.add_parser("pull", help="replace the board file with the stored board")
    sub.add_parser("push", help="save the board file to the backing store")

    p = sub.add_parser("export", help="write a table to an .xlsx file")
    p.add_argument("--table", default=None)
    p.add_argument("--out", required=True, metavar="FILE")
    return parser


def _print_grid(rows: list) -> None:
    widths = [max(len(str(r[c])) for r in rows) for c in range(len(rows[0]))]
    for row in rows:
        print("  " + " | ".join(str(v).ljust(w) for v, w in zip(row, widths)))


def _select(session: BoardSession, table: Optional[str]) -> None:
    if table is not None:
        session.select_table(table)
    elif session.current is None:
        raise NotFoundError("Board has no tables — run add-table first")


def main(argv: Optional[list] = None) -> None:
    args = _build_parser().parse_args(argv)

    # ── 1. settings + logging ────────────────────────────────────────────────
    try:
        settings = load_settings(args.settings)
    except FileNotFoundError:
        print(f"[ERROR] File not found: {args.settings}", file=sys.stderr)
        sys.exit(1)
    except ConfigError as e:
        print(f"[ERROR] Could not load settings: {e}", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level="DEBUG" if args.verbose else settings.log_level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )

    # ── 2. board ─────────────────────────────────────────────────────────────
    try:
        doc = load_document(args.board)
    except FileNotFoundError:
        doc = None
    except DocumentError as e:
        print(f"[ERROR] Could not load board: {e}", file=sys.stderr)
        sys.exit(1)

    session = BoardSession(
        user         = args.user or settings.organization or "local",
        store        = store_from_settings(settings),
        solver       = SolverClient(settings.solver_url, settings.timeout_s)
                       if settings.solver_url else None,
        organization = settings.organization,
        managers     = settings.managers,
        doc          = doc,
    )

    # ── 3. command ───────────────────────────────────────────────────────────
    try:
        changed = _run(args, session)
    except (NotFoundError, ValidationError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        sys.exit(1)
    except TransportError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        sys.exit(2)

    if changed:
        save_document(session.doc, args.board)
        print(f"Board written to: {args.board}")
    sys.exit(0)


def _run(args: argparse.Namespace, session: BoardSession) -> bool:
    """Execute one command; True when the board must be written back."""
    cmd = args.command

    if cmd == "tables":
        if not session.board.tables:
            print("No tables yet. Run add-table to create one.")
        for name, table in session.board.tables.items():
            marker = "*" if name == session.current else " "
            print(f" {marker} {name}  ({len(table.schools)} schools x {len(table.row_keys())} rows)")
        return False

    if cmd == "add-table":
        print(f"Added {session.add_table()}")
        return True

    if cmd == "rename-table":
        if not session.rename_table(args.new, old=args.old):
            raise ValidationError(f"Cannot rename '{args.old}' to '{args.new}'")
        return True

    if cmd == "delete-table":
        session.delete_table(args.name)
        return True

    if cmd == "pull":
        if not session.load():
            raise TransportError(session.error or "Load failed")
        print(f"Pulled {len(session.board.tables)} table(s) for {session.user}")
        return True

    if cmd == "push":
        if not session.save():
            raise TransportError(session.error or "Save failed")
        print(f"Pushed {len(session.board.tables)} table(s) for {session.user}")
        return False

    if cmd == "constraints":
        request = session.build_request()
        print(json.dumps(request.to_payload(), ensure_ascii=False, indent=2))
        return False

    _select(session, getattr(args, "table", None))

    if cmd == "show":
        errors, warnings = precheck(session.table, session.employees)
        for w in warnings:
            print(f"[WARNING] {w}")
        for e in errors:
            print(f"[ERROR] {e}", file=sys.stderr)
        if errors:
            raise ValidationError(f"Table '{session.current}' is inconsistent")
        print(f"{session.current}:")
        _print_grid(table_to_sheet(session.table))
        return False

    if cmd == "solve":
        if session.solver is None:
            raise ValidationError("No solver_url configured (settings file or ROSTER_SOLVER_URL)")
        print(f"Solving {session.current}…")
        if not session.solve():
            raise TransportError(session.error or "Solve failed")
        _print_grid(table_to_sheet(session.table))
        return True

    if cmd == "export":
        out = session.export(args.out)
        print(f"Schedule written to: {out}")
        return False

    raise ValueError(f"Unknown command: {cmd!r}")


if __name__ == "__main__":
    main()
