"""Operator command line for the Trust Survey service.

Usage:
    trust-survey init-db
    trust-survey import-csv messages.csv --set-quant 1 --set-qual 2 [--replace]
    trust-survey sets list
    trust-survey sets show 1 2
    trust-survey sets retag 1 2 3 4
    trust-survey sets delete 1 2 --confirm
    trust-survey analyze
    trust-survey next
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from trust_survey.db.base import get_engine
from trust_survey.db.migrations_runner import apply_migrations
from trust_survey.logging_setup import configure_logging
from trust_survey.logic import message_sets
from trust_survey.logic.csv_io import import_messages_csv
from trust_survey.logic.errors import SurveyError
from trust_survey.logic.reporting import distribution_report
from trust_survey.logic.survey_sessions import messages_available, next_assignment

logger = logging.getLogger(__name__)


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _cmd_init_db(args: argparse.Namespace) -> int:
    try:
        summary = apply_migrations(get_engine(), migrations_dir=args.migrations_dir)
    except FileNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    print(
        f"Applied {summary.files_applied} file(s): "
        f"{summary.statements_executed} statement(s) executed, {summary.statements_skipped} skipped"
    )
    return 0


def _cmd_import_csv(args: argparse.Namespace) -> int:
    path = Path(args.path)
    if not path.exists():
        print(f"File not found: {path}", file=sys.stderr)
        return 2
    result = import_messages_csv(
        path.read_bytes(),
        default_set_quant=args.set_quant,
        default_set_qual=args.set_qual,
        replace=args.replace,
    )
    print(f"Imported {result.imported} message(s), dropped {result.dropped} empty row(s)")
    for err in result.errors:
        print(f"  line {err.get('line')}: {err.get('message')}", file=sys.stderr)
    return 1 if result.errors and not result.imported else 0


def _cmd_sets_list(args: argparse.Namespace) -> int:
    sets = message_sets.list_sets()
    if not sets:
        print("No message sets found")
        return 0
    for s in sets:
        print(
            f"set {s['set_quant']}/{s['set_qual']}: {s['total_messages']} message(s) "
            f"({s['human_messages']} human, {s['ai_messages']} ai)"
        )
    return 0


def _cmd_sets_show(args: argparse.Namespace) -> int:
    messages = message_sets.messages_in_set(args.set_quant, args.set_qual, limit=args.limit)
    if not messages:
        print(f"No active messages in set {args.set_quant}/{args.set_qual}")
        return 0
    for m in messages:
        preview = m.text if len(m.text) <= 80 else m.text[:77] + "..."
        print(f"{m.id:>6} [{m.origin.value}] {preview}")
    return 0


def _cmd_sets_retag(args: argparse.Namespace) -> int:
    count = message_sets.retag_set(args.old_quant, args.old_qual, args.new_quant, args.new_qual)
    print(f"Retagged {count} message(s)")
    return 0


def _cmd_sets_delete(args: argparse.Namespace) -> int:
    if not args.confirm:
        print("Refusing to retire a set without --confirm", file=sys.stderr)
        return 2
    count = message_sets.retire_set(args.set_quant, args.set_qual, confirm=True)
    print(f"Retired {count} message(s)")
    return 0


def _cmd_analyze(args: argparse.Namespace) -> int:
    _print_json(distribution_report())
    return 0


def _cmd_next(args: argparse.Namespace) -> int:
    set_quant, set_qual = next_assignment()
    available = messages_available(set_quant, set_qual)
    _print_json(
        {
            "setQuant": set_quant,
            "setQual": set_qual,
            "quantitativeMessages": len(available.quantitative),
            "qualitativeMessages": len(available.qualitative),
        }
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trust-survey", description="Trust Survey operator tools")
    sub = parser.add_subparsers(dest="command", required=True)

    init_db = sub.add_parser("init-db", help="Apply schema migrations")
    init_db.add_argument("--migrations-dir", default=None, help="Directory of .sql files")
    init_db.set_defaults(func=_cmd_init_db)

    imp = sub.add_parser("import-csv", help="Import messages from a CSV file")
    imp.add_argument("path")
    imp.add_argument("--set-quant", type=int, default=None, help="Quantitative set for rows without one")
    imp.add_argument("--set-qual", type=int, default=None, help="Qualitative set for rows without one")
    imp.add_argument("--replace", action="store_true", help="Retire the existing pool first")
    imp.set_defaults(func=_cmd_import_csv)

    sets = sub.add_parser("sets", help="Inspect and manage message sets")
    sets_sub = sets.add_subparsers(dest="sets_command", required=True)

    sets_list = sets_sub.add_parser("list", help="List set pairs with message counts")
    sets_list.set_defaults(func=_cmd_sets_list)

    sets_show = sets_sub.add_parser("show", help="Show messages of a set pair")
    sets_show.add_argument("set_quant", type=int)
    sets_show.add_argument("set_qual", type=int)
    sets_show.add_argument("--limit", type=int, default=10)
    sets_show.set_defaults(func=_cmd_sets_show)

    sets_retag = sets_sub.add_parser("retag", help="Move a set pair to new set ids")
    sets_retag.add_argument("old_quant", type=int)
    sets_retag.add_argument("old_qual", type=int)
    sets_retag.add_argument("new_quant", type=int)
    sets_retag.add_argument("new_qual", type=int)
    sets_retag.set_defaults(func=_cmd_sets_retag)

    sets_delete = sets_sub.add_parser("delete", help="Retire every message of a set pair")
    sets_delete.add_argument("set_quant", type=int)
    sets_delete.add_argument("set_qual", type=int)
    sets_delete.add_argument("--confirm", action="store_true")
    sets_delete.set_defaults(func=_cmd_sets_delete)

    analyze = sub.add_parser("analyze", help="Report session distribution across sets")
    analyze.set_defaults(func=_cmd_analyze)

    nxt = sub.add_parser("next", help="Show the sets the next session would receive")
    nxt.set_defaults(func=_cmd_next)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    configure_logging()
    args = build_parser().parse_args(argv)
    try:
        return int(args.func(args))
    except SurveyError as exc:
        logger.error("cli_command_failed command=%s error=%s", args.command, exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
