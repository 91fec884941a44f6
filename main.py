"""
main.py
-------
Command-line entry point.

Responsibilities:
    - Initialize the database connection pool and schema.
    - Process due recurring transactions (meant to be run from cron/a timer).
    - Print budget performance and run saved reports, optionally exporting them.

Examples:
    python main.py init-db
    python main.py process-due --user <uuid>
    python main.py budgets --user <uuid> --period monthly
    python main.py report --user <uuid> --report-id <uuid> --export xlsx --output out.xlsx
"""

import argparse
import sys
from datetime import date

from db.connection import close_pool, init_pool
from db.init_db import create_tables
from models.recurring import format_frequency
from services.budget_service import BudgetService
from services.export_service import ExportService
from services.recurring_service import RecurringService
from services.report_service import ReportService
from utils.dates import parse_date
from utils.errors import ValidationError
from utils.logger import configure_logging, get_logger

logger = get_logger(__name__)


def _print_rows(data) -> None:
    rows = data if isinstance(data, list) else [data]
    if not rows:
        print("📭 No results.")
    for row in rows:
        print(row.to_dict())


def cmd_init_db(args) -> int:
    create_tables()
    return 0


def cmd_process_due(args) -> int:
    result = RecurringService().process_due(args.user, args.date)
    if not result.ok:
        logger.error(f"Processing failed: [{result.error.code}] {result.error.message}")
        return 1
    for occ in result.data:
        rule = occ.definition
        print(f"🔁 {occ.transaction}  ({format_frequency(rule.frequency)}, next: {rule.next_occurrence_date})")
    return 0


def cmd_budgets(args) -> int:
    result = BudgetService().get_budget_performance(args.user, args.period, args.date)
    if not result.ok:
        logger.error(f"Budget evaluation failed: [{result.error.code}] {result.error.message}")
        return 1
    _print_rows(result.data)
    return 0


def cmd_report(args) -> int:
    result = ReportService().run_report(args.user, args.report_id, args.date)
    if not result.ok:
        logger.error(f"Report failed: [{result.error.code}] {result.error.message}")
        return 1

    if not args.export:
        _print_rows(result.data)
        return 0

    exporter = ExportService()
    buffer = exporter.to_csv(result.data) if args.export == "csv" else exporter.to_excel(result.data)
    with open(args.output, "wb") as fh:
        fh.write(buffer.getvalue())
    logger.info(f"Report written to {args.output}")
    return 0


def _date_arg(value: str) -> date:
    try:
        return parse_date(value)
    except ValidationError as e:
        raise argparse.ArgumentTypeError(e.message)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Budget analytics and recurring transaction tools.")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL (DEBUG, INFO, ...)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init-db", help="Create the database schema")
    p.set_defaults(func=cmd_init_db)

    p = sub.add_parser("process-due", help="Materialize due recurring transactions")
    p.add_argument("--user", required=True)
    p.add_argument("--date", type=_date_arg, default=None, help="Treat this date as today")
    p.set_defaults(func=cmd_process_due)

    p = sub.add_parser("budgets", help="Show budget performance")
    p.add_argument("--user", required=True)
    p.add_argument("--period", choices=["weekly", "monthly", "yearly"])
    p.add_argument("--date", type=_date_arg, default=None, help="Treat this date as today")
    p.set_defaults(func=cmd_budgets)

    p = sub.add_parser("report", help="Run a saved report")
    p.add_argument("--user", required=True)
    p.add_argument("--report-id", required=True)
    p.add_argument("--date", type=_date_arg, default=None, help="Treat this date as today")
    p.add_argument("--export", choices=["csv", "xlsx"])
    p.add_argument("--output", help="File to write the export to")
    p.set_defaults(func=cmd_report)

    return parser


def main(argv=None) -> int:
    """Parse arguments, open the pool, run the command and close the pool."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if getattr(args, "export", None) and not args.output:
        parser.error("--output is required with --export")
    configure_logging(args.log_level)

    init_pool()
    try:
        return args.func(args)
    finally:
        close_pool()


if __name__ == "__main__":
    sys.exit(main())
