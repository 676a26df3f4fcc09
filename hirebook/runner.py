"""
Command line runner for HireBook.

This module handles configuration loading, logging setup and the
maintenance commands (schema init, backup, restore, statistics, export).
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from hirebook.config import (
    LOG_DIR,
    LOG_FILE,
    LOG_FORMAT,
    ensure_directories,
    get_db_path,
    get_log_level,
)
from hirebook.db import HireBookDatabase
from hirebook.db.base import KST
from hirebook.services import BackupService, ExportFormat, ExportService
from hirebook.services.statistics import monthly_breakdown, summarize

logger = logging.getLogger(__name__)


def setup_logging():
    """Log to the HireBook log file and to stdout."""
    ensure_directories()
    logging.basicConfig(
        level=get_log_level(),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(LOG_DIR / LOG_FILE, encoding="utf-8"),
            logging.StreamHandler(sys.stdout),
        ],
    )


def load_environment():
    """Load a .env file from the working directory if there is one."""
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        logger.info(f"Loaded environment from {env_path}")
    else:
        logger.debug(f".env file not found at {env_path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hirebook", description="HireBook ledger maintenance"
    )
    parser.add_argument("--db", type=Path, help="Path to the SQLite database")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init", help="Create the database schema")

    backup = commands.add_parser("backup", help="Write a full JSON backup")
    backup.add_argument("directory", nargs="?", type=Path)

    restore = commands.add_parser("restore", help="Replace all data from a backup")
    restore.add_argument("file", type=Path)

    stats = commands.add_parser("stats", help="Print yearly totals")
    stats.add_argument("year", nargs="?", type=int)

    export = commands.add_parser("export", help="Export transactions")
    export.add_argument("format", choices=[f.value for f in ExportFormat])
    export.add_argument("file", type=Path)

    return parser


def cmd_init(database: HireBookDatabase, args):
    print(f"Database ready at {database.db_path}")


def cmd_backup(database: HireBookDatabase, args):
    path, _ = BackupService(database).write_backup(args.directory)
    print(f"Backup written to {path}")


def cmd_restore(database: HireBookDatabase, args):
    counts = BackupService(database).restore_file(args.file)
    for table, count in counts.items():
        print(f"  {table}: {count}")
    print("Restore complete")


def cmd_stats(database: HireBookDatabase, args):
    year = args.year or datetime.now(KST).year
    transactions = [
        t for t in database.transactions.get_all(ascending=True)
        if t.date.startswith(f"{year:04d}-")
    ]
    summary = summarize(transactions)

    print(f"HireBook {year}")
    print("=" * 40)
    for month in monthly_breakdown(transactions, year):
        print(
            f"  {month.month}  수입 {month.income:>12,}  "
            f"지출 {month.expense:>12,}  순익 {month.net:>12,}"
        )
    print("-" * 40)
    print(f"  수입 합계: {summary.income:,}원")
    print(f"  지출 합계: {summary.expense:,}원")
    print(f"  잔액:      {summary.balance:,}원 ({summary.count}건)")


def cmd_export(database: HireBookDatabase, args):
    service = ExportService(database)
    if args.format == ExportFormat.CSV.value:
        buffer = service.export_to_csv()
    else:
        buffer = service.export_to_xlsx()
    args.file.write_bytes(buffer.getvalue())
    print(f"Exported to {args.file}")


COMMANDS = {
    "init": cmd_init,
    "backup": cmd_backup,
    "restore": cmd_restore,
    "stats": cmd_stats,
    "export": cmd_export,
}


def run(argv: Optional[list[str]] = None):
    """Run a HireBook command with comprehensive error handling."""
    load_environment()
    setup_logging()

    args = build_parser().parse_args(argv)

    try:
        database = HireBookDatabase(args.db or get_db_path())
        COMMANDS[args.command](database, args)
    except ValueError as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"\nError: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
        print("\nShutting down...")
    except Exception as e:
        logger.critical(f"Critical error in {args.command}: {e}", exc_info=True)
        print(f"\nCritical error: {e}")
        print(f"Check {LOG_DIR / LOG_FILE} for more details.")
        sys.exit(1)


if __name__ == "__main__":
    run()
