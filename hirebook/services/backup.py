"""
Backup service for full database dumps and restores.

A backup is a single JSON document holding every row of the four tables,
soft-deleted rows included, with original primary keys. Restoring clears
the database and re-inserts the rows in one storage transaction.
"""

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

from hirebook.config import (
    BACKUP_FILE_PREFIX,
    BACKUP_MIME_TYPE,
    BACKUP_VERSION,
    get_backup_dir,
)
from hirebook.db import HireBookDatabase
from hirebook.db.base import KST, kst_now
from hirebook.db.records import clean_date

logger = logging.getLogger(__name__)

TABLE_ORDER = ("employers", "workers", "records", "transactions")

REQUIRED_FIELDS: dict[str, tuple] = {
    "employers": (
        "id", "name", "tel", "note", "type", "addr_postcode", "addr_street",
        "addr_extra", "created_date", "updated_date", "deleted",
    ),
    "workers": (
        "id", "name", "birth_year", "tel", "gender", "type", "note",
        "university", "uni_postcode", "uni_street", "addr_postcode",
        "addr_street", "addr_extra", "nationality", "face", "created_date",
        "updated_date", "deleted",
    ),
    "records": ("id", "date", "created_date", "updated_date", "deleted"),
    "transactions": (
        "id", "record_id", "worker_id", "employer_id", "amount", "date",
        "category", "type", "payment_type", "created_date", "updated_date",
        "deleted",
    ),
}

# Columns that may be absent from older documents
OPTIONAL_FIELDS: dict[str, tuple] = {
    "employers": ("deleted_date",),
    "workers": ("deleted_date",),
    "records": ("deleted_date",),
    "transactions": ("note", "deleted_date"),
}


def backup_filename(day: Optional[date] = None) -> str:
    """File name of a backup taken on ``day`` (defaults to today in KST)."""
    day = day or datetime.now(KST).date()
    return f"{BACKUP_FILE_PREFIX}{day.isoformat()}.json"


def validate_backup(document: Any):
    """
    Check that a backup document has every table and every required field.

    Record and transaction dates must be calendar days (a trailing time part
    is tolerated and dropped on import), and no two active records may share
    a date.

    Raises:
        ValueError: Naming the first problem found
    """
    if not isinstance(document, dict):
        raise ValueError("Backup document must be a JSON object")

    for table in TABLE_ORDER:
        if table not in document:
            raise ValueError(f"Backup is missing the '{table}' array")
        rows = document[table]
        if not isinstance(rows, list):
            raise ValueError(f"Backup '{table}' must be an array")
        for index, row in enumerate(rows):
            if not isinstance(row, dict):
                raise ValueError(f"Backup {table}[{index}] is not an object")
            for field_name in REQUIRED_FIELDS[table]:
                if field_name not in row:
                    raise ValueError(
                        f"Backup {table}[{index}] is missing required field "
                        f"'{field_name}'"
                    )
            if "date" in REQUIRED_FIELDS[table]:
                try:
                    clean_date(row["date"])
                except ValueError:
                    raise ValueError(
                        f"Backup {table}[{index}] has an invalid date: {row['date']!r}"
                    )

    active_dates: dict[str, int] = {}
    for index, row in enumerate(document["records"]):
        if row["deleted"]:
            continue
        day = clean_date(row["date"])
        if day in active_dates:
            raise ValueError(
                f"Backup records[{index}] repeats the active record for {day} "
                f"(records[{active_dates[day]}])"
            )
        active_dates[day] = index


class BackupService:
    """Service for exporting and importing the whole database."""

    def __init__(self, database: HireBookDatabase):
        """
        Initialize the backup service.

        Args:
            database: Database facade to dump or restore
        """
        self.database = database

    def export_all(self, include_deleted: bool = True) -> dict:
        """
        Dump every table into a backup document.

        Args:
            include_deleted: Keep soft-deleted rows (a full backup does)

        Returns:
            The backup document
        """
        document: dict[str, Any] = {
            "version": BACKUP_VERSION,
            "timestamp": kst_now(),
        }
        with self.database.connection() as conn:
            for table in TABLE_ORDER:
                query = f"SELECT * FROM {table}"
                if not include_deleted:
                    query += " WHERE deleted = 0"
                query += " ORDER BY id"
                document[table] = [dict(row) for row in conn.execute(query).fetchall()]

        document["totalRecords"] = {table: len(document[table]) for table in TABLE_ORDER}
        logger.info(f"Exported backup: {document['totalRecords']}")
        return document

    def import_all(self, document: dict, replace: bool = True) -> dict[str, int]:
        """
        Restore a backup document, preserving primary keys.

        All rows are written in one storage transaction: if any row fails
        nothing is changed. With ``replace`` the existing data is deleted
        first; without it the ids must not collide with existing rows.

        Returns:
            Number of rows restored per table

        Raises:
            ValueError: If the document is malformed
            sqlite3.Error: If a row cannot be inserted
        """
        validate_backup(document)

        counts: dict[str, int] = {}
        try:
            with self.database.connection() as conn:
                if replace:
                    self.database.delete_all_data(conn=conn)

                for table in TABLE_ORDER:
                    columns = REQUIRED_FIELDS[table] + OPTIONAL_FIELDS[table]
                    placeholders = ", ".join("?" for _ in columns)
                    statement = (
                        f"INSERT INTO {table} ({', '.join(columns)}) "
                        f"VALUES ({placeholders})"
                    )
                    for row in document[table]:
                        values = [row.get(name) for name in columns]
                        if "date" in columns:
                            values[columns.index("date")] = clean_date(row["date"])
                        conn.execute(statement, values)
                    counts[table] = len(document[table])
        except Exception as e:
            logger.error(f"Backup restore failed, nothing was changed: {e}", exc_info=True)
            raise

        logger.info(f"Restored backup: {counts}")
        return counts

    def write_backup(
        self, directory: Optional[Path] = None, day: Optional[date] = None
    ) -> tuple[Path, str]:
        """
        Write a full backup file.

        Args:
            directory: Target directory, created if missing
            day: Date used in the file name

        Returns:
            The written path and its MIME type, ready to hand to a share sheet
        """
        directory = Path(directory or get_backup_dir())
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / backup_filename(day)

        document = self.export_all(include_deleted=True)
        path.write_text(json.dumps(document, ensure_ascii=False, indent=2), encoding="utf-8")
        logger.info(f"Backup written to {path}")
        return path, BACKUP_MIME_TYPE

    def read_backup(self, path: Path) -> dict:
        """
        Load and validate a backup file.

        Raises:
            ValueError: If the file is not valid JSON or not a backup
        """
        try:
            document = json.loads(Path(path).read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Backup file is not valid JSON: {e}") from e
        validate_backup(document)
        return document

    def restore_file(self, path: Path) -> dict[str, int]:
        """Replace all data with the contents of a backup file."""
        return self.import_all(self.read_backup(path), replace=True)

    @staticmethod
    def latest_backup(directory: Optional[Path] = None) -> Optional[Path]:
        """Newest backup file in a directory, by file name."""
        directory = Path(directory or get_backup_dir())
        if not directory.exists():
            return None
        files = sorted(directory.glob(f"{BACKUP_FILE_PREFIX}*.json"))
        return files[-1] if files else None
