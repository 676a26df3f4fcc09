"""
Records repository module for the per-day transaction buckets.

A record exists only to group the transactions of one calendar date.
Records are created lazily by the first transaction of a date and are
never edited directly.
"""

import logging
from datetime import date, datetime
from typing import Optional

from .base import BaseRepository, kst_now
from .models import Record, Transaction

logger = logging.getLogger(__name__)


def clean_date(value) -> str:
    """
    Normalize a calendar day to 'YYYY-MM-DD'.

    Accepts date and datetime objects and strings with single-digit month
    or day, or with a trailing time part ('2025-09-01T03:00:00.000Z').

    Raises:
        ValueError: If the value is not a calendar day
    """
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        raise ValueError(f"Invalid date (expected YYYY-MM-DD): {value!r}")
    text = value.strip().split("T")[0].split(" ")[0]
    try:
        return datetime.strptime(text, "%Y-%m-%d").date().isoformat()
    except ValueError:
        raise ValueError(f"Invalid date (expected YYYY-MM-DD): {value!r}")


def month_prefix(year: int, month: int) -> str:
    """Return the 'YYYY-MM' prefix shared by every date of a month."""
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    if year <= 0:
        raise ValueError(f"Invalid year: {year}")
    return f"{year:04d}-{month:02d}"


class RecordRepository(BaseRepository):
    """Repository resolving and reading daily records."""

    def __init__(self, db_path=None, init_schema: bool = False):
        super().__init__(db_path, init_schema=init_schema)

    def resolve_record_for_date(self, day: str, conn=None) -> int:
        """
        Return the id of the active record for ``day``, creating it if needed.

        The insert is ignored when an active record already exists (the
        partial unique index on ``records(date)``), so two writers can never
        create two buckets for the same date. Soft-deleted records are not
        reused.

        Args:
            day: Calendar day as 'YYYY-MM-DD'
            conn: Open connection of the surrounding write, if any

        Returns:
            The record id
        """
        day = clean_date(day)
        now = kst_now()
        with self._use_connection(conn) as c:
            cursor = c.execute(
                """
                INSERT OR IGNORE INTO records (date, created_date, updated_date, deleted)
                VALUES (?, ?, ?, 0)
                """,
                (day, now, now),
            )
            if cursor.rowcount > 0:
                logger.info(f"Created record {cursor.lastrowid} for {day}")
                return cursor.lastrowid

            row = c.execute(
                "SELECT id FROM records WHERE date = ? AND deleted = 0", (day,)
            ).fetchone()
            return row["id"]

    def get_by_id(self, record_id: int) -> Optional[Record]:
        """Get a record by ID (no deleted filter)."""
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM records WHERE id = ?", (record_id,)
            ).fetchone()
            return Record.from_row(row) if row else None

    def get_by_date(self, day: str) -> Optional[Record]:
        """Get the active record of a date, if one exists."""
        day = clean_date(day)
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM records WHERE date = ? AND deleted = 0", (day,)
            ).fetchone()
            return Record.from_row(row) if row else None

    def count_for_date(self, day: str, include_deleted: bool = False) -> int:
        """Count records stored for a date."""
        day = clean_date(day)
        query = "SELECT COUNT(*) FROM records WHERE date = ?"
        if not include_deleted:
            query += " AND deleted = 0"
        with self._get_connection() as conn:
            return conn.execute(query, (day,)).fetchone()[0]

    def get_monthly(self, year: int, month: int) -> list[Record]:
        """Active records of a month, newest date first."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT * FROM records
                WHERE deleted = 0 AND substr(date, 1, 7) = ?
                ORDER BY date DESC
                """,
                (month_prefix(year, month),),
            )
            return [Record.from_row(row) for row in cursor.fetchall()]

    def get_monthly_with_transactions(
        self, year: int, month: int, include_empty: bool = False
    ) -> list[Record]:
        """
        Active records of a month with their active transactions attached.

        Transactions inside a day are ordered oldest first. Days whose
        transactions were all deleted are skipped unless ``include_empty``.
        """
        with self._get_connection() as conn:
            records = [
                Record.from_row(row)
                for row in conn.execute(
                    """
                    SELECT * FROM records
                    WHERE deleted = 0 AND substr(date, 1, 7) = ?
                    ORDER BY date DESC
                    """,
                    (month_prefix(year, month),),
                ).fetchall()
            ]

            for record in records:
                cursor = conn.execute(
                    """
                    SELECT * FROM transactions
                    WHERE deleted = 0 AND record_id = ?
                    ORDER BY created_date ASC, id ASC
                    """,
                    (record.id,),
                )
                record.transactions = [
                    Transaction.from_row(row) for row in cursor.fetchall()
                ]

            if not include_empty:
                records = [r for r in records if r.transactions]

            logger.debug(f"Loaded {len(records)} daily records for {year}-{month:02d}")
            return records
