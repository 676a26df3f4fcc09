"""
Base repository module with connection management and schema initialization.

Provides the foundation for all database operations in the HireBook ledger.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from hirebook.config import DB_TIMEOUT, KST_OFFSET_HOURS, get_db_path
from hirebook.models.person import normalize_tel

logger = logging.getLogger(__name__)

KST = timezone(timedelta(hours=KST_OFFSET_HOURS))


def kst_now() -> str:
    """
    Current time as an ISO-8601 string with a fixed +09:00 offset.

    Every created/updated/deleted timestamp in the database uses this
    format so that string order equals time order.
    """
    return datetime.now(timezone.utc).astimezone(KST).isoformat(
        timespec="milliseconds"
    )


def like_pattern(term: str) -> str:
    """Build a casefolded '%term%' pattern with LIKE wildcards escaped."""
    escaped = (
        term.casefold()
        .replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )
    return f"%{escaped}%"


def _casefold(value):
    if isinstance(value, str):
        return value.casefold()
    return value


class BaseRepository:
    """
    Base repository class with SQLite connection management.

    Every repository receives the database path explicitly; a connection is
    opened per operation and committed or rolled back as a unit.
    """

    def __init__(self, db_path: Optional[Path] = None, init_schema: bool = True):
        """
        Initialize the base repository.

        Args:
            db_path: Path to the SQLite database file. Defaults to data/hirebook.db
            init_schema: Whether to initialize the schema on startup
        """
        self.db_path = Path(db_path) if db_path else get_db_path()
        self._ensure_db_directory()
        if init_schema:
            self.ensure_schema()

    def _ensure_db_directory(self):
        """Ensure the database directory exists."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Database directory ensured: {self.db_path.parent}")
        except Exception as e:
            logger.error(f"Failed to create database directory: {e}", exc_info=True)
            raise

    @contextmanager
    def _get_connection(self):
        """Context manager for database connections with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path, timeout=DB_TIMEOUT)
            conn.row_factory = sqlite3.Row
            # Enable foreign keys
            conn.execute("PRAGMA foreign_keys = ON")
            conn.create_function("casefold", 1, _casefold, deterministic=True)
            conn.create_function("normalize_tel", 1, normalize_tel, deterministic=True)
            yield conn
            conn.commit()
        except sqlite3.OperationalError as e:
            logger.error(f"Database locked or operational error: {e}", exc_info=True)
            if conn:
                conn.rollback()
            raise
        except Exception as e:
            logger.error(f"Database error: {e}", exc_info=True)
            if conn:
                conn.rollback()
            raise
        finally:
            if conn:
                conn.close()

    @contextmanager
    def _use_connection(self, conn: Optional[sqlite3.Connection] = None):
        """Join the caller's connection when given, else open a new one."""
        if conn is not None:
            yield conn
        else:
            with self._get_connection() as new_conn:
                yield new_conn

    def ensure_schema(self):
        """Create the HireBook tables and indexes if they do not exist yet."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS employers (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL DEFAULT '',
                    tel TEXT DEFAULT '',
                    note TEXT DEFAULT '',
                    type TEXT DEFAULT '',
                    addr_postcode TEXT DEFAULT '',
                    addr_street TEXT DEFAULT '',
                    addr_extra TEXT DEFAULT '',
                    created_date TEXT,
                    updated_date TEXT,
                    deleted INTEGER NOT NULL DEFAULT 0 CHECK(deleted IN (0, 1)),
                    deleted_date TEXT
                )
            """)

            conn.execute("""
                CREATE TABLE IF NOT EXISTS workers (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL DEFAULT '',
                    tel TEXT DEFAULT '',
                    note TEXT DEFAULT '',
                    type TEXT DEFAULT '',
                    birth_year INTEGER,
                    gender TEXT DEFAULT '',
                    university TEXT DEFAULT '',
                    uni_postcode TEXT DEFAULT '',
                    uni_street TEXT DEFAULT '',
                    addr_postcode TEXT DEFAULT '',
                    addr_street TEXT DEFAULT '',
                    addr_extra TEXT DEFAULT '',
                    nationality TEXT DEFAULT '',
                    face TEXT DEFAULT '',
                    created_date TEXT,
                    updated_date TEXT,
                    deleted INTEGER NOT NULL DEFAULT 0 CHECK(deleted IN (0, 1)),
                    deleted_date TEXT
                )
            """)

            # One bucket per calendar day; see idx_records_active_date
            conn.execute("""
                CREATE TABLE IF NOT EXISTS records (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    date TEXT NOT NULL,
                    created_date TEXT,
                    updated_date TEXT,
                    deleted INTEGER NOT NULL DEFAULT 0 CHECK(deleted IN (0, 1)),
                    deleted_date TEXT
                )
            """)

            # worker_id/employer_id are plain columns; a permanently deleted
            # person leaves their transactions behind.
            conn.execute("""
                CREATE TABLE IF NOT EXISTS transactions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    record_id INTEGER REFERENCES records(id),
                    worker_id INTEGER,
                    employer_id INTEGER,
                    amount INTEGER NOT NULL CHECK(amount >= 0),
                    date TEXT NOT NULL,
                    category TEXT DEFAULT '',
                    type TEXT NOT NULL CHECK(type IN ('수입', '지출')),
                    payment_type TEXT DEFAULT '',
                    note TEXT DEFAULT '',
                    created_date TEXT,
                    updated_date TEXT,
                    deleted INTEGER NOT NULL DEFAULT 0 CHECK(deleted IN (0, 1)),
                    deleted_date TEXT
                )
            """)

            self._create_indexes(conn)

            logger.debug(f"HireBook schema ensured at {self.db_path}")

    def _create_indexes(self, conn):
        """Create database indexes for query performance."""
        conn.execute("""
            CREATE UNIQUE INDEX IF NOT EXISTS idx_records_active_date
            ON records(date) WHERE deleted = 0
        """)

        indexes = [
            ("idx_employers_name", "employers", "name"),
            ("idx_workers_name", "workers", "name"),
            ("idx_records_date", "records", "date"),
            ("idx_transactions_record_id", "transactions", "record_id"),
            ("idx_transactions_worker_id", "transactions", "worker_id"),
            ("idx_transactions_employer_id", "transactions", "employer_id"),
            ("idx_transactions_date", "transactions", "date"),
            ("idx_transactions_created", "transactions", "deleted, created_date DESC"),
        ]

        for index_name, table, columns in indexes:
            conn.execute(f"""
                CREATE INDEX IF NOT EXISTS {index_name}
                ON {table}({columns})
            """)
