"""
Database facade for the HireBook ledger.

Composes the per-table repositories over one database path and exposes the
operations callers use most. There is no module-level instance: callers
create a HireBookDatabase for the path they want and pass it around.
"""

import logging
from pathlib import Path
from typing import Optional

from hirebook.models.person import PersonFilter

from .base import BaseRepository
from .people import EmployerRepository, WorkerRepository
from .queries import QueryRepository
from .records import RecordRepository
from .transactions import TransactionRepository
from .trash import TrashRepository

logger = logging.getLogger(__name__)


class HireBookDatabase(BaseRepository):
    """
    Main entry point to the HireBook data layer.

    Attributes:
        employers: EmployerRepository
        workers: WorkerRepository
        records: RecordRepository
        transactions: TransactionRepository
        queries: QueryRepository
        trash: TrashRepository
    """

    def __init__(self, db_path: Optional[Path] = None):
        """
        Open the database, creating the schema if needed.

        Args:
            db_path: Path to the SQLite database file. Defaults to the
                configured HireBook database
        """
        super().__init__(db_path, init_schema=True)

        self.employers = EmployerRepository(self.db_path)
        self.workers = WorkerRepository(self.db_path)
        self.records = RecordRepository(self.db_path)
        self.transactions = TransactionRepository(
            self.db_path, record_repo=self.records
        )
        self.queries = QueryRepository(self.db_path)
        self.trash = TrashRepository(self.db_path)

        logger.info(f"HireBook database ready at {self.db_path}")

    def connection(self):
        """Open a connection that commits on success and rolls back on error."""
        return self._get_connection()

    def search_employers_with_filters(self, filters: PersonFilter) -> list:
        """Filtered employer search for the counterpart picker."""
        return self.employers.search_with_filters(filters)

    def search_workers_with_filters(self, filters: PersonFilter) -> list:
        """Filtered worker search for the counterpart picker."""
        return self.workers.search_with_filters(filters)

    def delete_all_data(self, conn=None):
        """
        Remove every row from every table.

        Dependents go first so the record foreign key is never violated.
        """
        with self._use_connection(conn) as c:
            for table in ("transactions", "records", "workers", "employers"):
                c.execute(f"DELETE FROM {table}")
            # Restart AUTOINCREMENT counters
            c.execute(
                "DELETE FROM sqlite_sequence "
                "WHERE name IN ('transactions', 'records', 'workers', 'employers')"
            )
        logger.warning("All HireBook data deleted")


def open_database(db_path: Optional[Path] = None) -> HireBookDatabase:
    """Open (and initialize) a HireBook database."""
    return HireBookDatabase(db_path)
