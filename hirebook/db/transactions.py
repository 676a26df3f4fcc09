"""
Transactions repository module for transaction CRUD operations.

Handles all transaction-related database operations including:
- Creating transactions inside their daily record (insert_with_record)
- Reading transactions by person, month, or filter
- Updating transactions (re-bucketing on date change)
- Soft-deleting transactions
"""

import logging
from typing import Optional

from hirebook.models.transaction import TransactionType

from .base import BaseRepository, kst_now
from .models import (
    Employer,
    InsertResult,
    Transaction,
    TransactionWithDetails,
    Worker,
)
from .records import RecordRepository, clean_date, month_prefix

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("amount", "date", "type", "category")


class TransactionRepository(BaseRepository):
    """
    Repository for managing transactions.

    Every write goes through the record repository so that each
    transaction sits in the record of its own date.
    """

    def __init__(
        self,
        db_path=None,
        init_schema: bool = False,
        record_repo: Optional[RecordRepository] = None,
    ):
        """
        Initialize the transaction repository.

        Args:
            db_path: Path to the SQLite database file
            init_schema: Whether to initialize schema
            record_repo: Record repository used to resolve daily buckets
        """
        super().__init__(db_path, init_schema=init_schema)
        self._record_repo = record_repo or RecordRepository(self.db_path)

    # =========================================================================
    # Create Operations
    # =========================================================================

    def insert_with_record(self, **fields) -> InsertResult:
        """
        Insert a transaction into the record of its date.

        The record is resolved (or created) and the transaction inserted in
        one storage transaction.

        Args:
            **fields: amount, date, type and category are required;
                worker_id, employer_id, payment_type and note are optional

        Returns:
            InsertResult with the record and transaction ids

        Raises:
            ValueError: If validation fails
        """
        values = {
            "worker_id": None,
            "employer_id": None,
            "category": "",
            "payment_type": "",
            "note": "",
        }
        values.update(_clean_fields(fields))
        missing = [name for name in REQUIRED_FIELDS if not values.get(name)]
        if missing:
            raise ValueError(f"Missing transaction field(s): {', '.join(missing)}")
        _validate_counterpart(values)

        now = kst_now()
        try:
            with self._get_connection() as conn:
                record_id = self._record_repo.resolve_record_for_date(
                    values["date"], conn=conn
                )
                cursor = conn.execute(
                    """
                    INSERT INTO transactions (
                        record_id, worker_id, employer_id, amount, date,
                        category, type, payment_type, note,
                        created_date, updated_date, deleted
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0)
                    """,
                    (
                        record_id,
                        values["worker_id"],
                        values["employer_id"],
                        values["amount"],
                        values["date"],
                        values["category"],
                        values["type"],
                        values["payment_type"],
                        values["note"],
                        now,
                        now,
                    ),
                )
                transaction_id = cursor.lastrowid
                logger.info(
                    f"Inserted transaction {transaction_id} into record {record_id}: "
                    f"{values['type']} {values['amount']} ({values['category']})"
                )
                return InsertResult(record_id=record_id, transaction_id=transaction_id)
        except ValueError:
            raise
        except Exception as e:
            logger.error(f"Error inserting transaction: {e}", exc_info=True)
            raise

    # =========================================================================
    # Read Operations
    # =========================================================================

    def get_by_id(self, transaction_id: int, conn=None) -> Optional[Transaction]:
        """
        Get a transaction by ID, including soft-deleted ones.

        Args:
            transaction_id: Transaction ID
            conn: Optional open connection to reuse

        Returns:
            Transaction or None if not found
        """
        if transaction_id is None or transaction_id <= 0:
            raise ValueError(f"Invalid transaction_id: {transaction_id}")

        with self._use_connection(conn) as c:
            row = c.execute(
                "SELECT * FROM transactions WHERE id = ?", (transaction_id,)
            ).fetchone()
            return Transaction.from_row(row) if row else None

    def get_all(self, ascending: bool = False) -> list[Transaction]:
        """All active transactions, newest first unless ``ascending``."""
        return self._list("", [], ascending)

    def get_by_worker_id(
        self, worker_id: int, ascending: bool = False
    ) -> list[Transaction]:
        """Active transactions of a worker."""
        return self._list("AND worker_id = ?", [worker_id], ascending)

    def get_by_employer_id(
        self, employer_id: int, ascending: bool = False
    ) -> list[Transaction]:
        """Active transactions of an employer."""
        return self._list("AND employer_id = ?", [employer_id], ascending)

    def get_monthly(
        self, year: int, month: int, ascending: bool = False
    ) -> list[Transaction]:
        """Active transactions whose date falls in the given month."""
        return self._list(
            "AND substr(date, 1, 7) = ?", [month_prefix(year, month)], ascending
        )

    def search(
        self,
        worker_id: Optional[int] = None,
        employer_id: Optional[int] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        transaction_type: Optional[TransactionType] = None,
        category: Optional[str] = None,
        ascending: bool = False,
    ) -> list[Transaction]:
        """
        Search active transactions. All filters are optional and ANDed.

        Args:
            worker_id: Only this worker's transactions
            employer_id: Only this employer's transactions
            start_date: Inclusive lower bound on the transaction date
            end_date: Inclusive upper bound on the transaction date
            transaction_type: Only income or only expense
            category: Exact category
            ascending: Oldest first instead of newest first

        Returns:
            List of Transaction objects
        """
        where = ""
        params: list = []

        if worker_id is not None:
            where += " AND worker_id = ?"
            params.append(worker_id)
        if employer_id is not None:
            where += " AND employer_id = ?"
            params.append(employer_id)
        if start_date:
            where += " AND date >= ?"
            params.append(clean_date(start_date))
        if end_date:
            where += " AND date <= ?"
            params.append(clean_date(end_date))
        if transaction_type is not None:
            where += " AND type = ?"
            params.append(TransactionType.parse(transaction_type).value)
        if category:
            where += " AND category = ?"
            params.append(category)

        return self._list(where, params, ascending)

    def get_with_details(self, transaction_id: int) -> Optional[TransactionWithDetails]:
        """
        Get a transaction joined with its worker and employer.

        People that are missing or in the trash come back as None.
        """
        with self._get_connection() as conn:
            transaction = self.get_by_id(transaction_id, conn=conn)
            if transaction is None:
                return None
            return self._attach_details(conn, [transaction])[0]

    def get_all_with_details(
        self, transactions: Optional[list[Transaction]] = None
    ) -> list[TransactionWithDetails]:
        """
        Join transactions with their counterparts.

        Args:
            transactions: Transactions to join; defaults to every active one
        """
        if transactions is None:
            transactions = self.get_all()
        with self._get_connection() as conn:
            return self._attach_details(conn, transactions)

    # =========================================================================
    # Update Operations
    # =========================================================================

    def update_with_record(self, transaction_id: int, **fields) -> Optional[Transaction]:
        """
        Update the given fields of a transaction.

        Fields that are not passed keep their stored value. When the date
        changes the transaction moves to the record of the new date.

        Returns:
            Updated Transaction, or None if not found

        Raises:
            ValueError: If validation fails
        """
        changes = _clean_fields(fields)
        for name in REQUIRED_FIELDS:
            if name in changes and not changes[name]:
                raise ValueError(f"Transaction {name} cannot be empty")

        try:
            with self._get_connection() as conn:
                current = self.get_by_id(transaction_id, conn=conn)
                if current is None:
                    logger.warning(f"Transaction {transaction_id} not found")
                    return None

                merged = {
                    "worker_id": current.worker_id,
                    "employer_id": current.employer_id,
                }
                merged.update(changes)
                _validate_counterpart(merged)

                if "date" in changes and changes["date"] != current.date:
                    changes["record_id"] = self._record_repo.resolve_record_for_date(
                        changes["date"], conn=conn
                    )
                    logger.info(
                        f"Moving transaction {transaction_id} from record "
                        f"{current.record_id} to {changes['record_id']}"
                    )

                assignments = "".join(f"{name} = ?, " for name in changes)
                conn.execute(
                    f"UPDATE transactions SET {assignments}updated_date = ? WHERE id = ?",
                    list(changes.values()) + [kst_now(), transaction_id],
                )
                logger.info(f"Updated transaction {transaction_id}")
                return self.get_by_id(transaction_id, conn=conn)
        except ValueError:
            raise
        except Exception as e:
            logger.error(
                f"Error updating transaction {transaction_id}: {e}", exc_info=True
            )
            raise

    # =========================================================================
    # Delete Operations
    # =========================================================================

    def delete(self, transaction_id: int) -> bool:
        """
        Move a transaction to the trash. Its record is left in place.

        Returns:
            True if an active transaction was soft-deleted
        """
        now = kst_now()
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                UPDATE transactions
                SET deleted = 1, deleted_date = ?, updated_date = ?
                WHERE id = ? AND deleted = 0
                """,
                (now, now, transaction_id),
            )
            deleted = cursor.rowcount > 0
            if deleted:
                logger.info(f"Soft-deleted transaction {transaction_id}")
            return deleted

    # =========================================================================
    # Helpers
    # =========================================================================

    def _list(self, where: str, params: list, ascending: bool) -> list[Transaction]:
        direction = "ASC" if ascending else "DESC"
        with self._get_connection() as conn:
            cursor = conn.execute(
                f"""
                SELECT * FROM transactions
                WHERE deleted = 0 {where}
                ORDER BY created_date {direction}, id {direction}
                """,
                params,
            )
            transactions = [Transaction.from_row(row) for row in cursor.fetchall()]
            logger.debug(f"Retrieved {len(transactions)} transactions")
            return transactions

    def _attach_details(
        self, conn, transactions: list[Transaction]
    ) -> list[TransactionWithDetails]:
        workers = _load_active(
            conn, Worker, {t.worker_id for t in transactions if t.worker_id}
        )
        employers = _load_active(
            conn, Employer, {t.employer_id for t in transactions if t.employer_id}
        )
        return [
            TransactionWithDetails(
                transaction=t,
                worker=workers.get(t.worker_id),
                employer=employers.get(t.employer_id),
            )
            for t in transactions
        ]


def _load_active(conn, model, ids: set) -> dict:
    if not ids:
        return {}
    placeholders = ", ".join("?" for _ in ids)
    cursor = conn.execute(
        f"SELECT * FROM {model.TABLE} WHERE deleted = 0 AND id IN ({placeholders})",
        list(ids),
    )
    return {row["id"]: model.from_row(row) for row in cursor.fetchall()}


def _clean_fields(fields: dict) -> dict:
    unknown = set(fields) - set(Transaction.EDITABLE_FIELDS)
    if unknown:
        raise ValueError(f"Unknown transaction field(s): {', '.join(sorted(unknown))}")

    cleaned = {}
    for name, value in fields.items():
        if name == "amount":
            cleaned[name] = _clean_amount(value)
        elif name == "type":
            cleaned[name] = TransactionType.parse(value).value
        elif name == "date":
            cleaned[name] = clean_date(value)
        elif name in ("worker_id", "employer_id"):
            cleaned[name] = _clean_person_id(name, value)
        else:
            cleaned[name] = "" if value is None else str(value).strip()
    return cleaned


def _clean_amount(value) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    if isinstance(value, str):
        value = value.replace(",", "").strip()
    try:
        amount = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid amount: {value!r}")
    if isinstance(value, float) and value != amount:
        raise ValueError(f"Amount must be a whole number, got {value}")
    if amount <= 0:
        raise ValueError(f"Amount must be positive, got {amount}")
    return amount


def _clean_person_id(name: str, value) -> Optional[int]:
    if value in (None, "", 0):
        return None
    try:
        person_id = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid {name}: {value!r}")
    if person_id < 0:
        raise ValueError(f"Invalid {name}: {value!r}")
    return person_id


def _validate_counterpart(values: dict):
    if values.get("worker_id") and values.get("employer_id"):
        raise ValueError("A transaction links either a worker or an employer, not both")
