"""
Queries repository module for totals and analytics.

Handles read-only aggregate queries over active transactions:
- Income, expense and balance totals
- Monthly income/expense for a year
- Category totals and daily totals over a date range
"""

import logging
from datetime import date, timedelta
from typing import Optional

from hirebook.models.transaction import TransactionType

from .base import BaseRepository
from .records import clean_date

logger = logging.getLogger(__name__)


class QueryRepository(BaseRepository):
    """
    Repository for totals and analytics queries.

    Provides read-only aggregate operations computed by SQLite.
    """

    def __init__(self, db_path=None, init_schema: bool = False):
        super().__init__(db_path, init_schema=init_schema)

    # =========================================================================
    # Totals
    # =========================================================================

    def _sum_for_type(self, transaction_type: TransactionType) -> int:
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT COALESCE(SUM(amount), 0) AS total
                FROM transactions
                WHERE type = ? AND deleted = 0
                """,
                (transaction_type.value,),
            )
            return cursor.fetchone()["total"]

    def get_total_income(self) -> int:
        """Sum of all active income amounts."""
        return self._sum_for_type(TransactionType.INCOME)

    def get_total_expense(self) -> int:
        """Sum of all active expense amounts."""
        return self._sum_for_type(TransactionType.EXPENSE)

    def get_balance(self) -> int:
        """Total income minus total expense."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT
                    COALESCE(SUM(
                        CASE WHEN type = ? THEN amount ELSE 0 END
                    ), 0) -
                    COALESCE(SUM(
                        CASE WHEN type = ? THEN amount ELSE 0 END
                    ), 0) AS balance
                FROM transactions
                WHERE deleted = 0
                """,
                (TransactionType.INCOME.value, TransactionType.EXPENSE.value),
            )
            balance = cursor.fetchone()["balance"]
            logger.debug(f"Total balance: {balance}")
            return balance

    # =========================================================================
    # Grouped Queries
    # =========================================================================

    def get_monthly_stats(self, year: int) -> list[dict]:
        """
        Income and expense per month of a year.

        Args:
            year: Calendar year

        Returns:
            List of {month, income, expense, net} for months with data,
            ordered by month
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT
                    CAST(substr(date, 6, 2) AS INTEGER) AS month,
                    SUM(CASE WHEN type = ? THEN amount ELSE 0 END) AS income,
                    SUM(CASE WHEN type = ? THEN amount ELSE 0 END) AS expense
                FROM transactions
                WHERE substr(date, 1, 4) = ? AND deleted = 0
                GROUP BY month
                ORDER BY month
                """,
                (
                    TransactionType.INCOME.value,
                    TransactionType.EXPENSE.value,
                    f"{year:04d}",
                ),
            )
            return [
                {
                    "month": row["month"],
                    "income": row["income"],
                    "expense": row["expense"],
                    "net": row["income"] - row["expense"],
                }
                for row in cursor.fetchall()
            ]

    def get_category_totals(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        transaction_type: Optional[TransactionType] = None,
    ) -> list[dict]:
        """
        Sum of amounts per category, largest first.

        Args:
            start_date: Inclusive lower bound on the transaction date
            end_date: Inclusive upper bound on the transaction date
            transaction_type: Restrict to income or expense

        Returns:
            List of {category, total, count} with non-zero totals
        """
        query = """
            SELECT category, SUM(amount) AS total, COUNT(*) AS count
            FROM transactions
            WHERE deleted = 0
        """
        params: list = []

        if start_date:
            query += " AND date >= ?"
            params.append(clean_date(start_date))
        if end_date:
            query += " AND date <= ?"
            params.append(clean_date(end_date))
        if transaction_type is not None:
            query += " AND type = ?"
            params.append(TransactionType.parse(transaction_type).value)

        query += " GROUP BY category HAVING SUM(amount) != 0 ORDER BY total DESC, category"

        with self._get_connection() as conn:
            cursor = conn.execute(query, params)
            return [
                {"category": row["category"], "total": row["total"], "count": row["count"]}
                for row in cursor.fetchall()
            ]

    def get_daily_totals(
        self, start_date: date, end_date: date
    ) -> dict[date, dict[str, int]]:
        """
        Income/expense/net per day, with every day of the range present.

        Args:
            start_date: Start date (inclusive)
            end_date: End date (inclusive)

        Returns:
            Dictionary mapping dates to {income, expense, net} totals
        """
        if end_date < start_date:
            raise ValueError(f"End date {end_date} is before start date {start_date}")

        daily_totals: dict[date, dict[str, int]] = {}
        current = start_date
        while current <= end_date:
            daily_totals[current] = {"income": 0, "expense": 0, "net": 0}
            current += timedelta(days=1)

        with self._get_connection() as conn:
            cursor = conn.execute(
                """
                SELECT date AS day, type, SUM(amount) AS total
                FROM transactions
                WHERE deleted = 0 AND date >= ? AND date <= ?
                GROUP BY date, type
                """,
                (start_date.isoformat(), end_date.isoformat()),
            )
            for row in cursor.fetchall():
                day = date.fromisoformat(row["day"])
                key = "income" if row["type"] == TransactionType.INCOME.value else "expense"
                daily_totals[day][key] = row["total"]

        for totals in daily_totals.values():
            totals["net"] = totals["income"] - totals["expense"]

        return daily_totals
