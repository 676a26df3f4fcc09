"""Tests for daily record resolution and monthly views."""

from datetime import date

import pytest

from hirebook.db.records import clean_date, month_prefix


class TestResolveRecord:
    """Tests for the one-record-per-date rule."""

    def test_same_date_same_record(self, db):
        """Resolving a date twice returns the same record."""
        first = db.records.resolve_record_for_date("2025-09-01")
        second = db.records.resolve_record_for_date("2025-09-01")
        assert first == second
        assert db.records.count_for_date("2025-09-01") == 1

    def test_distinct_dates_distinct_records(self, db):
        first = db.records.resolve_record_for_date("2025-09-01")
        second = db.records.resolve_record_for_date("2025-09-02")
        assert first != second

    def test_transactions_share_record(self, db, add_transaction):
        """Every transaction of a date lands in one record."""
        results = [add_transaction(amount=1000 * (i + 1)) for i in range(5)]
        assert len({r.record_id for r in results}) == 1
        assert db.records.count_for_date("2025-09-01") == 1

    def test_deleted_record_not_reused(self, db, add_transaction):
        """A trashed record is left alone and a fresh one is created."""
        old = add_transaction()
        with db.connection() as conn:
            conn.execute(
                "UPDATE records SET deleted = 1 WHERE id = ?", (old.record_id,)
            )

        new = add_transaction()
        assert new.record_id != old.record_id
        assert db.records.count_for_date("2025-09-01") == 1
        assert db.records.count_for_date("2025-09-01", include_deleted=True) == 2

    def test_resolve_joins_outer_transaction(self, db):
        """A resolve inside a failed write is rolled back with it."""
        with pytest.raises(RuntimeError):
            with db.connection() as conn:
                db.records.resolve_record_for_date("2025-09-01", conn=conn)
                raise RuntimeError("boom")
        assert db.records.get_by_date("2025-09-01") is None


class TestMonthlyRecords:
    """Tests for monthly record views."""

    def test_get_monthly(self, db, add_transaction):
        add_transaction(date="2025-09-01")
        add_transaction(date="2025-09-15")
        add_transaction(date="2025-10-01")

        records = db.records.get_monthly(2025, 9)
        assert [r.date for r in records] == ["2025-09-15", "2025-09-01"]

    def test_monthly_with_transactions(self, db, add_transaction):
        add_transaction(date="2025-09-01", amount=30000, type="수입")
        add_transaction(date="2025-09-01", amount=10000)

        [record] = db.records.get_monthly_with_transactions(2025, 9)
        assert [t.amount for t in record.transactions] == [30000, 10000]
        assert record.total_income() == 30000
        assert record.total_expense() == 10000
        assert record.net() == 20000

    def test_empty_days_skipped(self, db, add_transaction):
        """A day whose transactions were all trashed is hidden by default."""
        result = add_transaction(date="2025-09-03")
        db.transactions.delete(result.transaction_id)

        assert db.records.get_monthly_with_transactions(2025, 9) == []
        [record] = db.records.get_monthly_with_transactions(
            2025, 9, include_empty=True
        )
        assert record.transactions == []

    def test_invalid_date_rejected(self, db):
        """A non-date raises ValueError and creates nothing."""
        with pytest.raises(ValueError):
            db.records.resolve_record_for_date(None)
        with pytest.raises(ValueError):
            db.records.resolve_record_for_date("2025-02-30")
        with db.connection() as conn:
            assert conn.execute("SELECT COUNT(*) FROM records").fetchone()[0] == 0

    def test_short_date_shares_record(self, db, add_transaction):
        """'2025-9-1' and '2025-09-01' resolve to the same record."""
        record_id = db.records.resolve_record_for_date("2025-9-1")
        assert add_transaction(date="2025-09-01").record_id == record_id
        assert db.records.get_by_date("2025-9-1").date == "2025-09-01"
        assert db.records.count_for_date("2025-09-01") == 1

    def test_clean_date(self):
        assert clean_date("2025-09-01T03:00:00.000Z") == "2025-09-01"
        assert clean_date(date(2025, 9, 1)) == "2025-09-01"
        with pytest.raises(ValueError):
            clean_date(20250901)

    def test_month_prefix(self):
        assert month_prefix(2025, 9) == "2025-09"
        with pytest.raises(ValueError):
            month_prefix(2025, 13)
