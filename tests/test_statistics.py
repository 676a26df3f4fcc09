"""Tests for totals queries and the statistics service."""

from datetime import date

import pytest

from hirebook.services.statistics import (
    category_breakdown,
    daily_breakdown,
    frequency_ranking,
    monthly_breakdown,
    monthly_trends,
    refund_stats,
    summarize,
)


@pytest.fixture
def ledger(db, add_transaction, worker_id, employer_id):
    """A small ledger spread over a few months."""
    add_transaction(date="2025-07-15", type="수입", amount=100000, category="소개비",
                    employer_id=employer_id)
    add_transaction(date="2025-08-01", type="수입", amount=80000, category="소개비",
                    employer_id=employer_id)
    add_transaction(date="2025-08-01", type="지출", amount=20000, category="식비",
                    worker_id=worker_id)
    add_transaction(date="2025-09-10", type="지출", amount=30000, category="환불",
                    worker_id=worker_id)
    add_transaction(date="2025-09-12", type="지출", amount=5000, category="교통비")
    return db


class TestQueryRepository:
    """Tests for SQL totals."""

    def test_totals(self, ledger):
        assert ledger.queries.get_total_income() == 180000
        assert ledger.queries.get_total_expense() == 55000
        assert ledger.queries.get_balance() == 125000

    def test_empty_totals(self, db):
        assert db.queries.get_total_income() == 0
        assert db.queries.get_balance() == 0

    def test_deleted_excluded_from_totals(self, db, add_transaction):
        keep = add_transaction(type="수입", amount=10000)
        drop = add_transaction(type="수입", amount=99000)
        db.transactions.delete(drop.transaction_id)
        assert keep.transaction_id != drop.transaction_id
        assert db.queries.get_total_income() == 10000

    def test_monthly_stats(self, ledger):
        stats = ledger.queries.get_monthly_stats(2025)
        assert [s["month"] for s in stats] == [7, 8, 9]
        august = stats[1]
        assert august == {"month": 8, "income": 80000, "expense": 20000, "net": 60000}

    def test_category_totals(self, ledger):
        totals = ledger.queries.get_category_totals(transaction_type="지출")
        assert [t["category"] for t in totals] == ["환불", "식비", "교통비"]
        ranged = ledger.queries.get_category_totals(
            start_date="2025-08-01", end_date="2025-08-31"
        )
        assert {t["category"]: t["total"] for t in ranged} == {"소개비": 80000, "식비": 20000}

    def test_category_totals_with_date_objects(self, ledger):
        ranged = ledger.queries.get_category_totals(
            start_date=date(2025, 9, 1), end_date=date(2025, 9, 30)
        )
        assert {t["category"] for t in ranged} == {"환불", "교통비"}

    def test_category_totals_rejects_bad_date(self, db):
        with pytest.raises(ValueError):
            db.queries.get_category_totals(start_date="September")

    def test_daily_totals_fill_range(self, ledger):
        totals = ledger.queries.get_daily_totals(date(2025, 7, 31), date(2025, 8, 2))
        assert list(totals) == [date(2025, 7, 31), date(2025, 8, 1), date(2025, 8, 2)]
        assert totals[date(2025, 8, 1)] == {"income": 80000, "expense": 20000, "net": 60000}
        assert totals[date(2025, 7, 31)]["net"] == 0

    def test_daily_totals_rejects_reversed_range(self, db):
        with pytest.raises(ValueError):
            db.queries.get_daily_totals(date(2025, 9, 2), date(2025, 9, 1))


class TestStatisticsService:
    """Tests for aggregations over selected transactions."""

    def test_summarize(self, ledger):
        summary = summarize(ledger.transactions.get_all())
        assert summary.income == 180000
        assert summary.expense == 55000
        assert summary.balance == 125000
        assert summary.count == 5

    def test_summary_matches_sql(self, ledger):
        summary = summarize(ledger.transactions.get_all())
        assert summary.balance == ledger.queries.get_balance()

    def test_category_breakdown(self, ledger):
        breakdown = category_breakdown(ledger.transactions.get_all())
        assert breakdown[0].category == "소개비"
        assert breakdown[0].total == 180000
        assert breakdown[0].count == 2
        assert [c.category for c in breakdown[1:]] == ["환불", "식비", "교통비"]

    def test_monthly_breakdown(self, ledger):
        months = monthly_breakdown(ledger.transactions.get_all(), 2025)
        assert [m.month for m in months] == ["2025-07", "2025-08", "2025-09"]
        assert months[1].net == 60000
        assert months[2].month_number == 9
        assert monthly_breakdown(ledger.transactions.get_all(), 2024) == []

    def test_monthly_trends(self, ledger):
        trends = monthly_trends(ledger.transactions.get_all(), months=2)
        assert [m.month for m in trends] == ["2025-08", "2025-09"]
        assert monthly_trends(ledger.transactions.get_all(), months=0) == []

    def test_daily_breakdown_newest_first(self, ledger):
        days = daily_breakdown(ledger.transactions.get_all())
        assert days[0].date == "2025-09-12"
        august = next(d for d in days if d.date == "2025-08-01")
        assert august.net == 60000
        assert august.transaction_count == 2

    def test_frequency_ranking(self, ledger):
        ranking = frequency_ranking(
            ledger.transactions.get_all(),
            ledger.workers.get_all(),
            ledger.employers.get_all(),
        )
        assert [(s.person_type, s.count) for s in ranking] == [
            ("worker", 2),
            ("employer", 2),
        ]
        workers_only = frequency_ranking(
            ledger.transactions.get_all(),
            ledger.workers.get_all(),
            ledger.employers.get_all(),
            person_type="worker",
        )
        assert [s.name for s in workers_only] == ["Park Minsu"]

    def test_ranking_skips_trashed_people(self, ledger, employer_id):
        ledger.employers.delete(employer_id)
        ranking = frequency_ranking(
            ledger.transactions.get_all(),
            ledger.workers.get_all(),
            ledger.employers.get_all(),
        )
        assert [s.person_type for s in ranking] == ["worker"]

    def test_refund_stats(self, ledger, worker_id):
        [stat] = refund_stats(
            ledger.transactions.get_all(),
            ledger.workers.get_all(),
            ledger.employers.get_all(),
        )
        assert stat.person_id == worker_id
        assert stat.count == 1
        assert stat.amount == 30000
