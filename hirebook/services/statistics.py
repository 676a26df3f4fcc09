"""
Statistics service for income/expense aggregation.

Provides stateless aggregations over a list of transactions the caller has
already selected (by person, month, date range, ...):
- Income, expense and balance summary
- Category, monthly and daily breakdowns
- Recent monthly trends
- Per-person transaction frequency and refund statistics
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Optional

from hirebook.config import (
    DEFAULT_RANKING_LIMIT,
    DEFAULT_TREND_MONTHS,
    REFUND_CATEGORY,
)
from hirebook.db.models import Employer, Transaction, Worker
from hirebook.models.transaction import TransactionType

logger = logging.getLogger(__name__)


@dataclass
class Summary:
    """Totals over a set of transactions."""

    income: int
    expense: int
    balance: int
    count: int


@dataclass
class CategoryTotal:
    category: str
    total: int
    count: int


@dataclass
class MonthlyTotal:
    """Income and expense of one calendar month ('YYYY-MM')."""

    month: str
    income: int
    expense: int

    @property
    def net(self) -> int:
        return self.income - self.expense

    @property
    def month_number(self) -> int:
        return int(self.month[5:7])


@dataclass
class DailySummary:
    """Summary of a single day's transactions."""

    date: str
    income: int
    expense: int
    net: int
    transaction_count: int


@dataclass
class PersonStat:
    """Per-person count (and amount, for refunds)."""

    person_type: str  # "worker" or "employer"
    person_id: int
    name: str
    count: int
    amount: int = 0


def summarize(transactions: Iterable[Transaction]) -> Summary:
    """Total income, total expense and their difference."""
    income = expense = count = 0
    for t in transactions:
        count += 1
        if t.type == TransactionType.INCOME:
            income += t.amount
        else:
            expense += t.amount
    return Summary(income=income, expense=expense, balance=income - expense, count=count)


def category_breakdown(transactions: Iterable[Transaction]) -> list[CategoryTotal]:
    """
    Sum of amounts per category, largest first.

    Groups summing to zero are dropped. Ties are ordered by category name.
    """
    totals: dict[str, int] = defaultdict(int)
    counts: dict[str, int] = defaultdict(int)
    for t in transactions:
        totals[t.category] += t.amount
        counts[t.category] += 1

    breakdown = [
        CategoryTotal(category=category, total=total, count=counts[category])
        for category, total in totals.items()
        if total != 0
    ]
    breakdown.sort(key=lambda c: (-c.total, c.category))
    return breakdown


def _monthly_totals(transactions: Iterable[Transaction]) -> dict[str, MonthlyTotal]:
    months: dict[str, MonthlyTotal] = {}
    for t in transactions:
        key = t.date[:7]
        bucket = months.setdefault(key, MonthlyTotal(month=key, income=0, expense=0))
        if t.type == TransactionType.INCOME:
            bucket.income += t.amount
        else:
            bucket.expense += t.amount
    return months


def monthly_breakdown(
    transactions: Iterable[Transaction], year: int
) -> list[MonthlyTotal]:
    """Per-month totals of one year, only months with data, in month order."""
    prefix = f"{year:04d}-"
    months = _monthly_totals(t for t in transactions if t.date.startswith(prefix))
    return [months[key] for key in sorted(months)]


def monthly_trends(
    transactions: Iterable[Transaction], months: int = DEFAULT_TREND_MONTHS
) -> list[MonthlyTotal]:
    """The most recent ``months`` months that have data, oldest first."""
    if months <= 0:
        return []
    totals = _monthly_totals(transactions)
    return [totals[key] for key in sorted(totals)[-months:]]


def daily_breakdown(transactions: Iterable[Transaction]) -> list[DailySummary]:
    """Per-day totals, newest day first."""
    days: dict[str, list[Transaction]] = defaultdict(list)
    for t in transactions:
        days[t.date].append(t)

    result = []
    for day in sorted(days, reverse=True):
        summary = summarize(days[day])
        result.append(
            DailySummary(
                date=day,
                income=summary.income,
                expense=summary.expense,
                net=summary.balance,
                transaction_count=summary.count,
            )
        )
    return result


def _people_index(
    workers: Iterable[Worker], employers: Iterable[Employer]
) -> tuple[dict[int, Worker], dict[int, Employer]]:
    return {w.id: w for w in workers}, {e.id: e for e in employers}


def _counterparts(
    t: Transaction, workers: dict[int, Worker], employers: dict[int, Employer]
) -> list[tuple[str, int, str]]:
    found = []
    worker = workers.get(t.worker_id) if t.worker_id else None
    if worker:
        found.append(("worker", worker.id, worker.name))
    employer = employers.get(t.employer_id) if t.employer_id else None
    if employer:
        found.append(("employer", employer.id, employer.name))
    return found


def frequency_ranking(
    transactions: Iterable[Transaction],
    workers: Iterable[Worker],
    employers: Iterable[Employer],
    person_type: Optional[str] = None,
    limit: int = DEFAULT_RANKING_LIMIT,
) -> list[PersonStat]:
    """
    People with the most transactions, highest count first.

    Transactions whose counterpart is not among ``workers``/``employers``
    (deleted or unknown) are not counted.
    """
    worker_index, employer_index = _people_index(workers, employers)
    stats: dict[tuple[str, int], PersonStat] = {}

    for t in transactions:
        for kind, person_id, name in _counterparts(t, worker_index, employer_index):
            if person_type and kind != person_type:
                continue
            stat = stats.setdefault(
                (kind, person_id),
                PersonStat(person_type=kind, person_id=person_id, name=name, count=0),
            )
            stat.count += 1
            stat.amount += t.amount

    ranking = sorted(stats.values(), key=lambda s: (-s.count, s.name, s.person_id))
    return ranking[:limit] if limit else ranking


def refund_stats(
    transactions: Iterable[Transaction],
    workers: Iterable[Worker],
    employers: Iterable[Employer],
    person_type: Optional[str] = None,
) -> list[PersonStat]:
    """Count and amount of refund-category transactions per person, largest first."""
    refunds = [t for t in transactions if t.category == REFUND_CATEGORY]
    stats = frequency_ranking(refunds, workers, employers, person_type, limit=0)
    stats.sort(key=lambda s: (-s.amount, s.name, s.person_id))
    logger.debug(f"Computed refund stats for {len(stats)} people")
    return stats
