"""
Cash-flow Reports

Deterministic aggregates over the transaction list. These feed the summary
cards, the category chart and the monthly flow chart.

Every number here is computed from stored transactions only. Nothing is
estimated.
"""

from collections.abc import Iterable
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from src.clock import DateLike, to_date
from src.models.ledger import Transaction, TransactionCategory, TransactionType


class PeriodTotals(BaseModel):
    """Income and expense for a month or a whole year."""

    income: float = 0.0
    expense: float = 0.0
    count: int = 0

    @property
    def balance(self) -> float:
        return self.income - self.expense


class CategoryTotal(BaseModel):
    category: TransactionCategory
    total: float


class MonthFlow(BaseModel):
    """Income and expense in one YYYY-MM bucket."""

    month: str = Field(..., pattern=r"^\d{4}-\d{2}$")
    income: float = 0.0
    expense: float = 0.0


def _in_period(day: date, year: int, month: Optional[int]) -> bool:
    if day.year != year:
        return False
    return month is None or day.month == month


def period_totals(
    transactions: Iterable[Transaction],
    year: int,
    month: Optional[int] = None,
) -> PeriodTotals:
    """
    Sum income and expense for a year, or for one month of it.

    Args:
        transactions: The transaction list
        year: Calendar year
        month: 1-12, or None for the whole year
    """
    totals = PeriodTotals()
    for transaction in transactions:
        if not _in_period(transaction.date, year, month):
            continue
        totals.count += 1
        if transaction.type == TransactionType.INCOME:
            totals.income += transaction.amount
        else:
            totals.expense += transaction.amount
    return totals


def expense_breakdown(transactions: Iterable[Transaction]) -> list[CategoryTotal]:
    """Expense totals per category, largest first."""
    totals: dict[TransactionCategory, float] = {}
    for transaction in transactions:
        if transaction.type != TransactionType.EXPENSE:
            continue
        totals[transaction.category] = totals.get(transaction.category, 0.0) + transaction.amount

    ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [CategoryTotal(category=category, total=total) for category, total in ordered]


def monthly_flow(transactions: Iterable[Transaction], months: int = 6) -> list[MonthFlow]:
    """
    Income/expense per month for the most recent `months` months that
    have transactions, oldest first.
    """
    buckets: dict[str, MonthFlow] = {}
    for transaction in transactions:
        key = transaction.date.strftime("%Y-%m")
        bucket = buckets.setdefault(key, MonthFlow(month=key))
        if transaction.type == TransactionType.INCOME:
            bucket.income += transaction.amount
        else:
            bucket.expense += transaction.amount

    ordered = [buckets[key] for key in sorted(buckets)]
    if months <= 0:
        return []
    return ordered[-months:]


def transactions_on(transactions: Iterable[Transaction], day: DateLike) -> list[Transaction]:
    """Transactions dated exactly `day`, in list order."""
    target = to_date(day)
    return [t for t in transactions if t.date == target]


def transactions_in_month(
    transactions: Iterable[Transaction],
    year: int,
    month: int,
) -> list[Transaction]:
    return [t for t in transactions if _in_period(t.date, year, month)]


def budget_usage_percent(expense: float, budget: float) -> int:
    """Share of the monthly budget spent, rounded and capped at 100."""
    if budget <= 0:
        return 100 if expense > 0 else 0
    return min(round(expense / budget * 100), 100)
