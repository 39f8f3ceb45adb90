"""
Tests for cash-flow reports and the financial context.
"""

import pytest
from datetime import date

from src.models.ledger import AssetType, Transaction, TransactionCategory
from src.reports import (
    build_financial_context,
    budget_usage_percent,
    expense_breakdown,
    monthly_flow,
    period_totals,
    transactions_in_month,
    transactions_on,
)


def _tx(day, amount, kind="expense", category=TransactionCategory.OTHER, description=""):
    return Transaction(
        date=day,
        amount=amount,
        type=kind,
        category=category,
        description=description,
    )


@pytest.fixture
def transactions():
    return [
        _tx(date(2024, 3, 10), 3000, "income", TransactionCategory.SALARY),
        _tx(date(2024, 3, 12), 120, category=TransactionCategory.FOOD),
        _tx(date(2024, 3, 12), 80, category=TransactionCategory.TRANSPORT),
        _tx(date(2024, 3, 14), 30, category=TransactionCategory.FOOD),
        _tx(date(2024, 2, 5), 2800, "income", TransactionCategory.SALARY),
        _tx(date(2024, 2, 20), 500, category=TransactionCategory.HOUSING),
        _tx(date(2023, 11, 1), 40, category=TransactionCategory.LEISURE),
    ]


class TestPeriodTotals:
    """Tests for income/expense totals."""

    def test_month_totals(self, transactions):
        totals = period_totals(transactions, 2024, 3)
        assert totals.income == 3000
        assert totals.expense == 230
        assert totals.count == 4
        assert totals.balance == 2770

    def test_year_totals(self, transactions):
        totals = period_totals(transactions, 2024)
        assert totals.income == 5800
        assert totals.expense == 730
        assert totals.count == 6

    def test_empty_period(self, transactions):
        totals = period_totals(transactions, 2022, 1)
        assert (totals.income, totals.expense, totals.count) == (0, 0, 0)


class TestBreakdowns:
    """Tests for category and monthly breakdowns."""

    def test_expense_breakdown_largest_first(self, transactions):
        breakdown = expense_breakdown(transactions_in_month(transactions, 2024, 3))
        assert [(c.category, c.total) for c in breakdown] == [
            (TransactionCategory.FOOD, 150),
            (TransactionCategory.TRANSPORT, 80),
        ]

    def test_monthly_flow_oldest_first(self, transactions):
        flow = monthly_flow(transactions)
        assert [m.month for m in flow] == ["2023-11", "2024-02", "2024-03"]
        assert flow[-1].income == 3000
        assert flow[-1].expense == 230

    def test_monthly_flow_keeps_most_recent(self, transactions):
        flow = monthly_flow(transactions, months=2)
        assert [m.month for m in flow] == ["2024-02", "2024-03"]

    def test_monthly_flow_zero_months(self, transactions):
        assert monthly_flow(transactions, months=0) == []

    def test_transactions_on_day(self, transactions):
        found = transactions_on(transactions, "2024-03-12")
        assert [t.amount for t in found] == [120, 80]


class TestBudgetUsage:
    """Tests for the budget gauge."""

    @pytest.mark.parametrize(
        "expense, budget, expected",
        [
            (0, 1000, 0),
            (250, 1000, 25),
            (1000, 1000, 100),
            (5000, 1000, 100),
            (0, 0, 0),
            (10, 0, 100),
        ],
    )
    def test_usage_is_capped(self, expense, budget, expected):
        assert budget_usage_percent(expense, budget) == expected


class TestFinancialContext:
    """Tests for the numbers handed to the insight agent."""

    def test_totals_come_from_current_values(self, clock, make_asset, transactions):
        """Current-month context uses live values, not history."""
        assets = [
            make_asset(
                name="Fund",
                purchase_amount=1000,
                current_value=1300,
                history=[(date(2024, 1, 1), 1000)],
            ),
            make_asset(name="Loan", asset_type=AssetType.LOAN, purchase_amount=400, current_value=400),
            make_asset(name="Sold", current_value=999, deleted_at=date(2024, 2, 1)),
        ]

        context = build_financial_context(transactions, assets, clock)

        assert context.total_assets == 1300
        assert context.total_liabilities == 400
        assert context.net_worth == 900
        assert context.month_income == 3000
        assert context.month_expense == 230
        assert [a.name for a in context.asset_summary] == ["Fund", "Loan"]
        assert context.asset_summary[0].pnl == 300

    def test_recent_transactions_are_limited(self, clock, transactions):
        context = build_financial_context(transactions, [], clock, recent_limit=2)
        assert len(context.recent_transactions) == 2
        assert "id" not in context.recent_transactions[0]
        assert context.recent_transactions[0]["date"] == "2024-03-10"

    def test_facts_block_states_net_worth(self, clock):
        context = build_financial_context([], [], clock)
        assert "Net worth (authoritative): 0" in context.facts_block()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
