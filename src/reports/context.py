"""
Financial Context

The fixed set of numbers handed to the insight agent.

DESIGN DECISION: Totals here come from the valuation engine, evaluated for
today in current-period mode. The agent is told these are final and must
not recompute them, so the dashboard and the AI report can never disagree.
"""

from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, Field

from src.clock import ReferenceClock
from src.models.ledger import Asset, Transaction
from src.reports.cashflow import period_totals, transactions_in_month
from src.valuation.engine import snapshot_at


class AssetSummary(BaseModel):
    name: str
    type: str
    current_value: float
    purchase_amount: float
    pnl: float


class FinancialContext(BaseModel):
    """Engine-computed facts about the ledger as of today."""

    total_assets: float
    total_liabilities: float
    net_worth: float
    month_income: float
    month_expense: float
    asset_summary: list[AssetSummary] = Field(default_factory=list)
    recent_transactions: list[dict[str, Any]] = Field(default_factory=list)

    def facts_block(self) -> str:
        """Plain-text statement of the fixed numbers, for prompts."""
        return (
            f"- Total assets: {self.total_assets:,.0f}\n"
            f"- Total liabilities: {self.total_liabilities:,.0f}\n"
            f"- Net worth (authoritative): {self.net_worth:,.0f}\n"
            f"- Income this month: {self.month_income:,.0f}\n"
            f"- Expense this month: {self.month_expense:,.0f}"
        )


def build_financial_context(
    transactions: Iterable[Transaction],
    assets: Iterable[Asset],
    clock: ReferenceClock,
    recent_limit: int = 20,
) -> FinancialContext:
    """Assemble the context for today using the engine's current-period totals."""
    transactions = list(transactions)
    today = clock.today()
    snapshot = snapshot_at(assets, today, is_current_period=True)

    month_transactions = transactions_in_month(transactions, today.year, today.month)
    totals = period_totals(month_transactions, today.year, today.month)

    summary = [
        AssetSummary(
            name=asset.name,
            type=asset.type.value,
            current_value=asset.context_value,
            purchase_amount=asset.purchase_amount or 0.0,
            pnl=asset.gain,
        )
        for asset in snapshot.all_assets
    ]

    recent = [
        t.model_dump(mode="json", exclude={"id"})
        for t in month_transactions[:max(recent_limit, 0)]
    ]

    return FinancialContext(
        total_assets=snapshot.total_assets,
        total_liabilities=snapshot.total_liabilities,
        net_worth=snapshot.net_worth,
        month_income=totals.income,
        month_expense=totals.expense,
        asset_summary=summary,
        recent_transactions=recent,
    )
