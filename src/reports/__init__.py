"""Deterministic reports over the ledger."""

from src.reports.cashflow import (
    CategoryTotal,
    MonthFlow,
    PeriodTotals,
    budget_usage_percent,
    expense_breakdown,
    monthly_flow,
    period_totals,
    transactions_in_month,
    transactions_on,
)
from src.reports.context import AssetSummary, FinancialContext, build_financial_context

__all__ = [
    "AssetSummary",
    "CategoryTotal",
    "FinancialContext",
    "MonthFlow",
    "PeriodTotals",
    "budget_usage_percent",
    "build_financial_context",
    "expense_breakdown",
    "monthly_flow",
    "period_totals",
    "transactions_in_month",
    "transactions_on",
]
