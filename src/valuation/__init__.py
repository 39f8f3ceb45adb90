"""Temporal valuation package."""

from src.valuation.engine import (
    is_active,
    is_current_period,
    lookback,
    month_reference_date,
    snapshot_at,
    snapshot_for_day,
    snapshot_for_month,
    value_at,
)

__all__ = [
    "is_active",
    "is_current_period",
    "lookback",
    "month_reference_date",
    "snapshot_at",
    "snapshot_for_day",
    "snapshot_for_month",
    "value_at",
]
