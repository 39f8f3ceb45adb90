"""
Temporal Valuation Engine

DESIGN DECISION: Valuation is a PURE function of (assets, reference date,
current-period flag). No mutation, no I/O, no clock reads unless a clock is
passed in. Running it twice on the same input gives the same snapshot.

VALUE ON A DAY:
1. Current period: the live current_value is authoritative. It may carry
   same-day edits that history has not caught up with.
2. Historical day: lookback search. Take the snapshot with the greatest
   date not after the reference date.
3. No such snapshot: fall back to purchase_amount, then current_value.
   This is an approximation with no claim of accuracy before the first
   recorded snapshot. It is logged as a degraded valuation and kept as
   documented behavior, since changing it would rewrite historical
   reports.

The engine never raises for well-formed input. Missing numbers count as 0
because this is a reporting path, not a transactional one.
"""

import calendar
import math
from collections.abc import Iterable
from datetime import date
from typing import Literal, Optional

import structlog

from src.clock import DateLike, ReferenceClock, to_date
from src.models.ledger import (
    ASSET_TYPE_ORDER,
    Asset,
    ValuationSnapshot,
    ValuedAsset,
)


logger = structlog.get_logger(__name__)

Granularity = Literal["day", "month"]

_TYPE_RANK = {asset_type: rank for rank, asset_type in enumerate(ASSET_TYPE_ORDER)}


def _amount(value: Optional[float]) -> float:
    """Treat missing or non-finite numbers as 0."""
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def is_active(asset: Asset, day: date) -> bool:
    """created_at <= day < deleted_at, with no deleted_at meaning unbounded."""
    return asset.is_active_on(day)


def lookback(asset: Asset, reference_date: date) -> Optional[float]:
    """Value of the most recent snapshot dated on or before reference_date."""
    best_date: Optional[date] = None
    best_value: Optional[float] = None
    for entry in asset.history:
        if entry.date > reference_date:
            continue
        # >= so that a later duplicate for the same day wins
        if best_date is None or entry.date >= best_date:
            best_date = entry.date
            best_value = entry.value
    return best_value


def value_at(
    asset: Asset,
    reference_date: DateLike,
    is_current_period: bool,
) -> tuple[float, bool]:
    """
    Value attributable to an asset on reference_date.

    Returns:
        (value, degraded) where degraded is True when no snapshot
        qualified and the purchase-amount fallback was used.
    """
    if is_current_period:
        return _amount(asset.current_value), False

    day = _reference_day(reference_date)
    found = lookback(asset, day) if day is not None else None
    if found is not None:
        return _amount(found), False

    if asset.purchase_amount is not None:
        fallback = asset.purchase_amount
    else:
        fallback = asset.current_value
    return _amount(fallback), True


def _reference_day(reference_date: DateLike) -> Optional[date]:
    """The reference date as a date, or None when it names no real day."""
    try:
        return to_date(reference_date)
    except (TypeError, ValueError, AttributeError):
        return None


def _display_order(assets: list[ValuedAsset]) -> list[ValuedAsset]:
    """Group by type priority, then by descending context value."""
    return sorted(
        assets,
        key=lambda a: (_TYPE_RANK.get(a.type, len(_TYPE_RANK)), -a.context_value),
    )


def snapshot_at(
    assets: Iterable[Asset],
    reference_date: DateLike,
    is_current_period: bool,
) -> ValuationSnapshot:
    """
    Net worth and per-asset values on reference_date.

    Only assets active on that day are included. The asset and liability
    groups come back in display order. A reference date that names no
    real day gives an empty snapshot with no reference_date.
    """
    day = _reference_day(reference_date)
    if day is None:
        logger.warning("invalid_reference_date", reference_date=str(reference_date))
        return ValuationSnapshot(reference_date=None, is_current_period=is_current_period)

    holdings: list[ValuedAsset] = []
    liabilities: list[ValuedAsset] = []
    degraded: list[str] = []

    for asset in assets:
        if not is_active(asset, day):
            continue
        value, was_degraded = value_at(asset, day, is_current_period)
        if was_degraded:
            degraded.append(asset.id)
        valued = ValuedAsset(
            **asset.model_dump(include=set(Asset.model_fields)),
            context_value=value,
        )
        if valued.is_liability:
            liabilities.append(valued)
        else:
            holdings.append(valued)

    total_assets = sum(a.context_value for a in holdings)
    total_liabilities = sum(a.context_value for a in liabilities)

    if degraded:
        logger.warning(
            "valuation_degraded",
            reference_date=day.isoformat(),
            asset_ids=degraded,
        )

    return ValuationSnapshot(
        reference_date=day,
        is_current_period=is_current_period,
        assets=_display_order(holdings),
        liabilities=_display_order(liabilities),
        total_assets=total_assets,
        total_liabilities=total_liabilities,
        net_worth=total_assets - total_liabilities,
        degraded_asset_ids=degraded,
    )


# =============================================================================
# PERIOD HELPERS
# =============================================================================

def is_current_period(
    reference_date: DateLike,
    today: date,
    granularity: Granularity = "day",
) -> bool:
    """Does reference_date fall in the same day (or month) as today?"""
    day = _reference_day(reference_date)
    if day is None:
        return False
    if granularity == "month":
        return (day.year, day.month) == (today.year, today.month)
    return day == today


def month_reference_date(year: int, month: int, today: date) -> tuple[date, bool]:
    """
    The day a monthly view is valued on.

    The current month is valued today with live values; any other month
    is valued on its last day from history.
    """
    if (year, month) == (today.year, today.month):
        return today, True
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, last_day), False


def snapshot_for_month(
    assets: Iterable[Asset],
    year: int,
    month: int,
    clock: ReferenceClock,
) -> ValuationSnapshot:
    """Snapshot for a month view (live values for the current month)."""
    reference, current = month_reference_date(year, month, clock.today())
    return snapshot_at(assets, reference, current)


def snapshot_for_day(
    assets: Iterable[Asset],
    day: DateLike,
    clock: ReferenceClock,
) -> ValuationSnapshot:
    """Snapshot for a single calendar day (live values only for today)."""
    return snapshot_at(assets, day, is_current_period(day, clock.today()))
