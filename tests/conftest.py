"""Shared fixtures for the ledger tests."""

from datetime import date

import pytest

from src.clock import FixedClock
from src.models.ledger import Asset, AssetType, HistoryEntry


@pytest.fixture
def clock():
    """A clock pinned to 2024-03-15."""
    return FixedClock(date(2024, 3, 15))


def _make_asset(
    name="Fund",
    asset_type=AssetType.STOCK,
    purchase_amount=1000.0,
    current_value=1000.0,
    history=(),
    created_at=date(2024, 1, 1),
    deleted_at=None,
    **extra,
):
    """Build an Asset with (date, value) history pairs."""
    return Asset(
        name=name,
        type=asset_type,
        purchase_amount=purchase_amount,
        current_value=current_value,
        history=[HistoryEntry(date=d, value=v) for d, v in history],
        created_at=created_at,
        deleted_at=deleted_at,
        **extra,
    )


@pytest.fixture
def make_asset():
    """Factory for assets with a compact history."""
    return _make_asset
