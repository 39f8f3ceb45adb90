"""
Tests for the temporal valuation engine.

The engine is pure, so every test builds assets directly and checks
the numbers attributed to a reference date.
"""

import pytest
from datetime import date

from src.clock import FixedClock
from src.ledger import AssetLedger
from src.models.ledger import AssetType
from src.valuation import (
    is_active,
    is_current_period,
    lookback,
    month_reference_date,
    snapshot_at,
    snapshot_for_day,
    snapshot_for_month,
    value_at,
)


JAN_1 = date(2024, 1, 1)
FEB_1 = date(2024, 2, 1)


@pytest.fixture
def fund(make_asset):
    return make_asset(
        purchase_amount=80,
        current_value=175,
        history=[(JAN_1, 100), (FEB_1, 150)],
        created_at=JAN_1,
    )


class TestActiveWindow:
    """Tests for the half-open active window."""

    def test_boundaries(self, make_asset):
        asset = make_asset(created_at=date(2024, 1, 10), deleted_at=date(2024, 2, 1))
        assert is_active(asset, date(2024, 1, 9)) is False
        assert is_active(asset, date(2024, 1, 10)) is True
        assert is_active(asset, date(2024, 1, 31)) is True
        assert is_active(asset, date(2024, 2, 1)) is False

    def test_open_ended(self, make_asset):
        asset = make_asset(created_at=JAN_1)
        assert is_active(asset, date(2099, 1, 1)) is True


class TestLookback:
    """Tests for the most-recent-snapshot search."""

    def test_between_snapshots(self, fund):
        assert lookback(fund, date(2024, 1, 15)) == 100
        assert lookback(fund, date(2024, 2, 10)) == 150

    def test_exact_date_is_included(self, fund):
        assert lookback(fund, FEB_1) == 150

    def test_before_first_snapshot(self, fund):
        assert lookback(fund, date(2023, 12, 31)) is None

    def test_unsorted_history(self, make_asset):
        """The search does not rely on history order."""
        asset = make_asset(history=[(FEB_1, 150), (JAN_1, 100)])
        assert lookback(asset, date(2024, 1, 20)) == 100
        assert lookback(asset, date(2024, 3, 1)) == 150

    def test_later_duplicate_wins(self, make_asset):
        asset = make_asset(history=[(JAN_1, 100), (JAN_1, 120)])
        assert lookback(asset, JAN_1) == 120


class TestValueAt:
    """Tests for the value attributed to one asset."""

    def test_historical_day_uses_lookback(self, fund):
        assert value_at(fund, date(2024, 1, 15), is_current_period=False) == (100, False)
        assert value_at(fund, "2024-02-10", is_current_period=False) == (150, False)

    def test_falls_back_to_purchase_amount(self, fund):
        value, degraded = value_at(fund, date(2023, 12, 31), is_current_period=False)
        assert value == 80
        assert degraded is True

    def test_falls_back_to_current_value_without_purchase_amount(self, make_asset):
        asset = make_asset(purchase_amount=None, current_value=60)
        assert value_at(asset, JAN_1, is_current_period=False) == (60, True)

    def test_missing_everything_counts_as_zero(self, make_asset):
        asset = make_asset(purchase_amount=None, current_value=None)
        assert value_at(asset, JAN_1, is_current_period=False) == (0.0, True)

    def test_current_period_uses_current_value(self, fund):
        """Live value wins over history in the current period."""
        assert value_at(fund, date(2024, 2, 10), is_current_period=True) == (175, False)

    def test_unreadable_reference_date_uses_fallback(self, fund):
        assert value_at(fund, "2024-02-30", is_current_period=False) == (80, True)
        assert value_at(fund, None, is_current_period=False) == (80, True)

    def test_current_period_missing_value_is_zero(self, make_asset):
        asset = make_asset(current_value=None)
        assert value_at(asset, JAN_1, is_current_period=True) == (0.0, False)


class TestSnapshot:
    """Tests for whole-portfolio snapshots."""

    def test_net_worth_subtracts_loans(self, make_asset):
        assets = [
            make_asset(name="Cash", asset_type=AssetType.CASH, current_value=500),
            make_asset(name="Fund", asset_type=AssetType.STOCK, current_value=1500),
            make_asset(name="Flat", asset_type=AssetType.REAL_ESTATE, current_value=20000),
            make_asset(name="Mortgage", asset_type=AssetType.LOAN, current_value=12000),
            make_asset(name="Car loan", asset_type=AssetType.LOAN, current_value=3000),
        ]

        snapshot = snapshot_at(assets, date(2024, 3, 15), is_current_period=True)

        assert snapshot.total_assets == 22000
        assert snapshot.total_liabilities == 15000
        assert snapshot.net_worth == 7000
        assert len(snapshot.assets) == 3
        assert len(snapshot.liabilities) == 2
        assert snapshot.degraded_asset_ids == []

    def test_net_worth_is_additive_over_looked_up_values(self, make_asset):
        """Past days sum the recorded values, not the live ones."""
        assets = [
            make_asset(name="Cash", asset_type=AssetType.CASH, current_value=900,
                       history=[(JAN_1, 400), (FEB_1, 500)]),
            make_asset(name="Fund", asset_type=AssetType.STOCK, current_value=2500,
                       history=[(JAN_1, 1000), (FEB_1, 1500)]),
            make_asset(name="Flat", asset_type=AssetType.REAL_ESTATE, current_value=25000,
                       history=[(JAN_1, 20000)]),
            make_asset(name="Mortgage", asset_type=AssetType.LOAN, current_value=9000,
                       history=[(JAN_1, 12500), (FEB_1, 12000)]),
            make_asset(name="Car loan", asset_type=AssetType.LOAN, current_value=1000,
                       history=[(JAN_1, 3000)]),
        ]

        snapshot = snapshot_at(assets, date(2024, 2, 15), is_current_period=False)

        assert snapshot.total_assets == 500 + 1500 + 20000
        assert snapshot.total_liabilities == 12000 + 3000
        assert snapshot.net_worth == snapshot.total_assets - snapshot.total_liabilities == 7000
        assert snapshot.total_assets == sum(a.context_value for a in snapshot.assets)
        assert snapshot.total_liabilities == sum(a.context_value for a in snapshot.liabilities)
        assert snapshot.degraded_asset_ids == []

    def test_valued_assets_can_be_valued_again(self, fund, make_asset):
        """A snapshot's own assets are valid input for another snapshot."""
        loan = make_asset(name="Loan", asset_type=AssetType.LOAN, history=[(JAN_1, 30)])
        first = snapshot_at([fund, loan], date(2024, 1, 5), is_current_period=False)

        second = snapshot_at(first.all_assets, date(2024, 2, 5), is_current_period=False)

        assert first.net_worth == 70
        assert second.net_worth == 120
        assert second.assets[0].context_value == 150
        assert [a.id for a in second.all_assets] == [a.id for a in first.all_assets]

    def test_unreadable_reference_date_gives_empty_snapshot(self, fund):
        snapshot = snapshot_at([fund], "2024-02-30", is_current_period=False)

        assert snapshot.reference_date is None
        assert snapshot.all_assets == []
        assert snapshot.net_worth == 0
        assert snapshot.degraded_asset_ids == []

    def test_unreadable_day_view_does_not_raise(self, fund, clock):
        snapshot = snapshot_for_day([fund], "not-a-date", clock)
        assert snapshot.is_current_period is False
        assert snapshot.all_assets == []

        assert snapshot.degraded_asset_ids == []

    def test_display_order(self, make_asset):
        """Type priority first, then larger values first."""
        assets = [
            make_asset(name="Small fund", asset_type=AssetType.STOCK, current_value=100),
            make_asset(name="Flat", asset_type=AssetType.REAL_ESTATE, current_value=9000),
            make_asset(name="Big fund", asset_type=AssetType.STOCK, current_value=700),
            make_asset(name="Wallet", asset_type=AssetType.CASH, current_value=50),
        ]

        snapshot = snapshot_at(assets, date(2024, 3, 15), is_current_period=True)

        assert [a.name for a in snapshot.assets] == ["Wallet", "Big fund", "Small fund", "Flat"]

    def test_only_active_assets_are_included(self, make_asset):
        assets = [
            make_asset(name="Old", created_at=JAN_1, deleted_at=FEB_1, current_value=10),
            make_asset(name="New", created_at=date(2024, 3, 1), current_value=20),
        ]

        january = snapshot_at(assets, date(2024, 1, 31), is_current_period=False)
        march = snapshot_at(assets, date(2024, 3, 15), is_current_period=True)

        assert [a.name for a in january.assets] == ["Old"]
        assert [a.name for a in march.assets] == ["New"]

    def test_degraded_assets_are_reported(self, fund, make_asset):
        seeded = make_asset(name="Seeded", history=[(JAN_1, 10)], created_at=JAN_1)
        late = make_asset(name="Late", history=[(FEB_1, 10)], created_at=JAN_1)

        snapshot = snapshot_at([fund, seeded, late], date(2024, 1, 20), is_current_period=False)

        assert snapshot.degraded_asset_ids == [late.id]

    def test_context_value_and_gain(self, fund):
        snapshot = snapshot_at([fund], date(2024, 1, 15), is_current_period=False)
        valued = snapshot.assets[0]
        assert valued.context_value == 100
        assert valued.gain == 20
        assert valued.gain_rate == pytest.approx(25.0)

    def test_does_not_mutate_input(self, fund):
        before = fund.model_copy(deep=True)
        snapshot_at([fund], date(2024, 1, 15), is_current_period=False)
        snapshot_at([fund], date(2024, 1, 15), is_current_period=True)
        assert fund == before

    def test_empty_portfolio(self):
        snapshot = snapshot_at([], JAN_1, is_current_period=False)
        assert snapshot.net_worth == 0
        assert snapshot.all_assets == []


class TestPeriods:
    """Tests for current-period detection and month reference dates."""

    def test_is_current_period_by_day(self):
        today = date(2024, 3, 15)
        assert is_current_period(today, today) is True
        assert is_current_period("2024-03-14", today) is False

    def test_is_current_period_by_month(self):
        today = date(2024, 3, 15)
        assert is_current_period("2024-03-01", today, granularity="month") is True
        assert is_current_period("2023-03-15", today, granularity="month") is False

    def test_unreadable_date_is_not_current(self):
        assert is_current_period("2024-13-01", date(2024, 3, 15)) is False

    def test_current_month_uses_today(self):
        assert month_reference_date(2024, 3, date(2024, 3, 15)) == (date(2024, 3, 15), True)

    def test_past_month_uses_last_day(self):
        assert month_reference_date(2024, 2, date(2024, 3, 15)) == (date(2024, 2, 29), False)
        assert month_reference_date(2023, 12, date(2024, 3, 15)) == (date(2023, 12, 31), False)


class TestEndToEnd:
    """Ledger mutations followed by month and day views."""

    def test_month_views_follow_history(self):
        clock = FixedClock(date(2024, 1, 1))
        ledger = AssetLedger(clock=clock)
        asset = ledger.create_asset("Fund", "stock", 100, 100)

        clock.advance_to(date(2024, 2, 1))
        ledger.record_value(asset.id, 150)

        clock.advance_to(date(2024, 3, 15))
        ledger.record_value(asset.id, 175)

        assets = ledger.assets
        assert snapshot_for_month(assets, 2024, 1, clock).net_worth == 100
        assert snapshot_for_month(assets, 2024, 2, clock).net_worth == 150

        march = snapshot_for_month(assets, 2024, 3, clock)
        assert march.is_current_period is True
        assert march.net_worth == 175

        assert snapshot_for_month(assets, 2023, 12, clock).assets == []

    def test_retired_asset_stays_in_past_views(self):
        clock = FixedClock(date(2024, 1, 1))
        ledger = AssetLedger(clock=clock)
        car = ledger.create_asset("Car", "car", 15000, 15000)
        ledger.create_asset("Loan", "loan", 10000, 10000)

        clock.advance_to(date(2024, 3, 15))
        ledger.retire_asset(car.id, "2024-02-15")

        assets = ledger.assets
        assert snapshot_for_day(assets, "2024-02-14", clock).net_worth == 5000
        assert snapshot_for_day(assets, "2024-02-15", clock).net_worth == -10000
        assert snapshot_for_day(assets, "2024-03-15", clock).is_current_period is True

    def test_same_day_correction_then_retirement(self):
        clock = FixedClock(date(2024, 1, 1))
        ledger = AssetLedger(clock=clock)
        asset = ledger.create_asset("Fund", "stock", 1000, 1000)

        clock.advance_to(date(2024, 2, 1))
        ledger.record_value(asset.id, 1200)
        ledger.record_value(asset.id, 1100)

        clock.advance_to(date(2024, 3, 1))
        ledger.retire_asset(asset.id)

        clock.advance_to(date(2024, 3, 15))
        assets = ledger.assets
        assert [(e.date, e.value) for e in assets[0].history] == [
            (JAN_1, 1000),
            (FEB_1, 1100),
        ]
        assert snapshot_for_day(assets, "2024-02-01", clock).net_worth == 1100
        assert snapshot_for_day(assets, "2024-03-01", clock).assets == []
        assert snapshot_for_day(assets, "2024-02-28", clock).net_worth == 1100
        assert snapshot_for_day(assets, "2024-01-31", clock).net_worth == 1000


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
