"""
Tests for the Personal Ledger

Test strategy:
1. Unit tests for individual components (models, ledger, engine, reports)
2. Integration tests for the session flow (in-memory storage, fake services)
3. No real API calls in tests (use fakes)
"""

import pytest
from datetime import date, datetime
from uuid import uuid4

from pydantic import ValidationError

from src.models.ledger import (
    ASSET_TYPE_ORDER,
    Asset,
    AssetType,
    BulkUpdateFailure,
    HistoryEntry,
    LedgerState,
    Transaction,
    TransactionCategory,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    ValuationSnapshot,
    ValuedAsset,
    ValueUpdate,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestAssetModels:
    """Tests for asset-related Pydantic models."""

    def test_asset_creation(self):
        """Test Asset model creation with defaults."""
        asset = Asset(
            name="Brokerage",
            type=AssetType.STOCK,
            purchase_amount=1000,
            current_value=1200,
            created_at=date(2024, 1, 1),
        )
        assert asset.id
        assert asset.history == []
        assert asset.deleted_at is None
        assert asset.is_liability is False

    def test_asset_strips_whitespace(self):
        """Test that whitespace is stripped from the name."""
        asset = Asset(name="  Savings  ", type="savings", created_at=date(2024, 1, 1))
        assert asset.name == "Savings"

    def test_asset_rejects_unknown_type(self):
        with pytest.raises(ValidationError):
            Asset(name="Boat", type="yacht", created_at=date(2024, 1, 1))

    def test_loan_is_liability(self):
        asset = Asset(name="Mortgage", type=AssetType.LOAN, created_at=date(2024, 1, 1))
        assert asset.is_liability is True

    def test_active_window_is_half_open(self):
        """created_at is inside the window, deleted_at is not."""
        asset = Asset(
            name="Car",
            type=AssetType.CAR,
            created_at=date(2024, 1, 10),
            deleted_at=date(2024, 2, 1),
        )
        assert asset.is_active_on(date(2024, 1, 9)) is False
        assert asset.is_active_on(date(2024, 1, 10)) is True
        assert asset.is_active_on(date(2024, 1, 31)) is True
        assert asset.is_active_on(date(2024, 2, 1)) is False

    def test_history_entry_parses_iso_strings(self):
        entry = HistoryEntry(date="2024-03-05", value="150.5")
        assert entry.date == date(2024, 3, 5)
        assert entry.value == 150.5

    def test_history_entry_rejects_nan(self):
        with pytest.raises(ValidationError):
            HistoryEntry(date="2024-03-05", value=float("nan"))

    def test_value_update_accepts_id_alias(self):
        update = ValueUpdate.model_validate({"id": "a1", "new_value": 10})
        assert update.asset_id == "a1"

    def test_bulk_failure_error_type_is_restricted(self):
        with pytest.raises(ValidationError):
            BulkUpdateFailure(asset_id="a1", error_type="boom", reason="x")

    def test_type_order_ends_with_loan(self):
        assert ASSET_TYPE_ORDER[0] == AssetType.CASH
        assert ASSET_TYPE_ORDER[-1] == AssetType.LOAN
        assert len(ASSET_TYPE_ORDER) == len(AssetType)


class TestValuedAsset:
    """Tests for derived valuation models."""

    def _valued(self, purchase, value):
        return ValuedAsset(
            name="Fund",
            type=AssetType.STOCK,
            purchase_amount=purchase,
            current_value=value,
            created_at=date(2024, 1, 1),
            context_value=value,
        )

    def test_gain_and_rate(self):
        valued = self._valued(1000, 1250)
        assert valued.gain == 250
        assert valued.gain_rate == pytest.approx(25.0)

    def test_gain_rate_without_purchase_amount(self):
        assert self._valued(0, 500).gain_rate == 0.0
        assert self._valued(None, 500).gain_rate == 0.0

    def test_breakdown_by_type_skips_empty_types(self):
        snapshot = ValuationSnapshot(
            reference_date=date(2024, 1, 1),
            is_current_period=False,
            assets=[self._valued(1, 300), self._valued(1, 0)],
        )
        assert snapshot.breakdown_by_type() == {AssetType.STOCK: 300}


class TestTransactionModels:
    """Tests for the transaction model."""

    def test_signed_amount(self):
        income = Transaction(date=date(2024, 1, 1), amount=100, type=TransactionType.INCOME)
        expense = Transaction(date=date(2024, 1, 1), amount=40, type="expense")
        assert income.signed_amount == 100
        assert expense.signed_amount == -40
        assert expense.category == TransactionCategory.OTHER

    def test_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValidationError):
            Transaction(date=date(2024, 1, 1), amount=-1, type="expense")

    def test_ledger_state_round_trips_through_json(self):
        state = LedgerState(
            transactions=[Transaction(date=date(2024, 1, 2), amount=5, type="expense")],
            assets=[Asset(
                name="Cash",
                type="cash",
                purchase_amount=10,
                current_value=10,
                history=[HistoryEntry(date=date(2024, 1, 1), value=10)],
                created_at=date(2024, 1, 1),
            )],
        )
        restored = LedgerState.model_validate_json(state.model_dump_json())
        assert restored == state


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.ASSET_CREATED,
            description="Asset created",
        )
        assert event.event_type == AuditEventType.ASSET_CREATED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            description="Transaction added",
            details={"amount": 1000},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "transaction_added"
        assert log_dict["details"]["amount"] == 1000

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.ASSET_RETIRED,
            description="Asset retired",
            user_id="user-1",
            is_user_action=True,
        )
        row = event.to_sheets_row()
        assert len(row) == 12  # Expected number of columns
        assert row[2] == "asset_retired"  # event_type
        assert row[6] == "user-1"  # user_id
        assert row[11] == "True"  # is_user_action

    def test_builder_value_recorded(self):
        event = AuditEventBuilder.asset_value_recorded(
            asset_id="a1",
            name="Fund",
            new_value=1500.0,
            as_of=date(2024, 3, 1),
            overwrote_same_day=True,
        )
        assert event.entity_id == "a1"
        assert event.details["overwrote_same_day"] is True
        assert event.is_user_action is True

    def test_builder_bulk_update_with_failures_is_warning(self):
        correlation_id = uuid4()
        event = AuditEventBuilder.bulk_update_applied(
            updated_ids=["a1"],
            failed_count=2,
            as_of=date(2024, 3, 1),
            correlation_id=correlation_id,
        )
        assert event.severity == AuditSeverity.WARNING
        assert event.correlation_id == correlation_id

    def test_builder_sync_failed(self):
        event = AuditEventBuilder.sync_failed(user_id="user-1", error_message="timeout")
        assert event.severity == AuditSeverity.ERROR
        assert event.error_message == "timeout"


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            issues=[
                ValidationIssue(
                    field="history",
                    issue_type="duplicate_date",
                    message="Two snapshots on one day",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            validated_at=datetime(2024, 1, 1),
            issues=[
                ValidationIssue(
                    field="current_value",
                    issue_type="missing",
                    message="Missing value",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0
        assert result.warnings == ["Missing value"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
