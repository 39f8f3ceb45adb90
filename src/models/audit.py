"""
Audit Models for the Personal Ledger

Every mutation of the ledger is logged for audit purposes.
This provides:
1. Traceability of every value change and retirement
2. Debugging information when a sync or price refresh goes wrong
3. A record of which historical valuations were approximations

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Assets
    ASSET_CREATED = "asset_created"
    ASSET_VALUE_RECORDED = "asset_value_recorded"
    ASSET_RETIRED = "asset_retired"
    BULK_UPDATE_APPLIED = "bulk_update_applied"
    BULK_UPDATE_ENTRY_FAILED = "bulk_update_entry_failed"

    # Valuation
    VALUATION_DEGRADED = "valuation_degraded"

    # Transactions
    TRANSACTION_ADDED = "transaction_added"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Insights
    INSIGHT_SAVED = "insight_saved"

    # Persistence
    LEDGER_LOADED = "ledger_loaded"
    LEDGER_SYNCED = "ledger_synced"
    SYNC_FAILED = "sync_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every ledger mutation creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'asset', 'transaction', 'ledger')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )
    user_id: Optional[str] = Field(
        default=None,
        description="Owner of the ledger"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all entries of one bulk update)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "user_id": self.user_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         user_id, correlation_id, description, details_json, error_message,
         is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            self.user_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.asset_created(asset_id, name, "stock", 1000.0)
        event = AuditEventBuilder.asset_retired(asset_id, name, date(2024, 3, 1))
    """

    @staticmethod
    def asset_created(
        asset_id: str,
        name: str,
        asset_type: str,
        initial_value: float,
        as_of: date,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ASSET_CREATED,
            entity_type="asset",
            entity_id=asset_id,
            user_id=user_id,
            description=f"Asset created: {name} ({asset_type})",
            details={
                "asset_type": asset_type,
                "initial_value": initial_value,
                "as_of": as_of.isoformat(),
            },
            is_user_action=True,
        )

    @staticmethod
    def asset_value_recorded(
        asset_id: str,
        name: str,
        new_value: float,
        as_of: date,
        overwrote_same_day: bool,
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ASSET_VALUE_RECORDED,
            entity_type="asset",
            entity_id=asset_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Value recorded for {name}: {new_value:,.2f}",
            details={
                "new_value": new_value,
                "as_of": as_of.isoformat(),
                "overwrote_same_day": overwrote_same_day,
            },
            is_user_action=correlation_id is None,
        )

    @staticmethod
    def asset_retired(
        asset_id: str,
        name: str,
        deletion_date: date,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ASSET_RETIRED,
            entity_type="asset",
            entity_id=asset_id,
            user_id=user_id,
            description=f"Asset retired: {name} as of {deletion_date.isoformat()}",
            details={
                "deletion_date": deletion_date.isoformat(),
            },
            is_user_action=True,
        )

    @staticmethod
    def bulk_update_applied(
        updated_ids: list[str],
        failed_count: int,
        as_of: date,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BULK_UPDATE_APPLIED,
            severity=AuditSeverity.WARNING if failed_count else AuditSeverity.INFO,
            entity_type="ledger",
            user_id=user_id,
            correlation_id=correlation_id,
            description=(
                f"Bulk update applied to {len(updated_ids)} assets, "
                f"{failed_count} failed"
            ),
            details={
                "updated_ids": updated_ids,
                "failed_count": failed_count,
                "as_of": as_of.isoformat(),
            },
        )

    @staticmethod
    def bulk_update_entry_failed(
        asset_id: Optional[str],
        error_type: str,
        reason: str,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BULK_UPDATE_ENTRY_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="asset",
            entity_id=asset_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Bulk update entry rejected ({error_type})",
            error_message=reason,
            details={
                "error_type": error_type,
            },
        )

    @staticmethod
    def valuation_degraded(
        asset_ids: list[str],
        reference_date: date,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALUATION_DEGRADED,
            severity=AuditSeverity.WARNING,
            entity_type="ledger",
            user_id=user_id,
            description=(
                f"{len(asset_ids)} assets valued from purchase amount "
                f"on {reference_date.isoformat()}"
            ),
            details={
                "asset_ids": asset_ids,
                "reference_date": reference_date.isoformat(),
            },
        )

    @staticmethod
    def transaction_changed(
        event_type: AuditEventType,
        transaction_id: str,
        description: str,
        amount: Optional[float] = None,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        details = {} if amount is None else {"amount": amount}
        return AuditEvent(
            event_type=event_type,
            entity_type="transaction",
            entity_id=transaction_id,
            user_id=user_id,
            description=description,
            details=details,
            is_user_action=True,
        )

    @staticmethod
    def insight_saved(
        insight_id: str,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSIGHT_SAVED,
            entity_type="insight",
            entity_id=insight_id,
            user_id=user_id,
            description="AI insight saved",
            is_user_action=True,
        )

    @staticmethod
    def ledger_loaded(
        user_id: str,
        asset_count: int,
        transaction_count: int,
        issue_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_LOADED,
            severity=AuditSeverity.WARNING if issue_count else AuditSeverity.INFO,
            entity_type="ledger",
            user_id=user_id,
            description=f"Ledger loaded: {asset_count} assets, {transaction_count} transactions",
            details={
                "asset_count": asset_count,
                "transaction_count": transaction_count,
                "validation_issue_count": issue_count,
            },
        )

    @staticmethod
    def ledger_synced(
        user_id: str,
        asset_count: int,
        transaction_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_SYNCED,
            severity=AuditSeverity.DEBUG,
            entity_type="ledger",
            user_id=user_id,
            description=f"Ledger synced: {asset_count} assets, {transaction_count} transactions",
            details={
                "asset_count": asset_count,
                "transaction_count": transaction_count,
            },
        )

    @staticmethod
    def sync_failed(
        user_id: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYNC_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="ledger",
            user_id=user_id,
            description="Failed to persist ledger",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
