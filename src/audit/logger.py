"""
Audit Logger

DESIGN DECISION: Every mutation of the ledger is logged.
This provides:
1. Complete traceability of value changes and retirements
2. Debugging capability when a sync or price refresh goes wrong
3. A record of which historical valuations were approximations

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from datetime import date
from typing import Optional
from uuid import UUID, uuid4

import structlog

from src.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from src.models.ledger import Asset, BulkUpdateResult, Transaction
from src.services.storage import AuditStorageInterface, StorageError


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
        user_id: Optional[str] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
            user_id: Ledger owner stamped on every event.
        """
        self._storage = storage
        self._user_id = user_id
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        if event.user_id is None and self._user_id is not None:
            event = event.model_copy(update={"user_id": self._user_id})

        # Always log locally
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        # Persist to storage if available
        if self._storage:
            try:
                return await self._storage.append_event(event)
            except StorageError as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_asset_created(self, asset: Asset) -> None:
        """Log asset creation."""
        event = AuditEventBuilder.asset_created(
            asset_id=asset.id,
            name=asset.name,
            asset_type=asset.type.value,
            initial_value=asset.current_value or 0.0,
            as_of=asset.created_at,
        )
        await self.log(event)

    async def log_value_recorded(
        self,
        asset: Asset,
        as_of: date,
        overwrote_same_day: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a single value write."""
        event = AuditEventBuilder.asset_value_recorded(
            asset_id=asset.id,
            name=asset.name,
            new_value=asset.current_value or 0.0,
            as_of=as_of,
            overwrote_same_day=overwrote_same_day,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_asset_retired(self, asset: Asset) -> None:
        """Log logical deletion."""
        event = AuditEventBuilder.asset_retired(
            asset_id=asset.id,
            name=asset.name,
            deletion_date=asset.deleted_at,
        )
        await self.log(event)

    async def log_bulk_update(
        self,
        result: BulkUpdateResult,
        correlation_id: UUID,
    ) -> None:
        """Log a bulk update and one event per rejected entry."""
        for failure in result.failed:
            await self.log(AuditEventBuilder.bulk_update_entry_failed(
                asset_id=failure.asset_id,
                error_type=failure.error_type,
                reason=failure.reason,
                correlation_id=correlation_id,
            ))
        event = AuditEventBuilder.bulk_update_applied(
            updated_ids=result.updated_ids,
            failed_count=len(result.failed),
            as_of=result.as_of,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_valuation_degraded(
        self,
        asset_ids: list[str],
        reference_date: date,
    ) -> None:
        """Log that some values came from the purchase-amount fallback."""
        event = AuditEventBuilder.valuation_degraded(
            asset_ids=asset_ids,
            reference_date=reference_date,
        )
        await self.log(event)

    async def log_transaction(
        self,
        event_type: AuditEventType,
        transaction: Transaction,
    ) -> None:
        """Log a transaction add, update or delete."""
        verb = {
            AuditEventType.TRANSACTION_ADDED: "added",
            AuditEventType.TRANSACTION_UPDATED: "updated",
            AuditEventType.TRANSACTION_DELETED: "deleted",
        }.get(event_type, "changed")
        label = transaction.description or transaction.category.value
        event = AuditEventBuilder.transaction_changed(
            event_type=event_type,
            transaction_id=transaction.id,
            description=f"Transaction {verb}: {label}",
            amount=transaction.amount,
        )
        await self.log(event)

    async def log_insight_saved(self, insight_id: str) -> None:
        await self.log(AuditEventBuilder.insight_saved(insight_id=insight_id))

    async def log_ledger_loaded(
        self,
        user_id: str,
        asset_count: int,
        transaction_count: int,
        issue_count: int,
    ) -> None:
        event = AuditEventBuilder.ledger_loaded(
            user_id=user_id,
            asset_count=asset_count,
            transaction_count=transaction_count,
            issue_count=issue_count,
        )
        await self.log(event)

    async def log_ledger_synced(
        self,
        user_id: str,
        asset_count: int,
        transaction_count: int,
    ) -> None:
        event = AuditEventBuilder.ledger_synced(
            user_id=user_id,
            asset_count=asset_count,
            transaction_count=transaction_count,
        )
        await self.log(event)

    async def log_sync_failed(self, user_id: str, error_message: str) -> None:
        await self.log(AuditEventBuilder.sync_failed(
            user_id=user_id,
            error_message=error_message,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a multi-step action (e.g., a bulk update).
    Pass it through all subsequent operations.
    """
    return uuid4()
