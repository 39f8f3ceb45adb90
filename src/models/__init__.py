"""
Data Models Package

This package contains all Pydantic models used in the Personal Ledger.
All data flowing through the system must conform to these schemas.
"""

from src.models.ledger import (
    ASSET_TYPE_ORDER,
    LIABILITY_TYPE,
    MARKET_PRICED_TYPES,
    Asset,
    AssetType,
    BulkUpdateFailure,
    BulkUpdateResult,
    HistoryEntry,
    LedgerState,
    PriceQuote,
    SpendingInsight,
    Transaction,
    TransactionCategory,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    ValuationSnapshot,
    ValuedAsset,
    ValueUpdate,
    new_id,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "ASSET_TYPE_ORDER",
    "LIABILITY_TYPE",
    "MARKET_PRICED_TYPES",
    "Asset",
    "AssetType",
    "BulkUpdateFailure",
    "BulkUpdateResult",
    "HistoryEntry",
    "LedgerState",
    "PriceQuote",
    "SpendingInsight",
    "Transaction",
    "TransactionCategory",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    "ValuationSnapshot",
    "ValuedAsset",
    "ValueUpdate",
    "new_id",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
