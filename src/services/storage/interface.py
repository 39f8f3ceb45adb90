"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a JSON file or a real database
2. Use in-memory storage for testing
3. Keep the ledger core decoupled from storage implementation

The ledger is persisted as ONE document per user: transactions, assets
and insights together. Every save replaces the whole document. There are
no incremental patches, so a save either lands completely or not at all.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from src.models.audit import AuditEvent
from src.models.ledger import LedgerState


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger persistence.

    Any storage implementation (Google Sheets, JSON file, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def load_ledger(self, user_id: str) -> LedgerState:
        """
        Load the full ledger for a user.

        Args:
            user_id: Owner of the ledger

        Returns:
            The stored state, or an empty LedgerState for an unknown user

        Raises:
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    async def save_ledger(self, user_id: str, state: LedgerState) -> bool:
        """
        Replace the stored ledger for a user with `state`.

        Args:
            user_id: Owner of the ledger
            state: The complete collection to store

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def delete_ledger(self, user_id: str) -> bool:
        """
        Remove a user's ledger.

        Returns:
            True if deleted successfully

        Raises:
            NotFoundError: If the user has no stored ledger
            StorageError: If delete fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one bulk update).

        Args:
            correlation_id: The correlation identifier

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Args:
            entity_type: Type of entity (e.g., 'asset', 'transaction')
            entity_id: The entity's ID

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
        user_id: Optional[str] = None,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Args:
            limit: Maximum number of events to return
            user_id: Only events for this ledger owner

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
