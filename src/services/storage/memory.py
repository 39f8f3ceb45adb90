"""
In-Memory Storage

Process-local backends for tests and for running the app without any
external service. Stored states are deep-copied on the way in and out so
callers never share mutable objects with the store.
"""

from typing import Optional
from uuid import UUID

from src.models.audit import AuditEvent
from src.models.ledger import LedgerState
from src.services.storage.interface import (
    AuditStorageInterface,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Dictionary of user id -> LedgerState."""

    def __init__(self):
        self._ledgers: dict[str, LedgerState] = {}
        self.save_count = 0
        self.fail_saves = False

    async def load_ledger(self, user_id: str) -> LedgerState:
        state = self._ledgers.get(user_id)
        if state is None:
            return LedgerState()
        return state.model_copy(deep=True)

    async def save_ledger(self, user_id: str, state: LedgerState) -> bool:
        if self.fail_saves:
            raise StorageError("In-memory store is set to reject saves")
        self._ledgers[user_id] = state.model_copy(deep=True)
        self.save_count += 1
        return True

    async def delete_ledger(self, user_id: str) -> bool:
        if user_id not in self._ledgers:
            raise NotFoundError(f"No ledger stored for user: {user_id}")
        del self._ledgers[user_id]
        return True


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(
        self,
        limit: int = 100,
        user_id: Optional[str] = None,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if user_id is None or e.user_id == user_id]
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
