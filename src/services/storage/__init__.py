"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Backends: in-memory (tests), a local JSON file, and Google Sheets.
"""

from src.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from src.services.storage.memory import InMemoryAuditStorage, InMemoryLedgerStorage
from src.services.storage.json_file import JsonFileLedgerStorage
from src.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStorageInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryLedgerStorage",
    # JSON file implementation
    "JsonFileLedgerStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStorage",
]
