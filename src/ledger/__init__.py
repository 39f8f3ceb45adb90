"""Ledger core package: asset collection and transaction list."""

from src.ledger.assets import AssetLedger
from src.ledger.errors import (
    AssetNotFoundError,
    InvalidInputError,
    LedgerError,
    TransactionNotFoundError,
)
from src.ledger.transactions import TransactionBook

__all__ = [
    "AssetLedger",
    "AssetNotFoundError",
    "InvalidInputError",
    "LedgerError",
    "TransactionBook",
    "TransactionNotFoundError",
]
