"""Ledger data validation package."""

from src.validation.validator import LedgerValidator

__all__ = ["LedgerValidator"]
