"""
Ledger Errors

Raised by ledger mutations and surfaced to the immediate caller.
Nothing here is retried internally, and no lookup by an unknown id
is ever a silent no-op.
"""

from pydantic import ValidationError


class LedgerError(Exception):
    """Base exception for ledger mutations."""
    error_type = "ledger_error"


class InvalidInputError(LedgerError):
    """A required field is missing or not a usable number/date."""
    error_type = "invalid_input"

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Invalid {field}: {message}")

    @classmethod
    def from_validation_error(cls, error: ValidationError) -> "InvalidInputError":
        first = error.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or "input"
        return cls(field, first.get("msg", str(error)))


class AssetNotFoundError(LedgerError):
    """Mutation referenced an asset id that is not in the collection."""
    error_type = "not_found"

    def __init__(self, asset_id: str):
        self.asset_id = asset_id
        super().__init__(f"Asset not found: {asset_id}")


class TransactionNotFoundError(LedgerError):
    """Mutation referenced a transaction id that is not in the list."""
    error_type = "not_found"

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction not found: {transaction_id}")
