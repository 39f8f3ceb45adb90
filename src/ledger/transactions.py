"""
Transaction Book

Flat list of cash movements, newest first. Entries are replaced by id
or removed by id; nothing else changes them.
"""

from collections.abc import Iterable
from typing import Any, Optional, Union

import structlog
from pydantic import ValidationError

from src.clock import DateLike
from src.ledger.errors import InvalidInputError, TransactionNotFoundError
from src.models.ledger import Transaction, TransactionCategory, TransactionType


logger = structlog.get_logger(__name__)


class TransactionBook:
    """Holds and edits the transaction list."""

    def __init__(self, transactions: Optional[Iterable[Transaction]] = None):
        self._transactions: list[Transaction] = list(transactions or [])

    @property
    def transactions(self) -> list[Transaction]:
        return list(self._transactions)

    def __len__(self) -> int:
        return len(self._transactions)

    def get(self, transaction_id: str) -> Transaction:
        return self._transactions[self._index_of(transaction_id)]

    def add(
        self,
        date: DateLike,
        amount: Any,
        transaction_type: Union[TransactionType, str],
        category: Union[TransactionCategory, str] = TransactionCategory.OTHER,
        description: str = "",
    ) -> Transaction:
        """Record a new transaction at the top of the list."""
        transaction = self._build(None, date, amount, transaction_type, category, description)
        self._transactions.insert(0, transaction)
        logger.info(
            "transaction_added",
            transaction_id=transaction.id,
            transaction_type=transaction.type.value,
            amount=transaction.amount,
        )
        return transaction

    def update(
        self,
        transaction_id: str,
        date: DateLike,
        amount: Any,
        transaction_type: Union[TransactionType, str],
        category: Union[TransactionCategory, str] = TransactionCategory.OTHER,
        description: str = "",
    ) -> Transaction:
        """Replace a transaction's fields, keeping its id and position."""
        index = self._index_of(transaction_id)
        transaction = self._build(
            transaction_id, date, amount, transaction_type, category, description
        )
        self._transactions[index] = transaction
        logger.info("transaction_updated", transaction_id=transaction_id)
        return transaction

    def delete(self, transaction_id: str) -> Transaction:
        """Remove a transaction and return what was removed."""
        index = self._index_of(transaction_id)
        removed = self._transactions.pop(index)
        logger.info("transaction_deleted", transaction_id=transaction_id)
        return removed

    def _index_of(self, transaction_id: str) -> int:
        for index, transaction in enumerate(self._transactions):
            if transaction.id == transaction_id:
                return index
        raise TransactionNotFoundError(transaction_id)

    @staticmethod
    def _build(
        transaction_id: Optional[str],
        date: DateLike,
        amount: Any,
        transaction_type: Union[TransactionType, str],
        category: Union[TransactionCategory, str],
        description: str,
    ) -> Transaction:
        if amount is None or (isinstance(amount, str) and not amount.strip()):
            raise InvalidInputError("amount", "a number is required")
        fields = {
            "date": date,
            "amount": amount,
            "type": transaction_type,
            "category": category,
            "description": description or "",
        }
        if transaction_id is not None:
            fields["id"] = transaction_id
        try:
            return Transaction(**fields)
        except ValidationError as e:
            raise InvalidInputError.from_validation_error(e)
