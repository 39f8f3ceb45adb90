"""
Tests for the transaction book.
"""

import pytest
from datetime import date

from src.ledger import InvalidInputError, TransactionBook, TransactionNotFoundError
from src.models.ledger import TransactionCategory, TransactionType


class TestTransactionBook:
    """Tests for adding, replacing and removing transactions."""

    def test_add_puts_newest_first(self):
        book = TransactionBook()
        first = book.add("2024-03-01", 100, "expense", "food", "Lunch")
        second = book.add("2024-03-02", 3000, TransactionType.INCOME, TransactionCategory.SALARY)

        assert [t.id for t in book.transactions] == [second.id, first.id]
        assert first.date == date(2024, 3, 1)
        assert first.category == TransactionCategory.FOOD
        assert second.description == ""

    @pytest.mark.parametrize("amount", [None, "", "abc", -5])
    def test_add_rejects_bad_amount(self, amount):
        """Missing, non-numeric and negative amounts are rejected."""
        book = TransactionBook()
        with pytest.raises(InvalidInputError):
            book.add("2024-03-01", amount, "expense")
        assert len(book) == 0

    def test_add_rejects_unknown_type(self):
        book = TransactionBook()
        with pytest.raises(InvalidInputError):
            book.add("2024-03-01", 10, "transfer")

    def test_update_keeps_id_and_position(self):
        """Updating replaces the fields in place."""
        book = TransactionBook()
        older = book.add("2024-03-01", 100, "expense", "food")
        newer = book.add("2024-03-02", 50, "expense", "transport")

        updated = book.update(older.id, "2024-03-03", 120, "expense", "leisure", "Cinema")

        assert updated.id == older.id
        assert [t.id for t in book.transactions] == [newer.id, older.id]
        assert book.get(older.id).amount == 120
        assert book.get(older.id).category == TransactionCategory.LEISURE

    def test_update_unknown_id(self):
        book = TransactionBook()
        with pytest.raises(TransactionNotFoundError):
            book.update("missing", "2024-03-01", 1, "expense")

    def test_delete_returns_removed(self):
        book = TransactionBook()
        kept = book.add("2024-03-01", 10, "expense")
        removed = book.add("2024-03-02", 20, "income")

        result = book.delete(removed.id)

        assert result == removed
        assert book.transactions == [kept]

    def test_delete_unknown_id(self):
        book = TransactionBook()
        with pytest.raises(TransactionNotFoundError) as exc_info:
            book.delete("missing")
        assert exc_info.value.error_type == "not_found"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
