"""Project-native typed exceptions for transaction input failures."""

from __future__ import annotations


class TransactionValidationError(ValueError):
    """Structural input failure that aborts a whole portfolio derivation.

    Attributes:
        transaction_id: Identifier of the offending transaction record.
    """

    def __init__(self, message: str, transaction_id: str | None = None):
        prefix = f"transaction {transaction_id}: " if transaction_id else ""
        super().__init__(f"{prefix}{message}")
        self.transaction_id = transaction_id


class TransactionSourceError(RuntimeError):
    """Transaction source could not be read or decoded."""


__all__ = ["TransactionValidationError", "TransactionSourceError"]
