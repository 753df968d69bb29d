"""Typed interfaces for ledger-layer inputs."""

from decimal import Decimal
from typing import Protocol

from portfolio_ledger.domain import TransactionRecord


class TransactionSourcePort(Protocol):
    """Port definition for the external store that owns the transaction log."""

    def ledger_transaction_list(self) -> list[TransactionRecord]:
        """Return the complete transaction log in any order.

        Returns:
            list[TransactionRecord]: Every stored transaction record.

        Raises:
            TransactionSourceError: Raised when the log cannot be read.
        """

    def ledger_opening_balances(self) -> dict[str, Decimal]:
        """Return per-account starting cash seeded before the first transaction.

        Returns:
            dict[str, Decimal]: Opening balance per account id.

        Raises:
            TransactionSourceError: Raised when the balances cannot be read.
        """

    def ledger_source_label(self) -> str:
        """Return a human-readable label for diagnostics.

        Returns:
            str: Source label.

        Raises:
            RuntimeError: Raised when source metadata is unavailable.
        """
