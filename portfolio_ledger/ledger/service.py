"""Portfolio derivation service composing a transaction source with the builder."""
# pylint: disable=too-few-public-methods

from __future__ import annotations

import logging
from collections.abc import Mapping
from decimal import Decimal

from portfolio_ledger.domain import TransactionRecord, domain_transactions_from_records

from .interfaces import TransactionSourcePort
from .portfolio import PortfolioState, ledger_build_portfolio

logger = logging.getLogger(__name__)


class PortfolioLedgerService:
    """Derive portfolio state from the full transaction log on every call."""

    def __init__(self, source: TransactionSourcePort, default_currency: str = "USD"):
        """Initialize service dependencies.

        Args:
            source: Transaction source owning the append-only log.
            default_currency: Currency applied to records that carry none.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when dependencies are invalid.
        """

        if source is None:
            raise ValueError("source must not be None")
        if not default_currency.strip():
            raise ValueError("default_currency must not be blank")
        self._source = source
        self._default_currency = default_currency.strip().upper()

    def ledger_source_label(self) -> str:
        """Return the human-readable label of the underlying source."""

        return self._source.ledger_source_label()

    def ledger_derive(self) -> PortfolioState:
        """Load the whole log from the source and derive state.

        Returns:
            PortfolioState: Freshly derived state.

        Raises:
            TransactionSourceError: Raised when the source cannot be read.
            TransactionValidationError: Raised when a record is structurally invalid.
        """

        records = self._source.ledger_transaction_list()
        opening_balances = self._source.ledger_opening_balances()
        logger.info("deriving portfolio from %s records=%d", self.ledger_source_label(), len(records))
        return self.ledger_derive_from_records(records, opening_balances)

    def ledger_derive_from_records(
        self,
        records: list[TransactionRecord],
        opening_balances: Mapping[str, Decimal] | None = None,
    ) -> PortfolioState:
        """Derive state from caller-supplied records.

        Raises:
            TransactionValidationError: Raised when a record is structurally invalid.
        """

        transactions = domain_transactions_from_records(records, default_currency=self._default_currency)
        return ledger_build_portfolio(transactions, opening_balances)


__all__ = ["PortfolioLedgerService"]
