"""Domain models used across application layer boundaries."""

from .errors import TransactionSourceError, TransactionValidationError
from .models import (
    CashMovement,
    CoverageHint,
    InstrumentKind,
    OptionTrade,
    ShareTrade,
    TradeSide,
    Transaction,
    TransactionRecord,
)
from .transactions import domain_transaction_from_record, domain_transactions_from_records

__all__ = [
    "CashMovement",
    "CoverageHint",
    "InstrumentKind",
    "OptionTrade",
    "ShareTrade",
    "TradeSide",
    "Transaction",
    "TransactionRecord",
    "TransactionSourceError",
    "TransactionValidationError",
    "domain_transaction_from_record",
    "domain_transactions_from_records",
]
