"""Ledger layer package for positions, cash and realized PnL derivation."""

from .cash import CashLedger, ledger_cash_delta
from .coverage import ledger_classify_coverage
from .instruments import (
	LEDGER_CASH_INSTRUMENT_KEY,
	ledger_instrument_key,
	ledger_multiplier_for,
	ledger_position_key,
	ledger_transaction_instrument_key,
)
from .interfaces import TransactionSourcePort
from .json_source import JsonFileTransactionSource, ledger_record_from_mapping
from .ordering import ledger_filter_by_time_range, ledger_order_transactions
from .portfolio import LedgerRow, PortfolioState, ledger_build_portfolio, ledger_unrealized_pnl
from .positions import (
	LEDGER_REJECT_CROSSING_ZERO,
	LEDGER_REJECT_NEGATIVE_EQUITY,
	Position,
	RealizedEvent,
	ledger_apply_trade,
	ledger_rejection_reason,
)
from .service import PortfolioLedgerService

__all__ = [
	"CashLedger",
	"ledger_cash_delta",
	"ledger_classify_coverage",
	"LEDGER_CASH_INSTRUMENT_KEY",
	"ledger_instrument_key",
	"ledger_multiplier_for",
	"ledger_position_key",
	"ledger_transaction_instrument_key",
	"TransactionSourcePort",
	"JsonFileTransactionSource",
	"ledger_record_from_mapping",
	"ledger_filter_by_time_range",
	"ledger_order_transactions",
	"LedgerRow",
	"PortfolioState",
	"ledger_build_portfolio",
	"ledger_unrealized_pnl",
	"LEDGER_REJECT_CROSSING_ZERO",
	"LEDGER_REJECT_NEGATIVE_EQUITY",
	"Position",
	"RealizedEvent",
	"ledger_apply_trade",
	"ledger_rejection_reason",
	"PortfolioLedgerService",
]
