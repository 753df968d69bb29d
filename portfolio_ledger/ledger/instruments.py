"""Instrument key resolution and contract multipliers."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from portfolio_ledger.domain import InstrumentKind, Transaction

LEDGER_CASH_INSTRUMENT_KEY = "CASH"
LEDGER_OPTION_MULTIPLIER = Decimal("100")


def ledger_instrument_key(
    kind: InstrumentKind,
    ticker: str | None = None,
    expiry: date | None = None,
    strike: Decimal | None = None,
) -> str:
    """Resolve the canonical instrument key.

    Args:
        kind: Instrument kind.
        ticker: Underlying identifier, required for shares and options.
        expiry: Option expiry date.
        strike: Option strike price.

    Returns:
        str: `CASH`, the ticker for shares, or `ticker|expiry|strike|kind` for options.

    Raises:
        ValueError: Raised when a non-cash key has no ticker.
    """

    if kind is InstrumentKind.CASH:
        return LEDGER_CASH_INSTRUMENT_KEY
    if not ticker:
        raise ValueError(f"{kind.value} instrument key requires a ticker")
    if kind is InstrumentKind.SHARES:
        return ticker
    expiry_text = expiry.isoformat() if expiry is not None else ""
    return f"{ticker}|{expiry_text}|{_ledger_format_strike(strike)}|{kind.value}"


def ledger_transaction_instrument_key(transaction: Transaction) -> str:
    """Resolve the instrument key carried by one transaction variant."""

    return ledger_instrument_key(
        transaction.kind,
        getattr(transaction, "ticker", None),
        getattr(transaction, "expiry", None),
        getattr(transaction, "strike", None),
    )


def ledger_multiplier_for(kind: InstrumentKind) -> Decimal:
    """Return the per-unit multiplier (100 for options, 1 otherwise)."""

    return LEDGER_OPTION_MULTIPLIER if kind.is_option else Decimal("1")


def ledger_position_key(account_id: str, instrument_key: str) -> str:
    """Build the composite `(account, instrument)` position key."""

    return f"{account_id}|{instrument_key}"


def _ledger_format_strike(strike: Decimal | None) -> str:
    # 150, 150.0 and 150.00 must resolve to the same key.
    if strike is None:
        return ""
    normalized_strike = strike.normalize()
    return format(normalized_strike, "f")


__all__ = [
    "LEDGER_CASH_INSTRUMENT_KEY",
    "LEDGER_OPTION_MULTIPLIER",
    "ledger_instrument_key",
    "ledger_transaction_instrument_key",
    "ledger_multiplier_for",
    "ledger_position_key",
]
