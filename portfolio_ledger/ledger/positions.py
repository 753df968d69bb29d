"""Per-instrument position state machine with average-cost realized PnL.

A position is FLAT (qty == 0), LONG (qty > 0) or SHORT (qty < 0, options only).
Trades either open, add, reduce or close; a trade that would drive shares
negative or move any position through zero is rejected without mutation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from portfolio_ledger.domain import CoverageHint, InstrumentKind, OptionTrade, ShareTrade

LEDGER_REJECT_NEGATIVE_EQUITY = "Equities cannot be negative (long-only)"
LEDGER_REJECT_CROSSING_ZERO = "Crossing zero not allowed"

_ZERO = Decimal("0")


@dataclass
class Position:
    """Mutable position state owned by one derivation pass.

    Attributes:
        account_id: Owning account identifier.
        instrument_key: Canonical instrument key.
        kind: Instrument kind (`SHARES`, `CALL` or `PUT`).
        ticker: Underlying identifier.
        qty: Signed quantity; shares never go below zero.
        avg_price: Fee-inclusive weighted-average entry cost per unit.
        expiry: Option expiry, if any.
        strike: Option strike, if any.
        coverage_hint: Advisory hint written when a short option grows.
        currency: Currency the position is denominated in.
    """

    account_id: str
    instrument_key: str
    kind: InstrumentKind
    ticker: str
    qty: Decimal = _ZERO
    avg_price: Decimal = _ZERO
    expiry: date | None = None
    strike: Decimal | None = None
    coverage_hint: CoverageHint | None = None
    currency: str = "USD"

    @property
    def is_flat(self) -> bool:
        return self.qty == _ZERO


@dataclass(frozen=True)
class RealizedEvent:
    """Profit or loss crystallized when a position's magnitude decreases.

    Attributes:
        transaction_id: Closing transaction identifier.
        account_id: Owning account identifier.
        timestamp: Closing transaction time.
        instrument_key: Canonical instrument key.
        instrument_kind: Instrument kind.
        ticker: Underlying identifier.
        closed_qty: Units closed, always positive.
        close_price: Per-unit close price.
        open_avg_price: Average entry cost before the close.
        multiplier: Contract multiplier.
        close_fees: Fees charged on the closing transaction.
        realized_pnl: Resulting realized profit or loss.
        coverage_at_open: Coverage hint in force before the close.
        memo: Closing transaction memo.
    """

    transaction_id: str
    account_id: str
    timestamp: datetime
    instrument_key: str
    instrument_kind: InstrumentKind
    ticker: str
    closed_qty: Decimal
    close_price: Decimal
    open_avg_price: Decimal
    multiplier: Decimal
    close_fees: Decimal
    realized_pnl: Decimal
    coverage_at_open: CoverageHint | None = None
    memo: str = ""


def ledger_sign(value: Decimal) -> int:
    """Return -1, 0 or 1 for the sign of `value`."""

    if value > _ZERO:
        return 1
    if value < _ZERO:
        return -1
    return 0


def ledger_signed_quantity(trade: ShareTrade | OptionTrade) -> Decimal:
    """Return the trade quantity signed by side (BUY positive, SELL negative)."""

    return trade.quantity * trade.side.direction


def ledger_rejection_reason(position: Position, signed_qty: Decimal) -> str | None:
    """Check a signed quantity change against the position invariants.

    Args:
        position: Current position state.
        signed_qty: Signed quantity the trade would apply.

    Returns:
        str | None: Rejection reason, or None when the trade is acceptable.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    resulting_qty = position.qty + signed_qty
    if position.kind is InstrumentKind.SHARES and resulting_qty < _ZERO:
        return LEDGER_REJECT_NEGATIVE_EQUITY
    if position.qty != _ZERO and resulting_qty != _ZERO and ledger_sign(resulting_qty) != ledger_sign(position.qty):
        return LEDGER_REJECT_CROSSING_ZERO
    return None


def ledger_increases_magnitude(current_qty: Decimal, signed_qty: Decimal) -> bool:
    """Return True when a change opens from flat or adds on the same side."""

    if signed_qty == _ZERO:
        return False
    return current_qty == _ZERO or ledger_sign(current_qty) == ledger_sign(signed_qty)


def ledger_apply_trade(
    position: Position,
    trade: ShareTrade | OptionTrade,
    multiplier: Decimal,
) -> RealizedEvent | None:
    """Fold one accepted trade into the position.

    Callers must check `ledger_rejection_reason` first; this function assumes
    the change does not cross zero.

    Args:
        position: Position to mutate in place.
        trade: Accepted share or option trade.
        multiplier: Contract multiplier for the instrument.

    Returns:
        RealizedEvent | None: Realized event for reduces and closes, else None.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    signed_qty = ledger_signed_quantity(trade)
    if signed_qty == _ZERO:
        return None

    current_qty = position.qty
    if ledger_increases_magnitude(current_qty, signed_qty):
        entry_unit_cost = trade.price + trade.fees / (abs(signed_qty) * multiplier)
        if current_qty == _ZERO:
            position.avg_price = entry_unit_cost
        else:
            base_units = abs(current_qty) * multiplier
            added_units = abs(signed_qty) * multiplier
            position.avg_price = (base_units * position.avg_price + added_units * entry_unit_cost) / (
                base_units + added_units
            )
        position.qty = current_qty + signed_qty
        return None

    closed_qty = abs(signed_qty)
    open_avg_price = position.avg_price
    if current_qty > _ZERO:
        realized_pnl = (trade.price - open_avg_price) * closed_qty * multiplier - trade.fees
    else:
        realized_pnl = (open_avg_price - trade.price) * closed_qty * multiplier - trade.fees

    position.qty = current_qty + signed_qty
    if position.qty == _ZERO:
        position.avg_price = _ZERO

    return RealizedEvent(
        transaction_id=trade.transaction_id,
        account_id=position.account_id,
        timestamp=trade.timestamp,
        instrument_key=position.instrument_key,
        instrument_kind=position.kind,
        ticker=position.ticker,
        closed_qty=closed_qty,
        close_price=trade.price,
        open_avg_price=open_avg_price,
        multiplier=multiplier,
        close_fees=trade.fees,
        realized_pnl=realized_pnl,
        coverage_at_open=position.coverage_hint,
        memo=trade.memo,
    )


__all__ = [
    "LEDGER_REJECT_NEGATIVE_EQUITY",
    "LEDGER_REJECT_CROSSING_ZERO",
    "Position",
    "RealizedEvent",
    "ledger_sign",
    "ledger_signed_quantity",
    "ledger_rejection_reason",
    "ledger_increases_magnitude",
    "ledger_apply_trade",
]
