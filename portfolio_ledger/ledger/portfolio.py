"""Portfolio derivation: one sequential fold from transactions to state.

Every invocation recomputes the whole state from the complete transaction set.
The fold threads one explicit accumulator through the replay; positions live
in an arena addressed by a `account|instrument` key index.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal

from portfolio_ledger.domain import (
    CashMovement,
    InstrumentKind,
    OptionTrade,
    ShareTrade,
    TradeSide,
    Transaction,
)
from portfolio_ledger.domain.transactions import domain_to_decimal

from .cash import CashLedger, ledger_cash_delta
from .coverage import ledger_classify_coverage
from .instruments import (
    ledger_instrument_key,
    ledger_multiplier_for,
    ledger_position_key,
    ledger_transaction_instrument_key,
)
from .ordering import ledger_order_transactions
from .positions import (
    Position,
    RealizedEvent,
    ledger_apply_trade,
    ledger_increases_magnitude,
    ledger_rejection_reason,
    ledger_signed_quantity,
)

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")


@dataclass(frozen=True)
class LedgerRow:
    """Audit row produced for every transaction, accepted or rejected.

    Attributes:
        transaction_id: Transaction identifier.
        account_id: Owning account identifier.
        timestamp: Transaction time.
        instrument_kind: Instrument kind.
        instrument_key: Canonical instrument key.
        ticker: Underlying identifier, None for cash.
        expiry: Option expiry, if any.
        strike: Option strike, if any.
        side: Trade side, None for cash.
        qty: Trade quantity, or the signed amount for cash.
        price: Per-unit price, None for cash.
        fees: Fee amount.
        memo: Free-text memo.
        currency: Currency code.
        cash_delta: Signed cash effect, zero when rejected.
        balance_after: Account balance after this row.
        accepted: False when the transaction violated a position invariant.
        error: Rejection reason when not accepted.
    """

    transaction_id: str
    account_id: str
    timestamp: datetime
    instrument_kind: InstrumentKind
    instrument_key: str
    ticker: str | None
    expiry: date | None
    strike: Decimal | None
    side: TradeSide | None
    qty: Decimal
    price: Decimal | None
    fees: Decimal
    memo: str
    currency: str
    cash_delta: Decimal
    balance_after: Decimal
    accepted: bool
    error: str | None = None


@dataclass(frozen=True)
class PortfolioState:
    """Derived portfolio state and read accessors for reporting layers.

    Attributes:
        positions: Positions keyed by `account|instrument_key`, flat ones included.
        balances: Signed cash balance per account.
        ledger: One row per input transaction in replay order.
        realized: Realized events in replay order.
    """

    positions: dict[str, Position] = field(default_factory=dict)
    balances: dict[str, Decimal] = field(default_factory=dict)
    ledger: tuple[LedgerRow, ...] = ()
    realized: tuple[RealizedEvent, ...] = ()

    def ledger_accounts(self) -> list[str]:
        """Return every account seen by the derivation, sorted."""

        return sorted(set(self.balances) | {position.account_id for position in self.positions.values()})

    def ledger_positions_for_account(self, account_id: str, include_flat: bool = True) -> list[Position]:
        """Return positions owned by one account in first-seen order."""

        return [
            position
            for position in self.positions.values()
            if position.account_id == account_id and (include_flat or not position.is_flat)
        ]

    def ledger_realized_for_account(self, account_id: str) -> list[RealizedEvent]:
        """Return realized events for one account in replay order."""

        return [event for event in self.realized if event.account_id == account_id]

    def ledger_balance_for_account(self, account_id: str) -> Decimal:
        """Return the account cash balance, zero for unknown accounts."""

        return self.balances.get(account_id, _ZERO)

    def ledger_total_realized_pnl(self, account_id: str) -> Decimal:
        """Return the sum of realized PnL for one account."""

        return sum((event.realized_pnl for event in self.ledger_realized_for_account(account_id)), _ZERO)

    def ledger_rows_for_account(self, account_id: str) -> list[LedgerRow]:
        """Return ledger rows for one account in replay order."""

        return [row for row in self.ledger if row.account_id == account_id]


def ledger_unrealized_pnl(position: Position, current_price: Decimal) -> Decimal:
    """Compute unrealized PnL for a position at an externally supplied price.

    Args:
        position: Position to value.
        current_price: Current market price per unit.

    Returns:
        Decimal: `(current_price - avg_price) * qty * multiplier`, zero when flat.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if position.is_flat:
        return _ZERO
    return (current_price - position.avg_price) * position.qty * ledger_multiplier_for(position.kind)


@dataclass
class _PortfolioAccumulator:
    """Mutable fold state for one derivation pass."""

    cash: CashLedger
    position_arena: list[Position] = field(default_factory=list)
    position_index: dict[str, int] = field(default_factory=dict)
    ledger: list[LedgerRow] = field(default_factory=list)
    realized: list[RealizedEvent] = field(default_factory=list)

    def position_for(self, trade: ShareTrade | OptionTrade, instrument_key: str) -> Position:
        position_key = ledger_position_key(trade.account_id, instrument_key)
        arena_index = self.position_index.get(position_key)
        if arena_index is not None:
            return self.position_arena[arena_index]
        return Position(
            account_id=trade.account_id,
            instrument_key=instrument_key,
            kind=trade.kind,
            ticker=trade.ticker,
            expiry=getattr(trade, "expiry", None),
            strike=getattr(trade, "strike", None),
            currency=trade.currency,
        )

    def position_track(self, position: Position) -> None:
        position_key = ledger_position_key(position.account_id, position.instrument_key)
        if position_key not in self.position_index:
            self.position_index[position_key] = len(self.position_arena)
            self.position_arena.append(position)

    def shares_held(self, account_id: str, ticker: str) -> Decimal:
        position_key = ledger_position_key(account_id, ledger_instrument_key(InstrumentKind.SHARES, ticker))
        arena_index = self.position_index.get(position_key)
        return _ZERO if arena_index is None else self.position_arena[arena_index].qty


def ledger_build_portfolio(
    transactions: Iterable[Transaction],
    opening_balances: Mapping[str, Decimal | int | float | str] | None = None,
) -> PortfolioState:
    """Derive positions, balances, audit ledger and realized events.

    Args:
        transactions: Transaction variants in any order.
        opening_balances: Optional starting cash per account.

    Returns:
        PortfolioState: Fully derived state.

    Raises:
        ValueError: Raised when an opening balance is not numeric.
    """

    seeded_balances = {
        account_id: domain_to_decimal(balance, f"opening balance for {account_id}")
        for account_id, balance in (opening_balances or {}).items()
    }
    accumulator = _PortfolioAccumulator(cash=CashLedger(seeded_balances))

    for transaction in ledger_order_transactions(transactions):
        _ledger_fold_transaction(accumulator, transaction)

    state = PortfolioState(
        positions={
            ledger_position_key(position.account_id, position.instrument_key): position
            for position in accumulator.position_arena
        },
        balances=accumulator.cash.ledger_snapshot(),
        ledger=tuple(accumulator.ledger),
        realized=tuple(accumulator.realized),
    )
    rejected_count = sum(1 for row in state.ledger if not row.accepted)
    logger.info(
        "portfolio derived: transactions=%d accepted=%d rejected=%d realized=%d positions=%d",
        len(state.ledger),
        len(state.ledger) - rejected_count,
        rejected_count,
        len(state.realized),
        len(state.positions),
    )
    return state


def _ledger_fold_transaction(accumulator: _PortfolioAccumulator, transaction: Transaction) -> None:
    account_id = transaction.account_id
    balance_before = accumulator.cash.ledger_balance(account_id)
    instrument_key = ledger_transaction_instrument_key(transaction)

    # Zero-quantity trades only move fees; they never touch position state.
    if isinstance(transaction, CashMovement) or transaction.quantity == _ZERO:
        cash_delta = ledger_cash_delta(transaction)
        balance_after = accumulator.cash.ledger_post(account_id, cash_delta)
        accumulator.ledger.append(_ledger_row(transaction, instrument_key, cash_delta, balance_after))
        return

    position = accumulator.position_for(transaction, instrument_key)
    signed_qty = ledger_signed_quantity(transaction)
    rejection_reason = ledger_rejection_reason(position, signed_qty)
    if rejection_reason is not None:
        logger.debug(
            "transaction rejected: id=%s account=%s instrument=%s reason=%s",
            transaction.transaction_id,
            account_id,
            instrument_key,
            rejection_reason,
        )
        accumulator.ledger.append(
            _ledger_row(transaction, instrument_key, _ZERO, balance_before, error=rejection_reason)
        )
        return

    accumulator.position_track(position)
    if isinstance(transaction, OptionTrade) and ledger_increases_magnitude(position.qty, signed_qty):
        position.coverage_hint = ledger_classify_coverage(
            kind=transaction.kind,
            resulting_qty=position.qty + signed_qty,
            strike=transaction.strike,
            shares_held=accumulator.shares_held(account_id, transaction.ticker),
            cash_balance=balance_before,
        )

    realized_event = ledger_apply_trade(position, transaction, ledger_multiplier_for(transaction.kind))
    if realized_event is not None:
        accumulator.realized.append(realized_event)

    cash_delta = ledger_cash_delta(transaction)
    balance_after = accumulator.cash.ledger_post(account_id, cash_delta)
    accumulator.ledger.append(_ledger_row(transaction, instrument_key, cash_delta, balance_after))


def _ledger_row(
    transaction: Transaction,
    instrument_key: str,
    cash_delta: Decimal,
    balance_after: Decimal,
    error: str | None = None,
) -> LedgerRow:
    is_cash = isinstance(transaction, CashMovement)
    return LedgerRow(
        transaction_id=transaction.transaction_id,
        account_id=transaction.account_id,
        timestamp=transaction.timestamp,
        instrument_kind=transaction.kind,
        instrument_key=instrument_key,
        ticker=None if is_cash else transaction.ticker,
        expiry=getattr(transaction, "expiry", None),
        strike=getattr(transaction, "strike", None),
        side=None if is_cash else transaction.side,
        qty=transaction.amount if is_cash else transaction.quantity,
        price=None if is_cash else transaction.price,
        fees=transaction.fees,
        memo=transaction.memo,
        currency=transaction.currency,
        cash_delta=cash_delta,
        balance_after=balance_after,
        accepted=error is None,
        error=error,
    )


__all__ = ["LedgerRow", "PortfolioState", "ledger_build_portfolio", "ledger_unrealized_pnl"]
