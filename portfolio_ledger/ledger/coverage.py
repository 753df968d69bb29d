"""Advisory coverage classification for short option positions."""

from __future__ import annotations

from decimal import Decimal

from portfolio_ledger.domain import CoverageHint, InstrumentKind

from .instruments import LEDGER_OPTION_MULTIPLIER


def ledger_classify_coverage(
    kind: InstrumentKind,
    resulting_qty: Decimal,
    strike: Decimal | None,
    shares_held: Decimal,
    cash_balance: Decimal,
) -> CoverageHint | None:
    """Classify a short option position at the moment it grows.

    The hint is a point-in-time label. It is only computed on opens and adds
    and is never revisited when shares or cash change afterwards.

    Args:
        kind: Option kind of the growing position.
        resulting_qty: Signed position quantity after the triggering trade.
        strike: Option strike price.
        shares_held: Account share quantity of the same underlying.
        cash_balance: Account cash balance before the triggering trade's cash effect.

    Returns:
        CoverageHint | None: Hint for short calls and puts, None for everything else.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if resulting_qty >= 0:
        return None
    short_contracts = abs(resulting_qty)
    if kind is InstrumentKind.CALL:
        if shares_held >= short_contracts * LEDGER_OPTION_MULTIPLIER:
            return CoverageHint.COVERED
        return CoverageHint.NAKED
    if kind is InstrumentKind.PUT:
        cash_needed = (strike or Decimal("0")) * LEDGER_OPTION_MULTIPLIER * short_contracts
        if cash_balance >= cash_needed:
            return CoverageHint.CASH_SECURED
        return CoverageHint.NAKED
    return None


__all__ = ["ledger_classify_coverage"]
