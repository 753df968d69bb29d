"""Per-account cash ledger and transaction cash effects."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal

from portfolio_ledger.domain import CashMovement, Transaction

from .instruments import ledger_multiplier_for
from .positions import ledger_signed_quantity

_ZERO = Decimal("0")


def ledger_cash_delta(transaction: Transaction) -> Decimal:
    """Compute the signed cash effect of one accepted transaction.

    Cash movements contribute their signed amount. Trades contribute
    `-(signed_qty * price * multiplier) - fees`, so buys are outflows and
    sells are inflows, with fees always subtracted.

    Args:
        transaction: Accepted transaction variant.

    Returns:
        Decimal: Signed cash delta.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if isinstance(transaction, CashMovement):
        return transaction.amount
    multiplier = ledger_multiplier_for(transaction.kind)
    return -(ledger_signed_quantity(transaction) * transaction.price * multiplier) - transaction.fees


class CashLedger:
    """Running signed cash balance per account."""

    def __init__(self, opening_balances: Mapping[str, Decimal] | None = None):
        self._opening_balances = dict(opening_balances or {})
        self._balances: dict[str, Decimal] = {}

    def ledger_balance(self, account_id: str) -> Decimal:
        """Return the current balance, seeding it lazily from the opening map."""

        if account_id not in self._balances:
            self._balances[account_id] = self._opening_balances.get(account_id, _ZERO)
        return self._balances[account_id]

    def ledger_post(self, account_id: str, cash_delta: Decimal) -> Decimal:
        """Apply a cash delta and return the new balance."""

        new_balance = self.ledger_balance(account_id) + cash_delta
        self._balances[account_id] = new_balance
        return new_balance

    def ledger_snapshot(self) -> dict[str, Decimal]:
        """Return balances for every touched or seeded account."""

        for account_id in sorted(self._opening_balances):
            self.ledger_balance(account_id)
        return dict(self._balances)


__all__ = ["CashLedger", "ledger_cash_delta"]
