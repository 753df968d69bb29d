"""Deterministic replay ordering for transaction logs."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Protocol, TypeVar

from portfolio_ledger.domain import Transaction


class _Timestamped(Protocol):
    @property
    def timestamp(self) -> datetime: ...


_TimestampedT = TypeVar("_TimestampedT", bound=_Timestamped)


def ledger_order_transactions(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Total-order transactions by `(timestamp, transaction_id)`.

    The id tiebreak keeps same-timestamp replays identical regardless of the
    order in which the source delivered them.

    Args:
        transactions: Unordered transaction variants.

    Returns:
        list[Transaction]: New list in replay order.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return sorted(transactions, key=lambda transaction: (transaction.timestamp, transaction.transaction_id))


def ledger_filter_by_time_range(
    transactions: Iterable[_TimestampedT],
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[_TimestampedT]:
    """Keep items whose timestamp falls inside an inclusive window.

    Works on transactions as well as derived ledger rows.

    Args:
        transactions: Candidate transactions or ledger rows.
        start: Optional inclusive lower bound.
        end: Optional inclusive upper bound.

    Returns:
        list: Matching items in their input order.

    Raises:
        ValueError: Raised when `start` is after `end`.
    """

    if start is not None and end is not None and start > end:
        raise ValueError("start must not be after end")
    return [
        transaction
        for transaction in transactions
        if (start is None or transaction.timestamp >= start) and (end is None or transaction.timestamp <= end)
    ]


__all__ = ["ledger_order_transactions", "ledger_filter_by_time_range"]
