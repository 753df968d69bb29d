"""Typed domain models shared across runtime layers.

Transactions are modelled as a closed union of three frozen variants so that
side, strike and expiry only exist where they are meaningful. The loose
`TransactionRecord` shape is what external import and storage layers produce;
it is converted into a variant by `domain_transaction_from_record`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Union


class InstrumentKind(str, Enum):
    """Instrument kinds accepted by the ledger builder."""

    CASH = "CASH"
    SHARES = "SHARES"
    CALL = "CALL"
    PUT = "PUT"

    @property
    def is_option(self) -> bool:
        return self in (InstrumentKind.CALL, InstrumentKind.PUT)


class TradeSide(str, Enum):
    """Trade direction. BUY increases longs and covers shorts."""

    BUY = "BUY"
    SELL = "SELL"

    @property
    def direction(self) -> int:
        return 1 if self is TradeSide.BUY else -1


class CoverageHint(str, Enum):
    """Advisory classification recorded on short option positions."""

    COVERED = "COVERED"
    CASH_SECURED = "CASH_SECURED"
    NAKED = "NAKED"


@dataclass(frozen=True)
class CashMovement:
    """Deposit, withdrawal or other signed cash effect.

    Attributes:
        transaction_id: Unique transaction identifier.
        account_id: Owning account identifier.
        timestamp: Offset-aware broker event time.
        amount: Signed cash amount, positive for inflows.
        fees: Non-negative fee amount (not applied to cash movements).
        memo: Free-text memo.
        currency: ISO 4217 currency code.
    """

    transaction_id: str
    account_id: str
    timestamp: datetime
    amount: Decimal
    fees: Decimal = Decimal("0")
    memo: str = ""
    currency: str = "USD"

    @property
    def kind(self) -> InstrumentKind:
        return InstrumentKind.CASH


@dataclass(frozen=True)
class ShareTrade:
    """Equity trade with a non-negative quantity and explicit side.

    Attributes:
        transaction_id: Unique transaction identifier.
        account_id: Owning account identifier.
        timestamp: Offset-aware broker event time.
        ticker: Resolved underlying identifier.
        side: Trade side.
        quantity: Non-negative share count.
        price: Per-share price.
        fees: Non-negative fee amount.
        memo: Free-text memo.
        currency: ISO 4217 currency code.
    """

    transaction_id: str
    account_id: str
    timestamp: datetime
    ticker: str
    side: TradeSide
    quantity: Decimal
    price: Decimal
    fees: Decimal = Decimal("0")
    memo: str = ""
    currency: str = "USD"

    @property
    def kind(self) -> InstrumentKind:
        return InstrumentKind.SHARES


@dataclass(frozen=True)
class OptionTrade:
    """Call or put trade; quantity counts contracts.

    Attributes:
        transaction_id: Unique transaction identifier.
        account_id: Owning account identifier.
        timestamp: Offset-aware broker event time.
        kind: `CALL` or `PUT`.
        ticker: Resolved underlying identifier.
        expiry: Contract expiry date.
        strike: Contract strike price.
        side: Trade side.
        quantity: Non-negative contract count.
        price: Per-share premium.
        fees: Non-negative fee amount.
        memo: Free-text memo.
        currency: ISO 4217 currency code.
    """

    transaction_id: str
    account_id: str
    timestamp: datetime
    kind: InstrumentKind
    ticker: str
    expiry: date
    strike: Decimal
    side: TradeSide
    quantity: Decimal
    price: Decimal
    fees: Decimal = Decimal("0")
    memo: str = ""
    currency: str = "USD"


Transaction = Union[CashMovement, ShareTrade, OptionTrade]


@dataclass(frozen=True)
class TransactionRecord:
    """Loose transaction record as produced by import or storage layers.

    Every optional field may be absent; `domain_transaction_from_record`
    decides which combinations are structurally valid.
    """

    id: str
    account_id: str
    timestamp: str | datetime
    instrument_kind: str
    qty: Decimal | int | float | str
    fees: Decimal | int | float | str | None = None
    ticker: str | None = None
    expiry: str | date | None = None
    strike: Decimal | int | float | str | None = None
    side: str | None = None
    price: Decimal | int | float | str | None = None
    memo: str | None = None
    currency: str | None = None

