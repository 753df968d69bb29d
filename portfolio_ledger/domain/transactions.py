"""Conversion of loose transaction records into typed transaction variants.

This module centralizes the structural validation that must succeed before a
derivation starts. Any failure raises `TransactionValidationError` naming the
offending transaction id, and no partial result is produced.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from .errors import TransactionValidationError
from .models import (
    CashMovement,
    InstrumentKind,
    OptionTrade,
    ShareTrade,
    TradeSide,
    Transaction,
    TransactionRecord,
)

_DOMAIN_NULL_SENTINELS = frozenset({"-", "--", "N/A"})
_DOMAIN_CURRENCY_CODE_PATTERN = re.compile(r"^[A-Z]{3}$")


def domain_normalize_optional_text(value: object | None) -> str | None:
    """Normalize one optional text value using the shared null-sentinel policy.

    Args:
        value: Candidate text value.

    Returns:
        str | None: Stripped text, or None when missing, blank or a sentinel.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if value is None or not isinstance(value, str):
        return None
    normalized_value = value.strip()
    if not normalized_value or normalized_value in _DOMAIN_NULL_SENTINELS:
        return None
    return normalized_value


def domain_parse_timestamp(value: str | datetime, transaction_id: str | None = None) -> datetime:
    """Parse an ISO-8601 event timestamp into an offset-aware datetime.

    Args:
        value: Timestamp text or datetime.
        transaction_id: Transaction identifier used in error messages.

    Returns:
        datetime: Offset-aware timestamp.

    Raises:
        TransactionValidationError: Raised when the timestamp is blank, invalid or offset-naive.
    """

    if isinstance(value, datetime):
        parsed_timestamp = value
    else:
        if not isinstance(value, str) or not value.strip():
            raise TransactionValidationError("timestamp must be a non-empty string", transaction_id)
        candidate = value.strip()
        if candidate.endswith("Z"):
            candidate = f"{candidate[:-1]}+00:00"
        try:
            parsed_timestamp = datetime.fromisoformat(candidate)
        except ValueError as error:
            raise TransactionValidationError(f"invalid timestamp={value}", transaction_id) from error

    if parsed_timestamp.tzinfo is None or parsed_timestamp.utcoffset() is None:
        raise TransactionValidationError("timestamp must be offset-aware", transaction_id)
    return parsed_timestamp


def domain_to_decimal(value: object, field_name: str, transaction_id: str | None = None) -> Decimal:
    """Coerce a numeric input into `Decimal` without binary float artifacts.

    Raises:
        TransactionValidationError: Raised when the value is not a finite number.
    """

    if isinstance(value, Decimal):
        decimal_value = value
    elif isinstance(value, bool) or value is None:
        raise TransactionValidationError(f"{field_name} must be numeric", transaction_id)
    else:
        try:
            decimal_value = Decimal(str(value).strip())
        except InvalidOperation as error:
            raise TransactionValidationError(f"invalid {field_name}={value}", transaction_id) from error
    if not decimal_value.is_finite():
        raise TransactionValidationError(f"{field_name} must be finite", transaction_id)
    return decimal_value


def domain_transaction_from_record(record: TransactionRecord, default_currency: str = "USD") -> Transaction:
    """Convert one loose record into a typed transaction variant.

    Args:
        record: External transaction record.
        default_currency: Currency applied when the record carries none.

    Returns:
        Transaction: `CashMovement`, `ShareTrade` or `OptionTrade`.

    Raises:
        TransactionValidationError: Raised when the record is structurally invalid,
            most importantly when a non-cash record has no underlying identifier.
    """

    transaction_id = domain_normalize_optional_text(record.id)
    if transaction_id is None:
        raise TransactionValidationError("id must not be blank")
    account_id = domain_normalize_optional_text(record.account_id)
    if account_id is None:
        raise TransactionValidationError("account_id must not be blank", transaction_id)

    kind_text = (domain_normalize_optional_text(record.instrument_kind) or "").upper()
    try:
        kind = InstrumentKind(kind_text)
    except ValueError as error:
        raise TransactionValidationError(
            f"unsupported instrument_kind={record.instrument_kind}", transaction_id
        ) from error

    timestamp = domain_parse_timestamp(record.timestamp, transaction_id)
    currency = (domain_normalize_optional_text(record.currency) or default_currency).upper()
    if not _DOMAIN_CURRENCY_CODE_PATTERN.match(currency):
        raise TransactionValidationError(f"invalid currency code={currency}", transaction_id)

    fees = Decimal("0") if record.fees is None else domain_to_decimal(record.fees, "fees", transaction_id)
    if fees < 0:
        raise TransactionValidationError("fees must not be negative", transaction_id)
    quantity = domain_to_decimal(record.qty, "qty", transaction_id)
    memo = record.memo or ""

    if kind is InstrumentKind.CASH:
        return CashMovement(
            transaction_id=transaction_id,
            account_id=account_id,
            timestamp=timestamp,
            amount=quantity,
            fees=fees,
            memo=memo,
            currency=currency,
        )

    ticker = domain_normalize_optional_text(record.ticker)
    if ticker is None:
        raise TransactionValidationError(f"{kind.value} transaction has no underlying identifier", transaction_id)

    side_text = (domain_normalize_optional_text(record.side) or "").upper()
    try:
        side = TradeSide(side_text)
    except ValueError as error:
        raise TransactionValidationError(f"unsupported side={record.side}", transaction_id) from error

    if record.price is None:
        raise TransactionValidationError(f"price is required for {kind.value} transactions", transaction_id)
    price = domain_to_decimal(record.price, "price", transaction_id)
    if quantity < 0:
        raise TransactionValidationError("qty must not be negative; direction comes from side", transaction_id)

    if kind is InstrumentKind.SHARES:
        return ShareTrade(
            transaction_id=transaction_id,
            account_id=account_id,
            timestamp=timestamp,
            ticker=ticker,
            side=side,
            quantity=quantity,
            price=price,
            fees=fees,
            memo=memo,
            currency=currency,
        )

    if record.expiry is None or record.strike is None:
        raise TransactionValidationError(f"{kind.value} transaction requires expiry and strike", transaction_id)
    return OptionTrade(
        transaction_id=transaction_id,
        account_id=account_id,
        timestamp=timestamp,
        kind=kind,
        ticker=ticker,
        expiry=_domain_parse_expiry(record.expiry, transaction_id),
        strike=domain_to_decimal(record.strike, "strike", transaction_id),
        side=side,
        quantity=quantity,
        price=price,
        fees=fees,
        memo=memo,
        currency=currency,
    )


def domain_transactions_from_records(
    records: list[TransactionRecord],
    default_currency: str = "USD",
) -> list[Transaction]:
    """Convert a record batch, failing on the first structurally invalid record."""

    return [domain_transaction_from_record(record, default_currency=default_currency) for record in records]


def _domain_parse_expiry(value: str | date, transaction_id: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise TransactionValidationError(f"invalid expiry={value}", transaction_id)
    try:
        return date.fromisoformat(value.strip())
    except ValueError as error:
        raise TransactionValidationError(f"invalid expiry={value}", transaction_id) from error


__all__ = [
    "domain_normalize_optional_text",
    "domain_parse_timestamp",
    "domain_to_decimal",
    "domain_transaction_from_record",
    "domain_transactions_from_records",
]
