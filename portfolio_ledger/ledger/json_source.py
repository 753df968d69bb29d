"""File-backed transaction source reading one JSON document."""

from __future__ import annotations

import json
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path

from portfolio_ledger.domain import TransactionRecord, TransactionSourceError

logger = logging.getLogger(__name__)

_LEDGER_RECORD_FIELDS = (
    "id",
    "account_id",
    "timestamp",
    "instrument_kind",
    "qty",
    "fees",
    "ticker",
    "expiry",
    "strike",
    "side",
    "price",
    "memo",
    "currency",
)


def ledger_record_from_mapping(payload: dict[str, object]) -> TransactionRecord:
    """Build one loose transaction record from a decoded JSON object.

    The underlying resolves from `ticker`, then a joined `tickers.name`, then
    `ticker_id`.

    Raises:
        TransactionSourceError: Raised when the object misses required keys.
    """

    if not isinstance(payload, dict):
        raise TransactionSourceError(f"transaction entry must be an object, got {type(payload).__name__}")
    values = {field_name: payload.get(field_name) for field_name in _LEDGER_RECORD_FIELDS}
    if values["ticker"] is None:
        values["ticker"] = _ledger_resolve_underlying(payload)
    missing_fields = [
        field_name
        for field_name in ("id", "account_id", "timestamp", "instrument_kind", "qty")
        if values[field_name] is None
    ]
    if missing_fields:
        raise TransactionSourceError(
            f"transaction entry id={payload.get('id')} missing fields: {', '.join(missing_fields)}"
        )
    return TransactionRecord(**values)


def _ledger_resolve_underlying(payload: dict[str, object]) -> object | None:
    joined_ticker = payload.get("tickers")
    if isinstance(joined_ticker, dict) and joined_ticker.get("name") is not None:
        return joined_ticker["name"]
    return payload.get("ticker_id")


class JsonFileTransactionSource:
    """Read `{"opening_balances": {...}, "transactions": [...]}` from disk.

    Numbers are decoded as `Decimal` so that prices and fees keep their
    written precision.
    """

    def __init__(self, file_path: str | Path):
        if not str(file_path).strip():
            raise ValueError("file_path must not be blank")
        self._file_path = Path(file_path)

    def ledger_source_label(self) -> str:
        return f"file://{self._file_path}"

    def ledger_transaction_list(self) -> list[TransactionRecord]:
        document = self._load_document()
        transactions_payload = document.get("transactions", [])
        if not isinstance(transactions_payload, list):
            raise TransactionSourceError("`transactions` must be a list")
        records = [ledger_record_from_mapping(entry) for entry in transactions_payload]
        logger.debug("loaded %d transaction records from %s", len(records), self._file_path)
        return records

    def ledger_opening_balances(self) -> dict[str, Decimal]:
        document = self._load_document()
        balances_payload = document.get("opening_balances", {})
        if not isinstance(balances_payload, dict):
            raise TransactionSourceError("`opening_balances` must be an object")
        try:
            return {str(account_id): Decimal(str(balance)) for account_id, balance in balances_payload.items()}
        except InvalidOperation as error:
            raise TransactionSourceError(f"opening balance is not numeric: {error}") from error

    def _load_document(self) -> dict[str, object]:
        try:
            with self._file_path.open("r", encoding="utf-8") as source_file:
                document = json.load(source_file, parse_float=Decimal)
        except FileNotFoundError as error:
            raise TransactionSourceError(f"transaction file not found: {self._file_path}") from error
        except (OSError, json.JSONDecodeError) as error:
            raise TransactionSourceError(f"transaction file unreadable: {self._file_path}: {error}") from error
        if not isinstance(document, dict):
            raise TransactionSourceError("transaction file must contain a JSON object")
        return document


__all__ = ["JsonFileTransactionSource", "ledger_record_from_mapping"]
