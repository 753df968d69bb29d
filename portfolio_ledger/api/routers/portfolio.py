"""Portfolio API router composition for derived-state reads and ad-hoc derivation."""
# pylint: disable=duplicate-code

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from portfolio_ledger.config import AppSettings
from portfolio_ledger.domain import TransactionSourceError, TransactionValidationError
from portfolio_ledger.domain.transactions import domain_parse_timestamp
from portfolio_ledger.ledger import (
    LedgerRow,
    PortfolioLedgerService,
    PortfolioState,
    Position,
    RealizedEvent,
    ledger_filter_by_time_range,
    ledger_record_from_mapping,
    ledger_unrealized_pnl,
)

logger = logging.getLogger(__name__)


class DerivationRequestBody(BaseModel):
    """Request body for one ad-hoc derivation over caller-supplied records."""

    opening_balances: dict[str, Decimal] = Field(default_factory=dict)
    transactions: list[dict[str, Any]] = Field(default_factory=list)


class UnrealizedRequestBody(BaseModel):
    """Request body carrying externally sourced prices keyed by instrument key."""

    account_id: str = Field(min_length=1)
    prices: dict[str, Decimal] = Field(default_factory=dict)


def api_create_portfolio_router(settings: AppSettings, ledger_service: PortfolioLedgerService) -> APIRouter:
    """Create portfolio router exposing derived positions, balances, ledger and PnL.

    Every request recomputes the full state from the complete transaction log.

    Args:
        settings: Runtime settings used for pagination defaults.
        ledger_service: Portfolio derivation service.

    Returns:
        APIRouter: Router exposing portfolio endpoints.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if ledger_service is None:
        raise ValueError("ledger_service must not be None")

    router = APIRouter(prefix="/portfolio", tags=["portfolio"])

    def derive_or_error() -> PortfolioState | JSONResponse:
        try:
            return ledger_service.ledger_derive()
        except TransactionSourceError as error:
            logger.error("transaction source unavailable: %s", error)
            return api_error_response(status.HTTP_503_SERVICE_UNAVAILABLE, "SOURCE_UNAVAILABLE", str(error))
        except TransactionValidationError as error:
            return api_invalid_transaction_response(error)

    @router.get("/accounts")
    def api_portfolio_account_list() -> JSONResponse:
        """List accounts with cash balances and realized PnL totals.

        Returns:
            JSONResponse: Account summary payload.

        Raises:
            RuntimeError: Raised when derivation fails unexpectedly.
        """

        state = derive_or_error()
        if isinstance(state, JSONResponse):
            return state
        payload = {
            "items": [
                {
                    "account_id": account_id,
                    "balance": str(state.ledger_balance_for_account(account_id)),
                    "realized_pnl": str(state.ledger_total_realized_pnl(account_id)),
                    "open_positions": len(state.ledger_positions_for_account(account_id, include_flat=False)),
                }
                for account_id in state.ledger_accounts()
            ]
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/accounts/{account_id}/positions")
    def api_portfolio_position_list(account_id: str, include_flat: bool = Query(default=True)) -> JSONResponse:
        """List positions for one account.

        Args:
            account_id: Account identifier.
            include_flat: Whether closed (qty == 0) positions are included.

        Returns:
            JSONResponse: Position list payload with the account balance.

        Raises:
            RuntimeError: Raised when derivation fails unexpectedly.
        """

        state = derive_or_error()
        if isinstance(state, JSONResponse):
            return state
        positions = state.ledger_positions_for_account(account_id, include_flat=include_flat)
        payload = {
            "account_id": account_id,
            "balance": str(state.ledger_balance_for_account(account_id)),
            "items": [api_serialize_position(position) for position in positions],
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/accounts/{account_id}/realized")
    def api_portfolio_realized_list(account_id: str) -> JSONResponse:
        """List realized events and their total for one account.

        Returns:
            JSONResponse: Realized event payload.

        Raises:
            RuntimeError: Raised when derivation fails unexpectedly.
        """

        state = derive_or_error()
        if isinstance(state, JSONResponse):
            return state
        payload = {
            "account_id": account_id,
            "total_realized_pnl": str(state.ledger_total_realized_pnl(account_id)),
            "items": [api_serialize_realized_event(event) for event in state.ledger_realized_for_account(account_id)],
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/ledger")
    def api_portfolio_ledger_list(
        account_id: str | None = Query(default=None),
        limit: int = Query(default=settings.api_default_limit, ge=1),
        offset: int = Query(default=0, ge=0),
        timestamp_from: str | None = Query(default=None),
        timestamp_to: str | None = Query(default=None),
    ) -> JSONResponse:
        """List audit ledger rows in replay order.

        Args:
            account_id: Optional account filter.
            limit: Max rows to return.
            offset: Rows to skip.
            timestamp_from: Optional inclusive lower timestamp bound.
            timestamp_to: Optional inclusive upper timestamp bound.

        Returns:
            JSONResponse: Ledger list envelope payload.

        Raises:
            RuntimeError: Raised when derivation fails unexpectedly.
        """

        try:
            lower_bound = None if timestamp_from is None else domain_parse_timestamp(timestamp_from)
            upper_bound = None if timestamp_to is None else domain_parse_timestamp(timestamp_to)
        except TransactionValidationError as error:
            return api_error_response(status.HTTP_400_BAD_REQUEST, "INVALID_TIMESTAMP_FILTER", str(error))

        state = derive_or_error()
        if isinstance(state, JSONResponse):
            return state
        rows = list(state.ledger) if account_id is None else state.ledger_rows_for_account(account_id)
        try:
            rows = ledger_filter_by_time_range(rows, lower_bound, upper_bound)
        except ValueError as error:
            return api_error_response(status.HTTP_400_BAD_REQUEST, "INVALID_TIMESTAMP_FILTER", str(error))

        applied_limit = min(limit, settings.api_max_limit)
        page_rows = rows[offset : offset + applied_limit]
        payload = {
            "items": [api_serialize_ledger_row(row) for row in page_rows],
            "page": {
                "limit": limit,
                "applied_limit": applied_limit,
                "offset": offset,
                "returned": len(page_rows),
                "total": len(rows),
            },
            "filters": {
                "account_id": account_id,
                "timestamp_from": timestamp_from,
                "timestamp_to": timestamp_to,
            },
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.post("/derive")
    def api_portfolio_derive(body: DerivationRequestBody) -> JSONResponse:
        """Derive state from caller-supplied records without touching the source.

        Returns:
            JSONResponse: Full derived state payload.

        Raises:
            RuntimeError: Raised when derivation fails unexpectedly.
        """

        try:
            records = [ledger_record_from_mapping(entry) for entry in body.transactions]
        except TransactionSourceError as error:
            return api_error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, "INVALID_TRANSACTION_PAYLOAD", str(error))
        try:
            state = ledger_service.ledger_derive_from_records(records, body.opening_balances)
        except TransactionValidationError as error:
            return api_invalid_transaction_response(error)
        return JSONResponse(content=api_serialize_portfolio_state(state), status_code=status.HTTP_200_OK)

    @router.post("/unrealized")
    def api_portfolio_unrealized(body: UnrealizedRequestBody) -> JSONResponse:
        """Value open positions of one account at caller-supplied prices.

        Returns:
            JSONResponse: Per-position unrealized PnL and instruments without a price.

        Raises:
            RuntimeError: Raised when derivation fails unexpectedly.
        """

        state = derive_or_error()
        if isinstance(state, JSONResponse):
            return state
        items: list[dict[str, object]] = []
        missing_prices: list[str] = []
        total_unrealized = Decimal("0")
        for position in state.ledger_positions_for_account(body.account_id, include_flat=False):
            current_price = body.prices.get(position.instrument_key)
            if current_price is None:
                missing_prices.append(position.instrument_key)
                continue
            unrealized_pnl = ledger_unrealized_pnl(position, current_price)
            total_unrealized += unrealized_pnl
            items.append(
                {
                    "instrument_key": position.instrument_key,
                    "qty": str(position.qty),
                    "avg_price": str(position.avg_price),
                    "current_price": str(current_price),
                    "unrealized_pnl": str(unrealized_pnl),
                }
            )
        payload = {
            "account_id": body.account_id,
            "items": items,
            "missing_prices": missing_prices,
            "total_unrealized_pnl": str(total_unrealized),
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router


def api_error_response(status_code: int, code: str, message: str) -> JSONResponse:
    """Build the shared error envelope."""

    payload = {"status": "error", "code": code, "message": message}
    return JSONResponse(content=payload, status_code=status_code)


def api_invalid_transaction_response(error: TransactionValidationError) -> JSONResponse:
    """Build the error envelope for a fatal transaction validation failure."""

    payload = {
        "status": "error",
        "code": "INVALID_TRANSACTION",
        "message": str(error),
        "transaction_id": error.transaction_id,
    }
    return JSONResponse(content=payload, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)



def _api_optional_text(value: object | None) -> str | None:
    if value is None:
        return None
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "value"):
        return value.value
    return str(value)


def api_serialize_position(position: Position) -> dict[str, object]:
    """Serialize one position to a JSON payload; decimals become strings.

    Args:
        position: Derived position.

    Returns:
        dict[str, object]: JSON-serializable position payload.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return {
        "account_id": position.account_id,
        "instrument_key": position.instrument_key,
        "instrument_kind": position.kind.value,
        "ticker": position.ticker,
        "qty": str(position.qty),
        "avg_price": str(position.avg_price),
        "expiry": _api_optional_text(position.expiry),
        "strike": _api_optional_text(position.strike),
        "coverage_hint": _api_optional_text(position.coverage_hint),
        "currency": position.currency,
    }


def api_serialize_ledger_row(row: LedgerRow) -> dict[str, object]:
    """Serialize one audit ledger row to a JSON payload."""

    return {
        "transaction_id": row.transaction_id,
        "account_id": row.account_id,
        "timestamp": row.timestamp.isoformat(),
        "instrument_kind": row.instrument_kind.value,
        "instrument_key": row.instrument_key,
        "ticker": row.ticker,
        "expiry": _api_optional_text(row.expiry),
        "strike": _api_optional_text(row.strike),
        "side": _api_optional_text(row.side),
        "qty": str(row.qty),
        "price": _api_optional_text(row.price),
        "fees": str(row.fees),
        "memo": row.memo,
        "currency": row.currency,
        "cash_delta": str(row.cash_delta),
        "balance_after": str(row.balance_after),
        "accepted": row.accepted,
        "error": row.error,
    }


def api_serialize_realized_event(event: RealizedEvent) -> dict[str, object]:
    """Serialize one realized event to a JSON payload."""

    return {
        "transaction_id": event.transaction_id,
        "account_id": event.account_id,
        "timestamp": event.timestamp.isoformat(),
        "instrument_key": event.instrument_key,
        "instrument_kind": event.instrument_kind.value,
        "ticker": event.ticker,
        "closed_qty": str(event.closed_qty),
        "close_price": str(event.close_price),
        "open_avg_price": str(event.open_avg_price),
        "multiplier": str(event.multiplier),
        "close_fees": str(event.close_fees),
        "realized_pnl": str(event.realized_pnl),
        "coverage_at_open": _api_optional_text(event.coverage_at_open),
        "memo": event.memo,
    }


def api_serialize_portfolio_state(state: PortfolioState) -> dict[str, object]:
    """Serialize a whole derived state."""

    return {
        "positions": {position_key: api_serialize_position(position) for position_key, position in state.positions.items()},
        "balances": {account_id: str(balance) for account_id, balance in state.balances.items()},
        "ledger": [api_serialize_ledger_row(row) for row in state.ledger],
        "realized": [api_serialize_realized_event(event) for event in state.realized],
    }


__all__ = [
    "api_create_portfolio_router",
    "api_serialize_position",
    "api_serialize_ledger_row",
    "api_serialize_realized_event",
    "api_serialize_portfolio_state",
]
