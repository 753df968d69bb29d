"""Regression tests for portfolio read and derivation API endpoints."""

from __future__ import annotations

from decimal import Decimal

from fastapi.testclient import TestClient

from portfolio_ledger.api.application import create_api_application
from portfolio_ledger.config import AppSettings
from portfolio_ledger.domain import TransactionRecord, TransactionSourceError
from portfolio_ledger.ledger import PortfolioLedgerService


class _InMemoryTransactionSource:
    """Transaction source stub backed by a fixed record list."""

    def __init__(self, records: list[TransactionRecord], opening_balances: dict[str, Decimal] | None = None):
        self._records = records
        self._opening_balances = opening_balances or {}

    def ledger_source_label(self) -> str:
        return "memory://test"

    def ledger_transaction_list(self) -> list[TransactionRecord]:
        return list(self._records)

    def ledger_opening_balances(self) -> dict[str, Decimal]:
        return dict(self._opening_balances)


class _UnavailableTransactionSource(_InMemoryTransactionSource):
    """Transaction source stub that always fails to read."""

    def __init__(self):
        super().__init__([])

    def ledger_transaction_list(self) -> list[TransactionRecord]:
        raise TransactionSourceError("transaction file not found: missing.json")


def _records() -> list[TransactionRecord]:
    return [
        TransactionRecord(
            id="t1",
            account_id="acc-1",
            timestamp="2025-01-01T10:00:00Z",
            instrument_kind="SHARES",
            ticker="AAPL",
            side="BUY",
            qty="100",
            price="150.00",
            fees="1.00",
        ),
        TransactionRecord(
            id="t2",
            account_id="acc-1",
            timestamp="2025-01-02T10:00:00Z",
            instrument_kind="CALL",
            ticker="AAPL",
            side="SELL",
            qty="1",
            price="5.00",
            fees="1.00",
            strike="160",
            expiry="2025-03-21",
        ),
        TransactionRecord(
            id="t3",
            account_id="acc-1",
            timestamp="2025-01-03T10:00:00Z",
            instrument_kind="SHARES",
            ticker="AAPL",
            side="SELL",
            qty="150",
            price="155.00",
            fees="1.00",
        ),
        TransactionRecord(
            id="t4",
            account_id="acc-2",
            timestamp="2025-01-03T11:00:00Z",
            instrument_kind="CASH",
            qty="500",
        ),
    ]


def _client(source: _InMemoryTransactionSource, api_default_limit: int = 50, api_max_limit: int = 200) -> TestClient:
    settings = AppSettings(
        environment_name="test",
        api_default_limit=api_default_limit,
        api_max_limit=api_max_limit,
    )
    application = create_api_application(
        settings=settings,
        transaction_source=source,
        ledger_service=PortfolioLedgerService(source=source),
    )
    return TestClient(application)


def test_api_portfolio_accounts_lists_balances() -> None:
    """List accounts with balances and realized totals.

    Returns:
        None: Assertions validate response payload.

    Raises:
        AssertionError: Raised when response deviates.
    """

    response = _client(_InMemoryTransactionSource(_records())).get("/portfolio/accounts")

    assert response.status_code == 200
    items = response.json()["items"]
    assert [item["account_id"] for item in items] == ["acc-1", "acc-2"]
    assert Decimal(items[0]["balance"]) == Decimal("-14502")
    assert items[0]["open_positions"] == 2
    assert Decimal(items[1]["balance"]) == Decimal("500")


def test_api_portfolio_positions_include_coverage_hint() -> None:
    """Return positions with decimal strings and coverage hints.

    Returns:
        None: Assertions validate serialized positions.

    Raises:
        AssertionError: Raised when response deviates.
    """

    response = _client(_InMemoryTransactionSource(_records())).get("/portfolio/accounts/acc-1/positions")

    assert response.status_code == 200
    payload = response.json()
    positions = {item["instrument_key"]: item for item in payload["items"]}
    assert Decimal(positions["AAPL"]["avg_price"]) == Decimal("150.01")
    call = positions["AAPL|2025-03-21|160|CALL"]
    assert call["qty"] == "-1"
    assert call["coverage_hint"] == "COVERED"
    assert call["expiry"] == "2025-03-21"
    assert positions["AAPL"]["coverage_hint"] is None


def test_api_portfolio_ledger_reports_rejections_and_paginates() -> None:
    """Expose rejected rows and apply capped pagination.

    Returns:
        None: Assertions validate ledger rows and page metadata.

    Raises:
        AssertionError: Raised when response deviates.
    """

    client = _client(_InMemoryTransactionSource(_records()), api_default_limit=2, api_max_limit=3)

    response = client.get("/portfolio/ledger", params={"account_id": "acc-1", "limit": 10})

    assert response.status_code == 200
    payload = response.json()
    assert payload["page"]["applied_limit"] == 3
    assert payload["page"]["total"] == 3
    rejected = payload["items"][2]
    assert rejected["transaction_id"] == "t3"
    assert rejected["accepted"] is False
    assert rejected["error"] == "Equities cannot be negative (long-only)"
    assert Decimal(rejected["balance_after"]) == Decimal("-14502")

    window_response = client.get(
        "/portfolio/ledger",
        params={"timestamp_from": "2025-01-02T00:00:00Z", "timestamp_to": "2025-01-02T23:59:59Z"},
    )
    assert [item["transaction_id"] for item in window_response.json()["items"]] == ["t2"]

    invalid_response = client.get("/portfolio/ledger", params={"timestamp_from": "2025-01-02"})
    assert invalid_response.status_code == 400
    assert invalid_response.json()["code"] == "INVALID_TIMESTAMP_FILTER"

    inverted_response = client.get(
        "/portfolio/ledger",
        params={"timestamp_from": "2025-01-03T00:00:00Z", "timestamp_to": "2025-01-01T00:00:00Z"},
    )
    assert inverted_response.status_code == 400
    assert inverted_response.json()["code"] == "INVALID_TIMESTAMP_FILTER"


def test_api_portfolio_realized_and_unrealized() -> None:
    """Report realized totals and value open positions at supplied prices.

    Returns:
        None: Assertions validate PnL payloads.

    Raises:
        AssertionError: Raised when response deviates.
    """

    records = _records()[:2] + [
        TransactionRecord(
            id="t5",
            account_id="acc-1",
            timestamp="2025-01-04T10:00:00Z",
            instrument_kind="SHARES",
            ticker="AAPL",
            side="SELL",
            qty="50",
            price="160.00",
            fees="1.00",
        )
    ]
    client = _client(_InMemoryTransactionSource(records))

    realized_payload = client.get("/portfolio/accounts/acc-1/realized").json()
    assert Decimal(realized_payload["total_realized_pnl"]) == Decimal("498.50")
    assert realized_payload["items"][0]["transaction_id"] == "t5"

    unrealized_response = client.post(
        "/portfolio/unrealized",
        json={"account_id": "acc-1", "prices": {"AAPL": "155.01"}},
    )
    assert unrealized_response.status_code == 200
    unrealized_payload = unrealized_response.json()
    assert Decimal(unrealized_payload["total_unrealized_pnl"]) == Decimal("250")
    assert unrealized_payload["missing_prices"] == ["AAPL|2025-03-21|160|CALL"]


def test_api_portfolio_derive_returns_state_and_invalid_transaction_errors() -> None:
    """Derive ad-hoc state and surface fatal validation errors as 422.

    Returns:
        None: Assertions validate derive responses.

    Raises:
        AssertionError: Raised when response deviates.
    """

    client = _client(_InMemoryTransactionSource([]))
    body = {
        "opening_balances": {"acc": "1000"},
        "transactions": [
            {
                "id": "d1",
                "account_id": "acc",
                "timestamp": "2025-01-01T10:00:00Z",
                "instrument_kind": "PUT",
                "ticker": "SPY",
                "side": "SELL",
                "qty": 1,
                "price": "2.00",
                "fees": "1.00",
                "strike": "5",
                "expiry": "2025-02-21",
            }
        ],
    }

    response = client.post("/portfolio/derive", json=body)

    assert response.status_code == 200
    payload = response.json()
    assert Decimal(payload["balances"]["acc"]) == Decimal("1199")
    assert payload["positions"]["acc|SPY|2025-02-21|5|PUT"]["coverage_hint"] == "CASH_SECURED"
    assert payload["ledger"][0]["accepted"] is True

    body["transactions"][0]["ticker"] = None
    invalid_response = client.post("/portfolio/derive", json=body)
    assert invalid_response.status_code == 422
    assert invalid_response.json()["code"] == "INVALID_TRANSACTION"
    assert invalid_response.json()["transaction_id"] == "d1"


def test_api_portfolio_reports_unavailable_source() -> None:
    """Return 503 when the transaction source cannot be read.

    Returns:
        None: Assertions validate error envelope.

    Raises:
        AssertionError: Raised when response deviates.
    """

    response = _client(_UnavailableTransactionSource()).get("/portfolio/accounts")

    assert response.status_code == 503
    assert response.json()["code"] == "SOURCE_UNAVAILABLE"
