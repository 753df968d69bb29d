"""Health endpoint router composition for app and transaction source checks."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from portfolio_ledger.domain import TransactionSourceError
from portfolio_ledger.ledger import TransactionSourcePort


def api_create_health_router(transaction_source: TransactionSourcePort) -> APIRouter:
    """Create health-check router with app and transaction source status.

    Args:
        transaction_source: Source of the transaction log.

    Returns:
        APIRouter: Router exposing `/health` endpoint.

    Raises:
        ValueError: Raised when transaction_source is invalid.
    """

    if transaction_source is None:
        raise ValueError("transaction_source must not be None")

    router = APIRouter(tags=["health"])

    @router.get("/health")
    def api_health_status() -> JSONResponse:
        """Return application and transaction source health state.

        Returns:
            JSONResponse: Deterministic health payload for operational checks.

        Raises:
            TransactionSourceError: Handled and reported as degraded status.
        """

        try:
            record_count = len(transaction_source.ledger_transaction_list())
            payload = {
                "status": "ok",
                "app": "up",
                "source": "ok",
                "detail": f"{record_count} transaction records readable",
                "target": transaction_source.ledger_source_label(),
            }
            return JSONResponse(content=payload, status_code=status.HTTP_200_OK)
        except TransactionSourceError as error:
            payload = {
                "status": "degraded",
                "app": "up",
                "source": "down",
                "detail": str(error),
                "target": transaction_source.ledger_source_label(),
            }
            return JSONResponse(content=payload, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

    return router
