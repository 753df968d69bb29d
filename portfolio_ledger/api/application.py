"""FastAPI application factory for the portfolio ledger service."""

from fastapi import FastAPI

from portfolio_ledger.config import AppSettings
from portfolio_ledger.ledger import PortfolioLedgerService, TransactionSourcePort

from .routers import api_create_health_router, api_create_portfolio_router


def create_api_application(
    settings: AppSettings,
    transaction_source: TransactionSourcePort,
    ledger_service: PortfolioLedgerService,
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated application settings used for runtime metadata.
        transaction_source: Transaction log source used by health endpoints.
        ledger_service: Portfolio derivation service used by portfolio endpoints.

    Returns:
        FastAPI: Framework application instance.

    Raises:
        ValueError: Raised when router dependencies are invalid.
    """
    application = FastAPI(title="Portfolio Ledger")

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str]:
        """Return a minimal index response for bootstrap verification.

        Returns:
            dict[str, str]: Service identification payload.

        Raises:
            RuntimeError: Raised if route handler cannot produce a response.
        """

        return {
            "service": "portfolio-ledger",
            "status": "ready",
            "environment": settings.environment_name,
        }

    application.include_router(api_create_health_router(transaction_source=transaction_source))
    application.include_router(api_create_portfolio_router(settings=settings, ledger_service=ledger_service))

    return application
