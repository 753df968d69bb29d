"""Application bootstrap wiring for startup validation and dependency assembly."""

from fastapi import FastAPI

from portfolio_ledger.api import create_api_application
from portfolio_ledger.config import AppSettings, config_configure_logging, config_load_settings
from portfolio_ledger.ledger import JsonFileTransactionSource, PortfolioLedgerService


def bootstrap_create_ledger_service(
    settings: AppSettings,
    transactions_file_path: str | None = None,
) -> PortfolioLedgerService:
    """Build the derivation service over the configured JSON transaction file.

    Args:
        settings: Validated runtime settings.
        transactions_file_path: Optional override for the configured file path.

    Returns:
        PortfolioLedgerService: Wired derivation service.

    Raises:
        ValueError: Raised when the file path is blank.
    """

    transaction_source = JsonFileTransactionSource(transactions_file_path or settings.transactions_file_path)
    return PortfolioLedgerService(source=transaction_source, default_currency=settings.default_currency)


def bootstrap_create_application(settings: AppSettings | None = None) -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    Args:
        settings: Already loaded settings. When omitted, settings are loaded from
            the environment and logging is configured here.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    if settings is None:
        settings = config_load_settings()
        config_configure_logging(settings)
    transaction_source = JsonFileTransactionSource(settings.transactions_file_path)
    ledger_service = PortfolioLedgerService(source=transaction_source, default_currency=settings.default_currency)
    return create_api_application(
        settings=settings,
        transaction_source=transaction_source,
        ledger_service=ledger_service,
    )
