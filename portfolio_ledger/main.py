"""Main module entrypoint for local runtime execution.

This module validates startup configuration and either launches the FastAPI
service or derives the portfolio once and prints it as JSON.
"""

import argparse
import json
import logging

import uvicorn

from portfolio_ledger.api.routers.portfolio import api_serialize_portfolio_state
from portfolio_ledger.bootstrap import bootstrap_create_application, bootstrap_create_ledger_service
from portfolio_ledger.config import config_configure_logging, config_load_settings
from portfolio_ledger.domain import TransactionSourceError, TransactionValidationError

logger = logging.getLogger(__name__)


def main() -> None:
    """Run selected runtime command with validated startup configuration.

    Returns:
        None: This function does not return a runtime value.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
    """

    argument_parser = argparse.ArgumentParser(description="Portfolio ledger runtime entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="api",
        choices=("api", "derive"),
        help="Runtime command: `api` starts server, `derive` prints the derived portfolio state as JSON",
        type=str,
    )
    argument_parser.add_argument(
        "--input",
        dest="input_path",
        type=str,
        help="Optional transaction JSON file override for `derive`",
    )
    parsed_arguments = argument_parser.parse_args()

    settings = config_load_settings()
    config_configure_logging(settings)

    if parsed_arguments.command == "derive":
        ledger_service = bootstrap_create_ledger_service(settings, transactions_file_path=parsed_arguments.input_path)
        try:
            state = ledger_service.ledger_derive()
        except (TransactionSourceError, TransactionValidationError) as error:
            logger.error("derivation from %s failed: %s", ledger_service.ledger_source_label(), error)
            raise SystemExit(1) from error
        print(json.dumps(api_serialize_portfolio_state(state), indent=2))
        return

    application = bootstrap_create_application(settings)
    uvicorn.run(
        application,
        host=settings.application_host,
        port=settings.application_port,
    )


if __name__ == "__main__":
    main()
