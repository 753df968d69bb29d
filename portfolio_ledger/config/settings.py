"""Typed runtime settings with dotenv support and startup validation."""

import logging

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_CONFIG_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


class SettingsLoadError(RuntimeError):
    """Raised when runtime settings cannot be loaded or validated."""


class AppSettings(BaseSettings):
    """Application settings for API runtime and ledger derivation.

    Environment variable names map directly to field names in uppercase.
    Example: `transactions_file_path` reads from `TRANSACTIONS_FILE_PATH`.

    Attributes:
        environment_name: Runtime environment label.
        application_host: Host interface for web server binding.
        application_port: Web server port.
        log_level: Root logging level name.
        transactions_file_path: JSON document holding the transaction log.
        default_currency: Currency applied to records without one.
        api_default_limit: Default list endpoint limit.
        api_max_limit: Maximum allowed list endpoint limit.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment_name: str = Field(default="development")
    application_host: str = Field(default="0.0.0.0")
    application_port: int = Field(default=8000, ge=1, le=65535)
    log_level: str = Field(default="INFO")
    transactions_file_path: str = Field(default="transactions.json", min_length=1)
    default_currency: str = Field(default="USD")
    api_default_limit: int = Field(default=50, ge=1)
    api_max_limit: int = Field(default=200, ge=1)

    @field_validator("transactions_file_path")
    @classmethod
    def _validate_non_empty_string(cls, value: str) -> str:
        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError("value must not be blank")
        return stripped_value

    @field_validator("default_currency")
    @classmethod
    def _validate_currency_code(cls, value: str) -> str:
        normalized_value = value.strip().upper()
        if len(normalized_value) != 3 or not normalized_value.isalpha():
            raise ValueError("default_currency must be a 3-letter ISO 4217 code")
        return normalized_value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized_value = value.strip().upper()
        if normalized_value not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"unsupported log_level={value}")
        return normalized_value

    @field_validator("api_max_limit")
    @classmethod
    def _validate_limit_bounds(cls, value: int, info) -> int:
        default_limit = info.data.get("api_default_limit", 50)
        if value < default_limit:
            raise ValueError("api_max_limit must be greater than or equal to api_default_limit")
        return value


def config_load_settings() -> AppSettings:
    """Load and validate runtime settings from environment and dotenv.

    Returns:
        AppSettings: Validated runtime settings object.

    Raises:
        SettingsLoadError: Raised when required settings are missing or invalid.
    """

    try:
        return AppSettings()
    except ValidationError as error:
        raise SettingsLoadError(
            f"Startup configuration validation failed. Update .env or environment variables. Details: {error}"
        ) from error


def config_configure_logging(settings: AppSettings) -> None:
    """Configure root logging from validated settings.

    Args:
        settings: Validated runtime settings.

    Returns:
        None: Logging is configured as a side effect.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format=_CONFIG_LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
