"""Tests for runtime settings validation and loading."""

import pytest
from pydantic import ValidationError

from portfolio_ledger.config import AppSettings, SettingsLoadError, config_load_settings


def test_settings_normalize_currency_and_log_level(monkeypatch: pytest.MonkeyPatch) -> None:
    """Normalize currency and log level read from the environment.

    Returns:
        None: Assertions validate normalized values.

    Raises:
        AssertionError: Raised when normalization deviates.
    """

    monkeypatch.setenv("DEFAULT_CURRENCY", " eur ")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("TRANSACTIONS_FILE_PATH", " data/log.json ")

    settings = config_load_settings()

    assert settings.default_currency == "EUR"
    assert settings.log_level == "DEBUG"
    assert settings.transactions_file_path == "data/log.json"


def test_settings_reject_limit_below_default() -> None:
    """Reject a max limit smaller than the default limit.

    Returns:
        None: Assertions validate raised error.

    Raises:
        AssertionError: Raised when invalid settings are accepted.
    """

    with pytest.raises(ValidationError):
        AppSettings(api_default_limit=100, api_max_limit=10)


def test_settings_load_wraps_validation_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    """Wrap invalid environment values in `SettingsLoadError`.

    Returns:
        None: Assertions validate wrapped error.

    Raises:
        AssertionError: Raised when invalid configuration is accepted.
    """

    monkeypatch.setenv("LOG_LEVEL", "chatty")

    with pytest.raises(SettingsLoadError) as error_info:
        config_load_settings()
    assert "log_level" in str(error_info.value)
