#!/usr/bin/env python3
"""
Integration tests for configuration module.

Tests configuration loading from the environment and directory setup.
"""

from pathlib import Path

import pytest

from expenses.core.config import Config, Environment, get_config, get_data_dir, is_test, reload_config


@pytest.mark.integration
class TestConfigLoading:
    """Test configuration loading and structure."""

    def test_config_loads_successfully(self, tmp_path):
        """Test that config loads from the test environment."""
        config = get_config()

        assert config.environment == Environment.TEST
        assert config.data_dir == tmp_path / "expenses_data"
        assert config.receipts_dir == config.data_dir / "receipts"
        assert config.cache_dir == config.data_dir / "cache"

    def test_directories_are_created(self):
        config = get_config()

        assert config.receipts_dir.is_dir()
        assert config.cache_dir.is_dir()

    def test_defaults(self):
        config = get_config()

        assert config.debt.enabled is True
        assert config.payment_methods.enabled is True
        assert config.payment_methods.default_method_id == 1
        assert config.formatting.currency_symbol == "€"
        assert config.formatting.decimal_separator == "."
        assert config.log_level == "INFO"

    def test_environment_detection(self):
        assert is_test() is True
        assert isinstance(get_data_dir(), Path)

    def test_get_config_is_cached(self):
        assert get_config() is get_config()


@pytest.mark.integration
class TestConfigOverrides:
    """Test module toggles and formatting from environment variables."""

    def test_module_toggles(self, monkeypatch):
        monkeypatch.setenv("EXPENSES_DEBT_ENABLED", "false")
        monkeypatch.setenv("EXPENSES_PAYMENT_METHODS_ENABLED", "0")
        monkeypatch.setenv("EXPENSES_DEFAULT_PAYMENT_METHOD", "3")

        config = reload_config()

        assert config.debt.enabled is False
        assert config.payment_methods.enabled is False
        assert config.payment_methods.default_method_id == 3

    def test_formatting(self, monkeypatch):
        monkeypatch.setenv("EXPENSES_CURRENCY_SYMBOL", "$")
        monkeypatch.setenv("EXPENSES_DECIMAL_SEPARATOR", ",")

        config = reload_config()

        assert config.formatting.currency_symbol == "$"
        assert config.formatting.decimal_separator == ","

    def test_invalid_separator_fails_validation(self, monkeypatch):
        monkeypatch.setenv("EXPENSES_DECIMAL_SEPARATOR", ";")

        errors = Config.from_environment().validate()
        assert any("Decimal separator" in error for error in errors)

        with pytest.raises(ValueError, match="Configuration validation failed"):
            reload_config()

    def test_invalid_log_level_fails_validation(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")

        errors = Config.from_environment().validate()
        assert "Unknown log level: CHATTY" in errors

    def test_to_dict_is_plain(self):
        data = get_config().to_dict()

        assert data["environment"] == "test"
        assert isinstance(data["data_dir"], str)
        assert data["debt"] == {"enabled": True}
        assert data["formatting"]["currency_symbol"] == "€"
