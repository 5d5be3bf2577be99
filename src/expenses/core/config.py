#!/usr/bin/env python3
"""
Configuration Management for the Expense Tracker

Handles environment-based configuration with defaults and validation.
Module toggles (debt tracking, payment methods) and display formatting are
carried here and threaded explicitly into the receipt engine's entry points.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Environment(Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


@dataclass
class DebtConfig:
    """Shared-expense debt tracking module."""

    enabled: bool = True


@dataclass
class PaymentMethodsConfig:
    """Payment methods module."""

    enabled: bool = True
    # Cash
    default_method_id: int = 1


@dataclass
class FormattingConfig:
    """Display formatting for amounts."""

    currency_symbol: str = "€"
    decimal_separator: str = "."


@dataclass
class Config:
    """
    Main configuration class for the expenses application.

    Loads configuration from environment variables with defaults and
    validation for each environment type.
    """

    environment: Environment

    # Core directories
    data_dir: Path
    receipts_dir: Path
    cache_dir: Path

    # Component configurations
    debt: DebtConfig = field(default_factory=DebtConfig)
    payment_methods: PaymentMethodsConfig = field(default_factory=PaymentMethodsConfig)
    formatting: FormattingConfig = field(default_factory=FormattingConfig)

    # Application settings
    debug: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls) -> "Config":
        """Create configuration from environment variables."""
        env = Environment(os.getenv("EXPENSES_ENV", "development"))

        if env == Environment.TEST:
            default_test_dir = Path(tempfile.gettempdir()) / "test_expenses"
            base_dir = Path(os.getenv("EXPENSES_DATA_DIR", str(default_test_dir)))
        else:
            base_dir = Path(os.getenv("EXPENSES_DATA_DIR", "./data")).expanduser().resolve()

        data_dir = base_dir
        receipts_dir = data_dir / "receipts"
        cache_dir = data_dir / "cache"

        # Ensure directories exist
        for directory in [data_dir, receipts_dir, cache_dir]:
            directory.mkdir(parents=True, exist_ok=True)

        debt = DebtConfig(enabled=_parse_bool(os.getenv("EXPENSES_DEBT_ENABLED", "true")))

        payment_methods = PaymentMethodsConfig(
            enabled=_parse_bool(os.getenv("EXPENSES_PAYMENT_METHODS_ENABLED", "true")),
            default_method_id=int(os.getenv("EXPENSES_DEFAULT_PAYMENT_METHOD", "1")),
        )

        formatting = FormattingConfig(
            currency_symbol=os.getenv("EXPENSES_CURRENCY_SYMBOL", "€"),
            decimal_separator=os.getenv("EXPENSES_DECIMAL_SEPARATOR", "."),
        )

        return cls(
            environment=env,
            data_dir=data_dir,
            receipts_dir=receipts_dir,
            cache_dir=cache_dir,
            debt=debt,
            payment_methods=payment_methods,
            formatting=formatting,
            debug=_parse_bool(os.getenv("DEBUG", "false")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> list:
        """Validate configuration and return list of errors."""
        errors = []

        for name, path in [
            ("data_dir", self.data_dir),
            ("receipts_dir", self.receipts_dir),
            ("cache_dir", self.cache_dir),
        ]:
            if not path.exists():
                errors.append(f"{name} does not exist: {path}")

        if self.formatting.decimal_separator not in (".", ","):
            errors.append("Decimal separator must be '.' or ','")

        if self.payment_methods.default_method_id <= 0:
            errors.append("Default payment method ID must be positive")

        if not isinstance(getattr(logging, self.log_level, None), int):
            errors.append(f"Unknown log level: {self.log_level}")

        return errors

    def setup_logging(self) -> None:
        """Configure logging based on configuration."""
        level = getattr(logging, self.log_level, logging.INFO)

        if self.environment == Environment.DEVELOPMENT:
            format_str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            format_str = "%(asctime)s - %(levelname)s - %(message)s"

        logging.basicConfig(level=level, format=format_str, datefmt="%Y-%m-%d %H:%M:%S")

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a plain dictionary for display."""
        result: dict[str, Any] = {}

        for field_name, field_value in self.__dict__.items():
            if hasattr(field_value, "__dict__") and not isinstance(field_value, Enum):
                result[field_name] = dict(field_value.__dict__)
            elif isinstance(field_value, Path):
                result[field_name] = str(field_value)
            elif isinstance(field_value, Enum):
                result[field_name] = field_value.value
            else:
                result[field_name] = field_value

        return result


def _parse_bool(value: str | None) -> bool:
    """Parse an environment flag."""
    if value is None:
        return False
    return value.strip().lower() in ("1", "true", "yes", "on")


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_environment()

        errors = _config.validate()
        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")

        _config.setup_logging()

    return _config


def reload_config() -> Config:
    """Reload configuration from environment (useful for testing)."""
    global _config
    _config = None
    return get_config()


def get_data_dir() -> Path:
    """Get the data directory path."""
    return get_config().data_dir


def is_test() -> bool:
    """Check if running in test environment."""
    return get_config().environment == Environment.TEST
