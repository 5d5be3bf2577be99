"""
Core Utilities Package

Shared primitives used by the receipt engine.

This package provides:
- Currency arithmetic with Decimal precision and half-away-from-zero rounding
- Money and FinancialDate value types
- Configuration management for environment-specific settings
- JSON file helpers
"""

from .config import (
    Config,
    DebtConfig,
    Environment,
    FormattingConfig,
    PaymentMethodsConfig,
    get_config,
    get_data_dir,
    is_test,
    reload_config,
)
from .currency import (
    amounts_match,
    format_amount,
    round2,
    safe_divide,
    to_cents,
    to_decimal,
    validate_sum_equals_total,
)
from .dates import FinancialDate
from .money import Money

__all__ = [
    # Configuration
    "Config",
    "DebtConfig",
    "Environment",
    "FormattingConfig",
    "PaymentMethodsConfig",
    "get_config",
    "get_data_dir",
    "is_test",
    "reload_config",
    # Primitives
    "FinancialDate",
    "Money",
    # Currency utilities
    "amounts_match",
    "format_amount",
    "round2",
    "safe_divide",
    "to_cents",
    "to_decimal",
    "validate_sum_equals_total",
]
