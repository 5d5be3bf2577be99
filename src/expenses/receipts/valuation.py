#!/usr/bin/env python3
"""
Line Item Valuation

Pre- and post-discount value of a single line item.
"""

from decimal import Decimal
from typing import Any

from ..core.currency import ZERO, percentage_factor, to_decimal
from .models import LineItem


def clamp_non_negative(value: Any) -> Decimal:
    """
    Coerce an edited quantity or unit price.

    Negative entries and unparsable input become zero; nothing is rejected.

    Examples:
        clamp_non_negative("-3") -> Decimal("0")
        clamp_non_negative("abc") -> Decimal("0")
        clamp_non_negative("2.5") -> Decimal("2.5")
    """
    amount = to_decimal(value)
    return amount if amount > 0 else ZERO


def gross_value(item: LineItem) -> Decimal:
    """Quantity × unit price, never discounted."""
    return to_decimal(item.quantity) * to_decimal(item.unit_price)


def net_value(item: LineItem, discount_pct: Any, exclusion_mode_active: bool) -> Decimal:
    """
    Value of a line item after the receipt discount.

    Args:
        item: Line item
        discount_pct: Discount percentage (0-100)
        exclusion_mode_active: Whether per-item exclusion flags are honored

    Returns:
        Gross value if the item is excluded under exclusion mode, otherwise the
        gross value reduced by the discount percentage
    """
    gross = gross_value(item)
    if exclusion_mode_active and item.excluded_from_discount:
        return gross
    return gross * percentage_factor(discount_pct)
