#!/usr/bin/env python3
"""
Currency Arithmetic and Formatting Utilities

Currency-safe scalar helpers shared by the receipt engine.

Key Principles:
- Never use binary floating-point for currency calculations
- Keep full Decimal precision internally, round only for display/persistence
- Rounding is half-away-from-zero to two decimal places (cents)
- Garbage inputs (None, NaN, Infinity, unparsable strings) coerce to zero
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable

CENT = Decimal("0.01")
ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Tolerance used when checking that split amounts add back up to a total
DEFAULT_EPSILON = CENT


def to_decimal(value: Any) -> Decimal:
    """
    Coerce any user or storage value to a finite Decimal.

    Args:
        value: Decimal, int, float, string like "12.34" / "$1,234.56", or None

    Returns:
        Finite Decimal, Decimal(0) for anything that isn't a usable number

    Examples:
        to_decimal("12.5") -> Decimal("12.5")
        to_decimal(None) -> Decimal("0")
        to_decimal(float("nan")) -> Decimal("0")
    """
    if value is None or isinstance(value, bool):
        return ZERO

    try:
        if isinstance(value, Decimal):
            result = value
        elif isinstance(value, int):
            result = Decimal(value)
        elif isinstance(value, float):
            result = Decimal(str(value))
        else:
            clean_str = str(value).replace("$", "").replace("€", "").replace(",", "").strip()
            if not clean_str:
                return ZERO
            result = Decimal(clean_str)
    except (ValueError, TypeError, InvalidOperation):
        return ZERO

    if not result.is_finite():
        return ZERO
    return result


def round2(value: Any) -> Decimal:
    """
    Round to two decimal places, half away from zero.

    Every monetary output of the engine goes through this before it is
    displayed or persisted.

    Examples:
        round2(Decimal("2.345")) -> Decimal("2.35")
        round2(Decimal("-2.345")) -> Decimal("-2.35")
        round2(None) -> Decimal("0.00")
    """
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(value: Any) -> int:
    """Convert an amount to integer cents after round2."""
    return int(round2(value) * 100)


def cents_to_decimal(cents: int) -> Decimal:
    """Convert integer cents to a two-place Decimal."""
    return (Decimal(int(cents)) / HUNDRED).quantize(CENT)


def cents_to_amount_str(cents: int, decimal_separator: str = ".") -> str:
    """
    Convert cents to an amount string using pure integer arithmetic.

    Example:
        cents_to_amount_str(4599) -> "45.99"
        cents_to_amount_str(-5, ",") -> "-0,05"
    """
    is_negative = cents < 0
    abs_cents = abs(int(cents))

    whole = abs_cents // 100
    remainder = abs_cents % 100

    text = f"{whole}{decimal_separator}{remainder:02d}"
    return f"-{text}" if is_negative else text


def format_amount(value: Any, symbol: str = "€", decimal_separator: str = ".") -> str:
    """
    Format an amount for display.

    Args:
        value: Any amount accepted by to_decimal
        symbol: Currency symbol prefix
        decimal_separator: "." or ","

    Returns:
        String like "€12.34" or "-€0,50"
    """
    cents = to_cents(value)
    text = cents_to_amount_str(abs(cents), decimal_separator)
    if cents < 0:
        return f"-{symbol}{text}"
    return f"{symbol}{text}"


def percentage_factor(discount_pct: Any) -> Decimal:
    """Multiplier that applies a discount percentage: 1 - pct/100."""
    return 1 - to_decimal(discount_pct) / HUNDRED


def sum_amounts(amounts: Iterable[Any]) -> Decimal:
    """Sum amounts at full precision."""
    total = ZERO
    for amount in amounts:
        total += to_decimal(amount)
    return total


def amounts_match(left: Any, right: Any, epsilon: Decimal = DEFAULT_EPSILON) -> bool:
    """Check two amounts are equal within the currency rounding epsilon."""
    return abs(to_decimal(left) - to_decimal(right)) <= epsilon


def validate_sum_equals_total(amounts: Iterable[Any], total: Any, epsilon: Decimal = DEFAULT_EPSILON) -> bool:
    """
    Validate that allocated amounts add back up to the total.

    Args:
        amounts: Allocated amounts (owner + debtors)
        total: Expected total
        epsilon: Allowed difference (default: one cent)

    Returns:
        True if the sum matches within tolerance
    """
    return amounts_match(sum_amounts(amounts), total, epsilon)


def safe_divide(numerator: Any, denominator: Any) -> Decimal:
    """Divide at full precision, returning zero instead of raising on a zero denominator."""
    denominator_value = to_decimal(denominator)
    if denominator_value == 0:
        return ZERO
    return to_decimal(numerator) / denominator_value
