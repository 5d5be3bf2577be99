#!/usr/bin/env python3
"""
Money Primitive Type

Immutable currency value wrapper that uses integer cents internally.
Used wherever an engine amount leaves the engine (display, persistence).
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from .currency import cents_to_amount_str, cents_to_decimal, format_amount, to_cents


@dataclass(frozen=True)
class Money:
    """
    Immutable money value in cents.

    Amounts computed at full Decimal precision enter through from_decimal(),
    which applies half-away-from-zero rounding to the cent.

    Examples:
        >>> share = Money.from_decimal(Decimal("33.333333"))
        >>> str(share)
        '33.33'
        >>> share.format("€")
        '€33.33'
        >>> (share * 3).to_cents()
        9999
    """

    cents: int

    @classmethod
    def from_cents(cls, cents: int) -> "Money":
        """Create Money from cents."""
        return cls(cents=int(cents))

    @classmethod
    def from_decimal(cls, amount: Any) -> "Money":
        """
        Create Money from a full-precision amount.

        Args:
            amount: Decimal, int, float or numeric string; garbage becomes zero

        Returns:
            Money rounded to the cent
        """
        return cls(cents=to_cents(amount))

    @classmethod
    def zero(cls) -> "Money":
        """Zero amount."""
        return cls(cents=0)

    def to_cents(self) -> int:
        """Get value in cents."""
        return self.cents

    def to_decimal(self) -> Decimal:
        """Get value as a two-place Decimal."""
        return cents_to_decimal(self.cents)

    def format(self, symbol: str = "€", decimal_separator: str = ".") -> str:
        """Format with currency symbol and separator."""
        return format_amount(self.to_decimal(), symbol, decimal_separator)

    def abs(self) -> "Money":
        """Return absolute value of Money."""
        return Money(cents=abs(self.cents))

    def __add__(self, other: "Money") -> "Money":
        """Add two Money objects."""
        return Money(cents=self.cents + other.cents)

    def __sub__(self, other: "Money") -> "Money":
        """Subtract two Money objects."""
        return Money(cents=self.cents - other.cents)

    def __mul__(self, scalar: int) -> "Money":
        """Multiply Money by integer scalar."""
        return Money(cents=self.cents * scalar)

    def __lt__(self, other: "Money") -> bool:
        return self.cents < other.cents

    def __le__(self, other: "Money") -> bool:
        return self.cents <= other.cents

    def __gt__(self, other: "Money") -> bool:
        return self.cents > other.cents

    def __ge__(self, other: "Money") -> bool:
        return self.cents >= other.cents

    def __str__(self) -> str:
        """Format as plain amount string."""
        return cents_to_amount_str(self.cents)

    def __repr__(self) -> str:
        return f"Money(cents={self.cents})"
