#!/usr/bin/env python3
"""
FinancialDate Primitive Type

Immutable date wrapper with consistent formatting for receipt dates.
"""

from dataclasses import dataclass
from datetime import date, datetime


@dataclass(frozen=True)
class FinancialDate:
    """Immutable financial date wrapper with consistent formatting."""

    date: date

    @classmethod
    def from_string(cls, date_str: str, format: str = "%Y-%m-%d") -> "FinancialDate":
        """
        Parse from string in specified format.

        Args:
            date_str: Date string to parse
            format: Date format (default: ISO format "%Y-%m-%d")

        Returns:
            FinancialDate object

        Raises:
            ValueError: If the string doesn't match the format
        """
        return cls(date=datetime.strptime(date_str, format).date())

    @classmethod
    def today(cls) -> "FinancialDate":
        """Get today's date."""
        return cls(date=date.today())

    def to_iso_string(self) -> str:
        """Format as YYYY-MM-DD."""
        return self.date.isoformat()

    def __str__(self) -> str:
        return self.to_iso_string()
