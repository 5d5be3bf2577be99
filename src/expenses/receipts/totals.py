#!/usr/bin/env python3
"""
Receipt Total Calculator

Aggregates line items (or takes the manual total) into subtotal, discount and
total figures. Pure: the same working set always yields an equal result, so it
is safe to recompute after every keystroke.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Sequence

from ..core.currency import ZERO, to_decimal
from ..core.money import Money
from .models import LineItem, ReceiptFormat
from .valuation import gross_value, net_value
from .working_set import ReceiptWorkingSet


@dataclass(frozen=True)
class ReceiptTotals:
    """
    Totals for a receipt at full precision.

    `total` is the post-discount amount that splitting divides; `subtotal` is
    the pre-discount amount shown alongside it.
    """

    subtotal: Decimal
    total: Decimal
    item_count: int = 0
    total_quantity: Decimal = ZERO

    @property
    def discount_amount(self) -> Decimal:
        return self.subtotal - self.total

    def to_money(self) -> dict[str, Money]:
        """Rounded figures for display or persistence."""
        return {
            "subtotal": Money.from_decimal(self.subtotal),
            "discount": Money.from_decimal(self.discount_amount),
            "total": Money.from_decimal(self.total),
        }


def calculate_subtotal(items: Sequence[LineItem]) -> Decimal:
    """Sum of gross line values."""
    return sum((gross_value(item) for item in items), ZERO)


def calculate_discounted_total(items: Sequence[LineItem], discount_pct: Any, exclusion_mode_active: bool) -> Decimal:
    """Sum of net line values."""
    return sum((net_value(item, discount_pct, exclusion_mode_active) for item in items), ZERO)


def calculate_totals_for(
    receipt_format: ReceiptFormat,
    items: Sequence[LineItem],
    discount_pct: Any,
    exclusion_mode_active: bool,
    manual_total: Any,
) -> ReceiptTotals:
    """
    Calculate totals from the individual receipt inputs.

    Args:
        receipt_format: Itemised or total-only
        items: Line items (ignored for total-only receipts)
        discount_pct: Discount percentage (ignored for total-only receipts)
        exclusion_mode_active: Whether exclusion flags are honored
        manual_total: Entered total (ignored for itemised receipts)

    Returns:
        ReceiptTotals
    """
    if receipt_format == ReceiptFormat.TOTAL_ONLY:
        total = to_decimal(manual_total)
        return ReceiptTotals(subtotal=total, total=total)

    return ReceiptTotals(
        subtotal=calculate_subtotal(items),
        total=calculate_discounted_total(items, discount_pct, exclusion_mode_active),
        item_count=len(items),
        total_quantity=sum((to_decimal(item.quantity) for item in items), ZERO),
    )


def calculate_totals(working_set: ReceiptWorkingSet) -> ReceiptTotals:
    """Calculate totals for a working set."""
    return calculate_totals_for(
        working_set.receipt_format,
        working_set.line_items,
        working_set.effective_discount,
        working_set.exclusion_mode,
        working_set.manual_total,
    )
