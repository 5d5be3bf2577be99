#!/usr/bin/env python3
"""
Receipt Validation

Field-level checks run before a working set may be saved. Errors are
returned as a mapping of field name to message; an empty mapping means the
receipt can be persisted.
"""

from ..core.currency import to_decimal
from .models import ReceiptFormat, SplitStrategy
from .working_set import ReceiptWorkingSet


class ReceiptValidationError(Exception):
    """Raised when a working set fails validation on save."""

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        details = "; ".join(f"{name}: {message}" for name, message in errors.items())
        super().__init__(f"Receipt validation failed: {details}")


def validate_working_set(working_set: ReceiptWorkingSet) -> dict[str, str]:
    """
    Validate a working set for saving.

    Args:
        working_set: Receipt editing state

    Returns:
        Mapping of field name to error message (empty when valid)
    """
    errors: dict[str, str] = {}

    if not working_set.store_id:
        errors["store_id"] = "Store is required."
    if working_set.receipt_date is None:
        errors["receipt_date"] = "Date is required."

    if working_set.receipt_format == ReceiptFormat.ITEMISED:
        if not working_set.line_items:
            errors["line_items"] = "At least one line item is required."

        discount = to_decimal(working_set.discount)
        if discount < 0 or discount > 100:
            errors["discount"] = "Must be 0-100."

        for item in working_set.line_items:
            if to_decimal(item.quantity) <= 0:
                errors[f"qty_{item.key}"] = "Must be > 0"
            if to_decimal(item.unit_price) < 0:
                errors[f"price_{item.key}"] = "Cannot be negative"
    elif to_decimal(working_set.manual_total) <= 0:
        errors["manual_total"] = "Total must be greater than 0."

    if working_set.split_strategy == SplitStrategy.SHARES:
        if working_set.own_shares < 0:
            errors["own_shares"] = "Cannot be negative"
        seen: set[int] = set()
        for split in working_set.splits:
            if split.shares < 1:
                errors[f"split_{split.debtor_id}"] = "Must be at least 1 share"
            if split.debtor_id in seen:
                errors[f"split_{split.debtor_id}"] = "Debtor is listed more than once"
            seen.add(split.debtor_id)
        if working_set.assigned_debtor_ids:
            errors["split_strategy"] = "Line items can't carry debtors in shares mode."
    elif working_set.split_strategy == SplitStrategy.PER_ITEM:
        if working_set.receipt_format != ReceiptFormat.ITEMISED:
            errors["split_strategy"] = "Per-item splitting needs an itemised receipt."
        elif working_set.splits:
            errors["split_strategy"] = "Share rows can't be kept in per-item mode."

    if not working_set.payer_is_self and working_set.split_strategy != SplitStrategy.NONE:
        errors["payer"] = "A receipt paid by someone else can't be split."

    return errors
