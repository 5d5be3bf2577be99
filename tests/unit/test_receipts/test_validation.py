#!/usr/bin/env python3
"""Tests for save-time receipt validation."""

from decimal import Decimal

import pytest

from expenses.receipts.models import ReceiptSplit, SplitStrategy
from expenses.receipts.validation import ReceiptValidationError, validate_working_set
from tests.fixtures.receipts import item, itemised, shares_split, total_only


class TestValidateWorkingSet:
    """Test field-level validation errors."""

    @pytest.mark.editor
    def test_valid_itemised_receipt(self):
        assert validate_working_set(itemised(item("a", "1", "2.50"))) == {}

    @pytest.mark.editor
    def test_valid_total_only_receipt(self):
        assert validate_working_set(total_only("12.00")) == {}

    @pytest.mark.editor
    def test_store_and_date_required(self):
        ws = itemised(item("a", "1", "1"), store_id=None, receipt_date=None)

        errors = validate_working_set(ws)

        assert errors["store_id"] == "Store is required."
        assert "receipt_date" in errors

    @pytest.mark.editor
    def test_itemised_needs_items(self):
        assert validate_working_set(itemised())["line_items"] == "At least one line item is required."

    @pytest.mark.editor
    @pytest.mark.parametrize("discount", ["-1", "100.01", "250"])
    def test_discount_range(self, discount):
        errors = validate_working_set(itemised(item("a", "1", "1"), discount=discount))

        assert errors["discount"] == "Must be 0-100."

    @pytest.mark.editor
    def test_discount_bounds_are_inclusive(self):
        assert "discount" not in validate_working_set(itemised(item("a", "1", "1"), discount="100"))
        assert "discount" not in validate_working_set(itemised(item("a", "1", "1"), discount="0"))

    @pytest.mark.editor
    def test_line_item_quantity_and_price(self):
        ws = itemised(item("a", "0", "1"), item("b", "1", "1"))
        ws.line_items[1].unit_price = Decimal("-1")

        errors = validate_working_set(ws)

        assert errors["qty_a"] == "Must be > 0"
        assert "price_b" in errors

    @pytest.mark.editor
    def test_total_only_needs_positive_total(self):
        assert validate_working_set(total_only("0"))["manual_total"] == "Total must be greater than 0."

    @pytest.mark.editor
    def test_shares_rows(self):
        ws = total_only("10", split_strategy=SplitStrategy.SHARES)
        ws.splits = [ReceiptSplit(2, 0), ReceiptSplit(3, 1), ReceiptSplit(3, 1)]

        errors = validate_working_set(ws)

        assert errors["split_2"] == "Must be at least 1 share"
        assert errors["split_3"] == "Debtor is listed more than once"

    @pytest.mark.editor
    def test_per_item_needs_itemised_receipt(self):
        errors = validate_working_set(total_only("10", split_strategy=SplitStrategy.PER_ITEM))

        assert "split_strategy" in errors

    @pytest.mark.editor
    def test_paid_by_someone_else_cannot_be_split(self):
        ws = total_only("10", payer_debtor_id=2, split_strategy=SplitStrategy.SHARES, splits=shares_split((3, 1)))

        assert "payer" in validate_working_set(ws)


class TestReceiptValidationError:
    """Test the exception raised on save."""

    def test_carries_errors(self):
        error = ReceiptValidationError({"store_id": "Store is required."})

        assert error.errors == {"store_id": "Store is required."}
        assert "store_id: Store is required." in str(error)
