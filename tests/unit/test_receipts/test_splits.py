#!/usr/bin/env python3
"""Tests for the split allocation engine."""

from decimal import Decimal

import pytest

from expenses.core.config import Config, DebtConfig, Environment
from expenses.core.currency import round2, sum_amounts
from expenses.receipts.models import ReceiptSplit, SplitStrategy
from expenses.receipts.splits import allocate_per_item, allocate_shares, calculate_total_shares, compute_debt_summary
from tests.fixtures.receipts import item, itemised, shares_split, total_only


def _config(tmp_path, debt_enabled: bool = True) -> Config:
    return Config(
        environment=Environment.TEST,
        data_dir=tmp_path,
        receipts_dir=tmp_path / "receipts",
        cache_dir=tmp_path / "cache",
        debt=DebtConfig(enabled=debt_enabled),
    )


class TestSharesAllocation:
    """Test proportional splitting by share counts."""

    @pytest.mark.splits
    def test_shares_one_one_two(self):
        summary = allocate_shares(Decimal("100"), 0, shares_split((2, 1), (3, 1), (4, 2)))

        assert [entry.amount for entry in summary.entries] == [Decimal("25"), Decimal("25"), Decimal("50")]
        assert summary.owner_amount is None
        assert summary.total_shares == 4
        assert summary.debtor_total == Decimal("100")

    @pytest.mark.splits
    def test_owner_share_reported_when_owner_has_shares(self):
        summary = allocate_shares(Decimal("90"), 1, shares_split((2, 1), (3, 1)))

        assert summary.owner_amount == Decimal("30")
        assert summary.amount_for(2) == Decimal("30")
        assert summary.is_balanced()

    @pytest.mark.splits
    def test_thirds_sum_back_to_total_before_rounding(self):
        summary = allocate_shares(Decimal("100"), 1, shares_split((2, 1), (3, 1)))

        assert summary.is_balanced()
        assert round2(summary.amount_for(2)) == Decimal("33.33")
        # Leftover cent is not redistributed
        rounded = sum_amounts([round2(summary.owner_amount)] + [round2(e.amount) for e in summary.entries])
        assert rounded == Decimal("99.99")

    @pytest.mark.splits
    def test_zero_total_shares_is_not_computed(self):
        summary = allocate_shares(Decimal("100"), 0, [])

        assert summary.computed is False
        assert summary.entries == ()
        assert summary.total_shares == 0

    @pytest.mark.splits
    def test_duplicate_debtor_rows_are_merged(self):
        summary = allocate_shares(Decimal("100"), 0, shares_split((2, 1), (3, 2), (2, 1)))

        assert [entry.debtor_id for entry in summary.entries] == [2, 3]
        assert summary.amount_for(2) == Decimal("50")
        assert summary.entries[0].shares == 2

    @pytest.mark.splits
    def test_labels(self):
        splits = [ReceiptSplit(2, 1, "Alice"), ReceiptSplit(3, 1), ReceiptSplit(5, 1)]

        summary = allocate_shares(Decimal("30"), 0, splits, {3: "Bob"})

        assert [entry.label for entry in summary.entries] == ["Alice", "Bob", "Debtor 5"]

    @pytest.mark.splits
    def test_calculate_total_shares(self):
        assert calculate_total_shares(2, shares_split((2, 1), (3, 3))) == 6
        assert calculate_total_shares(None, []) == 0


class TestPerItemAllocation:
    """Test splitting by assigned line items."""

    @pytest.mark.splits
    def test_assigned_items_accumulate_per_debtor(self):
        items = [item("a", "1", "10", debtor_id=2), item("b", "1", "20", debtor_id=2), item("c", "1", "5")]

        summary = allocate_per_item(items, 0, False)

        assert summary.amount_for(2) == Decimal("30")
        assert summary.entries[0].item_count == 2
        assert len(summary.entries) == 1
        assert summary.owner_amount is None

    @pytest.mark.splits
    def test_discount_and_exclusions_apply_per_item(self):
        items = [item("a", "1", "10", debtor_id=2, excluded=True), item("b", "1", "20", debtor_id=3)]

        summary = allocate_per_item(items, Decimal("50"), True)

        assert summary.amount_for(2) == Decimal("10")
        assert summary.amount_for(3) == Decimal("10")

    @pytest.mark.splits
    def test_discovery_order(self):
        items = [item("a", "1", "1", debtor_id=4), item("b", "1", "1", debtor_id=2), item("c", "1", "1", debtor_id=4)]

        summary = allocate_per_item(items, 0, False)

        assert [entry.debtor_id for entry in summary.entries] == [4, 2]


class TestComputeDebtSummary:
    """Test the working-set level entry point."""

    @pytest.mark.splits
    def test_no_split_owner_carries_total(self, sample_line_items):
        summary = compute_debt_summary(itemised(*sample_line_items))

        assert summary.strategy == SplitStrategy.NONE
        assert summary.owner_amount == Decimal("35")
        assert summary.entries == ()

    @pytest.mark.splits
    def test_shares_uses_discounted_total(self, sample_line_items):
        ws = itemised(*sample_line_items, discount="20", split_strategy=SplitStrategy.SHARES, own_shares=1)
        ws.splits = shares_split((2, 1))

        summary = compute_debt_summary(ws)

        assert summary.total == Decimal("28")
        assert summary.amount_for(2) == Decimal("14")
        assert summary.owner_amount == Decimal("14")

    @pytest.mark.splits
    def test_shares_without_any_shares_is_empty(self):
        ws = total_only("50", split_strategy=SplitStrategy.SHARES)

        summary = compute_debt_summary(ws)

        assert summary.computed is False
        assert summary.entries == ()
        assert summary.owner_amount is None

    @pytest.mark.splits
    def test_per_item_on_total_only_receipt_is_empty(self):
        ws = total_only("50", split_strategy=SplitStrategy.PER_ITEM)

        assert compute_debt_summary(ws).entries == ()

    @pytest.mark.splits
    def test_debt_module_disabled(self, tmp_path):
        ws = total_only("50", split_strategy=SplitStrategy.SHARES, own_shares=1)
        ws.splits = shares_split((2, 1))

        summary = compute_debt_summary(ws, _config(tmp_path, debt_enabled=False))

        assert summary.computed is False
        assert summary.entries == ()

    @pytest.mark.splits
    def test_idempotent(self, sample_line_items):
        ws = itemised(*sample_line_items, split_strategy=SplitStrategy.SHARES, own_shares=2)
        ws.splits = shares_split((2, 1), (3, 3))

        assert compute_debt_summary(ws) == compute_debt_summary(ws)


class TestDebtSummaryOutput:
    """Test rounded output forms."""

    @pytest.mark.splits
    def test_to_dict_rounds(self):
        summary = allocate_shares(Decimal("100"), 1, shares_split((2, 1), (3, 1)))

        data = summary.to_dict()

        assert data["strategy"] == "total_split"
        assert data["owner_amount"] == "33.33"
        assert [entry["amount"] for entry in data["entries"]] == ["33.33", "33.33"]

    @pytest.mark.splits
    def test_display_lines(self):
        summary = allocate_shares(Decimal("10"), 1, [ReceiptSplit(2, 1, "Alice")])

        assert summary.display_lines(decimal_separator=",") == [("Alice", "€5,00"), ("You", "€5,00")]
