#!/usr/bin/env python3
"""Tests for per-receipt debt reports and debtor balances."""

from decimal import Decimal

import pytest

from expenses.receipts.debts import DebtDirection, calculate_debtor_balance, receipt_debt_report, stored_receipt_total
from expenses.receipts.models import ReceiptSplit, SplitStrategy
from tests.fixtures.receipts import item, shares_split, stored


class TestReceiptDebtReport:
    """Test the breakdown of a single stored receipt."""

    @pytest.mark.splits
    def test_stored_total_honours_exclusions(self):
        receipt = stored("r1", line_items=[item("a", "1", "10", excluded=True), item("b", "1", "10")], discount="50")

        assert stored_receipt_total(receipt) == Decimal("15")

    @pytest.mark.splits
    def test_shares_report(self):
        receipt = stored(
            "r1",
            manual_total="60",
            split_strategy=SplitStrategy.SHARES,
            own_shares=1,
            splits=[ReceiptSplit(2, 1, "Alice"), ReceiptSplit(3, 1, "Bob")],
            repaid_by=(2,),
        )

        report = receipt_debt_report(receipt)

        assert [(line.label, line.amount, line.is_paid) for line in report.debtors] == [
            ("Alice", Decimal("20"), True),
            ("Bob", Decimal("20"), False),
        ]
        assert report.debtors[0].total_shares == 3
        assert report.owner_share.amount == Decimal("20")
        assert report.outstanding == Decimal("20")

    @pytest.mark.splits
    def test_per_item_report(self):
        receipt = stored(
            "r1",
            line_items=[item("a", "1", "10", debtor_id=2), item("b", "1", "20", debtor_id=2), item("c", "1", "5")],
            split_strategy=SplitStrategy.PER_ITEM,
        )

        report = receipt_debt_report(receipt, {2: "Alice"})

        line = report.debtors[0]
        assert line.amount == Decimal("30")
        assert (line.item_count, line.total_items) == (2, 3)
        assert report.owner_share is None

    @pytest.mark.splits
    def test_to_dict(self):
        receipt = stored("r1", manual_total="10", split_strategy=SplitStrategy.SHARES, own_shares=2, splits=shares_split((2, 1)))

        data = receipt_debt_report(receipt).to_dict()

        assert data["total"] == "10.00"
        assert data["debtors"][0]["amount"] == "3.33"
        assert data["owner_share"] == {"amount": "6.67", "shares": 2, "total_shares": 3}


class TestDebtorBalance:
    """Test balances across receipts."""

    @pytest.mark.splits
    def test_balance_in_both_directions(self):
        receipts = [
            stored("owed-to-me", date="2024-05-01", manual_total="30", split_strategy=SplitStrategy.SHARES, own_shares=1, splits=shares_split((2, 2))),
            stored("i-owe", date="2024-05-03", manual_total="12", payer_debtor_id=2),
            stored(
                "items",
                date="2024-05-02",
                line_items=[item("a", "1", "8", debtor_id=2), item("b", "1", "8", debtor_id=3)],
                split_strategy=SplitStrategy.PER_ITEM,
            ),
        ]

        balance = calculate_debtor_balance(2, receipts)

        assert balance.debt_to_me == Decimal("28")
        assert balance.debt_to_entity == Decimal("12")
        assert balance.net_balance == Decimal("16")
        assert [r.receipt_id for r in balance.receipts] == ["i-owe", "items", "owed-to-me"]
        assert balance.receipts[0].direction == DebtDirection.TO_ENTITY

    @pytest.mark.splits
    def test_settled_and_tentative_receipts_do_not_count(self):
        receipts = [
            stored("settled", manual_total="30", split_strategy=SplitStrategy.SHARES, splits=shares_split((2, 1)), repaid_by=(2,)),
            stored("tentative", manual_total="50", split_strategy=SplitStrategy.SHARES, splits=shares_split((2, 1)), is_tentative=True),
        ]

        balance = calculate_debtor_balance(2, receipts)

        assert balance.debt_to_me == 0
        assert [r.receipt_id for r in balance.receipts] == ["settled"]
        assert balance.receipts[0].is_settled

    @pytest.mark.splits
    def test_unrelated_debtor(self):
        receipts = [stored("r1", manual_total="30", split_strategy=SplitStrategy.SHARES, splits=shares_split((3, 1)))]

        balance = calculate_debtor_balance(2, receipts)

        assert balance.receipts == ()
        assert balance.to_dict()["net_balance"] == "0.00"
