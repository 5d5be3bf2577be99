#!/usr/bin/env python3
"""Tests for the JSON receipt store and draft store."""

from decimal import Decimal

import pytest

from expenses.receipts.datastore import (
    JsonReceiptStore,
    ReceiptDraftStore,
    ReceiptNotFoundError,
    ReceiptPersistenceError,
)
from expenses.receipts.models import ReceiptSplit, Repayment, SplitStrategy
from tests.fixtures.receipts import item, itemised, total_only


class TestJsonReceiptStore:
    """Test receipt documents on disk."""

    def test_empty_store(self, temp_dir):
        store = JsonReceiptStore(temp_dir / "receipts")

        assert store.receipt_ids() == []
        assert store.last_modified() is None
        assert store.summary_text() == "No receipts found"

    def test_save_assigns_id_and_loads_back(self, receipt_store):
        ws = itemised(item("a", "2", "1.25", excluded=True), discount="10", exclusion_mode=True)

        receipt_id = receipt_store.save(ws)
        loaded = receipt_store.load(receipt_id)

        assert receipt_store.exists(receipt_id)
        assert loaded.receipt_id == receipt_id
        assert loaded.discount == Decimal("10")
        assert loaded.line_items[0].unit_price == Decimal("1.25")
        assert loaded.line_items[0].excluded_from_discount
        assert loaded.repayments == []

    def test_save_replaces_items_and_splits(self, receipt_store):
        ws = total_only("40", split_strategy=SplitStrategy.SHARES, splits=[ReceiptSplit(2, 1), ReceiptSplit(3, 1)])
        receipt_id = receipt_store.save(ws)

        ws.receipt_id = receipt_id
        ws.splits = [ReceiptSplit(3, 2)]
        assert receipt_store.save(ws) == receipt_id

        loaded = receipt_store.load(receipt_id)
        assert [(s.debtor_id, s.shares) for s in loaded.splits] == [(3, 2)]
        assert receipt_store.item_count() == 1

    def test_tentative_receipts_can_be_filtered(self, receipt_store):
        receipt_store.save(total_only("10"), tentative=True)
        receipt_store.save(total_only("20"))

        assert len(receipt_store.load_all()) == 2
        assert [r.manual_total for r in receipt_store.load_all(include_tentative=False)] == [Decimal("20")]

    def test_missing_receipt(self, receipt_store):
        with pytest.raises(ReceiptNotFoundError):
            receipt_store.load("missing")

    def test_corrupt_document(self, receipt_store):
        receipt_store.receipts_dir.mkdir(parents=True, exist_ok=True)
        (receipt_store.receipts_dir / "receipt_bad.json").write_text("{not json")

        with pytest.raises(ReceiptPersistenceError, match="Failed to load receipt bad"):
            receipt_store.load("bad")

    def test_unserializable_field_fails_save(self, receipt_store):
        ws = total_only("10", note=object())

        with pytest.raises(ReceiptPersistenceError, match="Failed to save receipt"):
            receipt_store.save(ws)

        assert receipt_store.receipt_ids() == []

    def test_repayments(self, receipt_store):
        receipt_id = receipt_store.save(total_only("10", split_strategy=SplitStrategy.SHARES))
        assert not receipt_store.has_repayments(receipt_id)

        receipt_store.add_repayment(Repayment(receipt_id=receipt_id, debtor_id=2, note="cash"))
        receipt_store.add_repayment(Repayment(receipt_id=receipt_id, debtor_id=2, note="transfer"))

        rows = receipt_store.load_repayments(receipt_id)
        assert [r.note for r in rows] == ["transfer"]
        assert receipt_store.load(receipt_id).settled_debtor_ids == {2}

        assert receipt_store.delete_repayment(receipt_id, 2)
        assert not receipt_store.delete_repayment(receipt_id, 2)
        assert not receipt_store.has_repayments(receipt_id)

    def test_repayment_for_unknown_receipt(self, receipt_store):
        with pytest.raises(ReceiptNotFoundError):
            receipt_store.add_repayment(Repayment(receipt_id="missing", debtor_id=2))

    def test_delete_removes_repayments(self, receipt_store):
        receipt_id = receipt_store.save(total_only("10"))
        receipt_store.add_repayment(Repayment(receipt_id=receipt_id, debtor_id=2))

        receipt_store.delete(receipt_id)

        assert not receipt_store.exists(receipt_id)
        assert receipt_store.load_repayments() == []

    def test_debtors(self, receipt_store):
        assert receipt_store.debtor_names() == {2: "Alice", 3: "Bob"}


class TestReceiptDraftStore:
    """Test the unsaved new-receipt draft."""

    def test_save_load_clear(self, temp_dir):
        drafts = ReceiptDraftStore(temp_dir / "cache")
        ws = itemised(item("a", "1", "3"))

        assert drafts.load() is None
        drafts.save(ws)

        assert drafts.load() == ws
        drafts.clear()
        assert not drafts.exists()

    def test_unreadable_draft_is_ignored(self, temp_dir):
        drafts = ReceiptDraftStore(temp_dir)
        drafts.draft_file.write_text('{"receipt_format": "bogus"}')

        assert drafts.load() is None
