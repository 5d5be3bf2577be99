#!/usr/bin/env python3
"""
Receipt Working Set

The in-memory, session-scoped mutable state of a receipt being created or
edited. Owned by exactly one ReceiptEditor; all business rules about which
changes are allowed live in the editor, the guard and the reconciler.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from ..core.config import PaymentMethodsConfig
from ..core.currency import ZERO, to_decimal
from ..core.dates import FinancialDate
from .models import (
    LineItem,
    ReceiptFormat,
    ReceiptSplit,
    ReceiptStatus,
    SplitStrategy,
    StoredReceipt,
)


@dataclass
class ReceiptWorkingSet:
    """Mutable editing state for one receipt."""

    receipt_id: str | None = None
    store_id: int | None = None
    receipt_date: FinancialDate | None = field(default_factory=FinancialDate.today)
    note: str = ""
    payment_method_id: int | None = None

    # None means the owner paid; otherwise the owner owes this debtor the full total
    payer_debtor_id: int | None = None

    receipt_format: ReceiptFormat = ReceiptFormat.ITEMISED
    manual_total: Decimal = ZERO
    discount: Decimal = ZERO
    exclusion_mode: bool = False
    line_items: list[LineItem] = field(default_factory=list)

    split_strategy: SplitStrategy = SplitStrategy.NONE
    own_shares: int = 0
    splits: list[ReceiptSplit] = field(default_factory=list)

    # Derived from repayment rows at load time
    settled_debtor_ids: set[int] = field(default_factory=set)
    is_tentative: bool = False

    @property
    def payer_is_self(self) -> bool:
        return self.payer_debtor_id is None

    @property
    def is_itemised(self) -> bool:
        return self.receipt_format == ReceiptFormat.ITEMISED

    @property
    def effective_discount(self) -> Decimal:
        """Discount percentage that applies; total-only receipts never discount."""
        if not self.is_itemised:
            return ZERO
        return self.discount

    @property
    def total_shares(self) -> int:
        return int(self.own_shares or 0) + sum(int(split.shares or 0) for split in self.splits)

    @property
    def excluded_keys(self) -> set[str]:
        return {item.key for item in self.line_items if item.excluded_from_discount}

    @property
    def assigned_debtor_ids(self) -> set[int]:
        return {item.debtor_id for item in self.line_items if item.debtor_id is not None}

    def find_item(self, key: str) -> LineItem | None:
        for item in self.line_items:
            if item.key == key:
                return item
        return None

    def find_split(self, debtor_id: int) -> ReceiptSplit | None:
        for split in self.splits:
            if split.debtor_id == debtor_id:
                return split
        return None

    def clear_assignments(self) -> None:
        for item in self.line_items:
            item.debtor_id = None
            item.debtor_name = None

    def clear_exclusions(self) -> None:
        for item in self.line_items:
            item.excluded_from_discount = False
        self.exclusion_mode = False

    def to_stored_receipt(
        self,
        receipt_id: str,
        payment_methods: PaymentMethodsConfig | None = None,
        tentative: bool | None = None,
    ) -> StoredReceipt:
        """
        Build the persisted form of this working set.

        Data belonging to an inactive mode is dropped: total-only receipts carry
        no line items and no discount, itemised receipts no manual total, and
        split rows/assignments are only kept for the strategy that uses them.

        Args:
            receipt_id: Identifier to persist under
            payment_methods: Payment method module settings
            tentative: Override the working set's tentative flag

        Returns:
            StoredReceipt without repayments
        """
        payment_methods = payment_methods or PaymentMethodsConfig()
        itemised = self.is_itemised
        shares_mode = self.split_strategy == SplitStrategy.SHARES
        per_item_mode = self.split_strategy == SplitStrategy.PER_ITEM and itemised

        payment_method_id = None
        if self.payer_is_self:
            if payment_methods.enabled:
                payment_method_id = self.payment_method_id
            else:
                payment_method_id = payment_methods.default_method_id

        line_items = []
        if itemised:
            for item in self.line_items:
                line_items.append(
                    LineItem(
                        key=item.key,
                        quantity=item.quantity,
                        unit_price=item.unit_price,
                        debtor_id=item.debtor_id if per_item_mode else None,
                        debtor_name=item.debtor_name if per_item_mode else None,
                        excluded_from_discount=self.exclusion_mode and item.excluded_from_discount,
                        product_id=item.product_id,
                        product_name=item.product_name,
                    )
                )

        return StoredReceipt(
            receipt_id=receipt_id,
            store_id=self.store_id,
            receipt_date=self.receipt_date,
            receipt_format=self.receipt_format,
            discount=self.discount if itemised else ZERO,
            manual_total=ZERO if itemised else self.manual_total,
            split_strategy=self.split_strategy,
            own_shares=self.own_shares if shares_mode else 0,
            total_shares=self.total_shares if shares_mode else None,
            status=ReceiptStatus.PAID if self.payer_is_self else ReceiptStatus.UNPAID,
            payer_debtor_id=self.payer_debtor_id,
            payment_method_id=payment_method_id,
            note=self.note,
            is_tentative=self.is_tentative if tentative is None else tentative,
            line_items=line_items,
            splits=[ReceiptSplit(s.debtor_id, s.shares, s.debtor_name) for s in self.splits] if shares_mode else [],
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for draft storage."""
        return {
            "receipt_id": self.receipt_id,
            "store_id": self.store_id,
            "receipt_date": self.receipt_date.to_iso_string() if self.receipt_date else None,
            "note": self.note,
            "payment_method_id": self.payment_method_id,
            "payer_debtor_id": self.payer_debtor_id,
            "receipt_format": self.receipt_format.value,
            "manual_total": str(self.manual_total),
            "discount": str(self.discount),
            "exclusion_mode": self.exclusion_mode,
            "line_items": [item.to_dict() for item in self.line_items],
            "split_strategy": self.split_strategy.value,
            "own_shares": self.own_shares,
            "splits": [split.to_dict() for split in self.splits],
            "settled_debtor_ids": sorted(self.settled_debtor_ids),
            "is_tentative": self.is_tentative,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReceiptWorkingSet":
        """Restore a working set serialized with to_dict()."""
        receipt_date = data.get("receipt_date")
        return cls(
            receipt_id=data.get("receipt_id"),
            store_id=data.get("store_id"),
            receipt_date=FinancialDate.from_string(receipt_date) if receipt_date else None,
            note=data.get("note", ""),
            payment_method_id=data.get("payment_method_id"),
            payer_debtor_id=data.get("payer_debtor_id"),
            receipt_format=ReceiptFormat(data.get("receipt_format", ReceiptFormat.ITEMISED.value)),
            manual_total=to_decimal(data.get("manual_total")),
            discount=to_decimal(data.get("discount")),
            exclusion_mode=bool(data.get("exclusion_mode", False)),
            line_items=[LineItem.from_dict(item) for item in data.get("line_items", [])],
            split_strategy=SplitStrategy(data.get("split_strategy", SplitStrategy.NONE.value)),
            own_shares=int(data.get("own_shares") or 0),
            splits=[ReceiptSplit.from_dict(split) for split in data.get("splits", [])],
            settled_debtor_ids=set(data.get("settled_debtor_ids", [])),
            is_tentative=bool(data.get("is_tentative", False)),
        )
