#!/usr/bin/env python3
"""
Receipt Domain Models

Type-safe models for receipts, line items, splits, debtors and repayments.
Quantities and amounts are Decimal; persisted documents store them as strings.
"""

import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from ..core.currency import to_decimal
from ..core.dates import FinancialDate


class ReceiptFormat(Enum):
    """How a receipt's amount is entered."""

    ITEMISED = "itemised"
    TOTAL_ONLY = "total_only"


class SplitStrategy(Enum):
    """How a receipt's cost is divided between the owner and debtors."""

    NONE = "none"
    SHARES = "total_split"
    PER_ITEM = "line_item"


class ReceiptStatus(Enum):
    """Whether the owner paid the receipt or owes it to a debtor."""

    PAID = "paid"
    UNPAID = "unpaid"


def new_key() -> str:
    """Opaque identity key for a line item or split within a session."""
    return uuid.uuid4().hex[:12]


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


@dataclass
class Debtor:
    """A person, other than the owner, who may owe part of an expense."""

    id: int
    name: str
    is_active: bool = True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Debtor":
        return cls(id=int(data["id"]), name=data["name"], is_active=data.get("is_active", True))

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "is_active": self.is_active}


@dataclass
class LineItem:
    """
    One product entry on an itemised receipt.

    Value = quantity × unit_price. The debtor assignment is only meaningful
    in per-item split mode; the exclusion flag only while exclusion mode is on.
    """

    key: str
    quantity: Decimal = Decimal("1")
    unit_price: Decimal = Decimal("0")
    debtor_id: int | None = None
    debtor_name: str | None = None
    excluded_from_discount: bool = False

    # Product display data joined in by the store
    product_id: int | None = None
    product_name: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LineItem":
        """
        Create LineItem from a persisted dictionary.

        Args:
            data: Dictionary with quantity/unit_price as strings or numbers

        Returns:
            LineItem instance (a fresh key is assigned when none is stored)
        """
        return cls(
            key=data.get("key") or new_key(),
            quantity=to_decimal(data.get("quantity", 1)),
            unit_price=to_decimal(data.get("unit_price", 0)),
            debtor_id=_optional_int(data.get("debtor_id")),
            debtor_name=data.get("debtor_name"),
            excluded_from_discount=bool(data.get("excluded_from_discount", False)),
            product_id=_optional_int(data.get("product_id")),
            product_name=data.get("product_name"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "quantity": str(self.quantity),
            "unit_price": str(self.unit_price),
            "debtor_id": self.debtor_id,
            "debtor_name": self.debtor_name,
            "excluded_from_discount": self.excluded_from_discount,
            "product_id": self.product_id,
            "product_name": self.product_name,
        }


@dataclass
class ReceiptSplit:
    """A debtor's share count in shares split mode."""

    debtor_id: int
    shares: int = 1
    debtor_name: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReceiptSplit":
        return cls(
            debtor_id=int(data["debtor_id"]),
            shares=int(data.get("shares", 1)),
            debtor_name=data.get("debtor_name"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"debtor_id": self.debtor_id, "shares": self.shares, "debtor_name": self.debtor_name}


@dataclass
class Repayment:
    """A debtor paying back their portion of a receipt."""

    receipt_id: str
    debtor_id: int
    paid_date: FinancialDate | None = None
    payment_method_id: int | None = None
    note: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Repayment":
        paid_date = data.get("paid_date")
        return cls(
            receipt_id=str(data["receipt_id"]),
            debtor_id=int(data["debtor_id"]),
            paid_date=FinancialDate.from_string(paid_date) if paid_date else None,
            payment_method_id=_optional_int(data.get("payment_method_id")),
            note=data.get("note", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "receipt_id": self.receipt_id,
            "debtor_id": self.debtor_id,
            "paid_date": self.paid_date.to_iso_string() if self.paid_date else None,
            "payment_method_id": self.payment_method_id,
            "note": self.note,
        }


@dataclass
class StoredReceipt:
    """
    A receipt as persisted, with its line items, splits and repayments.

    This is the row set the persistence collaborator hands back on load.
    """

    receipt_id: str
    store_id: int | None
    receipt_date: FinancialDate | None
    receipt_format: ReceiptFormat = ReceiptFormat.ITEMISED
    discount: Decimal = Decimal("0")
    manual_total: Decimal = Decimal("0")
    split_strategy: SplitStrategy = SplitStrategy.NONE
    own_shares: int = 0
    total_shares: int | None = None
    status: ReceiptStatus = ReceiptStatus.PAID
    payer_debtor_id: int | None = None
    payment_method_id: int | None = None
    note: str = ""
    is_tentative: bool = False
    line_items: list[LineItem] = field(default_factory=list)
    splits: list[ReceiptSplit] = field(default_factory=list)
    repayments: list[Repayment] = field(default_factory=list)

    @property
    def settled_debtor_ids(self) -> set[int]:
        """Debtors that have paid back their portion of this receipt."""
        return {r.debtor_id for r in self.repayments}

    @classmethod
    def from_dict(cls, data: dict[str, Any], repayments: list[Repayment] | None = None) -> "StoredReceipt":
        """
        Create StoredReceipt from a persisted receipt document.

        Args:
            data: Receipt document (see to_dict)
            repayments: Repayment rows referencing this receipt

        Returns:
            StoredReceipt instance
        """
        receipt_date = data.get("receipt_date")
        return cls(
            receipt_id=str(data["receipt_id"]),
            store_id=_optional_int(data.get("store_id")),
            receipt_date=FinancialDate.from_string(receipt_date) if receipt_date else None,
            receipt_format=ReceiptFormat(data.get("receipt_format", ReceiptFormat.ITEMISED.value)),
            discount=to_decimal(data.get("discount", 0)),
            manual_total=to_decimal(data.get("manual_total", 0)),
            split_strategy=SplitStrategy(data.get("split_strategy") or SplitStrategy.NONE.value),
            own_shares=int(data.get("own_shares") or 0),
            total_shares=_optional_int(data.get("total_shares")),
            status=ReceiptStatus(data.get("status", ReceiptStatus.PAID.value)),
            payer_debtor_id=_optional_int(data.get("payer_debtor_id")),
            payment_method_id=_optional_int(data.get("payment_method_id")),
            note=data.get("note", ""),
            is_tentative=bool(data.get("is_tentative", False)),
            line_items=[LineItem.from_dict(item) for item in data.get("line_items", [])],
            splits=[ReceiptSplit.from_dict(split) for split in data.get("splits", [])],
            repayments=list(repayments or []),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a receipt document. Repayments are stored separately."""
        return {
            "receipt_id": self.receipt_id,
            "store_id": self.store_id,
            "receipt_date": self.receipt_date.to_iso_string() if self.receipt_date else None,
            "receipt_format": self.receipt_format.value,
            "discount": str(self.discount),
            "manual_total": str(self.manual_total),
            "split_strategy": self.split_strategy.value,
            "own_shares": self.own_shares,
            "total_shares": self.total_shares,
            "status": self.status.value,
            "payer_debtor_id": self.payer_debtor_id,
            "payment_method_id": self.payment_method_id,
            "note": self.note,
            "is_tentative": self.is_tentative,
            "line_items": [item.to_dict() for item in self.line_items],
            "splits": [split.to_dict() for split in self.splits],
        }
