#!/usr/bin/env python3
"""
Debt Reports for Stored Receipts

Read-only reporting over persisted receipts:
- per-receipt report: what each debtor owes, whether they've paid, and the
  owner's own share
- per-debtor balance across receipts: what I owe them (receipts they paid),
  what they owe me (their shares or items on my receipts), and the net

Tentative receipts never count towards balances; settled debts are listed
but not summed.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Mapping

from ..core.currency import round2, sum_amounts
from ..core.dates import FinancialDate
from .models import ReceiptFormat, ReceiptStatus, SplitStrategy, StoredReceipt
from .splits import DebtSummary, allocate_per_item, allocate_shares
from .totals import calculate_totals_for


class DebtDirection(Enum):
    """Who owes whom on a receipt."""

    TO_ENTITY = "to_entity"
    TO_ME = "to_me"


def stored_receipt_total(stored: StoredReceipt) -> Decimal:
    """Discounted total of a persisted receipt."""
    # Exclusion flags are only persisted while exclusion mode was on
    return calculate_totals_for(
        stored.receipt_format,
        stored.line_items,
        stored.discount,
        True,
        stored.manual_total,
    ).total


def stored_debt_summary(stored: StoredReceipt, debtor_names: Mapping[int, str] | None = None) -> DebtSummary:
    """Debt summary of a persisted receipt under its saved split strategy."""
    total = stored_receipt_total(stored)
    if stored.split_strategy == SplitStrategy.SHARES:
        return allocate_shares(total, stored.own_shares, stored.splits, debtor_names)
    if stored.split_strategy == SplitStrategy.PER_ITEM and stored.receipt_format == ReceiptFormat.ITEMISED:
        return allocate_per_item(stored.line_items, stored.discount, True, debtor_names, total=total)
    return DebtSummary(strategy=stored.split_strategy, total=total, owner_amount=total)


@dataclass(frozen=True)
class DebtorReportLine:
    """One debtor's part of a stored receipt."""

    debtor_id: int
    label: str
    amount: Decimal
    is_paid: bool
    shares: int | None = None
    total_shares: int | None = None
    item_count: int | None = None
    total_items: int | None = None


@dataclass(frozen=True)
class OwnerShare:
    amount: Decimal
    shares: int
    total_shares: int


@dataclass(frozen=True)
class ReceiptDebtReport:
    """Who owes what on a stored receipt, with payment status."""

    receipt_id: str
    total: Decimal
    debtors: tuple[DebtorReportLine, ...] = field(default_factory=tuple)
    owner_share: OwnerShare | None = None

    @property
    def outstanding(self) -> Decimal:
        return sum_amounts(line.amount for line in self.debtors if not line.is_paid)

    def to_dict(self) -> dict[str, Any]:
        return {
            "receipt_id": self.receipt_id,
            "total": str(round2(self.total)),
            "outstanding": str(round2(self.outstanding)),
            "debtors": [
                {
                    "debtor_id": line.debtor_id,
                    "name": line.label,
                    "amount": str(round2(line.amount)),
                    "is_paid": line.is_paid,
                    "shares": line.shares,
                    "total_shares": line.total_shares,
                    "item_count": line.item_count,
                    "total_items": line.total_items,
                }
                for line in self.debtors
            ],
            "owner_share": {
                "amount": str(round2(self.owner_share.amount)),
                "shares": self.owner_share.shares,
                "total_shares": self.owner_share.total_shares,
            }
            if self.owner_share
            else None,
        }


def receipt_debt_report(stored: StoredReceipt, debtor_names: Mapping[int, str] | None = None) -> ReceiptDebtReport:
    """
    Build the debt report for a stored receipt.

    Args:
        stored: Receipt with its repayments loaded
        debtor_names: Fallback display names by debtor id

    Returns:
        ReceiptDebtReport; per-item receipts report item counts, shares
        receipts report share counts and the owner's share
    """
    summary = stored_debt_summary(stored, debtor_names)
    settled = stored.settled_debtor_ids
    total_items = len(stored.line_items) if summary.strategy == SplitStrategy.PER_ITEM else None

    lines = tuple(
        DebtorReportLine(
            debtor_id=entry.debtor_id,
            label=entry.label,
            amount=entry.amount,
            is_paid=entry.debtor_id in settled,
            shares=entry.shares,
            total_shares=summary.total_shares if entry.shares is not None else None,
            item_count=entry.item_count,
            total_items=total_items,
        )
        for entry in summary.entries
    )

    owner_share = None
    if summary.strategy == SplitStrategy.SHARES and summary.owner_amount is not None:
        owner_share = OwnerShare(summary.owner_amount, stored.own_shares, summary.total_shares or 0)

    return ReceiptDebtReport(receipt_id=stored.receipt_id, total=summary.total, debtors=lines, owner_share=owner_share)


@dataclass(frozen=True)
class ReceiptDebt:
    """A debtor's debt on one receipt, in either direction."""

    receipt_id: str
    receipt_date: FinancialDate | None
    direction: DebtDirection
    amount: Decimal
    is_settled: bool
    shares: int | None = None
    total_shares: int | None = None


@dataclass(frozen=True)
class DebtorBalance:
    """Balance between the owner and one debtor across receipts."""

    debtor_id: int
    receipts: tuple[ReceiptDebt, ...] = field(default_factory=tuple)

    def _outstanding(self, direction: DebtDirection) -> Decimal:
        return sum_amounts(r.amount for r in self.receipts if r.direction == direction and not r.is_settled)

    @property
    def debt_to_entity(self) -> Decimal:
        """What I owe the debtor for receipts they paid."""
        return self._outstanding(DebtDirection.TO_ENTITY)

    @property
    def debt_to_me(self) -> Decimal:
        """What the debtor owes me."""
        return self._outstanding(DebtDirection.TO_ME)

    @property
    def net_balance(self) -> Decimal:
        """Positive when the debtor owes me."""
        return self.debt_to_me - self.debt_to_entity

    def to_dict(self) -> dict[str, Any]:
        return {
            "debtor_id": self.debtor_id,
            "debt_to_entity": str(round2(self.debt_to_entity)),
            "debt_to_me": str(round2(self.debt_to_me)),
            "net_balance": str(round2(self.net_balance)),
            "receipts": [
                {
                    "receipt_id": r.receipt_id,
                    "date": str(r.receipt_date) if r.receipt_date else None,
                    "direction": r.direction.value,
                    "amount": str(round2(r.amount)),
                    "is_settled": r.is_settled,
                }
                for r in self.receipts
            ],
        }


def _receipt_debt(stored: StoredReceipt, debtor_id: int) -> ReceiptDebt | None:
    settled = debtor_id in stored.settled_debtor_ids

    if stored.payer_debtor_id == debtor_id:
        return ReceiptDebt(
            receipt_id=stored.receipt_id,
            receipt_date=stored.receipt_date,
            direction=DebtDirection.TO_ENTITY,
            amount=stored_receipt_total(stored),
            is_settled=settled or stored.status == ReceiptStatus.PAID,
        )

    if stored.split_strategy == SplitStrategy.SHARES and any(s.debtor_id == debtor_id for s in stored.splits):
        summary = stored_debt_summary(stored)
        entry = next(e for e in summary.entries if e.debtor_id == debtor_id)
        return ReceiptDebt(
            receipt_id=stored.receipt_id,
            receipt_date=stored.receipt_date,
            direction=DebtDirection.TO_ME,
            amount=entry.amount,
            is_settled=settled,
            shares=entry.shares,
            total_shares=summary.total_shares,
        )

    if stored.split_strategy == SplitStrategy.PER_ITEM and any(i.debtor_id == debtor_id for i in stored.line_items):
        return ReceiptDebt(
            receipt_id=stored.receipt_id,
            receipt_date=stored.receipt_date,
            direction=DebtDirection.TO_ME,
            amount=stored_debt_summary(stored).amount_for(debtor_id),
            is_settled=settled,
        )

    return None


def calculate_debtor_balance(debtor_id: int, receipts: Iterable[StoredReceipt]) -> DebtorBalance:
    """
    Calculate the balance between the owner and a debtor.

    Args:
        debtor_id: Debtor to report on
        receipts: Stored receipts with repayments loaded

    Returns:
        DebtorBalance with the debtor's receipts, newest first
    """
    debts = [
        debt
        for stored in receipts
        if not stored.is_tentative
        for debt in [_receipt_debt(stored, debtor_id)]
        if debt is not None
    ]
    debts.sort(key=lambda d: d.receipt_date.date if d.receipt_date else FinancialDate.today().date, reverse=True)
    return DebtorBalance(debtor_id=debtor_id, receipts=tuple(debts))


