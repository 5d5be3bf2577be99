#!/usr/bin/env python3
"""
Draft Reconciler

Reconciles an in-progress edit against persisted split/exclusion state:
- seeds a working set from stored rows
- decides which destructive changes need a confirmation step
- tracks unsaved changes against the last-loaded baseline
"""

import copy
import logging
from typing import Any, Iterable

from ..core.currency import ZERO
from .models import ReceiptFormat, ReceiptStatus, Repayment, SplitStrategy, StoredReceipt
from .working_set import ReceiptWorkingSet

logger = logging.getLogger(__name__)


def snapshot(working_set: ReceiptWorkingSet) -> dict[str, Any]:
    """Comparable form of everything a save would persist."""
    data = working_set.to_dict()
    data.pop("settled_debtor_ids", None)
    return data


def has_pending_split_data(working_set: ReceiptWorkingSet) -> bool:
    """Split rows or per-item debtor assignments exist in the working set."""
    return bool(working_set.splits) or bool(working_set.assigned_debtor_ids)


def payer_change_needs_confirmation(working_set: ReceiptWorkingSet, new_payer_debtor_id: int | None) -> bool:
    """Moving the payer away from self discards pending split data."""
    if new_payer_debtor_id is None or new_payer_debtor_id == working_set.payer_debtor_id:
        return False
    return has_pending_split_data(working_set)


def split_strategy_change_needs_confirmation(working_set: ReceiptWorkingSet, new_strategy: SplitStrategy) -> bool:
    """Leaving a strategy that holds data discards that data."""
    if new_strategy == working_set.split_strategy:
        return False
    if working_set.split_strategy == SplitStrategy.SHARES:
        return bool(working_set.splits)
    if working_set.split_strategy == SplitStrategy.PER_ITEM:
        return bool(working_set.assigned_debtor_ids)
    return False


def format_change_needs_confirmation(working_set: ReceiptWorkingSet, new_format: ReceiptFormat) -> bool:
    """Switching format clears the other format's line items or manual total."""
    if new_format == working_set.receipt_format:
        return False
    if working_set.receipt_format == ReceiptFormat.ITEMISED:
        return bool(working_set.line_items) or working_set.exclusion_mode
    return working_set.manual_total > 0


def exclusion_disable_needs_confirmation(working_set: ReceiptWorkingSet) -> bool:
    """Turning exclusion mode off discards the excluded item set."""
    return working_set.exclusion_mode and bool(working_set.excluded_keys)


class DraftReconciler:
    """
    Tracks the last-loaded (or last-saved) baseline of a working set.

    Example:
        >>> working_set, reconciler = DraftReconciler.seed_working_set(stored)
        >>> working_set.discount = Decimal("10")
        >>> reconciler.has_unsaved_changes(working_set)
        True
    """

    def __init__(self, baseline: ReceiptWorkingSet):
        self._baseline = snapshot(baseline)

    @classmethod
    def seed_working_set(
        cls,
        stored: StoredReceipt,
        repayments: Iterable[Repayment] | None = None,
    ) -> tuple[ReceiptWorkingSet, "DraftReconciler"]:
        """
        Build a working set from persisted rows.

        Args:
            stored: Receipt, line items and splits from storage
            repayments: Repayment rows; defaults to stored.repayments

        Returns:
            (working set, reconciler holding its baseline)
        """
        repayment_rows = list(stored.repayments if repayments is None else repayments)
        itemised = stored.receipt_format == ReceiptFormat.ITEMISED
        line_items = [copy.deepcopy(item) for item in stored.line_items] if itemised else []

        working_set = ReceiptWorkingSet(
            receipt_id=stored.receipt_id,
            store_id=stored.store_id,
            receipt_date=stored.receipt_date,
            note=stored.note,
            payment_method_id=stored.payment_method_id,
            payer_debtor_id=stored.payer_debtor_id if stored.status == ReceiptStatus.UNPAID else None,
            receipt_format=stored.receipt_format,
            manual_total=ZERO if itemised else stored.manual_total,
            discount=stored.discount,
            exclusion_mode=any(item.excluded_from_discount for item in line_items),
            line_items=line_items,
            split_strategy=stored.split_strategy,
            own_shares=stored.own_shares,
            splits=[copy.deepcopy(split) for split in stored.splits]
            if stored.split_strategy == SplitStrategy.SHARES
            else [],
            settled_debtor_ids={r.debtor_id for r in repayment_rows},
            is_tentative=stored.is_tentative,
        )
        logger.debug(
            f"Seeded working set for receipt {stored.receipt_id}: "
            f"{len(line_items)} items, {len(working_set.splits)} splits, {len(repayment_rows)} repayments"
        )
        return working_set, cls(working_set)

    def has_unsaved_changes(self, working_set: ReceiptWorkingSet) -> bool:
        """Compare the working set against the baseline."""
        return snapshot(working_set) != self._baseline

    def mark_saved(self, working_set: ReceiptWorkingSet) -> None:
        """Adopt the working set as the new baseline."""
        self._baseline = snapshot(working_set)
