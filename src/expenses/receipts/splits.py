#!/usr/bin/env python3
"""
Split Allocation Engine

Distributes a receipt total (or per-item amounts) across the owner and
debtors under the chosen split strategy.

Key Features:
- none: the owner carries the whole total
- shares: total × participant shares / total shares, kept at full precision
- per-item: discounted line values accumulated per assigned debtor
- Output keeps discovery order and degrades to empty output instead of raising

Rounding: amounts are rounded only when displayed or persisted. Leftover cents
are not redistributed, so rounded shares may miss the rounded total by a cent
(e.g. thirds).
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Mapping, Sequence

from ..core.config import Config
from ..core.currency import ZERO, format_amount, round2, sum_amounts, to_decimal, validate_sum_equals_total
from .models import LineItem, ReceiptSplit, SplitStrategy
from .totals import calculate_totals
from .valuation import net_value
from .working_set import ReceiptWorkingSet


@dataclass(frozen=True)
class DebtEntry:
    """Amount one debtor owes on a receipt."""

    debtor_id: int
    label: str
    amount: Decimal
    shares: int | None = None
    item_count: int | None = None


@dataclass(frozen=True)
class DebtSummary:
    """
    Derived, read-only breakdown of who owes what on a receipt.

    `computed` is False when no split could be computed (debt tracking
    disabled, or shares mode with zero total shares).
    """

    strategy: SplitStrategy
    total: Decimal
    owner_amount: Decimal | None = None
    entries: tuple[DebtEntry, ...] = field(default_factory=tuple)
    computed: bool = True
    total_shares: int | None = None

    @property
    def debtor_total(self) -> Decimal:
        return sum_amounts(entry.amount for entry in self.entries)

    def amount_for(self, debtor_id: int) -> Decimal:
        for entry in self.entries:
            if entry.debtor_id == debtor_id:
                return entry.amount
        return ZERO

    def is_balanced(self) -> bool:
        """
        Check owner + debtor amounts add back up to the total within a cent.

        Per-item summaries leave unassigned items implicit, so only the
        none and shares strategies can be checked.
        """
        if not self.computed or self.strategy == SplitStrategy.PER_ITEM:
            return True
        amounts = [entry.amount for entry in self.entries]
        if self.owner_amount is not None:
            amounts.append(self.owner_amount)
        return validate_sum_equals_total(amounts, self.total)

    def to_dict(self) -> dict[str, Any]:
        """Rounded, JSON-friendly form."""
        return {
            "strategy": self.strategy.value,
            "total": str(round2(self.total)),
            "computed": self.computed,
            "total_shares": self.total_shares,
            "owner_amount": str(round2(self.owner_amount)) if self.owner_amount is not None else None,
            "entries": [
                {
                    "debtor_id": entry.debtor_id,
                    "label": entry.label,
                    "amount": str(round2(entry.amount)),
                    "shares": entry.shares,
                    "item_count": entry.item_count,
                }
                for entry in self.entries
            ],
        }

    def display_lines(self, symbol: str = "€", decimal_separator: str = ".", owner_label: str = "You") -> list[tuple[str, str]]:
        """(label, formatted amount) pairs in display order."""
        lines = [(entry.label, format_amount(entry.amount, symbol, decimal_separator)) for entry in self.entries]
        if self.owner_amount is not None:
            lines.append((owner_label, format_amount(self.owner_amount, symbol, decimal_separator)))
        return lines


def calculate_total_shares(own_shares: Any, splits: Sequence[ReceiptSplit]) -> int:
    """Owner shares plus every debtor's shares."""
    debtor_shares = sum(int(to_decimal(split.shares)) for split in splits)
    return debtor_shares + int(to_decimal(own_shares))


def _label(debtor_id: int, name: str | None, debtor_names: Mapping[int, str]) -> str:
    return name or debtor_names.get(debtor_id) or f"Debtor {debtor_id}"


def allocate_shares(
    total: Any,
    own_shares: Any,
    splits: Sequence[ReceiptSplit],
    debtor_names: Mapping[int, str] | None = None,
) -> DebtSummary:
    """
    Split a total proportionally to share counts.

    Args:
        total: Discounted receipt total
        own_shares: Owner's share count
        splits: Debtor share rows
        debtor_names: Fallback display names by debtor id

    Returns:
        DebtSummary; not computed when total shares is zero
    """
    debtor_names = debtor_names or {}
    total_value = to_decimal(total)
    total_shares = calculate_total_shares(own_shares, splits)

    if total_shares <= 0:
        return DebtSummary(strategy=SplitStrategy.SHARES, total=total_value, computed=False, total_shares=0)

    divisor = Decimal(total_shares)
    amounts: dict[int, Decimal] = {}
    shares_by_debtor: dict[int, int] = {}
    labels: dict[int, str] = {}
    for split in splits:
        shares = int(to_decimal(split.shares))
        amounts[split.debtor_id] = amounts.get(split.debtor_id, ZERO) + total_value * shares / divisor
        shares_by_debtor[split.debtor_id] = shares_by_debtor.get(split.debtor_id, 0) + shares
        labels.setdefault(split.debtor_id, _label(split.debtor_id, split.debtor_name, debtor_names))

    entries = tuple(
        DebtEntry(debtor_id=debtor_id, label=labels[debtor_id], amount=amount, shares=shares_by_debtor[debtor_id])
        for debtor_id, amount in amounts.items()
    )

    own = int(to_decimal(own_shares))
    owner_amount = total_value * own / divisor if own > 0 else None

    return DebtSummary(
        strategy=SplitStrategy.SHARES,
        total=total_value,
        owner_amount=owner_amount,
        entries=entries,
        total_shares=total_shares,
    )


def allocate_per_item(
    items: Sequence[LineItem],
    discount_pct: Any,
    exclusion_mode_active: bool,
    debtor_names: Mapping[int, str] | None = None,
    total: Any = ZERO,
) -> DebtSummary:
    """
    Accumulate each assigned item's discounted value into its debtor's bucket.

    Unassigned items add nothing to any bucket and no owner amount is
    reported in this mode.
    """
    debtor_names = debtor_names or {}
    amounts: dict[int, Decimal] = {}
    counts: dict[int, int] = {}
    labels: dict[int, str] = {}

    for item in items:
        if item.debtor_id is None:
            continue
        amounts[item.debtor_id] = amounts.get(item.debtor_id, ZERO) + net_value(
            item, discount_pct, exclusion_mode_active
        )
        counts[item.debtor_id] = counts.get(item.debtor_id, 0) + 1
        labels.setdefault(item.debtor_id, _label(item.debtor_id, item.debtor_name, debtor_names))

    entries = tuple(
        DebtEntry(debtor_id=debtor_id, label=labels[debtor_id], amount=amount, item_count=counts[debtor_id])
        for debtor_id, amount in amounts.items()
    )
    return DebtSummary(strategy=SplitStrategy.PER_ITEM, total=to_decimal(total), entries=entries)


def compute_debt_summary(
    working_set: ReceiptWorkingSet,
    config: Config | None = None,
    debtor_names: Mapping[int, str] | None = None,
) -> DebtSummary:
    """
    Compute the debt summary for a working set.

    Args:
        working_set: Receipt editing state
        config: Application configuration (debt module toggle)
        debtor_names: Fallback display names by debtor id

    Returns:
        DebtSummary for display
    """
    total = calculate_totals(working_set).total
    strategy = working_set.split_strategy

    if config is not None and not config.debt.enabled:
        return DebtSummary(strategy=strategy, total=total, computed=False)

    if strategy == SplitStrategy.SHARES:
        return allocate_shares(total, working_set.own_shares, working_set.splits, debtor_names)

    if strategy == SplitStrategy.PER_ITEM:
        if not working_set.is_itemised:
            return DebtSummary(strategy=strategy, total=total)
        return allocate_per_item(
            working_set.line_items,
            working_set.effective_discount,
            working_set.exclusion_mode,
            debtor_names,
            total=total,
        )

    return DebtSummary(strategy=SplitStrategy.NONE, total=total, owner_amount=total)
