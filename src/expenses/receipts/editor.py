#!/usr/bin/env python3
"""
Receipt Editing Session

Owns one receipt working set and applies field changes to it. Every change
goes through the same path:

1. SettlementGuard decides whether the field may change at all (BLOCKED is a
   silent no-op, never an exception)
2. DraftReconciler decides whether the change destroys pending split data
   (NEEDS_CONFIRMATION carries a confirm() that performs it)
3. Otherwise the change is APPLIED, totals and the debt summary are
   recomputed and subscribers are notified

Saving validates the working set and hands it to the persistence
collaborator; on failure the working set is left exactly as it was.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable, Mapping

from ..core.config import Config, DebtConfig, PaymentMethodsConfig
from ..core.currency import HUNDRED, ZERO, to_decimal
from ..core.dates import FinancialDate
from .datastore import ReceiptDraftStore, ReceiptPersistenceError, ReceiptRepository
from .models import Debtor, LineItem, ReceiptFormat, ReceiptSplit, SplitStrategy, new_key
from .reconciler import (
    DraftReconciler,
    exclusion_disable_needs_confirmation,
    format_change_needs_confirmation,
    payer_change_needs_confirmation,
    split_strategy_change_needs_confirmation,
)
from .settlement import GuardedField, SettlementGuard
from .splits import DebtSummary, compute_debt_summary
from .totals import ReceiptTotals, calculate_totals
from .validation import ReceiptValidationError, validate_working_set
from .valuation import clamp_non_negative
from .working_set import ReceiptWorkingSet

logger = logging.getLogger(__name__)


class ChangeStatus(Enum):
    """Outcome of a requested change."""

    APPLIED = "applied"
    NEEDS_CONFIRMATION = "needs_confirmation"
    BLOCKED = "blocked"


@dataclass
class ChangeResult:
    """
    Result of a mutation request.

    When status is NEEDS_CONFIRMATION, nothing has changed yet; call
    confirm() once the user agrees to discard the pending debt information.
    """

    status: ChangeStatus
    working_set: ReceiptWorkingSet
    reason: str = ""
    key: str | None = None
    _apply: Callable[[], "ChangeResult"] | None = field(default=None, repr=False, compare=False)

    @property
    def applied(self) -> bool:
        return self.status == ChangeStatus.APPLIED

    @property
    def requires_confirmation(self) -> bool:
        return self.status == ChangeStatus.NEEDS_CONFIRMATION

    def confirm(self) -> "ChangeResult":
        """
        Perform a change that needed confirmation.

        Raises:
            ValueError: If this change didn't need confirmation
        """
        if self._apply is None:
            raise ValueError(f"Change is {self.status.value}; nothing to confirm")
        return self._apply()


SummaryListener = Callable[[DebtSummary], None]
ErrorListener = Callable[[Exception], None]


class ReceiptEditor:
    """
    Editing session for a single receipt.

    Example:
        editor = ReceiptEditor(debtors=[Debtor(1, "Alice")])
        key = editor.add_line_item(quantity="2", unit_price="5").key
        editor.set_split_strategy(SplitStrategy.PER_ITEM)
        editor.assign_debtors({key: 1})
        editor.debt_summary().amount_for(1)  # Decimal("10")
    """

    def __init__(
        self,
        working_set: ReceiptWorkingSet | None = None,
        config: Config | None = None,
        repository: ReceiptRepository | None = None,
        debtors: Iterable[Debtor] = (),
        reconciler: DraftReconciler | None = None,
        draft_store: ReceiptDraftStore | None = None,
    ):
        self.config = config
        self.payment_methods = config.payment_methods if config else PaymentMethodsConfig()
        self.debt = config.debt if config else DebtConfig()

        if working_set is None:
            working_set = ReceiptWorkingSet(payment_method_id=self.payment_methods.default_method_id)
        self.working_set = working_set

        self.repository = repository
        self.draft_store = draft_store
        self.guard = SettlementGuard(working_set.settled_debtor_ids)
        self.reconciler = reconciler or DraftReconciler(working_set)
        self.debtors: dict[int, Debtor] = {d.id: d for d in debtors}

        self._listeners: list[SummaryListener] = []
        self._error_listeners: list[ErrorListener] = []

    @classmethod
    def open(
        cls,
        repository: ReceiptRepository,
        receipt_id: str | None = None,
        config: Config | None = None,
        debtors: Iterable[Debtor] = (),
        draft_store: ReceiptDraftStore | None = None,
    ) -> "ReceiptEditor":
        """
        Open an editing session for a stored receipt, or a new one.

        New receipts resume from the draft store when a draft exists.
        """
        if receipt_id is not None:
            stored = repository.load(receipt_id)
            working_set, reconciler = DraftReconciler.seed_working_set(stored)
            return cls(working_set, config, repository, debtors, reconciler)

        draft = draft_store.load() if draft_store else None
        if draft is None:
            return cls(None, config, repository, debtors, draft_store=draft_store)

        logger.info("Resuming unsaved receipt draft")
        # Nothing is in storage yet, so the baseline is an empty receipt
        payment_methods = config.payment_methods if config else PaymentMethodsConfig()
        baseline = ReceiptWorkingSet(payment_method_id=payment_methods.default_method_id)
        return cls(draft, config, repository, debtors, DraftReconciler(baseline), draft_store)

    # --- Read side ---

    def subscribe(self, listener: SummaryListener) -> Callable[[], None]:
        """
        Register a callback receiving the fresh debt summary after each applied change.

        Returns:
            Function that unsubscribes the listener
        """
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def add_error_listener(self, listener: ErrorListener) -> None:
        """Register a callback receiving persistence errors."""
        self._error_listeners.append(listener)

    def totals(self) -> ReceiptTotals:
        return calculate_totals(self.working_set)

    def debt_summary(self) -> DebtSummary:
        return compute_debt_summary(self.working_set, self.config, self._debtor_names())

    def validate(self) -> dict[str, str]:
        return validate_working_set(self.working_set)

    def has_unsaved_changes(self) -> bool:
        return self.reconciler.has_unsaved_changes(self.working_set)

    @property
    def is_locked(self) -> bool:
        return self.guard.is_locked

    @property
    def debt_editing_disabled(self) -> bool:
        """Split controls are inert when locked, when someone else paid, or with debt tracking off."""
        return self.guard.is_locked or not self.working_set.payer_is_self or not self.debt.enabled

    def _debtor_names(self) -> dict[int, str]:
        return {debtor_id: debtor.name for debtor_id, debtor in self.debtors.items()}

    def _debtor_name(self, debtor_id: int | None) -> str | None:
        if debtor_id is None or debtor_id not in self.debtors:
            return None
        return self.debtors[debtor_id].name

    # --- Change plumbing ---

    def _applied(self, key: str | None = None) -> ChangeResult:
        summary = self.debt_summary()
        for listener in list(self._listeners):
            listener(summary)
        if self.draft_store is not None and self.working_set.receipt_id is None:
            self.draft_store.save(self.working_set)
        return ChangeResult(ChangeStatus.APPLIED, self.working_set, key=key)

    def _blocked(self, reason: str) -> ChangeResult:
        logger.debug(f"Change ignored: {reason}")
        return ChangeResult(ChangeStatus.BLOCKED, self.working_set, reason=reason)

    def _unchanged(self) -> ChangeResult:
        return ChangeResult(ChangeStatus.APPLIED, self.working_set)

    def _guarded(self, guarded_field: GuardedField, mutate: Callable[[], Any], key: str | None = None) -> ChangeResult:
        if not self.guard.allows(guarded_field):
            return self._blocked(f"{guarded_field.value} is locked by a settled debt")
        mutate()
        return self._applied(key)

    def _confirmable(
        self,
        needs_confirmation: bool,
        guarded_field: GuardedField,
        mutate: Callable[[], Any],
        reason: str,
    ) -> ChangeResult:
        def apply() -> ChangeResult:
            # A repayment may have been recorded while the prompt was open
            return self._guarded(guarded_field, mutate)

        if needs_confirmation:
            logger.debug(f"Confirmation required: {reason}")
            return ChangeResult(ChangeStatus.NEEDS_CONFIRMATION, self.working_set, reason=reason, _apply=apply)
        return apply()

    def _split_editing_blocked(self) -> str | None:
        if not self.debt.enabled:
            return "debt tracking is disabled"
        if not self.working_set.payer_is_self:
            return "receipt was paid by someone else"
        return None

    # --- Payer and structure ---

    def set_payer(self, payer_debtor_id: int | None) -> ChangeResult:
        """
        Change who paid the receipt (None = the owner).

        When someone else paid, the owner owes them the full total, so any
        split configuration is reset.
        """
        if not self.guard.allows(GuardedField.PAYER):
            return self._blocked("payer is locked by a settled debt")
        ws = self.working_set
        if payer_debtor_id == ws.payer_debtor_id:
            return self._unchanged()

        def mutate() -> None:
            ws.payer_debtor_id = payer_debtor_id
            if payer_debtor_id is not None:
                ws.split_strategy = SplitStrategy.NONE
                ws.splits = []
                ws.own_shares = 0
                ws.clear_assignments()

        return self._confirmable(
            payer_change_needs_confirmation(ws, payer_debtor_id),
            GuardedField.PAYER,
            mutate,
            "changing the payer discards the current split",
        )

    def set_split_strategy(self, strategy: SplitStrategy) -> ChangeResult:
        """Change the split strategy, discarding the old strategy's rows once confirmed."""
        if not self.guard.allows(GuardedField.SPLIT_STRATEGY):
            return self._blocked("split strategy is locked by a settled debt")
        ws = self.working_set
        if strategy == ws.split_strategy:
            return self._unchanged()
        if strategy != SplitStrategy.NONE and (reason := self._split_editing_blocked()):
            return self._blocked(reason)
        if strategy == SplitStrategy.PER_ITEM and not ws.is_itemised:
            return self._blocked("per-item splitting needs an itemised receipt")

        def mutate() -> None:
            ws.split_strategy = strategy
            if strategy != SplitStrategy.SHARES:
                ws.splits = []
            if strategy != SplitStrategy.PER_ITEM:
                ws.clear_assignments()

        return self._confirmable(
            split_strategy_change_needs_confirmation(ws, strategy),
            GuardedField.SPLIT_STRATEGY,
            mutate,
            "changing the split type discards the current split",
        )

    def set_format(self, receipt_format: ReceiptFormat) -> ChangeResult:
        """Switch between itemised and total-only entry; the other format's data is cleared."""
        if not self.guard.allows(GuardedField.FORMAT):
            return self._blocked("format is locked by a settled debt")
        ws = self.working_set
        if receipt_format == ws.receipt_format:
            return self._unchanged()

        def mutate() -> None:
            ws.receipt_format = receipt_format
            if receipt_format == ReceiptFormat.TOTAL_ONLY:
                ws.line_items = []
                ws.exclusion_mode = False
                ws.discount = ZERO
                if ws.split_strategy == SplitStrategy.PER_ITEM:
                    ws.split_strategy = SplitStrategy.NONE
            else:
                ws.manual_total = ZERO

        return self._confirmable(
            format_change_needs_confirmation(ws, receipt_format),
            GuardedField.FORMAT,
            mutate,
            "changing the format discards the entered amounts",
        )

    def set_manual_total(self, value: Any) -> ChangeResult:
        if self.working_set.is_itemised:
            return self._blocked("itemised receipts total their line items")

        def mutate() -> None:
            self.working_set.manual_total = clamp_non_negative(value)

        return self._guarded(GuardedField.MANUAL_TOTAL, mutate)

    # --- Discount and exclusions ---

    def set_discount(self, value: Any) -> ChangeResult:
        """Set the discount percentage, clamped to 0..100."""
        if not self.working_set.is_itemised:
            return self._blocked("total-only receipts have no discount")

        def mutate() -> None:
            self.working_set.discount = min(HUNDRED, clamp_non_negative(value))

        return self._guarded(GuardedField.DISCOUNT, mutate)

    def set_exclusion_mode(self, enabled: bool) -> ChangeResult:
        """Toggle exclusion mode; turning it off with excluded items needs confirmation."""
        if not self.guard.allows(GuardedField.EXCLUSIONS):
            return self._blocked("exclusions are locked by a settled debt")
        ws = self.working_set
        if enabled == ws.exclusion_mode:
            return self._unchanged()
        if enabled and not ws.is_itemised:
            return self._blocked("total-only receipts have no line items to exclude")

        def mutate() -> None:
            if enabled:
                ws.exclusion_mode = True
            else:
                ws.clear_exclusions()

        return self._confirmable(
            not enabled and exclusion_disable_needs_confirmation(ws),
            GuardedField.EXCLUSIONS,
            mutate,
            "disabling exclusions discards the excluded item set",
        )

    def set_excluded_items(self, keys: Iterable[str]) -> ChangeResult:
        """Replace the set of items excluded from the discount."""
        if not self.working_set.is_itemised:
            return self._blocked("total-only receipts have no line items to exclude")
        excluded = set(keys)

        def mutate() -> None:
            for item in self.working_set.line_items:
                item.excluded_from_discount = item.key in excluded
            self.working_set.exclusion_mode = bool(excluded)

        return self._guarded(GuardedField.EXCLUSIONS, mutate)

    # --- Line items ---

    def add_line_item(
        self,
        quantity: Any = 1,
        unit_price: Any = 0,
        product_id: int | None = None,
        product_name: str | None = None,
    ) -> ChangeResult:
        """Append a line item; the result's key identifies it."""
        if not self.working_set.is_itemised:
            return self._blocked("total-only receipts have no line items")
        item = LineItem(
            key=new_key(),
            quantity=clamp_non_negative(quantity),
            unit_price=clamp_non_negative(unit_price),
            product_id=product_id,
            product_name=product_name,
        )
        return self._guarded(GuardedField.LINE_ITEMS, lambda: self.working_set.line_items.append(item), key=item.key)

    def remove_line_item(self, key: str) -> ChangeResult:
        item = self.working_set.find_item(key)
        if item is None:
            return self._blocked(f"no line item {key}")
        if not self.guard.allows_removing_debtor(item.debtor_id):
            return self._blocked(f"debtor {item.debtor_id} has settled this item")
        return self._guarded(GuardedField.LINE_ITEMS, lambda: self.working_set.line_items.remove(item), key=key)

    def set_quantity(self, key: str, value: Any) -> ChangeResult:
        """Set an item's quantity; negatives and garbage become zero."""
        item = self.working_set.find_item(key)
        if item is None:
            return self._blocked(f"no line item {key}")

        def mutate() -> None:
            item.quantity = clamp_non_negative(value)

        return self._guarded(GuardedField.LINE_ITEMS, mutate, key=key)

    def set_unit_price(self, key: str, value: Any) -> ChangeResult:
        """Set an item's unit price; negatives and garbage become zero."""
        item = self.working_set.find_item(key)
        if item is None:
            return self._blocked(f"no line item {key}")

        def mutate() -> None:
            item.unit_price = clamp_non_negative(value)

        return self._guarded(GuardedField.LINE_ITEMS, mutate, key=key)

    # --- Per-item assignments ---

    def assign_debtors(self, assignments: Mapping[str, int | None]) -> ChangeResult:
        """
        Assign debtors to line items by key (None unassigns).

        Only valid in per-item mode; refused as a whole if it would move an
        item away from a debtor who already settled.
        """
        if reason := self._split_editing_blocked():
            return self._blocked(reason)
        ws = self.working_set
        if ws.split_strategy != SplitStrategy.PER_ITEM:
            return self._blocked("debtors are assigned to items only in per-item mode")

        changes: list[tuple[LineItem, int | None]] = []
        for key, debtor_id in assignments.items():
            item = ws.find_item(key)
            if item is None:
                continue
            if item.debtor_id != debtor_id and not self.guard.allows_removing_debtor(item.debtor_id):
                return self._blocked(f"debtor {item.debtor_id} has settled this item")
            changes.append((item, debtor_id))

        def mutate() -> None:
            for item, debtor_id in changes:
                item.debtor_id = debtor_id
                item.debtor_name = self._debtor_name(debtor_id)

        return self._guarded(GuardedField.ASSIGNMENTS, mutate)

    def unassign_debtor(self, debtor_id: int) -> ChangeResult:
        """Remove a debtor from every item assigned to them."""
        if not self.guard.allows_removing_debtor(debtor_id):
            return self._blocked(f"debtor {debtor_id} has settled")

        def mutate() -> None:
            for item in self.working_set.line_items:
                if item.debtor_id == debtor_id:
                    item.debtor_id = None
                    item.debtor_name = None

        return self._guarded(GuardedField.ASSIGNMENTS, mutate)

    # --- Shares ---

    def add_split(self, debtor_id: int, shares: Any = 1) -> ChangeResult:
        """Add a debtor to the shares split."""
        if reason := self._split_editing_blocked():
            return self._blocked(reason)
        ws = self.working_set
        if ws.split_strategy != SplitStrategy.SHARES:
            return self._blocked("share rows exist only in shares mode")
        if ws.find_split(debtor_id) is not None:
            return self._blocked(f"debtor {debtor_id} is already in the split")

        split = ReceiptSplit(debtor_id=debtor_id, shares=_parse_shares(shares), debtor_name=self._debtor_name(debtor_id))
        return self._guarded(GuardedField.SPLITS, lambda: ws.splits.append(split))

    def remove_split(self, debtor_id: int) -> ChangeResult:
        split = self.working_set.find_split(debtor_id)
        if split is None:
            return self._blocked(f"debtor {debtor_id} is not in the split")
        if not self.guard.allows_removing_debtor(debtor_id):
            return self._blocked(f"debtor {debtor_id} has settled")
        return self._guarded(GuardedField.SPLITS, lambda: self.working_set.splits.remove(split))

    def set_split_shares(self, debtor_id: int, shares: Any) -> ChangeResult:
        """Set a debtor's share count; anything that isn't a positive integer becomes 1."""
        split = self.working_set.find_split(debtor_id)
        if split is None:
            return self._blocked(f"debtor {debtor_id} is not in the split")

        def mutate() -> None:
            split.shares = _parse_shares(shares)

        return self._guarded(GuardedField.SPLITS, mutate)

    def set_own_shares(self, shares: Any) -> ChangeResult:
        if reason := self._split_editing_blocked():
            return self._blocked(reason)

        def mutate() -> None:
            self.working_set.own_shares = max(0, int(clamp_non_negative(shares)))

        return self._guarded(GuardedField.SPLITS, mutate)

    # --- Unguarded receipt fields ---

    def set_store(self, store_id: int | None) -> ChangeResult:
        self.working_set.store_id = store_id
        return self._applied()

    def set_date(self, receipt_date: FinancialDate | None) -> ChangeResult:
        self.working_set.receipt_date = receipt_date
        return self._applied()

    def set_note(self, note: str) -> ChangeResult:
        self.working_set.note = note
        return self._applied()

    def set_payment_method(self, payment_method_id: int | None) -> ChangeResult:
        if not self.payment_methods.enabled:
            return self._blocked("payment methods are disabled")
        self.working_set.payment_method_id = payment_method_id
        return self._applied()

    # --- Settlement and persistence ---

    def record_repayment(self, debtor_id: int) -> ChangeResult:
        """Register that a debtor paid back; the receipt locks."""
        self.guard.record_repayment(debtor_id)
        self.working_set.settled_debtor_ids.add(debtor_id)
        return self._applied()

    def refresh_settlement(self) -> bool:
        """
        Re-read repayments from the repository.

        Returns:
            Whether the receipt is locked afterwards
        """
        if self.repository is None or self.working_set.receipt_id is None:
            return self.guard.is_locked
        stored = self.repository.load(self.working_set.receipt_id)
        self.guard = SettlementGuard.from_repayments(stored.repayments)
        self.working_set.settled_debtor_ids = set(self.guard.settled_debtor_ids)
        return self.guard.is_locked

    def save(self, tentative: bool | None = None) -> str:
        """
        Validate and persist the working set.

        Args:
            tentative: Save as a tentative receipt (default: keep current flag)

        Returns:
            Receipt id

        Raises:
            ReceiptValidationError: If validation fails; nothing is written
            ReceiptPersistenceError: If the repository fails; the working set is unchanged
        """
        errors = self.validate()
        if errors:
            raise ReceiptValidationError(errors)
        if self.repository is None:
            raise ReceiptPersistenceError("No receipt repository configured")

        is_new = self.working_set.receipt_id is None
        try:
            receipt_id = self.repository.save(self.working_set, tentative, self.payment_methods)
        except Exception as e:
            error = e if isinstance(e, ReceiptPersistenceError) else ReceiptPersistenceError(f"Failed to save receipt: {e}")
            logger.error(f"Receipt save failed: {error}")
            for listener in list(self._error_listeners):
                listener(error)
            if error is e:
                raise
            raise error from e

        self.working_set.receipt_id = receipt_id
        if tentative is not None:
            self.working_set.is_tentative = tentative
        self.reconciler.mark_saved(self.working_set)
        if is_new and self.draft_store is not None:
            self.draft_store.clear()
        return receipt_id

    def discard_draft(self) -> None:
        """Throw away the unsaved new-receipt draft and start over."""
        if self.draft_store is not None:
            self.draft_store.clear()
        self.working_set = ReceiptWorkingSet(payment_method_id=self.payment_methods.default_method_id)
        self.guard = SettlementGuard()
        self.reconciler = DraftReconciler(self.working_set)


def _parse_shares(value: Any) -> int:
    """Positive integer share count; fractions are truncated, invalid or non-positive input becomes 1."""
    shares = int(to_decimal(value))
    return shares if shares > 0 else 1
