#!/usr/bin/env python3
"""
Settlement Guard

Locks a receipt's splitting configuration once any debt tied to it has been
paid back, so money already exchanged can't be changed retroactively.

States:
- OPEN: no repayment exists for any debtor on the receipt; everything editable
- LOCKED: at least one repayment exists; partial and full settlement lock alike

OPEN → LOCKED happens when a repayment is recorded. The editor can't unlock;
only removing the repayment from storage and reloading reverts it.
"""

import logging
from enum import Enum
from typing import Iterable

from .models import Repayment

logger = logging.getLogger(__name__)


class SettlementState(Enum):
    """Lock state of a receipt."""

    OPEN = "open"
    LOCKED = "locked"


class GuardedField(Enum):
    """Receipt fields that freeze once a debt is settled."""

    PAYER = "payer"
    SPLIT_STRATEGY = "split_strategy"
    DISCOUNT = "discount"
    EXCLUSIONS = "exclusions"
    LINE_ITEMS = "line_items"
    MANUAL_TOTAL = "manual_total"
    FORMAT = "format"
    SPLITS = "splits"
    ASSIGNMENTS = "assignments"


class SettlementGuard:
    """
    Decides whether splitting-related mutations are allowed for a receipt.

    Built from the set of debtors that have repaid; see from_repayments().
    """

    def __init__(self, settled_debtor_ids: Iterable[int] = ()):
        self._settled: set[int] = set(settled_debtor_ids)

    @classmethod
    def from_repayments(cls, repayments: Iterable[Repayment]) -> "SettlementGuard":
        """Create a guard from repayment rows referencing the receipt."""
        return cls(r.debtor_id for r in repayments)

    @property
    def state(self) -> SettlementState:
        return SettlementState.LOCKED if self._settled else SettlementState.OPEN

    @property
    def is_locked(self) -> bool:
        return self.state == SettlementState.LOCKED

    @property
    def settled_debtor_ids(self) -> frozenset[int]:
        return frozenset(self._settled)

    def is_settled(self, debtor_id: int | None) -> bool:
        return debtor_id is not None and debtor_id in self._settled

    def allows(self, guarded_field: GuardedField) -> bool:
        """Whether a field may change in the current state."""
        if self.is_locked:
            logger.debug(f"Settlement lock blocks change to {guarded_field.value}")
            return False
        return True

    def allows_removing_debtor(self, debtor_id: int | None) -> bool:
        """A debtor referenced by a settled payment can't be removed from a split or item."""
        return not self.is_settled(debtor_id)

    def record_repayment(self, debtor_id: int) -> SettlementState:
        """
        Register a repayment; locks the receipt.

        Returns:
            The new state (always LOCKED)
        """
        was_open = not self.is_locked
        self._settled.add(debtor_id)
        if was_open:
            logger.info(f"Receipt locked after repayment from debtor {debtor_id}")
        return self.state
