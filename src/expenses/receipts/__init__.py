"""
Receipts Package

Receipt entry, discount allocation and debt splitting.

This package provides:
- Receipt data models and the mutable editing working set
- Line item valuation and receipt totals
- Split allocation by shares or by line item
- Settlement lock and draft reconciliation
- ReceiptEditor session with two-phase confirmation
- JSON persistence and cross-receipt debt reports
"""

from .datastore import (
    JsonReceiptStore,
    ReceiptDraftStore,
    ReceiptNotFoundError,
    ReceiptPersistenceError,
    ReceiptRepository,
)
from .debts import (
    DebtDirection,
    DebtorBalance,
    ReceiptDebtReport,
    calculate_debtor_balance,
    receipt_debt_report,
)
from .editor import ChangeResult, ChangeStatus, ReceiptEditor
from .models import (
    Debtor,
    LineItem,
    ReceiptFormat,
    ReceiptSplit,
    ReceiptStatus,
    Repayment,
    SplitStrategy,
    StoredReceipt,
)
from .reconciler import DraftReconciler
from .settlement import GuardedField, SettlementGuard, SettlementState
from .splits import DebtEntry, DebtSummary, allocate_per_item, allocate_shares, compute_debt_summary
from .totals import ReceiptTotals, calculate_totals
from .validation import ReceiptValidationError, validate_working_set
from .valuation import gross_value, net_value
from .working_set import ReceiptWorkingSet

__all__ = [
    # Models
    "Debtor",
    "LineItem",
    "ReceiptFormat",
    "ReceiptSplit",
    "ReceiptStatus",
    "Repayment",
    "SplitStrategy",
    "StoredReceipt",
    "ReceiptWorkingSet",
    # Calculation
    "gross_value",
    "net_value",
    "ReceiptTotals",
    "calculate_totals",
    "DebtEntry",
    "DebtSummary",
    "allocate_per_item",
    "allocate_shares",
    "compute_debt_summary",
    # Editing
    "ChangeResult",
    "ChangeStatus",
    "DraftReconciler",
    "GuardedField",
    "ReceiptEditor",
    "ReceiptValidationError",
    "SettlementGuard",
    "SettlementState",
    "validate_working_set",
    # Storage
    "JsonReceiptStore",
    "ReceiptDraftStore",
    "ReceiptNotFoundError",
    "ReceiptPersistenceError",
    "ReceiptRepository",
    # Reports
    "DebtDirection",
    "DebtorBalance",
    "ReceiptDebtReport",
    "calculate_debtor_balance",
    "receipt_debt_report",
]
