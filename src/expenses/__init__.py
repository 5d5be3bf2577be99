"""
Household Expenses - Receipt Splitting and Discount Allocation

Records shopping receipts, applies discounts, and splits the cost between the
owner and the people who owe them money.

Key Features:
- Itemised and total-only receipts with optional per-item discount exclusion
- Split by shares or by assigning line items to debtors
- Settlement lock once a debtor has paid back
- Debtor balances across receipts

Domain Packages:
- core: Currency handling, money and date primitives, configuration
- receipts: Receipt models, totals, split engine, editing session, storage
- cli: Command-line interface

Example Usage:
    from expenses.receipts import ReceiptEditor, SplitStrategy
    from expenses.core.currency import round2
"""

__version__ = "0.3.0"
__author__ = "Karl Davis"

# Export core utilities for easy access
from .core.config import Environment, get_config
from .core.currency import format_amount, round2, to_decimal
from .core.money import Money

__all__ = [
    # Core currency functions
    "format_amount",
    "round2",
    "to_decimal",
    "Money",
    # Configuration
    "get_config",
    "Environment",
]
