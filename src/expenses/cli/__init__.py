"""
Command Line Interface Package

Command Structure:
- expenses: Main entry point with utility commands (version, config)
- expenses receipt: Add, inspect, validate and settle stored receipts
- expenses debts: Balances between the owner and each debtor
"""
