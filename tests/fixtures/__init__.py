"""
Test Fixtures and Utilities

Shared test data builders for receipts, line items and splits.

All test data is synthetic.
"""
