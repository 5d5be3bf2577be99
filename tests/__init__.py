"""
Test Suite for Davis Family Finances

Comprehensive test coverage for all financial management functionality.

Test Structure:
- fixtures/: Shared test data and utilities
- unit/: Unit tests mirroring src/ package structure
- integration/: End-to-end workflow tests

Test Categories:
- Core utilities (currency, models, config)
- Amazon transaction matching
- Apple receipt processing
- YNAB integration
- Financial analysis

Test Data:
All test data uses synthetic financial information to protect privacy.
Real financial data is never included in tests.
"""
