"""
Pytest Configuration and Shared Fixtures

Provides common test fixtures and configuration for the entire test suite.
"""

import tempfile
from decimal import Decimal
from pathlib import Path

import pytest

from expenses.core.dates import FinancialDate
from expenses.receipts.datastore import JsonReceiptStore
from expenses.receipts.models import Debtor, LineItem, ReceiptSplit


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_path:
        yield Path(temp_path)


@pytest.fixture
def receipt_store(temp_dir) -> JsonReceiptStore:
    """Receipt store in a throwaway directory, with two known debtors."""
    store = JsonReceiptStore(temp_dir / "receipts")
    store.save_debtors([Debtor(2, "Alice"), Debtor(3, "Bob")])
    return store


@pytest.fixture
def debtors() -> list[Debtor]:
    return [Debtor(2, "Alice"), Debtor(3, "Bob"), Debtor(4, "Carol")]


@pytest.fixture
def sample_line_items() -> list[LineItem]:
    """Three items worth 10, 20 and 5 (gross)."""
    return [
        LineItem(key="a", quantity=Decimal("1"), unit_price=Decimal("10.00"), product_name="Cheese"),
        LineItem(key="b", quantity=Decimal("2"), unit_price=Decimal("10.00"), product_name="Wine"),
        LineItem(key="c", quantity=Decimal("0.5"), unit_price=Decimal("10.00"), product_name="Apples"),
    ]


@pytest.fixture
def sample_splits() -> list[ReceiptSplit]:
    return [ReceiptSplit(debtor_id=2, shares=1, debtor_name="Alice"), ReceiptSplit(debtor_id=3, shares=2, debtor_name="Bob")]


@pytest.fixture
def receipt_date() -> FinancialDate:
    return FinancialDate.from_string("2024-05-01")


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch, tmp_path):
    """Set up test environment variables."""
    # Ensure tests don't use real data
    monkeypatch.setenv("EXPENSES_ENV", "test")
    monkeypatch.setenv("EXPENSES_DATA_DIR", str(tmp_path / "expenses_data"))
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    monkeypatch.setattr("expenses.core.config._config", None)

    for name in [
        "EXPENSES_DEBT_ENABLED",
        "EXPENSES_PAYMENT_METHODS_ENABLED",
        "EXPENSES_DEFAULT_PAYMENT_METHOD",
        "EXPENSES_CURRENCY_SYMBOL",
        "EXPENSES_DECIMAL_SEPARATOR",
        "DEBUG",
    ]:
        monkeypatch.delenv(name, raising=False)


# Test markers for categorizing tests
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: Integration tests for complete workflows")
    config.addinivalue_line("markers", "currency: Tests for currency handling and precision")
    config.addinivalue_line("markers", "splits: Tests for totals and split allocation")
    config.addinivalue_line("markers", "settlement: Tests for the settlement lock")
    config.addinivalue_line("markers", "editor: Tests for the receipt editing session")
    config.addinivalue_line("markers", "cli: Tests for command-line commands")
