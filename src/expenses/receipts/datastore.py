#!/usr/bin/env python3
"""
Receipt DataStore Implementations

The persistence collaborator consumed by the receipt editor, plus a JSON
file implementation of it.

Layout under the receipts directory:
- receipt_<id>.json: receipt fields with its line items and splits
- repayments.json: repayment rows for all receipts
- debtors.json: debtor display data
"""

import logging
import uuid
from datetime import datetime
from json import JSONDecodeError
from pathlib import Path
from typing import Protocol

from ..core.config import PaymentMethodsConfig
from ..core.json_utils import read_json, write_json
from .models import Debtor, Repayment, StoredReceipt
from .working_set import ReceiptWorkingSet

logger = logging.getLogger(__name__)


class ReceiptPersistenceError(Exception):
    """Raised when receipt data can't be read or written."""

    pass


class ReceiptNotFoundError(ReceiptPersistenceError):
    """Raised when a receipt id has no stored document."""

    pass


class ReceiptRepository(Protocol):
    """
    Protocol for the receipt persistence collaborator.

    Implementations replace a receipt's line items and splits in one logical
    unit; callers treat a raised exception as "nothing changed".
    """

    def load(self, receipt_id: str) -> StoredReceipt:
        """
        Load a receipt with its line items, splits and repayments.

        Raises:
            ReceiptNotFoundError: If the receipt doesn't exist
        """
        ...

    def save(
        self,
        working_set: ReceiptWorkingSet,
        tentative: bool | None = None,
        payment_methods: PaymentMethodsConfig | None = None,
    ) -> str:
        """
        Persist a finalized working set.

        Returns:
            The receipt id (newly assigned for new receipts)

        Raises:
            ReceiptPersistenceError: If writing fails
        """
        ...

    def has_repayments(self, receipt_id: str) -> bool:
        """Whether any repayment references the receipt."""
        ...


class JsonReceiptStore:
    """
    ReceiptRepository backed by JSON documents.

    Each receipt is one document, so replacing its line items and splits is a
    single atomic file replace.
    """

    def __init__(self, receipts_dir: Path):
        """
        Initialize receipt store.

        Args:
            receipts_dir: Directory holding receipt documents (data/receipts)
        """
        self.receipts_dir = receipts_dir
        self._glob_pattern = "receipt_*.json"
        self.repayments_file = receipts_dir / "repayments.json"
        self.debtors_file = receipts_dir / "debtors.json"

    def _receipt_file(self, receipt_id: str) -> Path:
        return self.receipts_dir / f"receipt_{receipt_id}.json"

    def exists(self, receipt_id: str) -> bool:
        return self._receipt_file(receipt_id).exists()

    def receipt_ids(self) -> list[str]:
        """Ids of all stored receipts, sorted."""
        if not self.receipts_dir.exists():
            return []
        return sorted(path.stem.removeprefix("receipt_") for path in self.receipts_dir.glob(self._glob_pattern))

    def load(self, receipt_id: str) -> StoredReceipt:
        """Load a receipt with its line items, splits and repayments."""
        receipt_file = self._receipt_file(receipt_id)
        if not receipt_file.exists():
            raise ReceiptNotFoundError(f"Receipt not found: {receipt_id}")

        try:
            data = read_json(receipt_file)
            return StoredReceipt.from_dict(data, repayments=self.load_repayments(receipt_id))
        except (OSError, JSONDecodeError, KeyError, ValueError) as e:
            raise ReceiptPersistenceError(f"Failed to load receipt {receipt_id}: {e}") from e

    def load_all(self, include_tentative: bool = True) -> list[StoredReceipt]:
        """Load every stored receipt."""
        receipts = [self.load(receipt_id) for receipt_id in self.receipt_ids()]
        if include_tentative:
            return receipts
        return [r for r in receipts if not r.is_tentative]

    def save(
        self,
        working_set: ReceiptWorkingSet,
        tentative: bool | None = None,
        payment_methods: PaymentMethodsConfig | None = None,
    ) -> str:
        """Persist a working set as one receipt document."""
        receipt_id = working_set.receipt_id or uuid.uuid4().hex
        stored = working_set.to_stored_receipt(receipt_id, payment_methods, tentative)

        try:
            write_json(self._receipt_file(receipt_id), stored.to_dict())
        except (OSError, TypeError, ValueError) as e:
            raise ReceiptPersistenceError(f"Failed to save receipt {receipt_id}: {e}") from e

        logger.info(
            f"Saved receipt {receipt_id} ({stored.receipt_format.value}, "
            f"{len(stored.line_items)} items, {len(stored.splits)} splits)"
        )
        return receipt_id

    def delete(self, receipt_id: str) -> None:
        """Delete a receipt and the repayments that reference it."""
        receipt_file = self._receipt_file(receipt_id)
        if not receipt_file.exists():
            raise ReceiptNotFoundError(f"Receipt not found: {receipt_id}")
        receipt_file.unlink()
        remaining = [r for r in self.load_repayments() if r.receipt_id != receipt_id]
        self._write_repayments(remaining)

    def load_repayments(self, receipt_id: str | None = None) -> list[Repayment]:
        """Load repayment rows, optionally only those for one receipt."""
        if not self.repayments_file.exists():
            return []
        try:
            rows = [Repayment.from_dict(row) for row in read_json(self.repayments_file)]
        except (OSError, JSONDecodeError, KeyError, ValueError) as e:
            raise ReceiptPersistenceError(f"Failed to load repayments: {e}") from e
        if receipt_id is None:
            return rows
        return [r for r in rows if r.receipt_id == receipt_id]

    def has_repayments(self, receipt_id: str) -> bool:
        return bool(self.load_repayments(receipt_id))

    def add_repayment(self, repayment: Repayment) -> None:
        """
        Record a debtor paying back their portion.

        Raises:
            ReceiptNotFoundError: If the receipt doesn't exist
        """
        if not self.exists(repayment.receipt_id):
            raise ReceiptNotFoundError(f"Receipt not found: {repayment.receipt_id}")

        rows = [
            r
            for r in self.load_repayments()
            if not (r.receipt_id == repayment.receipt_id and r.debtor_id == repayment.debtor_id)
        ]
        rows.append(repayment)
        self._write_repayments(rows)
        logger.info(f"Recorded repayment from debtor {repayment.debtor_id} for receipt {repayment.receipt_id}")

    def delete_repayment(self, receipt_id: str, debtor_id: int) -> bool:
        """Remove a repayment row. Returns True if one was removed."""
        rows = self.load_repayments()
        remaining = [r for r in rows if not (r.receipt_id == receipt_id and r.debtor_id == debtor_id)]
        if len(remaining) == len(rows):
            return False
        self._write_repayments(remaining)
        return True

    def _write_repayments(self, rows: list[Repayment]) -> None:
        try:
            write_json(self.repayments_file, [r.to_dict() for r in rows])
        except (OSError, TypeError, ValueError) as e:
            raise ReceiptPersistenceError(f"Failed to save repayments: {e}") from e

    def load_debtors(self) -> list[Debtor]:
        if not self.debtors_file.exists():
            return []
        return [Debtor.from_dict(row) for row in read_json(self.debtors_file)]

    def save_debtors(self, debtors: list[Debtor]) -> None:
        write_json(self.debtors_file, [d.to_dict() for d in debtors])

    def debtor_names(self) -> dict[int, str]:
        return {d.id: d.name for d in self.load_debtors()}

    def last_modified(self) -> datetime | None:
        """Get timestamp of the most recently written receipt."""
        files = list(self.receipts_dir.glob(self._glob_pattern)) if self.receipts_dir.exists() else []
        if not files:
            return None
        latest = max(files, key=lambda p: p.stat().st_mtime)
        return datetime.fromtimestamp(latest.stat().st_mtime)

    def item_count(self) -> int:
        return len(self.receipt_ids())

    def summary_text(self) -> str:
        count = self.item_count()
        if count == 0:
            return "No receipts found"
        return f"Receipts: {count} stored, {len(self.load_repayments())} repayments"


class ReceiptDraftStore:
    """
    Keeps the working set of an unsaved new receipt between sessions.

    Only new receipts are drafted; edits of stored receipts are not.
    """

    def __init__(self, cache_dir: Path):
        self.cache_dir = cache_dir
        self.draft_file = cache_dir / "receipt_draft.json"

    def exists(self) -> bool:
        return self.draft_file.exists()

    def load(self) -> ReceiptWorkingSet | None:
        """Restore the draft, or None if there is none or it can't be read."""
        if not self.exists():
            return None
        try:
            return ReceiptWorkingSet.from_dict(read_json(self.draft_file))
        except (OSError, JSONDecodeError, KeyError, ValueError) as e:
            logger.warning(f"Failed to load receipt draft: {e}")
            return None

    def save(self, working_set: ReceiptWorkingSet) -> None:
        write_json(self.draft_file, working_set.to_dict())

    def clear(self) -> None:
        if self.draft_file.exists():
            self.draft_file.unlink()
