"""
services/backup_service.py
--------------------------
Exports the ledger and settings as one portable snapshot and restores
them from one.

A restore validates the whole snapshot first, then writes budget,
categories and expenses with a single `set_many` call. The in-memory
stores are swapped only after that write succeeds, so a failed restore
leaves both storage and memory as they were.
"""

import json
from typing import Any, Mapping, Union

from config import BACKUP_VERSION
from models.expense import Expense, new_expense_id, utc_now
from models.snapshot import Snapshot
from services.ledger_service import EXPENSES_KEY, ExpenseLedger, validate_amount
from services.settings_service import (
    BUDGET_KEY, CATEGORIES_KEY, SettingsStore, dedupe, parse_budget,
)
from utils.exceptions import InvalidBackupError, StorageError, ValidationError
from utils.logger import get_logger

logger = get_logger(__name__)


class BackupService:
    """
    Coordinates snapshot export, restore and full reset.

    The ledger and settings store must share one persistence adapter,
    otherwise the three keys could not be written in one step.
    """

    def __init__(self, ledger: ExpenseLedger, settings: SettingsStore, version: str = BACKUP_VERSION):
        if ledger.store is not settings.store:
            raise ValueError("Ledger and settings must share the same key-value store")
        self.ledger = ledger
        self.settings = settings
        self.store = ledger.store
        self.version = version

    # ── EXPORT ────────────────────────────────────────────

    def export_snapshot(self) -> Snapshot:
        """Capture the currently loaded ledger and settings."""
        with self.ledger.lock, self.settings.lock:
            snapshot = Snapshot(
                version=self.version,
                timestamp=utc_now().isoformat(),
                budget=self.settings.get_budget(),
                categories=self.settings.get_categories(),
                expenses=self.ledger.list(),
            )
        logger.info(f"Exported snapshot with {len(snapshot.expenses)} expenses")
        return snapshot

    @staticmethod
    def dumps(snapshot: Snapshot) -> str:
        """Render a snapshot as the backup file's JSON text."""
        return json.dumps(snapshot.to_dict(), ensure_ascii=False, indent=2)

    @staticmethod
    def loads(text: Union[str, bytes]) -> dict:
        """
        Parse backup file contents.

        Raises:
            InvalidBackupError: If the text is not a JSON object.
        """
        try:
            if isinstance(text, (bytes, bytearray)):
                text = bytes(text).decode("utf-8-sig")
            data = json.loads(text)
        except (UnicodeDecodeError, ValueError) as e:
            raise InvalidBackupError(f"Invalid backup file: {e}") from e
        if not isinstance(data, dict):
            raise InvalidBackupError("Invalid backup file: expected a JSON object")
        return data

    # ── RESTORE ───────────────────────────────────────────

    def restore_snapshot(self, data: Union[Snapshot, Mapping[str, Any]]) -> Snapshot:
        """
        Replace the ledger and settings with the snapshot's contents.

        Absent budget or categories fall back to the defaults. Records
        keep their ids (`id` or legacy `_id`); records without one get a
        fresh id.

        Returns:
            The snapshot that is now live.

        Raises:
            InvalidBackupError: If validation fails; nothing was changed.
            StorageError: If the write failed; nothing was changed.
        """
        if isinstance(data, Snapshot):
            data = data.to_dict()
        if not isinstance(data, Mapping):
            raise InvalidBackupError("Invalid backup file: expected a JSON object")

        expenses = self._parse_expenses(data.get("expenses"))
        budget = self._parse_budget(data.get("budget"))
        categories = self._parse_categories(data.get("categories"))

        items = {}
        items.update(self.settings.serialize(budget, categories))
        items.update(self.ledger.serialize(expenses))

        with self.ledger.lock, self.settings.lock:
            try:
                self.store.set_many(items)
            except StorageError as e:
                logger.error(f"Restore failed while writing: {e}")
                raise
            self.settings.adopt(budget, categories)
            self.ledger.adopt(expenses)

        logger.info(
            f"Restored {len(expenses)} expenses, {len(categories)} categories, "
            f"budget {budget:.2f}"
        )
        return Snapshot(
            version=str(data.get("version") or self.version),
            timestamp=str(data.get("timestamp") or ""),
            budget=budget,
            categories=categories,
            expenses=expenses,
        )

    def reset(self) -> None:
        """Delete all stored data and return both stores to their defaults."""
        with self.ledger.lock, self.settings.lock:
            try:
                self.store.remove_many([BUDGET_KEY, CATEGORIES_KEY, EXPENSES_KEY])
            except StorageError as e:
                logger.error(f"Reset failed: {e}")
                raise
            self.settings.adopt(self.settings.default_budget, self.settings.default_categories)
            self.ledger.adopt([])
        logger.info("All data reset to defaults")

    # ── VALIDATION ────────────────────────────────────────

    @staticmethod
    def _parse_expenses(raw: Any) -> list[Expense]:
        if raw is None or not isinstance(raw, list):
            raise InvalidBackupError("Invalid backup file: Missing expenses data")

        expenses: list[Expense] = []
        seen: set[str] = set()
        for index, item in enumerate(raw):
            if not isinstance(item, Mapping):
                raise InvalidBackupError(f"Invalid backup file: expense #{index + 1} is not an object")
            try:
                expense = Expense.from_dict(item)
            except (KeyError, TypeError, ValueError) as e:
                raise InvalidBackupError(
                    f"Invalid backup file: expense #{index + 1} is malformed ({e})"
                ) from e
            try:
                validate_amount(expense.amount)
            except ValidationError as e:
                raise InvalidBackupError(
                    f"Invalid backup file: expense #{index + 1} has an invalid amount"
                ) from e
            if not expense.id:
                expense.id = new_expense_id()
            if expense.created_at is None:
                expense.created_at = utc_now()
            if expense.id in seen:
                raise InvalidBackupError(f"Invalid backup file: duplicate expense id {expense.id}")
            seen.add(expense.id)
            expenses.append(expense)
        return expenses

    def _parse_budget(self, raw: Any) -> float:
        if raw is None:
            return self.settings.default_budget
        try:
            return parse_budget(raw)
        except ValidationError as e:
            raise InvalidBackupError(f"Invalid backup file: {e.message}") from e

    def _parse_categories(self, raw: Any) -> list[str]:
        if raw is None:
            return list(self.settings.default_categories)
        if not isinstance(raw, list) or not all(isinstance(c, str) for c in raw):
            raise InvalidBackupError("Invalid backup file: categories must be a list of names")
        return dedupe([c.strip() for c in raw if c.strip()])
