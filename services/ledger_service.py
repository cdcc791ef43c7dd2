"""
services/ledger_service.py
--------------------------
The expense ledger: the ordered list of expense records and the only
way to change it.

Workflow for every mutation:
    1. Validate the input.
    2. Build the new list without touching the current one.
    3. Persist the whole list as a single JSON blob.
    4. Swap the new list into memory only after the write succeeded.
"""

from __future__ import annotations

import dataclasses
import json
import math
import re
import threading
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Mapping, Optional

from models.expense import Expense, PaymentMode, new_expense_id, utc_now
from repositories.kv_repo import KeyValueStore
from utils.exceptions import StorageError, ValidationError
from utils.logger import get_logger

if TYPE_CHECKING:
    from services.settings_service import SettingsStore

logger = get_logger(__name__)

EXPENSES_KEY = "@expenses_data"

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 100
NOTES_MAX_LENGTH = 500

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Accepted keys in add()/update() field mappings
_FIELD_ALIASES = {
    "title": "title",
    "amount": "amount",
    "category": "category",
    "date": "date",
    "payment_mode": "payment_mode",
    "paymentMode": "payment_mode",
    "notes": "notes",
}


# ── Field validation ──────────────────────────────────────

def validate_title(value: Any) -> str:
    title = value.strip() if isinstance(value, str) else ""
    if len(title) < TITLE_MIN_LENGTH:
        raise ValidationError("title", "Expense title must be at least 3 characters long.")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError("title", "Title cannot be more than 100 characters.")
    return title


def validate_amount(value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationError("amount", "Please enter a valid amount greater than 0.")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError("amount", "Please enter a valid amount greater than 0.")
    if not math.isfinite(amount) or amount <= 0:
        raise ValidationError("amount", "Please enter a valid amount greater than 0.")
    return amount


def validate_date(value: Any) -> date:
    """Accept a date object or a strict YYYY-MM-DD string naming a real day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not _DATE_RE.match(value.strip()):
        raise ValidationError("date", "Date must be in YYYY-MM-DD format.")
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError("date", f"{value.strip()} is not a valid calendar date.")


def validate_payment_mode(value: Any) -> PaymentMode:
    try:
        return PaymentMode.parse(value)
    except ValueError:
        modes = ", ".join(m.value for m in PaymentMode)
        raise ValidationError("payment_mode", f"Payment mode must be one of: {modes}.")


def validate_notes(value: Any) -> str:
    notes = "" if value is None else str(value).strip()
    if len(notes) > NOTES_MAX_LENGTH:
        raise ValidationError("notes", "Notes cannot be more than 500 characters.")
    return notes


def _normalize_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    normalized = {}
    for key, value in fields.items():
        if key not in _FIELD_ALIASES:
            raise ValidationError(key, f"Unknown expense field '{key}'.")
        normalized[_FIELD_ALIASES[key]] = value
    return normalized


class ExpenseLedger:
    """
    Owns the expense records, newest first by insertion.

    Args:
        store: Persistence adapter holding the serialized list.
        settings: Optional settings store; when given, new expenses must
            use one of its categories.
    """

    def __init__(self, store: KeyValueStore, settings: Optional["SettingsStore"] = None):
        self.store = store
        self.settings = settings
        self.lock = threading.RLock()
        self._expenses: list[Expense] = []
        self.load()

    def load(self) -> None:
        """Read the expense list from storage. Undecodable records are skipped."""
        raw = self.store.get(EXPENSES_KEY)
        expenses: list[Expense] = []
        if raw is not None:
            try:
                items = json.loads(raw)
            except ValueError:
                logger.error("Stored expense list is not valid JSON, starting empty")
                items = []
            if not isinstance(items, list):
                logger.error("Stored expense list is not a list, starting empty")
                items = []
            for item in items:
                try:
                    expense = Expense.from_dict(item)
                except (AttributeError, KeyError, TypeError, ValueError) as e:
                    logger.warning(f"Skipping invalid stored expense: {e}")
                    continue
                if not expense.id:
                    expense.id = new_expense_id()
                expenses.append(expense)
        with self.lock:
            self._expenses = expenses
        logger.info(f"Loaded {len(expenses)} expenses")

    # ── READ ──────────────────────────────────────────────

    def list(self) -> list[Expense]:
        """All records, most recently added first."""
        return list(self._expenses)

    def get(self, expense_id: str) -> Optional[Expense]:
        for expense in self._expenses:
            if expense.id == expense_id:
                return expense
        return None

    def match_prefix(self, prefix: str) -> list[Expense]:
        """Records whose id starts with `prefix` (short ids shown in chat)."""
        prefix = prefix.strip().lower()
        if not prefix:
            return []
        return [e for e in self._expenses if e.id and e.id.lower().startswith(prefix)]

    def filter_by_category(self, category: str) -> list[Expense]:
        return [e for e in self._expenses if e.category == category]

    def __len__(self) -> int:
        return len(self._expenses)

    # ── CREATE ────────────────────────────────────────────

    def add(self, fields: Mapping[str, Any]) -> Expense:
        """
        Validate and prepend a new expense.

        Args:
            fields: title, amount, category, and optionally date
                (defaults to today), payment_mode and notes.

        Returns:
            The stored Expense with `id` and `created_at` populated.

        Raises:
            ValidationError: Naming the first offending field.
            StorageError: If the write failed; the ledger is unchanged.
        """
        data = _normalize_fields(fields)
        expense = Expense(
            title=validate_title(data.get("title")),
            amount=validate_amount(data.get("amount")),
            category=self._validate_category(data.get("category")),
            date=validate_date(data.get("date", date.today())),
            payment_mode=validate_payment_mode(data.get("payment_mode", PaymentMode.CASH)),
            notes=validate_notes(data.get("notes")),
            id=new_expense_id(),
            created_at=utc_now(),
        )
        with self.lock:
            while self.get(expense.id) is not None:
                expense.id = new_expense_id()
            self._commit([expense] + self._expenses)
        logger.info(f"Added expense {expense.id} ({expense.category}, {expense.amount:.2f})")
        return expense

    # ── UPDATE ────────────────────────────────────────────

    def update(self, expense_id: str, fields: Mapping[str, Any]) -> Optional[Expense]:
        """
        Replace a record with a merge of its current and the given fields.

        `id` and `created_at` are never changed.

        Returns:
            The new record, or None if no record has this id (nothing is written).

        Raises:
            ValidationError: If a merged field is invalid.
            StorageError: If the write failed; the ledger is unchanged.
        """
        data = _normalize_fields(fields)
        with self.lock:
            current = self.get(expense_id)
            if current is None:
                logger.debug(f"Update ignored, no expense {expense_id}")
                return None

            changes: dict[str, Any] = {}
            if "title" in data:
                changes["title"] = validate_title(data["title"])
            if "amount" in data:
                changes["amount"] = validate_amount(data["amount"])
            if "category" in data:
                category = data["category"]
                changes["category"] = (
                    current.category if category == current.category
                    else self._validate_category(category)
                )
            if "date" in data:
                changes["date"] = validate_date(data["date"])
            if "payment_mode" in data:
                changes["payment_mode"] = validate_payment_mode(data["payment_mode"])
            if "notes" in data:
                changes["notes"] = validate_notes(data["notes"])

            updated = dataclasses.replace(current, **changes)
            self._commit([updated if e.id == expense_id else e for e in self._expenses])
        logger.info(f"Updated expense {expense_id}: {sorted(changes)}")
        return updated

    # ── DELETE ────────────────────────────────────────────

    def delete(self, expense_id: str) -> bool:
        """
        Remove a record. Deleting an unknown id is a no-op.

        Returns:
            True if a record was removed.
        """
        with self.lock:
            remaining = [e for e in self._expenses if e.id != expense_id]
            if len(remaining) == len(self._expenses):
                return False
            self._commit(remaining)
        logger.info(f"Deleted expense {expense_id}")
        return True

    def clear(self) -> None:
        """Remove every record and persist the empty list."""
        with self.lock:
            self._commit([])
        logger.info("Cleared all expenses")

    # ── STAGING (used by the backup coordinator) ──────────

    @staticmethod
    def serialize(expenses: list[Expense]) -> dict[str, str]:
        """Encode a record list into the storage item it is persisted as."""
        return {
            EXPENSES_KEY: json.dumps([e.to_dict() for e in expenses], ensure_ascii=False)
        }

    def adopt(self, expenses: list[Expense]) -> None:
        """Replace the in-memory list with records already written to storage."""
        with self.lock:
            self._expenses = list(expenses)

    # ── HELPERS ───────────────────────────────────────────

    def _validate_category(self, value: Any) -> str:
        category = value.strip() if isinstance(value, str) else ""
        if not category:
            raise ValidationError("category", "Please choose a category.")
        if self.settings is not None and category not in self.settings.get_categories():
            raise ValidationError("category", f"Unknown category '{category}'.")
        return category

    def _commit(self, expenses: list[Expense]) -> None:
        try:
            self.store.set_many(self.serialize(expenses))
        except StorageError as e:
            logger.error(f"Failed to persist expenses: {e}")
            raise
        self._expenses = expenses
