"""
services/settings_service.py
----------------------------
Budget and category list, persisted independently of the ledger.
"""

import json
import math
import threading
from typing import Optional

from config import DEFAULT_BUDGET, DEFAULT_CATEGORIES, PROTECTED_CATEGORIES
from repositories.kv_repo import KeyValueStore
from utils.exceptions import DuplicateError, StorageError, ValidationError
from utils.logger import get_logger

logger = get_logger(__name__)

BUDGET_KEY = "@expenzoo_budget"
CATEGORIES_KEY = "@expenzoo_categories"


def parse_budget(value) -> float:
    """
    Coerce a budget value to a positive float.

    Raises:
        ValidationError: If the value is not a positive finite number.
    """
    if isinstance(value, bool):
        raise ValidationError("budget", "Please enter a valid budget amount.")
    try:
        budget = float(value)
    except (TypeError, ValueError):
        raise ValidationError("budget", "Please enter a valid budget amount.")
    if not math.isfinite(budget) or budget <= 0:
        raise ValidationError("budget", "Budget must be greater than 0.")
    return budget


def _clean_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("category", "Please enter a category name.")
    return name.strip()


class SettingsStore:
    """
    Owns the total budget and the ordered category set.

    Every successful mutation is written before it becomes visible in
    memory. Removing or renaming a category never touches expenses that
    still reference the old name.
    """

    def __init__(
        self,
        store: KeyValueStore,
        default_budget: float = DEFAULT_BUDGET,
        default_categories: Optional[list[str]] = None,
        protected_categories: Optional[list[str]] = None,
    ):
        self.store = store
        self.default_budget = default_budget
        self.default_categories = list(default_categories or DEFAULT_CATEGORIES)
        self.protected_categories = list(protected_categories or PROTECTED_CATEGORIES)
        self.lock = threading.RLock()
        self._budget = self.default_budget
        self._categories = list(self.default_categories)
        self.load()

    def load(self) -> None:
        """Read budget and categories from storage, falling back to defaults."""
        raw_budget = self.store.get(BUDGET_KEY)
        raw_categories = self.store.get(CATEGORIES_KEY)

        budget = self.default_budget
        if raw_budget is not None:
            try:
                budget = parse_budget(json.loads(raw_budget))
            except (ValueError, ValidationError):
                logger.warning(f"Ignoring invalid stored budget {raw_budget!r}")

        categories = list(self.default_categories)
        if raw_categories is not None:
            try:
                loaded = json.loads(raw_categories)
                if isinstance(loaded, list):
                    categories = dedupe([str(c) for c in loaded])
                else:
                    logger.warning("Stored categories are not a list, using defaults")
            except ValueError:
                logger.warning("Stored categories are not valid JSON, using defaults")

        with self.lock:
            self._budget = budget
            self._categories = categories

    # ── BUDGET ────────────────────────────────────────────

    def get_budget(self) -> float:
        return self._budget

    def set_budget(self, value) -> float:
        budget = parse_budget(value)
        with self.lock:
            self._persist({BUDGET_KEY: json.dumps(budget)})
            self._budget = budget
        logger.info(f"Budget set to {budget:.2f}")
        return budget

    # ── CATEGORIES ────────────────────────────────────────

    def get_categories(self) -> list[str]:
        return list(self._categories)

    def is_protected(self, name: str) -> bool:
        """True for the standard categories the bot refuses to delete."""
        return name.strip() in self.protected_categories

    def add_category(self, name: str) -> str:
        """
        Append a category.

        Raises:
            ValidationError: If the name is empty.
            DuplicateError: If the name already exists (exact match).
        """
        name = _clean_name(name)
        with self.lock:
            if name in self._categories:
                raise DuplicateError(name)
            updated = self._categories + [name]
            self._save_categories(updated)
        logger.info(f"Added category '{name}'")
        return name

    def rename_category(self, old: str, new: str) -> bool:
        """
        Rename a category in place, keeping its position.

        Returns:
            True if renamed, False if `old` does not exist.

        Raises:
            ValidationError: If the new name is empty.
            DuplicateError: If `new` names another existing category.
        """
        old = old.strip() if isinstance(old, str) else old
        new = _clean_name(new)
        with self.lock:
            if old not in self._categories:
                return False
            if new == old:
                return True
            if new in self._categories:
                raise DuplicateError(new)
            updated = [new if c == old else c for c in self._categories]
            self._save_categories(updated)
        logger.info(f"Renamed category '{old}' to '{new}'")
        return True

    def remove_category(self, name: str) -> bool:
        """Remove a category. Returns False if it did not exist."""
        name = name.strip() if isinstance(name, str) else name
        with self.lock:
            if name not in self._categories:
                return False
            updated = [c for c in self._categories if c != name]
            self._save_categories(updated)
        logger.info(f"Removed category '{name}'")
        return True

    # ── STAGING (used by the backup coordinator) ──────────

    @staticmethod
    def serialize(budget: float, categories: list[str]) -> dict[str, str]:
        """Encode settings into the storage items they are persisted as."""
        return {
            BUDGET_KEY: json.dumps(budget),
            CATEGORIES_KEY: json.dumps(list(categories), ensure_ascii=False),
        }

    def adopt(self, budget: float, categories: list[str]) -> None:
        """Replace in-memory settings with values already written to storage."""
        with self.lock:
            self._budget = budget
            self._categories = list(categories)

    # ── HELPERS ───────────────────────────────────────────

    def _save_categories(self, categories: list[str]) -> None:
        self._persist({CATEGORIES_KEY: json.dumps(categories, ensure_ascii=False)})
        self._categories = categories

    def _persist(self, items: dict[str, str]) -> None:
        try:
            self.store.set_many(items)
        except StorageError as e:
            logger.error(f"Failed to persist settings: {e}")
            raise


def dedupe(names: list[str]) -> list[str]:
    """Drop repeated names, keeping the first occurrence."""
    seen: set[str] = set()
    result = []
    for name in names:
        if name not in seen:
            seen.add(name)
            result.append(name)
    return result
