"""
models/snapshot.py
------------------
Portable backup of the ledger and settings, plus the small value
objects returned by the metrics engine.
"""

from dataclasses import dataclass, field
from typing import Optional

from models.expense import Expense


@dataclass
class Snapshot:
    """
    A complete backup at a point in time.

    Attributes:
        version: Backup format version.
        timestamp: ISO-8601 creation time.
        budget: Total budget.
        categories: Ordered category names.
        expenses: Ledger records, newest first.
    """
    version: str
    timestamp: str
    budget: float
    categories: list[str]
    expenses: list[Expense] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "timestamp": self.timestamp,
            "budget": self.budget,
            "categories": list(self.categories),
            "expenses": [e.to_dict() for e in self.expenses],
        }


@dataclass
class CategoryShare:
    """One row of the ranked category breakdown."""
    category: str
    amount: float
    percent: float


@dataclass
class BudgetStatus:
    """
    Budget usage derived from the ledger.

    `health` is one of 'healthy', 'warning' (over 70%) or 'critical' (over 90%).
    """
    budget: float
    total_spent: float
    month_spent: float
    remaining: float
    percent_used: float
    health: str
    highest: Optional[Expense] = None

    @property
    def over_budget(self) -> bool:
        return self.total_spent > self.budget
