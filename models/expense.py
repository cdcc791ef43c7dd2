"""
models/expense.py
-----------------
Domain model for construction expense records.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional


class PaymentMode(str, Enum):
    """How an expense was paid."""

    CASH = "Cash"
    UPI = "UPI"
    BANK = "Bank"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: Any) -> "PaymentMode":
        """
        Resolve a payment mode from its value, case-insensitively.

        'Online' maps to UPI and 'Card' maps to Bank.

        Raises:
            ValueError: If the value names no known mode.
        """
        if isinstance(value, PaymentMode):
            return value
        text = str(value).strip().lower()
        for mode in cls:
            if mode.value.lower() == text:
                return mode
        if text in _ALIASES:
            return _ALIASES[text]
        raise ValueError(f"Unknown payment mode: {value!r}")


_ALIASES = {
    "online": PaymentMode.UPI,
    "card": PaymentMode.BANK,
}


def new_expense_id() -> str:
    """Return a fresh opaque expense identifier."""
    return uuid.uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting the JavaScript 'Z' suffix."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _require_text(data: dict, key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise TypeError(f"{key} must be a string")
    return value

@dataclass
class Expense:
    """
    A single construction expense.

    Attributes:
        id: Opaque identifier, assigned once by the ledger.
        title: Short description (3-100 characters).
        amount: Positive amount in the configured currency.
        category: Category name; not re-checked after creation.
        date: User-facing transaction date.
        payment_mode: How it was paid.
        notes: Optional free text (up to 500 characters).
        created_at: UTC timestamp of creation, never changed.
    """
    title: str
    amount: float
    category: str
    date: date = field(default_factory=date.today)
    payment_mode: PaymentMode = PaymentMode.CASH
    notes: str = ""
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        """Serialize to the JSON shape used by storage and backups."""
        return {
            "id": self.id,
            "title": self.title,
            "amount": self.amount,
            "category": self.category,
            "paymentMode": self.payment_mode.value,
            "notes": self.notes,
            "date": self.date.isoformat(),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Expense":
        """
        Build an Expense from its JSON shape.

        Legacy records carry their identifier under '_id'. A record
        without 'date' falls back to the date part of 'createdAt'.

        Raises:
            KeyError, TypeError, ValueError: If a required field is missing
            or malformed.
        """
        created_raw = data.get("createdAt")
        created_at = parse_timestamp(created_raw) if created_raw else None

        raw_date = data.get("date")
        if raw_date:
            tx_date = date.fromisoformat(str(raw_date)[:10])
        elif created_at is not None:
            tx_date = created_at.date()
        else:
            raise KeyError("date")

        amount = data["amount"]
        if isinstance(amount, bool):
            raise TypeError("amount must be a number")

        return cls(
            id=data.get("id") or data.get("_id"),
            title=_require_text(data, "title"),
            amount=float(amount),
            category=_require_text(data, "category"),
            date=tx_date,
            payment_mode=PaymentMode.parse(data.get("paymentMode") or PaymentMode.CASH),
            notes=str(data.get("notes") or ""),
            created_at=created_at,
        )

    def __str__(self) -> str:
        return f"{self.title} | {self.amount:.2f} | {self.category} | {self.date}"
