"""Shared fixtures: every store runs against an in-memory key-value adapter."""

from datetime import date, datetime, timezone

import pytest

import config
from models.expense import Expense, PaymentMode
from repositories.kv_repo import MemoryKeyValueStore
from security import rate_limiter
from services.backup_service import BackupService
from services.ledger_service import ExpenseLedger
from services.settings_service import SettingsStore
from utils.exceptions import StorageError


class FailingStore(MemoryKeyValueStore):
    """Memory store whose writes can be switched to fail."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail_writes = False

    def set_many(self, items):
        if self.fail_writes:
            raise StorageError("disk full")
        super().set_many(items)

    def remove_many(self, keys):
        if self.fail_writes:
            raise StorageError("disk full")
        super().remove_many(keys)


@pytest.fixture
def store():
    return FailingStore()


@pytest.fixture
def settings(store):
    return SettingsStore(store)


@pytest.fixture
def ledger(store, settings):
    return ExpenseLedger(store, settings=settings)


@pytest.fixture
def backup(ledger, settings):
    return BackupService(ledger, settings)


@pytest.fixture(autouse=True)
def open_bot(monkeypatch):
    """Handlers: allow every user and start with an empty rate window."""
    monkeypatch.setattr(config, "ALLOWED_USER_IDS", [])
    rate_limiter.reset()
    yield
    rate_limiter.reset()


def make_expense(amount, category="Cement", day=date(2024, 2, 15), title="Material", **kwargs):
    """Build a record directly, bypassing the ledger."""
    return Expense(
        title=title,
        amount=amount,
        category=category,
        date=day,
        payment_mode=kwargs.pop("payment_mode", PaymentMode.CASH),
        id=kwargs.pop("id", None),
        created_at=kwargs.pop("created_at", datetime(2024, 2, 15, 10, 0, tzinfo=timezone.utc)),
        **kwargs,
    )
