"""
services/container.py
---------------------
Builds the store graph once at startup and hands it to the handlers.

Handlers receive an AppServices through `context.bot_data["services"]`
instead of reaching for module-level singletons.
"""

from dataclasses import dataclass
from typing import Optional

from config import DATA_FILE, STORAGE_BACKEND
from repositories.kv_repo import (
    JsonFileKeyValueStore, KeyValueStore, MemoryKeyValueStore, PostgresKeyValueStore,
)
from services.backup_service import BackupService
from services.chart_service import ChartService
from services.export_service import ExportService
from services.ledger_service import ExpenseLedger
from services.settings_service import SettingsStore
from utils.logger import get_logger

logger = get_logger(__name__)

BOT_DATA_KEY = "services"


@dataclass
class AppServices:
    """Everything a handler may need, wired to one persistence adapter."""
    store: KeyValueStore
    settings: SettingsStore
    ledger: ExpenseLedger
    backup: BackupService
    exporter: ExportService
    charts: ChartService

    @classmethod
    def build(cls, store: KeyValueStore) -> "AppServices":
        settings = SettingsStore(store)
        ledger = ExpenseLedger(store, settings=settings)
        return cls(
            store=store,
            settings=settings,
            ledger=ledger,
            backup=BackupService(ledger, settings),
            exporter=ExportService(),
            charts=ChartService(),
        )


def create_store(backend: Optional[str] = None, data_file: Optional[str] = None) -> KeyValueStore:
    """
    Create the persistence adapter named by STORAGE_BACKEND.

    Args:
        backend: 'file', 'postgres' or 'memory'; defaults to config.
        data_file: JSON document path for the 'file' backend.

    Raises:
        ValueError: For an unknown backend name.
    """
    backend = (backend or STORAGE_BACKEND).lower()
    if backend == "memory":
        logger.warning("Using in-memory storage; data is lost on exit.")
        return MemoryKeyValueStore()
    if backend == "file":
        path = data_file or DATA_FILE
        logger.info(f"Using JSON file storage at {path}")
        return JsonFileKeyValueStore(path)
    if backend == "postgres":
        from db.connection import init_pool
        from db.init_db import create_tables

        init_pool()
        create_tables()
        return PostgresKeyValueStore()
    raise ValueError(f"Unknown STORAGE_BACKEND: {backend!r}")
