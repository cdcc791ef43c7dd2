"""
repositories/kv_repo.py
-----------------------
Key-value persistence adapters.

Every adapter maps string keys to string values (JSON blobs) and
offers `set_many` / `remove_many`, which apply several keys in one
atomic step. Any I/O failure surfaces as StorageError.
"""

import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Mapping, Optional

import psycopg2
from psycopg2 import extras

from db.connection import pooled_connection
from utils.exceptions import StorageError
from utils.logger import get_logger

logger = get_logger(__name__)


class KeyValueStore(ABC):
    """Contract shared by all persistence adapters."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a single value."""

    @abstractmethod
    def set_many(self, items: Mapping[str, str]) -> None:
        """Store several values; either all are written or none."""

    def remove(self, key: str) -> None:
        self.remove_many([key])

    @abstractmethod
    def remove_many(self, keys: Iterable[str]) -> None:
        """Remove several keys; absent keys are ignored."""


class MemoryKeyValueStore(KeyValueStore):
    """Dict-backed store. Nothing survives the process."""

    def __init__(self, initial: Optional[Mapping[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def set_many(self, items: Mapping[str, str]) -> None:
        self._data.update(items)

    def remove_many(self, keys: Iterable[str]) -> None:
        for key in keys:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileKeyValueStore(KeyValueStore):
    """
    All keys kept in one JSON document on disk.

    Each write produces a complete new document in a temporary file
    next to the target and swaps it in with os.replace, so readers see
    either the old document or the new one.

    Writers are serialized on one lock, so two stores sharing the file
    cannot overwrite each other's keys.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._data: dict[str, str] = self._load()

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read data file {self.path}: {e}")
            raise StorageError(f"Could not read {self.path}") from e
        if not isinstance(data, dict):
            raise StorageError(f"{self.path} does not contain a JSON object")
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, data: dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(data, fh, ensure_ascii=False, indent=2)
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            logger.error(f"Failed to write data file {self.path}: {e}")
            raise StorageError(f"Could not write {self.path}") from e
        self._data = data

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def set_many(self, items: Mapping[str, str]) -> None:
        with self._lock:
            data = dict(self._data)
            data.update(items)
            self._write(data)

    def remove_many(self, keys: Iterable[str]) -> None:
        with self._lock:
            data = dict(self._data)
            for key in keys:
                data.pop(key, None)
            self._write(data)


class PostgresKeyValueStore(KeyValueStore):
    """Store backed by the `kv_store` table (see db/init_db.py)."""

    # ── READ ──────────────────────────────────────────────

    def get(self, key: str) -> Optional[str]:
        sql = "SELECT value FROM kv_store WHERE key = %s;"
        with pooled_connection() as conn:
            try:
                with conn.cursor() as cur:
                    cur.execute(sql, (key,))
                    row = cur.fetchone()
            except psycopg2.Error as e:
                conn.rollback()
                logger.error(f"Failed to read key {key}: {e}")
                raise StorageError(f"Could not read '{key}'") from e
        return row[0] if row else None

    # ── WRITE ─────────────────────────────────────────────

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def set_many(self, items: Mapping[str, str]) -> None:
        """Upsert every item inside a single transaction."""
        sql = """
            INSERT INTO kv_store (key, value)
            VALUES %s
            ON CONFLICT (key)
            DO UPDATE SET value = EXCLUDED.value, updated_at = NOW();
        """
        rows = list(items.items())
        if not rows:
            return
        keys = [k for k, _ in rows]
        with pooled_connection() as conn:
            try:
                with conn.cursor() as cur:
                    extras.execute_values(cur, sql, rows)
                conn.commit()
            except psycopg2.Error as e:
                conn.rollback()
                logger.error(f"Failed to write keys {keys}: {e}")
                raise StorageError("Could not write to the database") from e
        logger.debug(f"Wrote keys {keys}")

    # ── DELETE ────────────────────────────────────────────

    def remove_many(self, keys: Iterable[str]) -> None:
        sql = "DELETE FROM kv_store WHERE key = ANY(%s);"
        key_list = list(keys)
        with pooled_connection() as conn:
            try:
                with conn.cursor() as cur:
                    cur.execute(sql, (key_list,))
                conn.commit()
            except psycopg2.Error as e:
                conn.rollback()
                logger.error(f"Failed to remove keys {key_list}: {e}")
                raise StorageError("Could not delete from the database") from e
