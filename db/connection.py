"""
db/connection.py
----------------
PostgreSQL connection pool behind the Postgres key-value store.
Callers borrow a connection with `pooled_connection()`, which always
hands it back to the pool.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

import psycopg2
from psycopg2 import pool
from psycopg2.extensions import connection as PgConnection

from config import DATABASE_URL
from utils.logger import get_logger

logger = get_logger(__name__)

_pool: pool.SimpleConnectionPool | None = None


def init_pool(min_conn: int = 1, max_conn: int = 5, dsn: Optional[str] = None) -> None:
    """
    Open the pool once; later calls are ignored.

    Args:
        min_conn: Connections kept open.
        max_conn: Upper bound on open connections.
        dsn: Connection string; defaults to DATABASE_URL.

    Raises:
        psycopg2.OperationalError: If the database is unreachable.
    """
    global _pool
    if _pool is not None:
        return
    try:
        _pool = pool.SimpleConnectionPool(min_conn, max_conn, dsn or DATABASE_URL)
    except psycopg2.OperationalError as e:
        logger.error(f"Could not open the Expenzoo database pool: {e}")
        raise
    logger.info(f"Database pool ready ({min_conn}-{max_conn} connections).")


def is_initialized() -> bool:
    return _pool is not None


@contextmanager
def pooled_connection() -> Iterator[PgConnection]:
    """
    Borrow a connection for the duration of a `with` block.

    Transaction control (commit/rollback) stays with the caller.

    Raises:
        RuntimeError: If init_pool() has not been called.
    """
    if _pool is None:
        raise RuntimeError("Database pool not initialized. Call init_pool() first.")
    conn = _pool.getconn()
    try:
        yield conn
    finally:
        _pool.putconn(conn)


def close_pool() -> None:
    global _pool
    if _pool is not None:
        _pool.closeall()
        _pool = None
        logger.info("Database pool closed.")
