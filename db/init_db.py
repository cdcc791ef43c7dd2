"""
db/init_db.py
-------------
Creates the key-value table if it does not already exist.
Run this module directly to prepare a fresh database:
    python -m db.init_db
"""

import psycopg2

from db.connection import pooled_connection
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
-- One row per storage key; each value is a JSON-serialized blob
CREATE TABLE IF NOT EXISTS kv_store (
    key             TEXT PRIMARY KEY,
    value           TEXT NOT NULL,
    updated_at      TIMESTAMPTZ DEFAULT NOW()
);
"""


def create_tables() -> None:
    """Apply SCHEMA_SQL; safe to run repeatedly."""
    with pooled_connection() as conn:
        try:
            with conn.cursor() as cur:
                cur.execute(SCHEMA_SQL)
            conn.commit()
        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Failed to create kv_store: {e}")
            raise
    logger.info("kv_store table is ready.")


if __name__ == "__main__":
    from db.connection import close_pool, init_pool

    init_pool()
    try:
        create_tables()
    finally:
        close_pool()
    print("Expenzoo database initialized.")
