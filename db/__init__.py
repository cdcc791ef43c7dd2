"""
db/ - Database Layer
====================
PostgreSQL connection pool and the kv_store schema.
Used by the Postgres adapter in repositories/kv_repo.py and at startup
when STORAGE_BACKEND is "postgres".
"""
