"""
config.py
---------
Central configuration module. Loads all environment variables
from the .env file and exposes them as typed constants.
"""

import os
from dotenv import load_dotenv

load_dotenv()


# ── Telegram ──────────────────────────────────────────────
TELEGRAM_BOT_TOKEN: str = os.getenv("TELEGRAM_BOT_TOKEN", "")

# ── Storage ───────────────────────────────────────────────
# 'file' (single JSON document), 'postgres' (kv_store table) or 'memory'
STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "file").lower()
DATA_FILE: str = os.getenv("DATA_FILE", "data/expenzoo.json")

# ── PostgreSQL ────────────────────────────────────────────
DB_HOST: str = os.getenv("DB_HOST", "localhost")
DB_PORT: int = int(os.getenv("DB_PORT", "5432"))
DB_NAME: str = os.getenv("DB_NAME", "expenzoo")
DB_USER: str = os.getenv("DB_USER", "expenzoo_user")
DB_PASS: str = os.getenv("DB_PASS", "")

DATABASE_URL: str = (
    f"postgresql://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
)

# ── Security ──────────────────────────────────────────────
_raw_ids = os.getenv("ALLOWED_USER_IDS", "")
ALLOWED_USER_IDS: list[int] = (
    [int(uid.strip()) for uid in _raw_ids.split(",") if uid.strip()]
    if _raw_ids
    else []
)

# ── Rate Limiting ─────────────────────────────────────────
RATE_LIMIT_MESSAGES: int = int(os.getenv("RATE_LIMIT_MESSAGES", "30"))
RATE_LIMIT_WINDOW_SECONDS: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

# ── Logging ───────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE: str = os.getenv("LOG_FILE", "")  # empty = stdout only

# ── Display ───────────────────────────────────────────────
CURRENCY_SYMBOL: str = os.getenv("CURRENCY_SYMBOL", "₹")
DATE_DISPLAY_FORMAT: str = os.getenv("DATE_DISPLAY_FORMAT", "%d/%m/%Y")

# ── Ledger defaults ───────────────────────────────────────
DEFAULT_BUDGET: float = float(os.getenv("DEFAULT_BUDGET", "1000000"))  # 10 Lakhs

DEFAULT_CATEGORIES: list[str] = [
    "Cement", "Steel", "Sand", "Bricks",
    "Labour", "Electrical", "Plumbing", "Painting",
]

# Refused by the bot's /categories delete; the store itself allows it.
PROTECTED_CATEGORIES: list[str] = ["Cement", "Steel", "Sand", "Bricks", "Labour"]

# ── Backup ────────────────────────────────────────────────
BACKUP_VERSION: str = "1.0.0"
