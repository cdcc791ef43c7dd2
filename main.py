"""
main.py
-------
Entry point for the Expenzoo Telegram bot.

Responsibilities:
    - Create the persistence adapter chosen by STORAGE_BACKEND.
    - Build the ledger, settings and report services once and expose
      them to the handlers through bot_data.
    - Register all command handlers and start polling.
"""

from telegram import BotCommand
from telegram.ext import Application, CommandHandler

from config import STORAGE_BACKEND, TELEGRAM_BOT_TOKEN
from handlers.budget_handler import budget_command
from handlers.category_handler import categories_command
from handlers.expense_handler import (
    add_command,
    delete_command,
    edit_command,
    expense_command,
    home_command,
    list_command,
)
from handlers.export_handler import (
    backup_command,
    export_csv_command,
    export_excel_command,
    reset_command,
    restore_command,
)
from handlers.report_handler import report_command
from handlers.start_handler import help_command, myid_command, start_command
from services.container import BOT_DATA_KEY, AppServices, create_store
from utils.logger import get_logger

logger = get_logger(__name__)

COMMANDS = [
    ("start", "🚀 Start the bot", start_command),
    ("help", "📖 Show help", help_command),
    ("myid", "🆔 Your Telegram ID", myid_command),
    ("home", "🏗️ Budget card and recent expenses", home_command),
    ("add", "➕ Add an expense", add_command),
    ("list", "🧾 List expenses", list_command),
    ("expense", "🔎 Expense details", expense_command),
    ("edit", "✏️ Edit an expense", edit_command),
    ("delete", "🗑️ Delete an expense", delete_command),
    ("budget", "💰 Budget status", budget_command),
    ("categories", "🏷️ Manage categories", categories_command),
    ("report", "📊 Category report", report_command),
    ("export_csv", "📄 Export CSV", export_csv_command),
    ("export_excel", "📊 Export Excel", export_excel_command),
    ("backup", "💾 Download backup", backup_command),
    ("restore", "♻️ Restore a backup (reply to file)", restore_command),
    ("reset", "🧹 Delete all data", reset_command),
]


async def set_bot_commands(application: Application) -> None:
    """Register bot commands menu in Telegram on startup."""
    await application.bot.set_my_commands(
        [BotCommand(name, description) for name, description, _ in COMMANDS]
    )
    logger.info("Bot commands menu registered successfully.")


def build_application(services: AppServices, token: str = TELEGRAM_BOT_TOKEN) -> Application:
    """Create the Telegram application with every handler and the services attached."""
    app = Application.builder().token(token).post_init(set_bot_commands).build()
    app.bot_data[BOT_DATA_KEY] = services
    for name, _, callback in COMMANDS:
        app.add_handler(CommandHandler(name, callback))
    return app


def main() -> None:
    """Initialize storage and run the bot."""

    # ── 1. Storage and services ───────────────────────────
    logger.info(f"Initializing {STORAGE_BACKEND} storage...")
    store = create_store()
    services = AppServices.build(store)

    # ── 2. Telegram application ───────────────────────────
    if not TELEGRAM_BOT_TOKEN:
        raise SystemExit("TELEGRAM_BOT_TOKEN is not set. Add it to your .env file.")
    logger.info("Starting Telegram bot...")
    app = build_application(services)

    # ── 3. Start polling ──────────────────────────────────
    logger.info("Expenzoo is running! Press Ctrl+C to stop.")
    app.run_polling(drop_pending_updates=True, allowed_updates=["message"])

    # ── 4. Cleanup on shutdown ────────────────────────────
    if STORAGE_BACKEND == "postgres":
        from db.connection import close_pool
        close_pool()
    logger.info("Expenzoo stopped.")


if __name__ == "__main__":
    main()
