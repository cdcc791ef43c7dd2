"""
handlers/start_handler.py
--------------------------
Handles /start, /help and /myid.
"""

from telegram import Update
from telegram.ext import ContextTypes

from security.auth import authorized_only
from security.rate_limiter import rate_limited
from utils.logger import get_logger

logger = get_logger(__name__)

HELP_TEXT = """
🏗️ Expenzoo - construction expense tracker

🧾 Expenses
/home - budget card and recent expenses
/add - add an expense (e.g. /add 42000 Cement 100 bags OPC)
/list [category] - all expenses, optionally one category
/expense <id> - expense details
/edit <id> field:value - edit an expense
/delete <id> - delete an expense

💰 Budget & categories
/budget - budget status
/budget set <amount> - change the budget
/categories - manage categories

📊 Reports & data
/report - category breakdown and chart
/export_csv - download all expenses as CSV
/export_excel - download all expenses as Excel
/backup - download a JSON backup
/restore - reply to a backup file to restore it
/reset confirm - delete all data
/myid - your Telegram ID
"""


@authorized_only
@rate_limited
async def start_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command - show welcome message."""
    user = update.effective_user
    logger.info(f"User {user.id} ({user.first_name}) started the bot.")

    await update.message.reply_text(
        f"Hello {user.first_name}! 👋\n"
        "Expenzoo keeps track of every rupee spent on your construction.\n\n"
        "Send /help to see all commands."
    )


@authorized_only
@rate_limited
async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command - show all available commands."""
    await update.message.reply_text(HELP_TEXT.strip())


async def myid_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /myid command - show the user's Telegram ID for whitelisting."""
    user = update.effective_user
    await update.message.reply_text(
        f"🆔 Your Telegram ID: {user.id}\n"
        "Add it to ALLOWED_USER_IDS in the .env file to secure the bot."
    )
