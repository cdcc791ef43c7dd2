"""
handlers/common.py
------------------
Formatting and argument-parsing helpers shared by the handlers.
"""

from typing import Optional, Union

from telegram import Update
from telegram.ext import ContextTypes

from config import CURRENCY_SYMBOL, DATE_DISPLAY_FORMAT
from models.expense import Expense
from services.container import BOT_DATA_KEY, AppServices
from services.ledger_service import ExpenseLedger
from utils.exceptions import ExpenzooError, StorageError
from utils.logger import get_logger

logger = get_logger(__name__)

SHORT_ID_LENGTH = 8

# option keyword -> ledger field
OPTION_ALIASES = {
    "title": "title",
    "amount": "amount",
    "category": "category",
    "cat": "category",
    "date": "date",
    "mode": "payment_mode",
    "pay": "payment_mode",
    "payment": "payment_mode",
    "notes": "notes",
    "note": "notes",
}


def get_services(context: ContextTypes.DEFAULT_TYPE) -> AppServices:
    """The AppServices container registered by main.py."""
    return context.bot_data[BOT_DATA_KEY]


def money(amount: float) -> str:
    return f"{CURRENCY_SYMBOL}{amount:,.2f}"


def short_id(expense_id: Optional[str]) -> str:
    return (expense_id or "")[:SHORT_ID_LENGTH]


def expense_line(e: Expense) -> str:
    """One-line summary used in lists."""
    return f"#{short_id(e.id)} | {e.date.strftime(DATE_DISPLAY_FORMAT)} | {e.category} | {e.title} | {money(e.amount)}"


def expense_details(e: Expense) -> str:
    lines = [
        f"🧾 {e.title}",
        f"  💰 Amount: {money(e.amount)}",
        f"  🏷️ Category: {e.category}",
        f"  💳 Payment: {e.payment_mode.value}",
        f"  📅 Date: {e.date.strftime(DATE_DISPLAY_FORMAT)}",
    ]
    if e.notes:
        lines.append(f"  📝 Notes: {e.notes}")
    if e.created_at:
        lines.append(f"  🕒 Added: {e.created_at.strftime('%Y-%m-%d %H:%M')} UTC")
    lines.append(f"  🔖 ID: {e.id}")
    return "\n".join(lines)


def parse_options(args: list[str]) -> tuple[list[str], dict[str, str]]:
    """
    Split command arguments into positional words and `key:value` options.

    Words after an option belong to that option's value, so
    `notes:first floor slab` yields {'notes': 'first floor slab'}.

    Returns:
        (positional words, {ledger field: value})
    """
    positional: list[str] = []
    options: dict[str, list[str]] = {}
    current: Optional[str] = None
    for token in args:
        key, sep, value = token.partition(":")
        field = OPTION_ALIASES.get(key.lower()) if sep else None
        if field:
            current = field
            options[current] = [value] if value else []
        elif current is not None:
            options[current].append(token)
        else:
            positional.append(token)
    return positional, {k: " ".join(v).strip() for k, v in options.items()}


def split_category(words: list[str], categories: list[str]) -> tuple[str, list[str]]:
    """
    Take the longest leading run of `words` that names a known category
    (case-insensitive). Falls back to the first word.

    Returns:
        (category, remaining words)
    """
    lookup = {c.lower(): c for c in categories}
    for size in range(len(words), 0, -1):
        candidate = " ".join(words[:size]).lower()
        if candidate in lookup:
            return lookup[candidate], words[size:]
    if not words:
        return "", []
    return words[0], words[1:]


def resolve_expense(ledger: ExpenseLedger, token: str) -> Union[Expense, str]:
    """
    Find an expense by full id or by the short id shown in lists.

    Returns:
        The Expense, or a user-facing error message.
    """
    token = token.lstrip("#")
    exact = ledger.get(token)
    if exact is not None:
        return exact
    matches = ledger.match_prefix(token)
    if not matches:
        return f"⚠️ No expense with id #{token}."
    if len(matches) > 1:
        return f"⚠️ #{token} matches {len(matches)} expenses, use more characters."
    return matches[0]


async def reply_error(update: Update, error: ExpenzooError) -> None:
    """Answer a failed operation; storage failures get a generic message."""
    if isinstance(error, StorageError):
        logger.error(f"Storage failure: {error}")
        await update.message.reply_text("❌ Could not save your change. Please try again.")
    else:
        await update.message.reply_text(f"⚠️ {error}")
