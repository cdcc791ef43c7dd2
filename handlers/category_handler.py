"""
handlers/category_handler.py
-----------------------------
Handles category management. Standard construction categories are
protected from deletion here; the settings store itself does not care.
"""

from telegram import Update
from telegram.ext import ContextTypes

from handlers.common import get_services, reply_error
from security.auth import authorized_only
from security.rate_limiter import rate_limited
from utils.exceptions import ExpenzooError
from utils.logger import get_logger

logger = get_logger(__name__)

USAGE = (
    "🏷️ Categories\n\n"
    "• /categories → list\n"
    "• /categories add <name>\n"
    "• /categories rename <old> | <new>\n"
    "• /categories delete <name>"
)


@authorized_only
@rate_limited
async def categories_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /categories [add|rename|delete] ..."""
    settings = get_services(context).settings
    args = context.args or []

    if not args:
        names = settings.get_categories()
        lines = [f"🏷️ Categories ({len(names)}):"]
        for name in names:
            lock = " 🔒" if settings.is_protected(name) else ""
            lines.append(f"  • {name}{lock}")
        await update.message.reply_text("\n".join(lines))
        return

    action = args[0].lower()
    text = " ".join(args[1:]).strip()

    try:
        if action == "add":
            if not text:
                await update.message.reply_text("⚠️ Please enter a category name.")
                return
            name = settings.add_category(text)
            await update.message.reply_text(f"✅ Added category \"{name}\".")

        elif action == "rename":
            old, sep, new = text.partition("|")
            if not sep or not old.strip() or not new.strip():
                await update.message.reply_text("⚠️ Usage: /categories rename <old> | <new>")
                return
            if settings.rename_category(old, new):
                await update.message.reply_text(f"✏️ Renamed \"{old.strip()}\" to \"{new.strip()}\".")
            else:
                await update.message.reply_text(f"⚠️ No category named \"{old.strip()}\".")

        elif action == "delete":
            if not text:
                await update.message.reply_text("⚠️ Usage: /categories delete <name>")
                return
            if settings.is_protected(text):
                await update.message.reply_text("🔒 Standard construction categories cannot be deleted.")
                return
            if settings.remove_category(text):
                await update.message.reply_text(
                    f"🗑️ Deleted category \"{text}\". Existing expenses keep their category."
                )
            else:
                await update.message.reply_text(f"⚠️ No category named \"{text}\".")

        else:
            await update.message.reply_text(USAGE)
    except ExpenzooError as e:
        await reply_error(update, e)
