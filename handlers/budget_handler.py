"""
handlers/budget_handler.py
---------------------------
Handles the construction budget: status card and /budget set.
"""

from telegram import Update
from telegram.ext import ContextTypes

from handlers.common import get_services, money, reply_error
from security.auth import authorized_only
from security.rate_limiter import rate_limited
from services import metrics_service as metrics
from utils.exceptions import ExpenzooError
from utils.logger import get_logger

logger = get_logger(__name__)

_HEALTH_LABELS = {
    "critical": "🛑 CRITICAL",
    "warning": "⚠️ WARNING",
    "healthy": "✅ HEALTHY",
}


def _progress_bar(pct: float, length: int = 15) -> str:
    """Generate a text progress bar."""
    filled = int(min(max(pct, 0), 100) / 100 * length)
    return "█" * filled + "░" * (length - filled)


@authorized_only
@rate_limited
async def budget_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /budget command.

    Usage:
        /budget               → budget status
        /budget set 1500000   → change the total budget
    """
    services = get_services(context)
    args = context.args or []

    if args and args[0].lower() == "set":
        if len(args) < 2:
            await update.message.reply_text("⚠️ Usage: /budget set <amount>\nExample: /budget set 1500000")
            return
        try:
            budget = services.settings.set_budget(args[1].replace(",", ""))
        except ExpenzooError as e:
            await reply_error(update, e)
            return
        await update.message.reply_text(f"✅ Construction budget updated to {money(budget)}.")
        return

    if args:
        await update.message.reply_text(
            "⚠️ Unknown option.\n"
            "• /budget → budget status\n"
            "• /budget set <amount>"
        )
        return

    status = metrics.budget_status(services.ledger.list(), services.settings.get_budget())
    lines = [
        "💰 Construction Budget\n",
        f"Budget: {money(status.budget)}",
        f"Spent: {money(status.total_spent)}",
        f"Remaining: {money(status.remaining)}",
        f"{_progress_bar(status.percent_used)} {status.percent_used:.1f}%",
        f"Status: {_HEALTH_LABELS[status.health]}\n",
        f"You have used {status.percent_used:.1f}% of your total budget.",
    ]
    if status.remaining > 0:
        lines.append(f"You can still spend {money(status.remaining)} before hitting your limit.")
    else:
        lines.append("You are over budget! Review your construction plans.")
    await update.message.reply_text("\n".join(lines))
