"""
handlers/report_handler.py
---------------------------
Handles /report: category breakdown, highest expense and a chart.
"""

from telegram import Update
from telegram.ext import ContextTypes

from handlers.common import get_services, money
from security.auth import authorized_only
from security.rate_limiter import rate_limited
from services import metrics_service as metrics
from utils.logger import get_logger

logger = get_logger(__name__)


@authorized_only
@rate_limited
async def report_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /report - ranked category totals with share of total spend."""
    services = get_services(context)
    expenses = services.ledger.list()

    if not expenses:
        await update.message.reply_text("📭 No expenses recorded yet.")
        return

    total = metrics.total_spent(expenses)
    lines = [
        "📊 Reports\n",
        f"Total spent: {money(total)}",
        f"This month: {money(metrics.month_spent(expenses))}\n",
        "Category breakdown:",
    ]
    for share in metrics.ranked_categories(expenses):
        lines.append(f"  • {share.category}: {money(share.amount)} ({share.percent:.1f}% of total)")

    highest = metrics.highest_expense(expenses)
    if highest is not None:
        lines.append(f"\n🏆 Highest expense: {highest.title} - {money(highest.amount)} ({highest.category})")

    await update.message.reply_text("\n".join(lines))

    try:
        buf = services.charts.category_pie(expenses)
    except Exception as e:
        logger.error(f"Chart generation failed: {e}")
        return
    if buf:
        await update.message.reply_photo(photo=buf, caption="📊 Spending by category")
