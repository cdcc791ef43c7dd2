"""
handlers/expense_handler.py
----------------------------
Handles expense interactions: dashboard, add, list, details, edit, delete.
Delegates all logic to the ExpenseLedger and the metrics engine.
"""

from telegram import Update
from telegram.ext import ContextTypes

from handlers.common import (
    expense_details, expense_line, get_services, money, parse_options,
    reply_error, resolve_expense, short_id, split_category,
)
from security.auth import authorized_only
from security.rate_limiter import rate_limited
from services import metrics_service as metrics
from utils.exceptions import ExpenzooError
from utils.logger import get_logger

logger = get_logger(__name__)

LIST_LIMIT = 30

ADD_USAGE = (
    "➕ Add an expense\n\n"
    "Format:\n"
    "/add <amount> <category> <title> [date:YYYY-MM-DD] [mode:Cash|UPI|Bank|Other] [notes:...]\n\n"
    "Examples:\n"
    "• /add 42000 Cement 100 bags OPC 53\n"
    "• /add 18500 Steel TMT bars 12mm date:2024-02-10 mode:Bank\n"
    "• /add 3000 Labour Mason wages notes:first floor slab"
)

EDIT_USAGE = (
    "✏️ Edit an expense\n\n"
    "Format:\n"
    "/edit <id> [title:...] [amount:...] [category:...] [date:YYYY-MM-DD] [mode:...] [notes:...]\n\n"
    "Example:\n"
    "• /edit 3f2a91c0 amount:45000 notes:price revised"
)


@authorized_only
@rate_limited
async def home_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /home - budget card, this month's spend and the five latest expenses."""
    services = get_services(context)
    expenses = services.ledger.list()
    status = metrics.budget_status(expenses, services.settings.get_budget())

    lines = [
        "🏗️ Expenzoo\n",
        f"💰 Budget: {money(status.budget)}",
        f"💸 Total spent: {money(status.total_spent)} ({status.percent_used:.1f}%)",
        f"🏦 Remaining: {money(status.remaining)}",
        f"📅 This month: {money(status.month_spent)}",
        "🛑 Over Budget" if status.over_budget else "✅ On Track",
    ]

    latest = metrics.recent(expenses)
    lines.append("\n🧾 Recent expenses:")
    if latest:
        lines.extend(f"  {expense_line(e)}" for e in latest)
    else:
        lines.append("  No expenses yet. Use /add to record one.")
    await update.message.reply_text("\n".join(lines))


@authorized_only
@rate_limited
async def add_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /add <amount> <category> <title> [options].
    Category may span several words when it matches a known category.
    """
    services = get_services(context)
    positional, options = parse_options(context.args or [])

    if len(positional) < 2 and "category" not in options:
        await update.message.reply_text(ADD_USAGE)
        return

    fields = dict(options)
    if positional:
        fields.setdefault("amount", positional[0].replace(",", ""))
        rest = positional[1:]
        if "category" not in fields:
            category, rest = split_category(rest, services.settings.get_categories())
            fields["category"] = category
        if "title" not in fields:
            fields["title"] = " ".join(rest)

    try:
        expense = services.ledger.add(fields)
    except ExpenzooError as e:
        await reply_error(update, e)
        return

    await update.message.reply_text(
        "✅ Expense added!\n"
        f"  🧾 {expense.title}\n"
        f"  🏷️ {expense.category} | 💳 {expense.payment_mode.value}\n"
        f"  💰 {money(expense.amount)} on {expense.date.isoformat()}\n"
        f"  🔖 #{short_id(expense.id)}"
    )


@authorized_only
@rate_limited
async def list_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /list [category] - all expenses, newest first, optionally one category.
    """
    services = get_services(context)

    if context.args:
        category = " ".join(context.args).strip()
        known = {c.lower(): c for c in services.settings.get_categories()}
        category = known.get(category.lower(), category)
        expenses = services.ledger.filter_by_category(category)
        header = f"🏷️ {category}"
    else:
        expenses = services.ledger.list()
        header = "🧾 All expenses"

    if not expenses:
        await update.message.reply_text("📭 No expenses found.")
        return

    lines = [f"{header} ({len(expenses)}) - {money(metrics.total_spent(expenses))}\n"]
    lines.extend(expense_line(e) for e in expenses[:LIST_LIMIT])
    if len(expenses) > LIST_LIMIT:
        lines.append(f"\n… and {len(expenses) - LIST_LIMIT} more. Use /export_csv for everything.")
    await update.message.reply_text("\n".join(lines))


@authorized_only
@rate_limited
async def expense_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /expense <id> - full details of one expense."""
    if not context.args:
        await update.message.reply_text("⚠️ Usage: /expense <id>")
        return

    found = resolve_expense(get_services(context).ledger, context.args[0])
    if isinstance(found, str):
        await update.message.reply_text(found)
        return
    await update.message.reply_text(expense_details(found))


@authorized_only
@rate_limited
async def edit_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /edit <id> field:value ... - change one or more fields of an expense."""
    services = get_services(context)

    if not context.args:
        await update.message.reply_text(EDIT_USAGE)
        return

    found = resolve_expense(services.ledger, context.args[0])
    if isinstance(found, str):
        await update.message.reply_text(found)
        return

    _, fields = parse_options(context.args[1:])
    if not fields:
        await update.message.reply_text("⚠️ Nothing to change.\n\n" + EDIT_USAGE)
        return
    if "amount" in fields:
        fields["amount"] = fields["amount"].replace(",", "")
    if "category" in fields:
        known = {c.lower(): c for c in services.settings.get_categories()}
        fields["category"] = known.get(fields["category"].lower(), fields["category"])

    try:
        updated = services.ledger.update(found.id, fields)
    except ExpenzooError as e:
        await reply_error(update, e)
        return

    if updated is None:
        await update.message.reply_text(f"⚠️ Expense #{short_id(found.id)} no longer exists.")
        return
    await update.message.reply_text("✏️ Expense updated!\n\n" + expense_details(updated))


@authorized_only
@rate_limited
async def delete_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /delete <id> - remove an expense."""
    services = get_services(context)

    if not context.args:
        await update.message.reply_text("⚠️ Usage: /delete <id>")
        return

    found = resolve_expense(services.ledger, context.args[0])
    if isinstance(found, str):
        await update.message.reply_text(found)
        return

    try:
        services.ledger.delete(found.id)
    except ExpenzooError as e:
        await reply_error(update, e)
        return
    await update.message.reply_text(f"🗑️ Deleted \"{found.title}\" ({money(found.amount)}).")
