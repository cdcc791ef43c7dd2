"""
handlers/export_handler.py
---------------------------
Handles data export, backup, restore and reset commands.
Delegates to ExportService and BackupService.
"""

import io
from datetime import datetime

from telegram import Update
from telegram.ext import ContextTypes

from handlers.common import get_services, reply_error
from security.auth import authorized_only
from security.rate_limiter import rate_limited
from utils.exceptions import ExpenzooError
from utils.logger import get_logger

logger = get_logger(__name__)

MAX_BACKUP_BYTES = 10 * 1024 * 1024


def _stamp() -> int:
    return int(datetime.now().timestamp() * 1000)


@authorized_only
@rate_limited
async def export_csv_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /export_csv - send every expense as a CSV file."""
    services = get_services(context)
    try:
        buffer = services.exporter.to_csv(services.ledger.list())
    except ExpenzooError as e:
        await reply_error(update, e)
        return
    except Exception as e:
        logger.error(f"CSV export failed: {e}")
        await update.message.reply_text("❌ An error occurred while exporting data.")
        return

    await update.message.reply_document(
        document=buffer,
        filename=f"expenzoo_data_{_stamp()}.csv",
        caption="📄 Expenzoo expenses - CSV",
    )


@authorized_only
@rate_limited
async def export_excel_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /export_excel - send every expense as an Excel workbook."""
    services = get_services(context)
    try:
        buffer = services.exporter.to_excel(services.ledger.list())
    except ExpenzooError as e:
        await reply_error(update, e)
        return
    except Exception as e:
        logger.error(f"Excel export failed: {e}")
        await update.message.reply_text("❌ An error occurred while exporting data.")
        return

    await update.message.reply_document(
        document=buffer,
        filename=f"expenzoo_data_{_stamp()}.xlsx",
        caption="📊 Expenzoo expenses - Excel",
    )


@authorized_only
@rate_limited
async def backup_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /backup - send a JSON snapshot of expenses, budget and categories."""
    backup = get_services(context).backup
    snapshot = backup.export_snapshot()
    buffer = io.BytesIO(backup.dumps(snapshot).encode("utf-8"))
    await update.message.reply_document(
        document=buffer,
        filename=f"expenzoo_backup_{_stamp()}.json",
        caption=f"💾 Backup of {len(snapshot.expenses)} expenses. Reply to it with /restore to load it back.",
    )


@authorized_only
@rate_limited
async def restore_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Handle /restore, sent as a reply to a backup .json document.
    Replaces all current data with the backup's contents.
    """
    backup = get_services(context).backup
    replied = update.message.reply_to_message
    document = replied.document if replied else None

    if document is None:
        await update.message.reply_text(
            "⚠️ Reply to a backup .json file with /restore.\n"
            "This will replace all current data with the backup."
        )
        return
    if document.file_size and document.file_size > MAX_BACKUP_BYTES:
        await update.message.reply_text("⚠️ That file is too large to be an Expenzoo backup.")
        return

    try:
        tg_file = await document.get_file()
        raw = await tg_file.download_as_bytearray()
    except Exception as e:
        logger.error(f"Could not download backup file: {e}")
        await update.message.reply_text("❌ Could not download the backup file.")
        return

    try:
        restored = backup.restore_snapshot(backup.loads(bytes(raw)))
    except ExpenzooError as e:
        await reply_error(update, e)
        return

    await update.message.reply_text(
        "✅ Data restored successfully!\n"
        f"  🧾 {len(restored.expenses)} expenses\n"
        f"  🏷️ {len(restored.categories)} categories"
    )


@authorized_only
@rate_limited
async def reset_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /reset confirm - delete all expenses and restore default settings."""
    if not context.args or context.args[0].lower() != "confirm":
        await update.message.reply_text(
            "⚠️ This deletes ALL expenses and resets budget and categories.\n"
            "Send /reset confirm to continue."
        )
        return

    try:
        get_services(context).backup.reset()
    except ExpenzooError as e:
        await reply_error(update, e)
        return
    await update.message.reply_text("🧹 All construction data has been cleared.")
