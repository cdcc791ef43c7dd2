"""
security/auth.py
-----------------
Authentication middleware for the Telegram bot.
Expenzoo holds one owner's ledger, so only whitelisted users may reach it.
"""

from functools import wraps
from typing import Callable

from telegram import Update
from telegram.ext import ContextTypes

import config
from utils.logger import get_logger

logger = get_logger(__name__)


def authorized_only(func: Callable):
    """
    Decorator that restricts a handler to whitelisted users only.

    Behavior:
        - If ALLOWED_USER_IDS is empty, ALL users are allowed (dev mode).
        - Otherwise anyone not on the list gets a refusal and the attempt is logged.
    """
    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
        user = update.effective_user
        if not user:
            return

        allowed = config.ALLOWED_USER_IDS
        if allowed and user.id not in allowed:
            logger.warning(
                f"Unauthorized access attempt: user_id={user.id}, "
                f"username={user.username}, name={user.first_name}"
            )
            if update.effective_message:
                await update.effective_message.reply_text(
                    "⛔ Sorry, this Expenzoo ledger is private."
                )
            return

        return await func(update, context, *args, **kwargs)

    return wrapper
