"""
security/rate_limiter.py
-------------------------
Per-user sliding-window rate limiting for bot commands.
"""

import time
from collections import defaultdict, deque
from functools import wraps
from typing import Callable

from telegram import Update
from telegram.ext import ContextTypes

import config
from utils.logger import get_logger

logger = get_logger(__name__)

# {user_id: timestamps of accepted messages inside the current window}
_user_timestamps: dict[int, deque] = defaultdict(deque)


def _allow(user_id: int, now: float) -> bool:
    """Record a message for `user_id` unless the window is already full."""
    window = _user_timestamps[user_id]
    cutoff = now - config.RATE_LIMIT_WINDOW_SECONDS
    while window and window[0] <= cutoff:
        window.popleft()
    if len(window) >= config.RATE_LIMIT_MESSAGES:
        return False
    window.append(now)
    return True


def reset() -> None:
    """Forget all recorded timestamps."""
    _user_timestamps.clear()


def rate_limited(func: Callable):
    """
    Decorator that enforces RATE_LIMIT_MESSAGES per RATE_LIMIT_WINDOW_SECONDS per user.
    Over the limit, the user gets a warning and the handler is skipped.
    """
    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE, *args, **kwargs):
        user = update.effective_user
        if not user:
            return

        if not _allow(user.id, time.monotonic()):
            logger.warning(f"Rate limit hit for user {user.id}")
            if update.effective_message:
                await update.effective_message.reply_text(
                    "⚠️ Too many messages. Please wait a moment and try again."
                )
            return

        return await func(update, context, *args, **kwargs)

    return wrapper
