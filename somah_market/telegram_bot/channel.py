"""Where order notifications are posted."""

import logging

from django.conf import settings
from django.core.cache import cache

from .utils import send_telegram_message

logger = logging.getLogger(__name__)

OPERATIONS_CHAT_CACHE_KEY = "telegram:operations_chat_id"
GROUP_CHAT_TYPES = ("group", "supergroup")
GREETING = "🤖 Somah Land Bot is now active! I will send order notifications here."


def get_operations_chat_id():
    """Настроенный чат, иначе найденный по первому групповому сообщению."""
    configured = settings.TELEGRAM_OPERATIONS_CHAT_ID
    if configured:
        return configured
    return cache.get(OPERATIONS_CHAT_CACHE_KEY)


def remember_operations_chat(chat_id, chat_type, title=None) -> bool:
    """Point notifications at the group that wrote last and greet it.

    Returns ``True`` when ``chat_id`` became the operations chat. A configured
    ``TELEGRAM_OPERATIONS_CHAT_ID`` is never replaced.
    """
    if chat_type not in GROUP_CHAT_TYPES:
        return False
    if settings.TELEGRAM_OPERATIONS_CHAT_ID:
        return False

    previous = cache.get(OPERATIONS_CHAT_CACHE_KEY)
    if previous == chat_id:
        return False
    cache.set(OPERATIONS_CHAT_CACHE_KEY, chat_id, timeout=None)

    if previous is None:
        logger.info("Operations chat discovered: %s (%s)", chat_id, title or chat_type)
    else:
        logger.info(
            "Operations chat moved from %s to %s (%s)", previous, chat_id, title or chat_type
        )
    try:
        send_telegram_message(chat_id, GREETING)
    except Exception as exc:  # noqa: BLE001 - приветствие не обязательно
        logger.warning("Failed to greet operations chat %s: %s", chat_id, exc)
    return True
