import logging

from asgiref.sync import sync_to_async
from django.conf import settings
from telegram import Update
from telegram.ext import (
    Application,
    CallbackQueryHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from .handlers import handle_callback_query, handle_incoming_message

logger = logging.getLogger(__name__)

ALLOWED_UPDATES = ["message", "callback_query"]


async def on_callback_query(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Нажатие кнопки под уведомлением о заказе."""
    query = update.callback_query
    if not query or not query.message:
        return

    await sync_to_async(handle_callback_query)(
        query.id,
        query.message.chat.id,
        query.message.message_id,
        query.data or "",
    )


async def on_group_message(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    chat = update.effective_chat
    if not chat:
        return
    await sync_to_async(handle_incoming_message)(chat.id, chat.type, chat.title)


def setup_application():
    if not settings.TELEGRAM_BOT_TOKEN or settings.TELEGRAM_BOT_TOKEN.startswith(
        "PLACEHOLDER"
    ):
        logger.warning("TELEGRAM_BOT_TOKEN not configured; bot will not start.")
        return None

    application = Application.builder().token(settings.TELEGRAM_BOT_TOKEN).build()

    application.add_handler(CallbackQueryHandler(on_callback_query))
    application.add_handler(MessageHandler(filters.ChatType.GROUPS, on_group_message))

    logger.info("Bot initialized")
    return application
