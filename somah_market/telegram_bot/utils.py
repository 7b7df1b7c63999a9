import html
import logging

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

_TELEGRAM_API = "https://api.telegram.org/bot{token}/{method}"

MESSAGE_LIMIT = 4096
TRUNCATION_SUFFIX = "\n…"


def _api_url(method):
    return _TELEGRAM_API.format(token=settings.TELEGRAM_BOT_TOKEN, method=method)


def fit_message_length(text, limit=MESSAGE_LIMIT):
    """Обрезает текст до лимита Telegram по последнему переводу строки."""
    if len(text) <= limit:
        return text
    head = text[: limit - len(TRUNCATION_SUFFIX)]
    cut = head.rfind("\n")
    if cut > 0:
        head = head[:cut]
    return head + TRUNCATION_SUFFIX


def send_telegram_message(chat_id, text, reply_markup=None, parse_mode=None):
    """Send a message via the Bot API; raises on HTTP errors.

    Without ``parse_mode`` the text is treated as plain and escaped for HTML.
    """
    if parse_mode is None:
        parse_mode = "HTML"
        text = html.escape(text or "")
    if not (text or "").strip():
        text = "."

    payload = {
        "chat_id": chat_id,
        "text": fit_message_length(text),
        "parse_mode": parse_mode,
    }
    if reply_markup:
        payload["reply_markup"] = reply_markup

    r = requests.post(_api_url("sendMessage"), json=payload, timeout=10)
    if r.status_code != 200:
        # Telegram возвращает точную причину в description
        logger.error("Telegram sendMessage %s; chat=%s; body=%s", r.status_code, chat_id, r.text)
    r.raise_for_status()
    return r.json()


def edit_message_text(chat_id, message_id, text, reply_markup=None):
    """Edit an existing HTML message, ``None`` on failure"""
    payload = {
        "chat_id": chat_id,
        "message_id": message_id,
        "text": fit_message_length(text),
        "parse_mode": "HTML",
        "disable_web_page_preview": True,
    }
    if reply_markup:
        payload["reply_markup"] = reply_markup

    try:
        response = requests.post(_api_url("editMessageText"), json=payload, timeout=10)
        response.raise_for_status()
        return response.json()
    except Exception as e:
        logger.error(f"Error editing message {message_id} in chat {chat_id}: {e}")
        return None


def answer_callback_query(callback_query_id, text=None, show_alert=False):
    """Answer a callback query (remove loading state from inline button)"""
    payload = {"callback_query_id": callback_query_id}
    if text:
        payload["text"] = text
        payload["show_alert"] = show_alert

    try:
        response = requests.post(_api_url("answerCallbackQuery"), json=payload, timeout=5)
        response.raise_for_status()
        return response.json()
    except Exception as e:
        logger.error(f"Error answering callback query {callback_query_id}: {e}")
        return None
