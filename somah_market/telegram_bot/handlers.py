"""Обработка нажатий кнопок назначения и сообщений в группе."""

import logging

from django.conf import settings
from django.core.cache import cache

from somah_market.notifications.formatting import format_order_message
from somah_market.orders.services import OrderNotFound, get_order_with_items

from .channel import remember_operations_chat
from .keyboards import HANDLED_CALLBACK, build_handled_keyboard, parse_claim_data
from .utils import answer_callback_query, edit_message_text

logger = logging.getLogger(__name__)

ALREADY_ASSIGNED = "✅ This order is already assigned"
ASSIGNED = "✅ Order assigned to {handler}"
UPDATE_FAILED = "❌ Error updating order"
UNEXPECTED_ERROR = "❌ An error occurred"

OUTCOME_ASSIGNED = "assigned"
OUTCOME_ALREADY_ASSIGNED = "already_assigned"
OUTCOME_IGNORED = "ignored"
OUTCOME_FAILED = "failed"


def _claim_lock_key(chat_id, message_id):
    return f"telegram:claim:{chat_id}:{message_id}"


def handle_callback_query(callback_query_id, chat_id, message_id, data):
    """Назначение ответственного за заказ; побеждает первое нажатие.

    Returns one of the ``OUTCOME_*`` values.
    """
    if data == HANDLED_CALLBACK:
        answer_callback_query(callback_query_id, ALREADY_ASSIGNED)
        return OUTCOME_ALREADY_ASSIGNED

    claim = parse_claim_data(data)
    if claim is None:
        logger.info("Ignoring callback data %r from chat %s", data, chat_id)
        answer_callback_query(callback_query_id)
        return OUTCOME_IGNORED

    lock_key = _claim_lock_key(chat_id, message_id)
    if not cache.add(lock_key, claim.handler, timeout=settings.TELEGRAM_CLAIM_LOCK_TIMEOUT):
        answer_callback_query(callback_query_id, ALREADY_ASSIGNED)
        return OUTCOME_ALREADY_ASSIGNED

    try:
        try:
            order = get_order_with_items(claim.order_id)
        except OrderNotFound as exc:
            logger.warning("Claim by %s failed: %s", claim.handler, exc)
            cache.delete(lock_key)
            answer_callback_query(callback_query_id, UPDATE_FAILED, show_alert=True)
            return OUTCOME_FAILED

        text = format_order_message(order, handled_by=claim.handler)
        edited = edit_message_text(
            chat_id, message_id, text, reply_markup=build_handled_keyboard(claim.handler)
        )
        if edited is None:
            cache.delete(lock_key)
            answer_callback_query(callback_query_id, UNEXPECTED_ERROR, show_alert=True)
            return OUTCOME_FAILED
    except Exception:
        logger.exception("Error while assigning order %s", claim.order_id)
        cache.delete(lock_key)
        answer_callback_query(callback_query_id, UNEXPECTED_ERROR, show_alert=True)
        return OUTCOME_FAILED

    logger.info("Order %s assigned to %s", order.order_number, claim.handler)
    answer_callback_query(callback_query_id, ASSIGNED.format(handler=claim.handler))
    return OUTCOME_ASSIGNED


def handle_incoming_message(chat_id, chat_type, chat_title=None):
    """Сообщение в группе делает её операционным чатом."""
    return remember_operations_chat(chat_id, chat_type, chat_title)
