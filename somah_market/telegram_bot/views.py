import json
import logging

from django.conf import settings
from django.http import (
    HttpResponse,
    HttpResponseBadRequest,
    HttpResponseForbidden,
    JsonResponse,
)
from django.views.decorators.csrf import csrf_exempt

from .handlers import handle_callback_query, handle_incoming_message

logger = logging.getLogger(__name__)


def verify_webhook_signature(request):
    return (
        request.headers.get("X-Telegram-Bot-Api-Secret-Token")
        == settings.WEBHOOK_SECRET
    )


@csrf_exempt
def telegram_webhook(request):
    """Handle updates pushed by Telegram (callback queries and group messages)."""
    if not verify_webhook_signature(request):
        return HttpResponseForbidden()
    if request.method == "GET":
        return HttpResponse("Telegram webhook is running")
    if request.method != "POST":
        return HttpResponseBadRequest("Method not allowed")

    try:
        data = json.loads(request.body)
    except json.JSONDecodeError:
        logger.error("Invalid JSON in webhook request")
        return HttpResponseBadRequest("Invalid JSON")

    callback = data.get("callback_query")
    if callback:
        message = callback.get("message") or {}
        chat = message.get("chat") or {}
        if chat.get("id") is not None:
            handle_callback_query(
                callback.get("id"),
                chat["id"],
                message.get("message_id"),
                callback.get("data") or "",
            )
        return JsonResponse({"ok": True})

    message = data.get("message")
    if message:
        chat = message.get("chat") or {}
        if chat.get("id") is not None:
            handle_incoming_message(chat["id"], chat.get("type"), chat.get("title"))

    return JsonResponse({"ok": True})
