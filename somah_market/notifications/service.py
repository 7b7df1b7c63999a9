# somah_market/notifications/service.py - Сервис уведомлений о заказах

import logging
import time
from typing import List

from django.conf import settings
from django.core.cache import cache
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from .models import TelegramNotification

logger = logging.getLogger(__name__)

DELIVERY_LOCK_TIMEOUT = 60


class OrderNotificationService:
    """Доставка уведомлений о заказах в операционный чат Telegram"""

    @classmethod
    def enqueue(cls, order, kind: str, message: str) -> TelegramNotification:
        """Создаёт запись уведомления и запускает её доставку."""
        notification = TelegramNotification.objects.create(
            order=order,
            notification_type=kind,
            message=message,
        )
        logger.info(
            "Queued %s notification %s for order %s",
            kind,
            notification.id,
            order.order_number,
        )
        cls.dispatch(notification)
        return notification

    @classmethod
    def dispatch(cls, notification: TelegramNotification) -> None:
        """Планирует доставку после коммита; без брокера отправляет сразу."""
        notification_id = notification.id

        def _schedule():
            try:
                from .tasks import deliver_order_notification

                deliver_order_notification.delay(str(notification_id))
            except Exception as exc:  # noqa: BLE001 - fallback
                logger.warning(
                    "Failed to enqueue delivery of notification %s: %s",
                    notification_id,
                    exc,
                )
                cls.deliver_by_id(notification_id)

        transaction.on_commit(_schedule)

    @classmethod
    def pending_batch(cls) -> List[TelegramNotification]:
        return list(
            TelegramNotification.objects.filter(
                sent=False,
                dead_lettered=False,
                notification_type__in=settings.ORDER_NOTIFICATION_POLL_KINDS,
            ).order_by("created_at")[: settings.ORDER_NOTIFICATION_BATCH_SIZE]
        )

    @classmethod
    def process_queue(cls) -> int:
        """Один проход поллера: отправляет пачку старейших записей.

        Returns the number of notifications delivered.
        """
        batch = cls.pending_batch()
        delivered = 0
        for index, notification in enumerate(batch):
            if index:
                time.sleep(settings.ORDER_NOTIFICATION_SEND_DELAY)
            try:
                if cls.deliver(notification):
                    delivered += 1
            except Exception:  # noqa: BLE001 - одна запись не останавливает проход
                logger.exception("Unexpected error delivering notification %s", notification.id)

        if batch:
            logger.info("Delivered %s of %s order notifications", delivered, len(batch))
        return delivered

    @classmethod
    def deliver_by_id(cls, notification_id) -> bool:
        notification = TelegramNotification.objects.filter(pk=notification_id).first()
        if notification is None:
            logger.warning("Notification %s no longer exists", notification_id)
            return False
        return cls.deliver(notification)

    @classmethod
    def deliver(cls, notification: TelegramNotification) -> bool:
        """Отправка одной записи в чат.

        Returns ``True`` only when the message reached Telegram and the row
        was marked sent. A missing chat id leaves the row untouched; every
        other failure is counted against the attempt limit.
        """
        from somah_market.orders.services import OrderNotFound, get_order_with_items
        from somah_market.telegram_bot.channel import get_operations_chat_id
        from somah_market.telegram_bot.keyboards import build_handler_keyboard
        from somah_market.telegram_bot.utils import send_telegram_message

        from .formatting import format_order_message

        if notification.sent or notification.dead_lettered:
            return False

        chat_id = get_operations_chat_id()
        if not chat_id:
            logger.warning(
                "Operations chat is unknown, notification %s left pending",
                notification.id,
            )
            return False

        lock_key = f"order-notification-delivery:{notification.id}"
        if not cache.add(lock_key, 1, timeout=DELIVERY_LOCK_TIMEOUT):
            logger.info("Notification %s is already being delivered", notification.id)
            return False

        try:
            notification.refresh_from_db(fields=["sent", "dead_lettered", "attempts"])
            if notification.sent or notification.dead_lettered:
                logger.info("Notification %s was handled by another worker", notification.id)
                return False

            try:
                order = get_order_with_items(notification.order_id)
            except OrderNotFound as exc:
                cls._register_failure(notification, exc)
                return False

            text = format_order_message(order)
            try:
                send_telegram_message(
                    chat_id,
                    text,
                    reply_markup=build_handler_keyboard(order.id),
                    parse_mode="HTML",
                )
            except Exception as exc:  # noqa: BLE001 - запись останется в очереди
                cls._register_failure(notification, exc)
                return False

            cls.mark_sent(notification)
            logger.info(
                "Order notification %s sent for order %s",
                notification.id,
                order.order_number,
            )
            return True
        finally:
            cache.delete(lock_key)

    @classmethod
    def mark_sent(cls, notification: TelegramNotification) -> None:
        now = timezone.now()
        TelegramNotification.objects.filter(pk=notification.pk, sent=False).update(
            sent=True, sent_at=now
        )
        notification.sent = True
        notification.sent_at = now

    @classmethod
    def _register_failure(cls, notification: TelegramNotification, error) -> None:
        TelegramNotification.objects.filter(pk=notification.pk).update(
            attempts=F("attempts") + 1, last_error=str(error)
        )
        notification.refresh_from_db(fields=["attempts", "last_error"])

        if notification.attempts >= settings.ORDER_NOTIFICATION_MAX_ATTEMPTS:
            TelegramNotification.objects.filter(pk=notification.pk).update(
                dead_lettered=True
            )
            notification.dead_lettered = True
            logger.error(
                "Notification %s dead-lettered after %s attempts: %s",
                notification.id,
                notification.attempts,
                error,
            )
        else:
            logger.warning(
                "Delivery of notification %s failed (attempt %s): %s",
                notification.id,
                notification.attempts,
                error,
            )

