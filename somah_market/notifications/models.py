# somah_market/notifications/models.py - Очередь уведомлений о заказах

import uuid

from django.db import models
from django.utils import timezone


class TelegramNotification(models.Model):
    """Уведомление о заказе для операционного чата в Telegram.

    Rows are never deleted and form an audit trail of what was announced.
    """

    TYPE_NEW_ORDER = "new_order"
    TYPE_ORDER_UPDATE = "order_update"

    TYPE_CHOICES = [
        (TYPE_NEW_ORDER, "New order"),
        (TYPE_ORDER_UPDATE, "Order update"),
    ]

    STATE_PENDING = "pending"
    STATE_DELIVERED = "delivered"
    STATE_RETRYING = "retrying"
    STATE_DEAD_LETTERED = "dead_lettered"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order = models.ForeignKey(
        "orders.Order", on_delete=models.CASCADE, related_name="telegram_notifications"
    )
    notification_type = models.CharField(
        max_length=50, choices=TYPE_CHOICES, default=TYPE_NEW_ORDER
    )
    message = models.TextField()

    # Статус
    sent = models.BooleanField(default=False)
    sent_at = models.DateTimeField(null=True, blank=True)

    # Повторы
    attempts = models.IntegerField(default=0)
    last_error = models.TextField(blank=True)
    dead_lettered = models.BooleanField(default=False)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        indexes = [
            models.Index(
                fields=["sent", "notification_type", "created_at"],
                name="tg_notification_pending_idx",
            ),
        ]
        ordering = ["created_at"]

    def __str__(self):
        return f"{self.notification_type} for order {self.order_id}"

    @property
    def delivery_state(self) -> str:
        if self.sent:
            return self.STATE_DELIVERED
        if self.dead_lettered:
            return self.STATE_DEAD_LETTERED
        if self.attempts:
            return self.STATE_RETRYING
        return self.STATE_PENDING
