"""Model signal handlers for order notifications."""

from django.db.models.signals import post_save
from django.dispatch import receiver

from somah_market.orders.models import Order

from .models import TelegramNotification
from .service import OrderNotificationService


@receiver(post_save, sender=Order)
def queue_new_order_notification(sender, instance, created, **kwargs):
    """Каждый новый заказ получает запись new_order в очереди."""
    if not created:
        return

    OrderNotificationService.enqueue(
        instance,
        TelegramNotification.TYPE_NEW_ORDER,
        f"New order #{instance.order_number} created",
    )
