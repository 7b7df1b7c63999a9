# somah_market/notifications/tasks.py - Celery задачи

from celery import shared_task
import logging

logger = logging.getLogger(__name__)


@shared_task
def poll_order_notifications():
    """Периодическая рассылка неотправленных уведомлений о заказах"""
    from .service import OrderNotificationService

    delivered = OrderNotificationService.process_queue()
    logger.debug("Order notification poll finished, %s delivered", delivered)
    return delivered


@shared_task
def deliver_order_notification(notification_id):
    """Немедленная отправка одного уведомления"""
    from .service import OrderNotificationService

    return OrderNotificationService.deliver_by_id(notification_id)
