from datetime import timedelta
from decimal import Decimal

import pytest
import requests
from django.core.cache import cache
from django.utils import timezone

from somah_market.notifications import service as service_module
from somah_market.notifications.models import TelegramNotification
from somah_market.notifications.service import OrderNotificationService
from somah_market.notifications.tasks import poll_order_notifications
from somah_market.orders.models import Order, OrderItem
from somah_market.orders.services import OrderNotFound


@pytest.fixture(autouse=True)
def notification_settings(settings):
    cache.clear()
    settings.TELEGRAM_OPERATIONS_CHAT_ID = "-100123"
    settings.ORDER_NOTIFICATION_BATCH_SIZE = 10
    settings.ORDER_NOTIFICATION_MAX_ATTEMPTS = 5
    settings.ORDER_NOTIFICATION_SEND_DELAY = 0
    settings.ORDER_NOTIFICATION_POLL_KINDS = ["new_order", "order_update"]
    yield
    cache.clear()


@pytest.fixture
def sent_messages(monkeypatch):
    sent = []

    def fake_send(chat_id, text, **kwargs):
        sent.append({"chat_id": chat_id, "text": text, "kwargs": kwargs})
        return {"ok": True}

    monkeypatch.setattr("somah_market.telegram_bot.utils.send_telegram_message", fake_send)
    return sent


@pytest.fixture
def failing_sender(monkeypatch):
    def fake_send(chat_id, text, **kwargs):
        raise requests.ConnectionError("telegram unreachable")

    monkeypatch.setattr("somah_market.telegram_bot.utils.send_telegram_message", fake_send)


def create_order(number, total="120.00"):
    order = Order.objects.create(
        order_number=number,
        full_name="Aisha Khan",
        phone="+971500000000",
        address_line1="Villa 5",
        city="Dubai",
        emirate="Dubai",
        subtotal=Decimal(total),
        total_amount=Decimal(total),
    )
    OrderItem.objects.create(
        order=order,
        product_name="Ajwa dates",
        store_name="Date Palace",
        quantity=2,
        price=Decimal(total) / 2,
        original_price=Decimal(total) / 2,
    )
    return order


@pytest.mark.django_db
def test_new_order_creates_notification_record():
    order = create_order("SOMAH-000123")

    notification = TelegramNotification.objects.get(order=order)

    assert notification.notification_type == TelegramNotification.TYPE_NEW_ORDER
    assert notification.message == "New order #SOMAH-000123 created"
    assert notification.sent is False
    assert notification.delivery_state == TelegramNotification.STATE_PENDING


@pytest.mark.django_db
def test_poll_sends_oldest_batch_first(sent_messages):
    base = timezone.now() - timedelta(hours=1)
    for index in range(12):
        order = create_order(f"SOMAH-{index:06d}")
        TelegramNotification.objects.filter(order=order).update(
            created_at=base + timedelta(seconds=index)
        )

    delivered = poll_order_notifications()

    assert delivered == 10
    assert len(sent_messages) == 10
    assert "#SOMAH-000000" in sent_messages[0]["text"]
    assert "#SOMAH-000009" in sent_messages[-1]["text"]
    assert TelegramNotification.objects.filter(sent=False).count() == 2


@pytest.mark.django_db
def test_delivery_marks_sent_with_claim_keyboard(sent_messages):
    order = create_order("SOMAH-000123")
    notification = TelegramNotification.objects.get(order=order)

    assert OrderNotificationService.deliver(notification) is True

    notification.refresh_from_db()
    assert notification.sent is True
    assert notification.sent_at is not None
    assert notification.delivery_state == TelegramNotification.STATE_DELIVERED

    message = sent_messages[0]
    assert message["chat_id"] == "-100123"
    assert message["kwargs"]["parse_mode"] == "HTML"
    buttons = message["kwargs"]["reply_markup"]["inline_keyboard"][0]
    assert [button["text"] for button in buttons] == [
        "👤 Handled by Khaled",
        "👤 Handled by Hamad",
        "👤 Handled by Malil",
    ]
    assert buttons[0]["callback_data"] == f"handle_{order.id}_khaled"


@pytest.mark.django_db
def test_sent_notification_is_not_resent(sent_messages):
    order = create_order("SOMAH-000123")
    notification = TelegramNotification.objects.get(order=order)
    OrderNotificationService.deliver(notification)

    assert OrderNotificationService.process_queue() == 0
    assert len(sent_messages) == 1


@pytest.mark.django_db
def test_stale_batch_row_is_not_sent_twice(sent_messages):
    create_order("SOMAH-000123")
    batch = OrderNotificationService.pending_batch()

    assert OrderNotificationService.deliver_by_id(batch[0].id) is True
    assert OrderNotificationService.deliver(batch[0]) is False

    assert len(sent_messages) == 1


@pytest.mark.django_db
def test_failures_are_counted_from_stored_attempts(failing_sender):
    order = create_order("SOMAH-000123")
    stale = TelegramNotification.objects.get(order=order)
    TelegramNotification.objects.filter(pk=stale.pk).update(attempts=3)

    OrderNotificationService.deliver(stale)

    stale.refresh_from_db()
    assert stale.attempts == 4


@pytest.mark.django_db
def test_failed_send_is_retried_on_next_poll(failing_sender):
    order = create_order("SOMAH-000123")

    OrderNotificationService.process_queue()

    notification = TelegramNotification.objects.get(order=order)
    assert notification.sent is False
    assert notification.attempts == 1
    assert "telegram unreachable" in notification.last_error
    assert notification.delivery_state == TelegramNotification.STATE_RETRYING
    assert OrderNotificationService.pending_batch() == [notification]


@pytest.mark.django_db
def test_notification_dead_lettered_after_max_attempts(settings, failing_sender):
    settings.ORDER_NOTIFICATION_MAX_ATTEMPTS = 2
    order = create_order("SOMAH-000123")

    OrderNotificationService.process_queue()
    OrderNotificationService.process_queue()

    notification = TelegramNotification.objects.get(order=order)
    assert notification.attempts == 2
    assert notification.dead_lettered is True
    assert OrderNotificationService.pending_batch() == []


@pytest.mark.django_db
def test_missing_order_counts_as_failure(monkeypatch, sent_messages):
    order = create_order("SOMAH-000123")

    def missing(order_id):
        raise OrderNotFound(f"Order {order_id} not found")

    monkeypatch.setattr("somah_market.orders.services.get_order_with_items", missing)

    OrderNotificationService.process_queue()

    notification = TelegramNotification.objects.get(order=order)
    assert notification.attempts == 1
    assert sent_messages == []


@pytest.mark.django_db
def test_unknown_chat_leaves_notification_pending(settings, sent_messages):
    settings.TELEGRAM_OPERATIONS_CHAT_ID = ""
    order = create_order("SOMAH-000123")

    assert OrderNotificationService.process_queue() == 0

    notification = TelegramNotification.objects.get(order=order)
    assert notification.attempts == 0
    assert notification.sent is False
    assert sent_messages == []


@pytest.mark.django_db
def test_discovered_chat_is_used(settings, sent_messages):
    settings.TELEGRAM_OPERATIONS_CHAT_ID = ""
    cache.set("telegram:operations_chat_id", -100777, timeout=None)
    create_order("SOMAH-000123")

    OrderNotificationService.process_queue()

    assert sent_messages[0]["chat_id"] == -100777


@pytest.mark.django_db
def test_delay_between_consecutive_sends(monkeypatch, settings, sent_messages):
    settings.ORDER_NOTIFICATION_SEND_DELAY = 1
    sleeps = []
    monkeypatch.setattr(service_module.time, "sleep", sleeps.append)
    for index in range(3):
        create_order(f"SOMAH-00000{index}")

    OrderNotificationService.process_queue()

    assert sleeps == [1, 1]


@pytest.mark.django_db
def test_poll_respects_configured_kinds(settings, sent_messages):
    settings.ORDER_NOTIFICATION_POLL_KINDS = ["order_update"]
    create_order("SOMAH-000123")

    assert OrderNotificationService.process_queue() == 0
    assert sent_messages == []


@pytest.mark.django_db
def test_enqueue_dispatches_after_commit(django_capture_on_commit_callbacks, sent_messages):
    order = create_order("SOMAH-000123")
    TelegramNotification.objects.filter(order=order).update(sent=True)

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        notification = OrderNotificationService.enqueue(
            order, TelegramNotification.TYPE_ORDER_UPDATE, "Order #SOMAH-000123 confirmed"
        )

    assert len(callbacks) == 1
    notification.refresh_from_db()
    assert notification.sent is True
    assert len(sent_messages) == 1


@pytest.mark.django_db
def test_dispatch_falls_back_to_inline_delivery(
    monkeypatch, django_capture_on_commit_callbacks, sent_messages
):
    order = create_order("SOMAH-000123")
    notification = TelegramNotification.objects.get(order=order)

    def broker_down(*args, **kwargs):
        raise ConnectionError("broker unreachable")

    monkeypatch.setattr(
        "somah_market.notifications.tasks.deliver_order_notification.delay", broker_down
    )

    with django_capture_on_commit_callbacks(execute=True):
        OrderNotificationService.dispatch(notification)

    notification.refresh_from_db()
    assert notification.sent is True
