"""Сервисные функции для работы с заказами."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F

from somah_market.orders.models import Order, OrderItem, OrderStatusHistory
from somah_market.stores.models import Product

logger = logging.getLogger(__name__)


class OrderError(Exception):
    """Базовое исключение для ошибок операций с заказом."""


class OrderNotFound(OrderError):
    """Order id is unknown or malformed."""


@dataclass
class OrderLineRequest:
    product_id: str
    quantity: int
    price: Decimal


@dataclass
class CheckoutRequest:
    customer: object
    address: Dict[str, str]
    items: List[OrderLineRequest] = field(default_factory=list)
    payment_method: str = Order.PAYMENT_CASH_ON_DELIVERY
    notes: str = ""


ADDRESS_FIELDS = (
    "full_name",
    "phone",
    "address_line1",
    "address_line2",
    "city",
    "emirate",
    "postal_code",
    "country",
)
REQUIRED_ADDRESS_FIELDS = ("full_name", "phone", "address_line1", "city", "emirate")


def get_order_with_items(order_id) -> Order:
    """Свежая выборка заказа вместе с позициями, без кэша."""
    try:
        return Order.objects.prefetch_related("items").get(pk=order_id)
    except (Order.DoesNotExist, ValidationError, ValueError) as exc:
        raise OrderNotFound(f"Order {order_id} not found") from exc


def _validate_address(address: Dict[str, str]) -> Dict[str, str]:
    missing = [name for name in REQUIRED_ADDRESS_FIELDS if not address.get(name)]
    if missing:
        raise OrderError(f"Missing address fields: {', '.join(missing)}")
    return {name: address[name] for name in ADDRESS_FIELDS if address.get(name)}


def _to_price(value) -> Decimal:
    try:
        price = Decimal(str(value)).quantize(Decimal("0.01"))
    except (InvalidOperation, TypeError) as exc:
        raise OrderError(f"Invalid price: {value!r}") from exc
    if price <= 0:
        raise OrderError("Price must be positive")
    return price


@transaction.atomic
def place_order(request: CheckoutRequest) -> Order:
    """Оформление заказа: копируем адрес и данные товаров, считаем итог.

    Delivery fee is already included in the line prices, so the order
    carries ``delivery_fee = 0`` and ``total_amount == subtotal``.
    """
    if not request.items:
        raise OrderError("Order must contain at least one item")

    address = _validate_address(request.address)

    product_ids = [line.product_id for line in request.items]
    try:
        products = {
            str(product.pk): product
            for product in Product.objects.select_related("store").filter(
                pk__in=product_ids
            )
        }
    except ValidationError as exc:
        raise OrderError("Invalid product id") from exc

    lines = []
    subtotal = Decimal("0.00")
    for line in request.items:
        product = products.get(str(line.product_id))
        if product is None:
            raise OrderError(f"Product {line.product_id} not found")
        if line.quantity <= 0:
            raise OrderError("Quantity must be positive")
        price = _to_price(line.price)
        subtotal += price * line.quantity
        lines.append((product, line.quantity, price))

    order = Order.objects.create(
        customer=request.customer,
        subtotal=subtotal,
        delivery_fee=Decimal("0.00"),
        total_amount=subtotal,
        status=Order.STATUS_PENDING,
        payment_method=request.payment_method or Order.PAYMENT_CASH_ON_DELIVERY,
        notes=request.notes or "",
        **address,
    )

    OrderItem.objects.bulk_create(
        [
            OrderItem(
                order=order,
                product=product,
                store=product.store,
                product_name=product.name,
                store_name=product.store.name,
                quantity=quantity,
                price=price,
                original_price=product.price,
            )
            for product, quantity, price in lines
        ]
    )

    OrderStatusHistory.objects.create(order=order, status=order.status)

    logger.info("Order %s placed with %s items", order.order_number, len(lines))
    return order


def _decrement_stock(order: Order) -> None:
    for item in order.items.exclude(product__isnull=True):
        Product.objects.filter(pk=item.product_id).update(
            stock=F("stock") - item.quantity
        )


@transaction.atomic
def update_order_status(order_id, status: str, notes: Optional[str] = None) -> Order:
    """Смена статуса заказа с записью в историю.

    On the transition into ``confirmed`` the stock of the ordered products is
    reduced and an ``order_update`` notification is queued for the
    operations chat.
    """
    if not status:
        raise OrderError("Status is required")
    if status not in Order.valid_statuses():
        raise OrderError("Invalid status value")

    try:
        order = Order.objects.select_for_update().get(pk=order_id)
    except (Order.DoesNotExist, ValidationError, ValueError) as exc:
        raise OrderNotFound(f"Order {order_id} not found") from exc

    previous_status = order.status
    order.status = status
    order.save(update_fields=["status", "updated_at"])

    OrderStatusHistory.objects.create(order=order, status=status, notes=notes or "")

    if status == Order.STATUS_CONFIRMED and previous_status != Order.STATUS_CONFIRMED:
        _decrement_stock(order)

        from somah_market.notifications.models import TelegramNotification
        from somah_market.notifications.service import OrderNotificationService

        OrderNotificationService.enqueue(
            order,
            TelegramNotification.TYPE_ORDER_UPDATE,
            f"Order #{order.order_number} has been confirmed and is being "
            "prepared for delivery.",
        )

    logger.info(
        "Order %s status changed %s -> %s", order.order_number, previous_status, status
    )
    return order
