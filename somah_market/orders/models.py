# somah_market/orders/models.py

import random
import time
import uuid

from django.conf import settings
from django.db import models


def generate_order_number() -> str:
    """SOMAH- + последние 6 цифр unix-времени + 3 случайные цифры."""
    timestamp_part = str(int(time.time()))[-6:]
    random_part = f"{random.randint(0, 999):03d}"
    return f"SOMAH-{timestamp_part}{random_part}"


class Order(models.Model):
    """Заказ покупателя с копией адреса доставки"""

    STATUS_PENDING = "pending"
    STATUS_CONFIRMED = "confirmed"
    STATUS_SHIPPED = "shipped"
    STATUS_DELIVERED = "delivered"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_CONFIRMED, "Confirmed"),
        (STATUS_SHIPPED, "Shipped"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    PAYMENT_CASH_ON_DELIVERY = "cash_on_delivery"

    PAYMENT_METHOD_CHOICES = [
        (PAYMENT_CASH_ON_DELIVERY, "Cash on Delivery"),
    ]

    ORDER_NUMBER_ATTEMPTS = 5

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=255, unique=True, editable=False)
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
    )

    # Copied address details for historical record
    full_name = models.CharField(max_length=255)
    phone = models.CharField(max_length=255)
    address_line1 = models.CharField(max_length=255)
    address_line2 = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=255)
    emirate = models.CharField(max_length=255)
    postal_code = models.CharField(max_length=255, blank=True)
    country = models.CharField(max_length=255, default="UAE")

    subtotal = models.DecimalField(max_digits=10, decimal_places=2)
    delivery_fee = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)
    status = models.CharField(
        max_length=50, choices=STATUS_CHOICES, default=STATUS_PENDING
    )
    payment_method = models.CharField(
        max_length=50, default=PAYMENT_CASH_ON_DELIVERY
    )
    estimated_delivery_date = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="order_status_created_idx"),
            models.Index(fields=["customer", "created_at"], name="order_customer_created_idx"),
        ]

    def __str__(self):
        return self.order_number

    def save(self, *args, **kwargs):
        if not self.order_number:
            self.order_number = self._unique_order_number()
        super().save(*args, **kwargs)

    @classmethod
    def _unique_order_number(cls) -> str:
        number = generate_order_number()
        for _ in range(cls.ORDER_NUMBER_ATTEMPTS):
            if not cls.objects.filter(order_number=number).exists():
                return number
            number = generate_order_number()
        # Длинный хвост из uuid на случай серии коллизий
        return f"SOMAH-{uuid.uuid4().hex[:12].upper()}"

    @classmethod
    def valid_statuses(cls):
        return [choice for choice, _ in cls.STATUS_CHOICES]


class OrderItem(models.Model):
    """Order line with product and store details copied at purchase time."""

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(
        "stores.Product", on_delete=models.SET_NULL, null=True, blank=True
    )
    store = models.ForeignKey(
        "stores.Store", on_delete=models.SET_NULL, null=True, blank=True
    )

    product_name = models.CharField(max_length=255)
    store_name = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField()
    # Итоговая цена на момент покупки (с доставкой)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    # Цена владельца магазина на момент покупки
    original_price = models.DecimalField(max_digits=10, decimal_places=2)
    image_url = models.URLField(max_length=255, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["id"]

    def __str__(self):
        return f"{self.quantity}x {self.product_name}"


class OrderStatusHistory(models.Model):
    order = models.ForeignKey(
        Order, on_delete=models.CASCADE, related_name="status_history"
    )
    status = models.CharField(max_length=50)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        verbose_name_plural = "Order status history"

    def __str__(self):
        return f"{self.order} -> {self.status}"
