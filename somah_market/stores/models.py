# somah_market/stores/models.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models


class Store(models.Model):
    """Магазин продавца на маркетплейсе"""

    STATUS_ACTIVE = "active"
    STATUS_PENDING = "pending"
    STATUS_SUSPENDED = "suspended"

    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        (STATUS_PENDING, "Pending"),
        (STATUS_SUSPENDED, "Suspended"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="stores",
        null=True,
        blank=True,
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=255)
    phone = models.CharField(max_length=255)
    logo_url = models.URLField(max_length=255, blank=True)
    status = models.CharField(
        max_length=50, choices=STATUS_CHOICES, default=STATUS_ACTIVE
    )
    rating = models.DecimalField(max_digits=2, decimal_places=1, default=5.0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name


class StoreLocation(models.Model):
    """Private pickup address of a store, shown only to delivery staff."""

    LOCATION_TYPE_CHOICES = [
        ("villa", "Villa"),
        ("flat", "Flat"),
        ("warehouse", "Warehouse"),
        ("store", "Store"),
    ]

    store = models.OneToOneField(
        Store, on_delete=models.CASCADE, related_name="location"
    )
    location_type = models.CharField(max_length=50, choices=LOCATION_TYPE_CHOICES)
    street_number = models.CharField(max_length=255)
    street_name = models.CharField(max_length=255)
    place_name = models.CharField(max_length=255, help_text="Area or neighborhood")
    additional_info = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.store} - {self.place_name}"


class Product(models.Model):
    STATUS_ACTIVE = "active"

    STATUS_CHOICES = [
        (STATUS_ACTIVE, "Active"),
        ("draft", "Draft"),
        ("out_of_stock", "Out of stock"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name="products")
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    # Цена владельца магазина, без доставки
    price = models.DecimalField(max_digits=10, decimal_places=2)
    stock = models.IntegerField(default=0)
    category = models.CharField(max_length=255)
    is_available = models.BooleanField(default=True)
    status = models.CharField(max_length=50, choices=STATUS_CHOICES, default="active")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["store", "status"], name="product_store_status_idx"),
        ]

    def __str__(self):
        return self.name

    @property
    def display_price(self) -> Decimal:
        """Цена для покупателя: цена магазина плюс доставка."""
        fee = Decimal(str(settings.ORDER_DELIVERY_FEE))
        return (self.price + fee).quantize(Decimal("0.01"))
