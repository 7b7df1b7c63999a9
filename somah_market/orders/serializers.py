from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import Order, OrderItem, OrderStatusHistory


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            'id',
            'product', 'store',
            'product_name', 'store_name',
            'quantity', 'price', 'original_price',
            'image_url',
        ]
        read_only_fields = fields


class OrderStatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatusHistory
        fields = ['status', 'notes', 'created_at']
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Order
        fields = [
            'id', 'order_number', 'customer',
            'full_name', 'phone',
            'address_line1', 'address_line2', 'city', 'emirate',
            'postal_code', 'country',
            'subtotal', 'delivery_fee', 'total_amount',
            'status', 'status_display',
            'payment_method', 'notes',
            'items',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class OrderDetailSerializer(OrderSerializer):
    status_history = OrderStatusHistorySerializer(many=True, read_only=True)

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ['status_history']
        read_only_fields = fields


class CheckoutItemSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal("0.01"))


class CheckoutSerializer(serializers.Serializer):
    """Payload for placing an order; the address is copied onto the order."""

    full_name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=255)
    address_line1 = serializers.CharField(max_length=255)
    address_line2 = serializers.CharField(max_length=255, required=False, allow_blank=True)
    city = serializers.CharField(max_length=255)
    emirate = serializers.CharField(max_length=255)
    postal_code = serializers.CharField(max_length=255, required=False, allow_blank=True)
    country = serializers.CharField(max_length=255, required=False, default='UAE')
    items = CheckoutItemSerializer(many=True, allow_empty=False)
    payment_method = serializers.CharField(
        max_length=50, required=False, default=Order.PAYMENT_CASH_ON_DELIVERY
    )
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.STATUS_CHOICES)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class AdminUserSerializer(serializers.ModelSerializer):
    class Meta:
        model = get_user_model()
        fields = [
            'id', 'username', 'email', 'first_name', 'last_name',
            'is_staff', 'is_active', 'date_joined',
        ]
        read_only_fields = fields
