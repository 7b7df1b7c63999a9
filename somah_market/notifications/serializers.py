from rest_framework import serializers

from .models import TelegramNotification


class TelegramNotificationSerializer(serializers.ModelSerializer):
    order_number = serializers.CharField(source="order.order_number", read_only=True)
    order_status = serializers.CharField(source="order.status", read_only=True)
    delivery_state = serializers.CharField(read_only=True)

    class Meta:
        model = TelegramNotification
        fields = [
            "id",
            "order",
            "order_number",
            "order_status",
            "notification_type",
            "message",
            "sent",
            "sent_at",
            "attempts",
            "last_error",
            "dead_lettered",
            "delivery_state",
            "created_at",
        ]
        read_only_fields = fields
