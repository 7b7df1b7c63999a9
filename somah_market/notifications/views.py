from rest_framework import viewsets
from rest_framework.permissions import IsAdminUser

from .models import TelegramNotification
from .serializers import TelegramNotificationSerializer


class AdminTelegramNotificationViewSet(viewsets.ReadOnlyModelViewSet):
    """История уведомлений в Telegram, новые сверху"""

    queryset = TelegramNotification.objects.select_related("order").order_by("-created_at")
    serializer_class = TelegramNotificationSerializer
    permission_classes = [IsAdminUser]
    filterset_fields = ["sent", "notification_type", "dead_lettered"]
