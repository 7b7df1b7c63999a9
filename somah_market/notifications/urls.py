from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import AdminTelegramNotificationViewSet

router = DefaultRouter()
router.register(
    r'admin/telegram/notifications',
    AdminTelegramNotificationViewSet,
    basename='admin-telegram-notification',
)

urlpatterns = [
    path('', include(router.urls)),
]
