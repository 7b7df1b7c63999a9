from django.contrib import admin

from .models import TelegramNotification
from .service import OrderNotificationService


@admin.register(TelegramNotification)
class TelegramNotificationAdmin(admin.ModelAdmin):
    list_display = (
        "order",
        "notification_type",
        "sent",
        "attempts",
        "dead_lettered",
        "created_at",
        "sent_at",
    )
    list_filter = ("notification_type", "sent", "dead_lettered")
    search_fields = ("order__order_number", "message")
    readonly_fields = ("created_at", "sent_at", "last_error")
    actions = ["requeue"]

    @admin.action(description="Вернуть в очередь")
    def requeue(self, request, queryset):
        updated = queryset.filter(sent=False).update(
            dead_lettered=False, attempts=0, last_error=""
        )
        for notification in queryset.filter(sent=False):
            OrderNotificationService.dispatch(notification)
        self.message_user(request, f"Requeued {updated} notifications")
