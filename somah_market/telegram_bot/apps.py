from django.apps import AppConfig
from django.conf import settings


class TelegramBotConfig(AppConfig):
    name = "somah_market.telegram_bot"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self):
        from .keyboards import validate_team_members

        validate_team_members(settings.TELEGRAM_TEAM_MEMBERS)
