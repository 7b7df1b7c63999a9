from django.core.management.base import BaseCommand, CommandError

from somah_market.telegram_bot.main import ALLOWED_UPDATES, setup_application


class Command(BaseCommand):
    help = "Запускает бота уведомлений о заказах в режиме long polling"

    def handle(self, *args, **options):
        application = setup_application()
        if application is None:
            raise CommandError("TELEGRAM_BOT_TOKEN is not configured")

        self.stdout.write("Starting Telegram bot polling")
        application.run_polling(allowed_updates=ALLOWED_UPDATES)
