import os
from pathlib import Path

import structlog
from django.core.exceptions import ImproperlyConfigured

# Optionally load .env file if using python-dotenv
from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

BASE_DIR = Path(__file__).resolve().parent.parent

# Helper to get environment variables or raise


def get_env(var_name: str, default=None, required: bool = False):
    value = os.environ.get(var_name, default)
    if required and value in (None, ""):
        raise ImproperlyConfigured(f"Missing required environment variable: {var_name}")
    return value


def get_env_list(var_name: str, default: str = "") -> list:
    raw = get_env(var_name, default) or ""
    return [item.strip() for item in raw.split(",") if item.strip()]


# SECURITY
SECRET_KEY = get_env("DJANGO_SECRET_KEY", required=True)
DEBUG = get_env("DJANGO_DEBUG", "False").lower() == "true"

allowed_hosts_env = get_env("DJANGO_ALLOWED_HOSTS", "")
if allowed_hosts_env:
    ALLOWED_HOSTS = [host.strip() for host in allowed_hosts_env.split(",") if host.strip()]
else:
    if DEBUG:
        ALLOWED_HOSTS = ["localhost", "127.0.0.1", "[::1]"]
    else:
        ALLOWED_HOSTS = ["somahland.com", "www.somahland.com"]

APPEND_SLASH = True

USE_X_FORWARDED_HOST = True
USE_X_FORWARDED_PORT = True


# Application definition
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "django_prometheus",
    "django_filters",
    "rest_framework",
    "drf_spectacular",
    "django_celery_beat",
    "somah_market.stores",
    "somah_market.orders",
    "somah_market.notifications.apps.NotificationsConfig",
    "somah_market.telegram_bot.apps.TelegramBotConfig",
]

MIDDLEWARE = [
    "django_prometheus.middleware.PrometheusBeforeMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "django_prometheus.middleware.PrometheusAfterMiddleware",
]

ROOT_URLCONF = "somah_market.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "somah_market.wsgi.application"

# Database configuration (hosted PostgreSQL)
DATABASES = {
    "default": {
        "ENGINE": "django_prometheus.db.backends.postgresql",
        "NAME": get_env("POSTGRES_DB", required=True),
        "USER": get_env("POSTGRES_USER", required=True),
        "PASSWORD": get_env("POSTGRES_PASSWORD", required=True),
        "HOST": get_env("DB_HOST", "localhost"),
        "PORT": get_env("DB_PORT", "5432"),
        "OPTIONS": {"sslmode": get_env("DB_SSLMODE", "prefer")},
    }
}

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"
    },
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = get_env("DJANGO_TIME_ZONE", "Asia/Dubai")
USE_I18N = True

USE_TZ = True

# Static files
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# REST framework
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "rest_framework_simplejwt.authentication.JWTAuthentication",
        "rest_framework.authentication.SessionAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": ("rest_framework.permissions.IsAuthenticated",),
    "DEFAULT_FILTER_BACKENDS": (
        "django_filters.rest_framework.DjangoFilterBackend",
        "rest_framework.filters.OrderingFilter",
    ),
    "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
    "PAGE_SIZE": 10,
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
}

SPECTACULAR_SETTINGS = {
    "TITLE": "Somah Land API",
    "VERSION": "1.0.0",
}

# Telegram bot
TELEGRAM_BOT_TOKEN = get_env("TELEGRAM_BOT_TOKEN", required=True)
WEBHOOK_SECRET = get_env("WEBHOOK_SECRET", "")
# Пусто = канал определяется по сообщению в группе
TELEGRAM_OPERATIONS_CHAT_ID = get_env("TELEGRAM_OPERATIONS_CHAT_ID", "")
TELEGRAM_TEAM_MEMBERS = get_env_list("TELEGRAM_TEAM_MEMBERS", "Khaled,Hamad,Malil")
# Срок жизни блокировки заявки, в секундах
TELEGRAM_CLAIM_LOCK_TIMEOUT = int(get_env("TELEGRAM_CLAIM_LOCK_TIMEOUT", str(7 * 24 * 3600)))

# Order notifications
ORDER_DELIVERY_FEE = get_env("ORDER_DELIVERY_FEE", "20")
ORDER_COMMISSION_RATE = get_env("ORDER_COMMISSION_RATE", "0.05")
ORDER_NOTIFICATION_POLL_INTERVAL = float(get_env("ORDER_NOTIFICATION_POLL_INTERVAL", "10"))
ORDER_NOTIFICATION_BATCH_SIZE = int(get_env("ORDER_NOTIFICATION_BATCH_SIZE", "10"))
ORDER_NOTIFICATION_SEND_DELAY = float(get_env("ORDER_NOTIFICATION_SEND_DELAY", "1"))
ORDER_NOTIFICATION_MAX_ATTEMPTS = int(get_env("ORDER_NOTIFICATION_MAX_ATTEMPTS", "5"))
ORDER_NOTIFICATION_POLL_KINDS = get_env_list(
    "ORDER_NOTIFICATION_POLL_KINDS", "new_order,order_update"
)

# CSRF settings
raw_csrf = get_env("CSRF_TRUSTED_ORIGINS", default="")
CSRF_TRUSTED_ORIGINS = [host.strip() for host in raw_csrf.split(",") if host.strip()]

SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")

if DEBUG:
    SESSION_COOKIE_SECURE = False
    CSRF_COOKIE_SECURE = False
    SECURE_CONTENT_TYPE_NOSNIFF = True
    X_FRAME_OPTIONS = "DENY"
    SECURE_HSTS_SECONDS = 0
else:
    SESSION_COOKIE_SECURE = True
    CSRF_COOKIE_SECURE = True
    SECURE_CONTENT_TYPE_NOSNIFF = True
    X_FRAME_OPTIONS = "DENY"
    SECURE_HSTS_SECONDS = 31536000
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True
    SECURE_SSL_REDIRECT = get_env("SECURE_SSL_REDIRECT", "True").lower() == "true"

# Celery / Redis
REDIS_HOST = get_env("REDIS_HOST", "redis")
REDIS_PASSWORD = get_env("REDIS_PASSWORD", "")
_redis_auth = f":{REDIS_PASSWORD}@" if REDIS_PASSWORD else ""

CELERY_BROKER_URL = get_env("CELERY_BROKER_URL", f"redis://{_redis_auth}{REDIS_HOST}:6379/0")
CELERY_RESULT_BACKEND = get_env("CELERY_RESULT_BACKEND", f"redis://{_redis_auth}{REDIS_HOST}:6379/1")

# Django cache configuration. The operations chat id and claim locks live
# here, so the bot process and the Celery worker must share it.
DEFAULT_CACHE_URL = get_env(
    "CACHE_URL",
    get_env("REDIS_CACHE_URL", f"redis://{_redis_auth}{REDIS_HOST}:6379/2"),
)

CACHES = {
    "default": {
        "BACKEND": "django_redis.cache.RedisCache",
        "LOCATION": DEFAULT_CACHE_URL,
        "OPTIONS": {
            "CLIENT_CLASS": "django_redis.client.DefaultClient",
        },
    }
}

CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_RESULT_SERIALIZER = "json"

CELERY_BEAT_SCHEDULE = {
    # Рассылка неотправленных уведомлений о заказах
    "poll-order-notifications": {
        "task": "somah_market.notifications.tasks.poll_order_notifications",
        "schedule": ORDER_NOTIFICATION_POLL_INTERVAL,
        "options": {"expires": ORDER_NOTIFICATION_POLL_INTERVAL},
    },
}

structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": "structlog.stdlib.ProcessorFormatter",
            "processor": structlog.processors.JSONRenderer(),
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "level": "INFO",
        }
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
    "loggers": {
        "django": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "somah_market": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "telegram": {"handlers": ["console"], "level": "WARNING", "propagate": False},
    },
}

PROMETHEUS_EXPORT_MIGRATIONS = False
