"""
Initialize the Django project and its Celery app.

Importing celery_app here makes sure the app is created when Django starts,
so `@shared_task` functions bind to it.
"""
from .celery import app as celery_app

__all__ = ('celery_app',)
