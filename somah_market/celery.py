"""
Celery application for the somah_market project.

Reads configuration from Django settings under the `CELERY_` namespace and
autodiscovers tasks from installed apps. The beat schedule itself is defined
in `settings.py`.
"""

import os
from celery import Celery

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "somah_market.settings")

app = Celery("somah_market")

app.config_from_object("django.conf:settings", namespace="CELERY")

# Load task modules from all registered Django app configs.
app.autodiscover_tasks()
