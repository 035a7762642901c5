"""
Celery configuration for the payment lifecycle service.

Celery runs the work that must never block a webhook response or an
expiration sweep:
- Merchant notifications (fire-and-forget, retried with backoff)
- The periodic expiration sweep (scheduled by django-celery-beat)

Redis is both the message broker and result backend. Tasks are auto-discovered
from all installed Django apps.

Usage:
    from payments.tasks import expire_stale_records

    expire_stale_records.delay()

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Celery will look for a tasks.py module in each installed app
app.autodiscover_tasks()
