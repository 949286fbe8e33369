"""
Celery configuration for the payment gateway.

Workers run the background side of the gateway:
- Invoice watching (payment discovery and expiry)
- Confirmation refresh for detected payments
- Webhook delivery and the periodic drain of due retries
- Hot-wallet sweeps to cold storage

Periodic schedules live in the database (django-celery-beat) and are
created by data migrations in the invoices, webhooks and ledger apps.
Redis is both the message broker and the result backend.

Usage:
    celery -A config worker -l info
    celery -A config beat -l info

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import logging
import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

logger = logging.getLogger(__name__)

# Create Celery application instance
app = Celery("config")

# Load configuration from Django settings
# All Celery settings should be prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Auto-discover tasks from all registered Django apps
app.autodiscover_tasks()


@app.task(bind=True, ignore_result=True)
def debug_task(self):
    """
    Debug task for testing Celery connectivity.

    Usage:
        from config.celery import debug_task
        debug_task.delay()

    Check worker logs to verify task execution.
    """
    logger.info(f"Request: {self.request!r}")
