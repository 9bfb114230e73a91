"""
Celery configuration for the Django application.

Background work for settlement runs here:
- Periodic seller balance refresh (pending entries past their hold date)
- Webhook event cleanup
- Order confirmation emails

Redis is both the message broker and result backend. Periodic schedules
are stored in the database (django-celery-beat) and installed by the
settlement migrations. Tasks are auto-discovered from installed apps.

Usage:
    from settlement.tasks import refresh_seller_balances

    refresh_seller_balances.delay()

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
