"""
Add celery-beat schedule for deleting old processed webhook events.

Runs settlement.tasks.cleanup_old_webhooks daily at 03:30 UTC.
"""

from django.db import migrations

TASK_NAME = "Cleanup Old Webhook Events"


def create_periodic_task(apps, schema_editor):
    CrontabSchedule = apps.get_model("django_celery_beat", "CrontabSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = CrontabSchedule.objects.get_or_create(
        minute="30",
        hour="3",
        day_of_week="*",
        day_of_month="*",
        month_of_year="*",
    )

    PeriodicTask.objects.get_or_create(
        name=TASK_NAME,
        defaults={
            "task": "settlement.tasks.cleanup_old_webhooks",
            "crontab": schedule,
            "enabled": True,
            "description": "Deletes processed webhook events past the retention period.",
        },
    )


def remove_periodic_task(apps, schema_editor):
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name=TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("settlement", "0002_add_balance_refresh_schedule"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
