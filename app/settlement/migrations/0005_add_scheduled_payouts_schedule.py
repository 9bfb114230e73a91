"""
Add celery-beat schedule for automatic seller payouts.

Runs settlement.tasks.process_scheduled_payouts every hour. Stores whose
next_payout_at has passed are paid out their available balance.
"""

from django.db import migrations

TASK_NAME = "Process Scheduled Payouts"


def create_periodic_task(apps, schema_editor):
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=1,
        period="hours",
    )

    PeriodicTask.objects.get_or_create(
        name=TASK_NAME,
        defaults={
            "task": "settlement.tasks.process_scheduled_payouts",
            "interval": schedule,
            "enabled": True,
            "description": "Pays out the available balance of stores on an automatic schedule.",
        },
    )


def remove_periodic_task(apps, schema_editor):
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name=TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("settlement", "0004_payout_settings_next_payout_at"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
