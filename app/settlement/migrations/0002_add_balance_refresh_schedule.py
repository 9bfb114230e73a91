"""
Add celery-beat schedule for refreshing seller balances.

Runs settlement.tasks.refresh_seller_balances every 15 minutes so that
order payments move from pending to available once their hold period
has passed.
"""

from django.db import migrations

TASK_NAME = "Refresh Seller Balances"


def create_periodic_task(apps, schema_editor):
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=15,
        period="minutes",
    )

    PeriodicTask.objects.get_or_create(
        name=TASK_NAME,
        defaults={
            "task": "settlement.tasks.refresh_seller_balances",
            "interval": schedule,
            "enabled": True,
            "description": (
                "Recomputes cached seller balances from the ledger and marks "
                "matured order payments available."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name=TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("settlement", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
