from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("settlement", "0003_add_webhook_cleanup_schedule"),
    ]

    operations = [
        migrations.RemoveField(
            model_name="sellerpayoutsettings",
            name="method",
        ),
        migrations.AlterField(
            model_name="sellerpayoutsettings",
            name="schedule",
            field=models.CharField(
                choices=[
                    ("manual", "Manual"),
                    ("daily", "Daily"),
                    ("weekly", "Weekly"),
                    ("monthly", "Monthly"),
                ],
                default="manual",
                help_text="Anything but manual pays out the available balance automatically",
                max_length=20,
            ),
        ),
        migrations.AddField(
            model_name="sellerpayoutsettings",
            name="next_payout_at",
            field=models.DateTimeField(blank=True, db_index=True, null=True),
        ),
    ]
