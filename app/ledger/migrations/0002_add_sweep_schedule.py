"""
Add celery-beat schedule for recording hot address sweep intents.

Runs ledger.tasks.sweep_hot_addresses every 6 hours.
"""

from django.db import migrations

TASK_NAME = "Record Hot Address Sweep Intents"


def create_periodic_task(apps, schema_editor):
    """Create the periodic task for sweep intent recording."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=6,
        period="hours",
    )

    PeriodicTask.objects.get_or_create(
        name=TASK_NAME,
        defaults={
            "task": "ledger.tasks.sweep_hot_addresses",
            "interval": schedule,
            "enabled": True,
            "description": (
                "Checks deposit address balances of paid invoices and records "
                "sweep intents towards cold storage above per-asset thresholds."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name=TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("ledger", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
