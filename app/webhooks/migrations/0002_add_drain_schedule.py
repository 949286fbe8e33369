"""
Add celery-beat schedule for draining due webhook deliveries.

Runs webhooks.tasks.drain_due_webhooks every minute.
"""

from django.db import migrations

TASK_NAME = "Drain Due Webhooks"


def create_periodic_task(apps, schema_editor):
    """Create the periodic task for webhook delivery."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=1,
        period="minutes",
    )

    PeriodicTask.objects.get_or_create(
        name=TASK_NAME,
        defaults={
            "task": "webhooks.tasks.drain_due_webhooks",
            "interval": schedule,
            "enabled": True,
            "description": (
                "Queues delivery of pending and retrying webhooks whose "
                "next retry time has passed."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name=TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("webhooks", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
