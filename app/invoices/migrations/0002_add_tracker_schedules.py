"""
Add celery-beat schedules for invoice payment tracking.

- invoices.tasks.watch_pending_invoices every minute
- invoices.tasks.refresh_payment_confirmations every 2 minutes
"""

from django.db import migrations

PERIODIC_TASKS = [
    {
        "name": "Watch Pending Invoices",
        "task": "invoices.tasks.watch_pending_invoices",
        "every": 1,
        "description": (
            "Expires overdue invoices and checks pending invoices for "
            "qualifying on-chain payments."
        ),
    },
    {
        "name": "Refresh Payment Confirmations",
        "task": "invoices.tasks.refresh_payment_confirmations",
        "every": 2,
        "description": (
            "Recomputes confirmations of detected payments and confirms "
            "paid invoices that reached their threshold."
        ),
    },
]


def create_periodic_tasks(apps, schema_editor):
    """Create the periodic tasks for payment tracking."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    for entry in PERIODIC_TASKS:
        schedule, _ = IntervalSchedule.objects.get_or_create(
            every=entry["every"],
            period="minutes",
        )
        PeriodicTask.objects.get_or_create(
            name=entry["name"],
            defaults={
                "task": entry["task"],
                "interval": schedule,
                "enabled": True,
                "description": entry["description"],
            },
        )


def remove_periodic_tasks(apps, schema_editor):
    """Remove the periodic tasks on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(
        name__in=[entry["name"] for entry in PERIODIC_TASKS]
    ).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("invoices", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_tasks, remove_periodic_tasks),
    ]
