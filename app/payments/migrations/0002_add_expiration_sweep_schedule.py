"""
Add celery-beat schedule for the expiration sweep.

This migration creates the periodic task that runs
payments.tasks.expire_stale_records every
PAYMENT_SWEEP_INTERVAL_MINUTES (one minute by default), moving PENDING orders
and deposits past their deadline to EXPIRED.
"""

from django.conf import settings
from django.db import migrations

SWEEP_TASK_NAME = "Expire Stale Orders and Deposits"


def create_periodic_task(apps, schema_editor):
    """Create the periodic task for the expiration sweep."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=settings.PAYMENT_SWEEP_INTERVAL_MINUTES,
        period="minutes",
    )

    PeriodicTask.objects.get_or_create(
        name=SWEEP_TASK_NAME,
        defaults={
            "task": "payments.tasks.expire_stale_records",
            "interval": schedule,
            "enabled": True,
            "description": (
                "Expires PENDING orders and deposits whose deadline has passed "
                "and notifies the owning merchants."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(name=SWEEP_TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("payments", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
