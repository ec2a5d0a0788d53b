"""
Add celery-beat schedule for reconciling pending payment attempts.

This migration creates the periodic task schedule for the
reconcile_pending_attempts task, which runs every 10 minutes to poll
providers for attempts whose confirmation webhook never arrived.
"""

from django.db import migrations


def create_periodic_task(apps, schema_editor):
    """Create the periodic task for reconciling pending attempts."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    # Create interval schedule: every 10 minutes
    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=10,
        period="minutes",
    )

    PeriodicTask.objects.get_or_create(
        name="Reconcile Pending Payment Attempts",
        defaults={
            "task": "payments.tasks.reconcile_pending_attempts",
            "interval": schedule,
            "enabled": True,
            "description": (
                "Polls SAMA Money and Orange Money for attempts still pending "
                "after the reconciliation delay and credits confirmed ones."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    PeriodicTask.objects.filter(
        name="Reconcile Pending Payment Attempts",
    ).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("payments", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
