"""
Management command to set up Django-Q2 schedules for routine jobs.

This command creates/updates the scheduled task that materializes
routine tasks for the rolling window every day at midnight.

Usage:
    python manage.py setup_schedules

The command is idempotent - safe to run multiple times.
"""
from django.core.management.base import BaseCommand
from django_q.models import Schedule

SCHEDULE_NAME = 'Generate Routine Tasks'


class Command(BaseCommand):
    help = 'Set up Django-Q2 schedules for routine generation'

    def handle(self, *args, **options):
        self.stdout.write('\nSetting up Django-Q2 schedules...\n')

        schedule, created = Schedule.objects.update_or_create(
            name=SCHEDULE_NAME,
            defaults={
                'func': 'apps.routines.tasks.generate_routine_tasks',
                'schedule_type': Schedule.CRON,
                'cron': '0 0 * * *',  # 00:00 daily
                'repeats': -1,  # Run forever
            }
        )
        if created:
            self.stdout.write(
                self.style.SUCCESS(f'✓ Created schedule: {SCHEDULE_NAME} (daily at 00:00)')
            )
        else:
            self.stdout.write(
                self.style.WARNING(f'↻ Updated schedule: {SCHEDULE_NAME} (daily at 00:00)')
            )

        self.stdout.write('')
        self.stdout.write(
            self.style.NOTICE(
                'Note: Ensure Django-Q cluster is running: python manage.py qcluster'
            )
        )
        self.stdout.write('')
