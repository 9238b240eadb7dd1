"""
Management command to materialize routine tasks.

Usage:
    python manage.py generate_routines
    python manage.py generate_routines --days 7 --start 2024-06-03
    python manage.py generate_routines --staff 12

Safe to re-run: existing tasks are skipped.
"""
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone
from django.utils.dateparse import parse_date

from apps.routines.materializer import ALL_STAFF, date_window, materialize_routines
from apps.routines.tasks import DEFAULT_WINDOW_DAYS


class Command(BaseCommand):
    help = 'Generate routine tasks for active staff over a window of days'

    def add_arguments(self, parser):
        parser.add_argument(
            '--days',
            type=int,
            default=None,
            help='Number of days to generate (default: ROUTINE_WINDOW_DAYS)',
        )
        parser.add_argument(
            '--start',
            default=None,
            help='First date, YYYY-MM-DD (default: today)',
        )
        parser.add_argument(
            '--staff',
            default=ALL_STAFF,
            help='Staff id to generate for (default: all active staff)',
        )

    def handle(self, *args, **options):
        days = options['days']
        if days is None:
            days = getattr(settings, 'WORKTIMELINE', {}).get('ROUTINE_WINDOW_DAYS', DEFAULT_WINDOW_DAYS)

        start = timezone.localdate()
        if options['start']:
            start = parse_date(options['start'])
            if start is None:
                raise CommandError('--start must be a date in YYYY-MM-DD format.')

        try:
            window = date_window(start, days)
            result = materialize_routines(None, options['staff'], window)
        except ValidationError as exc:
            raise CommandError(' '.join(exc.messages))

        self.stdout.write(
            self.style.SUCCESS(
                f'✓ {result.created_count} task(s) created, {result.skipped_count} already existed '
                f'({window[0]} → {window[-1]}).'
            )
        )
        for error in result.errors:
            self.stdout.write(
                self.style.ERROR(f'✗ Staff {error.staff_id} on {error.day}: {error.message}')
            )
