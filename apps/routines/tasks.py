"""
Scheduled jobs for routines app.

Run by the django-q2 cluster (see the setup_schedules command):
- generate_routine_tasks: daily at 00:00, materializes the rolling window
"""

import logging

from django.conf import settings
from django.utils import timezone

from .materializer import ALL_STAFF, date_window, materialize_routines

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 30


def generate_routine_tasks(days=None):
    """
    Materialize routines for all active staff from today over the
    configured window (ROUTINE_WINDOW_DAYS).

    Returns:
        Summary dict stored as the django-q task result
    """
    if days is None:
        days = getattr(settings, 'WORKTIMELINE', {}).get('ROUTINE_WINDOW_DAYS', DEFAULT_WINDOW_DAYS)

    start = timezone.localdate()
    result = materialize_routines(None, ALL_STAFF, date_window(start, days))

    if not result.ok:
        logger.warning(
            "Scheduled routine generation from %s finished with %s error(s)",
            start, len(result.errors),
        )
    return result.as_dict()
