"""
Routine template models.

Models:
- RoutineTemplate: Admin-defined recurring task blueprint scoped to a
  department and a set of weekdays (0=Sunday .. 6=Saturday)
"""

import re
from datetime import datetime, time, timedelta

from django.core.exceptions import ValidationError
from django.db import models

WEEKDAYS = (0, 1, 2, 3, 4, 5, 6)

WEEKDAY_LABELS = {
    0: 'Sunday',
    1: 'Monday',
    2: 'Tuesday',
    3: 'Wednesday',
    4: 'Thursday',
    5: 'Friday',
    6: 'Saturday',
}

END_OF_DAY = time(23, 59, 59)

# HH:MM or HH:MM:SS, 24-hour clock
TIME_PATTERN = re.compile(r'^([01]?\d|2[0-3]):([0-5]\d)(?::([0-5]\d))?$')


def parse_time_of_day(value):
    """
    Coerce a time-of-day given as datetime.time or "HH:MM[:SS]".

    Raises:
        ValidationError: If the value is missing or malformed
    """
    if isinstance(value, time):
        return value
    if isinstance(value, str):
        match = TIME_PATTERN.match(value.strip())
        if match:
            hour, minute, second = match.groups()
            return time(int(hour), int(minute), int(second or 0))
    raise ValidationError(f'Invalid time: {value!r}. Use HH:MM or HH:MM:SS.')


def weekday_index(day):
    """Weekday of a date with Sunday as 0, matching routine_days masks."""
    return day.isoweekday() % 7


def add_hours(start_time, hours):
    """
    Shift a time-of-day by a (possibly fractional) number of hours.

    The result is clamped to the end of the same day; task times never
    roll over midnight.
    """
    start = datetime.combine(datetime.min.date(), start_time)
    end = start + timedelta(hours=float(hours))
    if end.date() != start.date():
        return END_OF_DAY
    return end.time()


def validate_routine_days(value):
    """Routine days must be a list drawn from 0..6."""
    if not isinstance(value, (list, tuple)):
        raise ValidationError('Routine days must be a list of weekday numbers.')
    for day in value:
        if isinstance(day, bool) or not isinstance(day, int) or day not in WEEKDAYS:
            raise ValidationError(f'Invalid weekday: {day!r}. Use 0 (Sunday) to 6 (Saturday).')


def validate_checklist_template(value):
    """Checklist skeleton must be an ordered list of non-empty strings."""
    if not isinstance(value, (list, tuple)):
        raise ValidationError('Checklist template must be a list of strings.')
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise ValidationError('Checklist items must be non-empty strings.')


class RoutineTemplate(models.Model):
    """
    Department routine blueprint.

    Read-only to the routine materializer; owned by admins.
    Invariants: duration_hours > 0, routine_days within 0..6.
    """

    department = models.ForeignKey(
        'departments.Department',
        on_delete=models.CASCADE,
        related_name='routine_templates',
    )
    title = models.CharField(max_length=255)
    routine_days = models.JSONField(
        default=list,
        blank=True,
        validators=[validate_routine_days],
        help_text='Weekdays the routine runs on (0=Sunday .. 6=Saturday)'
    )
    default_start_time = models.TimeField(default=time(9, 0))
    duration_hours = models.DecimalField(
        max_digits=4,
        decimal_places=2,
        default=1,
        help_text='Length of each generated task, in hours'
    )
    checklist_template = models.JSONField(
        default=list,
        blank=True,
        validators=[validate_checklist_template],
        help_text='Ordered checklist cloned into every generated task'
    )
    start_date = models.DateField(
        null=True,
        blank=True,
        help_text='No tasks are generated before this date'
    )
    is_active = models.BooleanField(default=True, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'routine template'
        verbose_name_plural = 'routine templates'
        ordering = ['department__name', 'title']
        indexes = [
            models.Index(fields=['department', 'is_active'], name='routine_dept_active_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.department.name})"

    def clean(self):
        if self.duration_hours is not None and self.duration_hours <= 0:
            raise ValidationError({'duration_hours': 'Duration must be greater than zero.'})

    @property
    def end_time(self):
        return add_hours(self.default_start_time, self.duration_hours)

    @property
    def days_display(self):
        return ', '.join(WEEKDAY_LABELS[d] for d in sorted(self.routine_days or []))

    def applies_on(self, day):
        """Check whether this template produces a task on the given date."""
        if self.start_date and day < self.start_date:
            return False
        return weekday_index(day) in (self.routine_days or [])
