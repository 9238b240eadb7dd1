"""
Routine materialization.

Turns department routine templates and staff members' own recurring
tasks into dated Task rows over a window of days:

- Template pass: active templates of the staff member's department whose
  weekdays (and optional start date) match the day.
- Personal pass: the staff member's routine tasks, one source per title
  (most recent wins), whose routine_days match the day.

Existing (staff, task_date, title) rows are skipped. The database unique
constraint decides races; the existence check only saves a round trip.
Each (staff, day) runs in its own transaction. A failure there, or while
loading a staff member's routines, is recorded and skipped, never raised.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta

from django.core.exceptions import ValidationError
from django.db import transaction

from apps.accounts.models import User
from apps.activity_log.models import log_task_activity, TaskActivity
from apps.tasks import repository
from apps.tasks.models import Task
from apps.tasks.permissions import is_admin_actor
from .models import WEEKDAYS, weekday_index

logger = logging.getLogger(__name__)

ALL_STAFF = 'all'


@dataclass(frozen=True)
class MaterializeError:
    staff_id: int
    day: date
    message: str


@dataclass
class MaterializeResult:
    created_count: int = 0
    skipped_count: int = 0
    errors: list = field(default_factory=list)

    @property
    def ok(self):
        return not self.errors

    def as_dict(self):
        return {
            'created_count': self.created_count,
            'skipped_count': self.skipped_count,
            'errors': [
                {'staff_id': e.staff_id, 'date': e.day.isoformat(), 'message': e.message}
                for e in self.errors
            ],
        }


@dataclass(frozen=True)
class _PersonalSource:
    """Read-only snapshot of one personal routine."""
    title: str
    category: str
    start_time: object
    end_time: object
    routine_days: tuple
    attachment_required: bool
    checklist: tuple

    def repeats_on(self, day):
        return weekday_index(day) in self.routine_days


def date_window(start, days):
    """Contiguous list of `days` dates beginning at start."""
    if days < 1:
        raise ValidationError("Window must cover at least one day.")
    return [start + timedelta(days=offset) for offset in range(days)]


def resolve_staff(actor, staff_selector):
    """
    Turn a staff selector into the list of users to materialize for.

    Admins (and the system) may pass "all", None or a staff id. Anyone
    else is always narrowed to themselves.

    Raises:
        ValidationError: If the selector names no active user
    """
    if not is_admin_actor(actor):
        return [actor]

    if staff_selector is None or staff_selector == ALL_STAFF:
        return list(User.objects.active_staff().select_related('department').order_by('pk'))

    if isinstance(staff_selector, User):
        staff_selector = staff_selector.pk
    try:
        staff_id = int(staff_selector)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid staff selector: {staff_selector!r}")

    staff = User.objects.filter(pk=staff_id, is_active=True).select_related('department').first()
    if staff is None:
        raise ValidationError(f"No active staff member with id {staff_id}.")
    return [staff]


def _weekday_mask(task):
    """Weekday numbers of a routine task, dropping anything outside 0..6."""
    value = task.routine_days or ()
    if not isinstance(value, (list, tuple)):
        logger.warning("Task %s has malformed routine_days %r; it will not repeat", task.pk, value)
        return ()
    mask = tuple(
        day for day in value
        if isinstance(day, int) and not isinstance(day, bool) and day in WEEKDAYS
    )
    if len(mask) != len(value):
        logger.warning("Task %s routine_days %r contain invalid weekdays", task.pk, value)
    return mask


def _personal_snapshot(staff):
    """Personal routine sources, unique by title, captured once per staff member."""
    sources = {}
    for task in repository.list_personal_routine_tasks(staff.pk):
        if task.title in sources:
            continue
        sources[task.title] = _PersonalSource(
            title=task.title,
            category=task.category,
            start_time=task.start_time,
            end_time=task.end_time,
            routine_days=_weekday_mask(task),
            attachment_required=task.attachment_required,
            checklist=tuple(repository.list_checklist_texts(task.pk)),
        )
    return list(sources.values())


def _create_if_absent(actor, fields, checklist, origin):
    staff = fields['staff']
    if repository.find_task(staff.pk, fields['task_date'], fields['title']):
        return None

    task = repository.insert_task(**fields)
    if task is None:
        logger.debug("Skipped %r for staff %s on %s: created concurrently",
                     fields['title'], staff.pk, fields['task_date'])
        return None

    repository.create_checklist_items(task, checklist)
    log_task_activity(
        task=task,
        user=actor,
        action_type=TaskActivity.ActionType.GENERATED,
        description=f'Generated from {origin}',
    )
    return task


def _materialize_day(actor, staff, day, templates, personal):
    created = 0
    skipped = 0
    # Titles already handled today by a department template
    handled = set()

    for template in templates:
        if not template.applies_on(day):
            continue
        task = _create_if_absent(actor, {
            'staff': staff,
            'title': template.title,
            'category': Task.Category.JOBDESK,
            'status': Task.Status.TODO,
            'task_date': day,
            'start_time': template.default_start_time,
            'end_time': template.end_time,
            'is_routine': True,
            'routine_days': list(template.routine_days),
            'created_by': actor,
        }, template.checklist_template, origin=f'department routine "{template.title}"')
        handled.add(template.title)
        if task is None:
            skipped += 1
        else:
            created += 1

    for source in personal:
        if source.title in handled or not source.repeats_on(day):
            continue
        task = _create_if_absent(actor, {
            'staff': staff,
            'title': source.title,
            'category': source.category,
            'status': Task.Status.TODO,
            'task_date': day,
            'start_time': source.start_time,
            'end_time': source.end_time,
            'is_routine': True,
            'routine_days': list(source.routine_days),
            'attachment_required': source.attachment_required,
            'created_by': actor,
        }, source.checklist, origin=f'personal routine "{source.title}"')
        if task is None:
            skipped += 1
        else:
            created += 1

    return created, skipped


def materialize_routines(actor, staff_selector, dates):
    """
    Expand routines into tasks for every selected staff member and date.

    Args:
        actor: User triggering the run, or None for scheduled runs
        staff_selector: "all", None, a staff id, or a User
        dates: Iterable of dates (one day interactively, a 30-day window
            for the scheduled sweep)

    Returns:
        MaterializeResult with created/skipped counts and per (staff, date)
        failures

    Raises:
        ValidationError: If the selector does not resolve to a staff member
    """
    days = sorted(set(dates))
    staff_members = resolve_staff(actor, staff_selector)
    result = MaterializeResult()

    for staff in staff_members:
        try:
            templates = repository.list_active_templates(staff.department_id)
            personal = _personal_snapshot(staff)
        except Exception as exc:
            logger.exception("Could not load routines for staff %s", staff.pk)
            result.errors.extend(MaterializeError(staff.pk, day, str(exc)) for day in days)
            continue

        logger.info(
            "Materializing routines for staff %s: %s template(s), %s personal, %s day(s)",
            staff.pk, len(templates), len(personal), len(days),
        )

        for day in days:
            try:
                with transaction.atomic():
                    created, skipped = _materialize_day(actor, staff, day, templates, personal)
            except Exception as exc:
                logger.exception("Routine generation failed for staff %s on %s", staff.pk, day)
                result.errors.append(MaterializeError(staff.pk, day, str(exc)))
                continue
            result.created_count += created
            result.skipped_count += skipped

    logger.info(
        "Routine generation finished: %s created, %s skipped, %s error(s)",
        result.created_count, result.skipped_count, len(result.errors),
    )
    return result
