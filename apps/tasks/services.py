"""
Service layer for tasks app.

All task lifecycle logic is centralized here and takes an explicit actor
(a User, or None when the system acts). Views and scheduled jobs call
these functions; nothing here reads request state.

Services:
- create_task: Create a task with checklist, mentions and notifications
- toggle_checklist_item: Flip one item and recompute the task status
- recompute_task_status: Re-derive status from checklist and attachments
- set_task_status: Manual status override guarded by the attachment gate
- add_attachment / delete_attachment: Link attachments with gate regression
- notify_mentions: One-shot completion notice to mentioned users
- build_timeline: Per-staff tasks, stats and layout for one day
"""

import logging
from datetime import datetime
from decimal import Decimal

from django.db import transaction
from django.db.models import Count
from django.core.exceptions import PermissionDenied, ValidationError
from django.utils import timezone

from apps.accounts.models import User
from apps.activity_log.models import log_task_activity, TaskActivity
from apps.notifications.models import Notification
from apps.notifications.services import emit_notification
from apps.routines.models import (
    RoutineTemplate, parse_time_of_day, validate_routine_days, weekday_index,
)
from . import repository
from .layout import compute_day_layout
from .models import Task, ChecklistItem, Attachment, TaskMention
from .permissions import can_access_task, can_create_task_for
from .workflow import check_completion_gate, recompute_status, regressed_status

logger = logging.getLogger(__name__)


def _actor_name(actor):
    return actor.get_full_name() if actor is not None else 'System'


def _status_label(status):
    return Task.Status(status).label


# =============================================================================
# Task creation
# =============================================================================

def create_task(
    actor,
    staff,
    title: str,
    task_date,
    start_time,
    end_time,
    category: str = Task.Category.JOBDESK,
    is_routine: bool = False,
    routine_days=None,
    attachment_required: bool = False,
    checklist=None,
    mentions=None,
):
    """
    Create a task on a staff member's timeline.

    Args:
        actor: User creating the task, or None for the system
        staff: User who owns the task
        title: Task title (required)
        task_date: Calendar date of the task
        start_time, end_time: datetime.time or "HH:MM[:SS]"
        category: One of Task.Category values (default: jobdesk)
        is_routine: Repeat on routine_days via routine generation
        routine_days: Weekday numbers (0=Sunday); defaults to the task's weekday
        attachment_required: Gate completion on at least one attachment
        checklist: Ordered item texts; blank entries are dropped
        mentions: User ids to notify; the actor and unknown ids are ignored

    Returns:
        Created Task instance

    Raises:
        PermissionDenied: If actor may not create tasks for staff
        ValidationError: If a field is invalid or the task already exists
    """
    if not title or not title.strip():
        raise ValidationError("Task title is required.")
    title = title.strip()

    if staff is None:
        raise ValidationError("Staff member is required.")
    if not staff.is_active:
        raise ValidationError("Cannot create tasks for an inactive user.")

    if category not in Task.Category.values:
        raise ValidationError(f"Invalid category: {category}")

    if not can_create_task_for(actor, staff, category):
        raise PermissionDenied("Staff can only create their own tasks or requests for others.")

    if task_date is None:
        raise ValidationError("Task date is required.")

    start_time = parse_time_of_day(start_time)
    end_time = parse_time_of_day(end_time)
    if end_time < start_time:
        raise ValidationError("End time cannot be before start time.")

    if is_routine:
        if not routine_days:
            routine_days = [weekday_index(task_date)]
        validate_routine_days(routine_days)
        routine_days = sorted(set(routine_days))
    else:
        routine_days = None

    checklist_texts = [text.strip() for text in (checklist or []) if text and text.strip()]

    if repository.find_task(staff.pk, task_date, title):
        raise ValidationError(f'"{title}" already exists for this staff member on {task_date}.')

    with transaction.atomic():
        task = repository.insert_task(
            staff=staff,
            title=title,
            category=category,
            status=Task.Status.TODO,
            task_date=task_date,
            start_time=start_time,
            end_time=end_time,
            is_routine=is_routine,
            routine_days=routine_days,
            attachment_required=attachment_required,
            created_by=actor,
        )
        if task is None:
            raise ValidationError(f'"{title}" already exists for this staff member on {task_date}.')

        repository.create_checklist_items(task, checklist_texts)

        log_task_activity(
            task=task,
            user=actor,
            action_type=TaskActivity.ActionType.CREATED,
            description=f'Task created for {staff.get_full_name()} by {_actor_name(actor)}',
        )

        _add_mentions(task, actor, mentions or [])

        if actor is not None and staff.pk != actor.pk:
            emit_notification(
                staff,
                title='New task assigned',
                message=f'{actor.get_full_name()} added "{task.title}" to your timeline on {task_date}.',
                type=Notification.Type.INFO,
                task=task,
            )

        if is_routine:
            _ensure_department_template(task, checklist_texts)

    return task


def _add_mentions(task, actor, user_ids):
    ids = set()
    for value in user_ids:
        try:
            ids.add(int(value))
        except (TypeError, ValueError):
            continue
    if actor is not None:
        ids.discard(actor.pk)

    for user in User.objects.filter(pk__in=ids, is_active=True):
        TaskMention.objects.get_or_create(task=task, user=user)
        emit_notification(
            user,
            title='You were mentioned',
            message=f'{_actor_name(actor)} mentioned you in "{task.title}".',
            type=Notification.Type.MENTION,
            task=task,
        )


def _ensure_department_template(task, checklist_texts):
    """
    Register a routine task as a template for the owner's department
    unless one with the same title exists.
    """
    department_id = task.staff.department_id
    if department_id is None:
        return None
    if RoutineTemplate.objects.filter(department_id=department_id, title=task.title).exists():
        return None

    start = datetime.combine(task.task_date, task.start_time)
    end = datetime.combine(task.task_date, task.end_time)
    hours = Decimal((end - start).total_seconds()) / Decimal(3600)
    if hours <= 0:
        hours = Decimal(1)

    template = RoutineTemplate.objects.create(
        department_id=department_id,
        title=task.title,
        routine_days=list(task.routine_days or []),
        default_start_time=task.start_time,
        duration_hours=hours.quantize(Decimal('0.01')),
        checklist_template=list(checklist_texts),
    )
    logger.info("Routine template %s created from task %s", template.pk, task.pk)
    return template


# =============================================================================
# Completion state machine
# =============================================================================

def _apply_recompute(task, actor):
    """Recompute and persist status for a task whose row is locked."""
    items = repository.list_checklist_items(task.pk)
    total_count = len(items)
    done_count = sum(1 for item in items if item.is_done)
    attachment_count = repository.count_attachments(task.pk)

    old_status = task.status
    new_status = recompute_status(
        old_status, done_count, total_count,
        attachment_required=task.attachment_required,
        attachment_count=attachment_count,
    )

    if new_status != old_status:
        repository.update_task_status(task, new_status)
        log_task_activity(
            task=task,
            user=actor,
            action_type=TaskActivity.ActionType.STATUS_CHANGED,
            description=f'Status changed from {_status_label(old_status)} to {_status_label(new_status)}',
            field_name='status',
            old_value=old_status,
            new_value=new_status,
        )

    if (done_count == total_count and total_count > 0
            and new_status != Task.Status.DONE):
        logger.info("Task %s held in progress: attachment required", task.pk)

    if new_status == Task.Status.DONE:
        notify_mentions(task)

    return new_status, done_count, total_count


def toggle_checklist_item(actor, item_id):
    """
    Flip one checklist item and recompute the task status over the
    whole checklist.

    Returns:
        dict with new_status, done_count and total_count

    Raises:
        ChecklistItem.DoesNotExist: If the item does not exist
        PermissionDenied: If actor may not modify the task
    """
    with transaction.atomic():
        item = ChecklistItem.objects.get(pk=item_id)
        task = repository.lock_task(item.task_id)
        if not can_access_task(actor, task):
            raise PermissionDenied("You don't have permission to update this task.")

        # Re-read under the task lock
        item.refresh_from_db()
        done = not item.is_done
        repository.set_checklist_item_done(item, done, timezone.now() if done else None)

        log_task_activity(
            task=task,
            user=actor,
            action_type=TaskActivity.ActionType.CHECKLIST_TOGGLED,
            description=f'"{item.text}" marked as {"done" if done else "not done"}',
            field_name='checklist',
            old_value=str(not done),
            new_value=str(done),
        )

        new_status, done_count, total_count = _apply_recompute(task, actor)

    return {
        'new_status': new_status,
        'done_count': done_count,
        'total_count': total_count,
    }


def recompute_task_status(actor, task_id):
    """
    Re-derive a task's status without changing its checklist.

    Returns:
        The task's status after recompute
    """
    with transaction.atomic():
        task = repository.lock_task(task_id)
        if not can_access_task(actor, task):
            raise PermissionDenied("You don't have permission to update this task.")
        new_status, _, _ = _apply_recompute(task, actor)
    return new_status


def set_task_status(actor, task_id, requested_status):
    """
    Manually set a task's status.

    Only the attachment gate is checked on the way to Done; checklist
    completeness is enforced by the recompute path alone.

    Returns:
        Updated Task instance

    Raises:
        ValidationError: If requested_status is not a known status
        CompletionGateError: If Done is requested without a required attachment
        PermissionDenied: If actor may not modify the task
    """
    if requested_status not in Task.Status.values:
        raise ValidationError(f"Invalid status: {requested_status}")

    with transaction.atomic():
        task = repository.lock_task(task_id)
        if not can_access_task(actor, task):
            raise PermissionDenied("You don't have permission to change this task's status.")

        if requested_status == Task.Status.DONE:
            check_completion_gate(task, repository.count_attachments(task.pk))

        old_status = task.status
        if requested_status != old_status:
            repository.update_task_status(task, requested_status)
            log_task_activity(
                task=task,
                user=actor,
                action_type=TaskActivity.ActionType.STATUS_CHANGED,
                description=f'Status set from {_status_label(old_status)} to {_status_label(requested_status)}',
                field_name='status',
                old_value=old_status,
                new_value=requested_status,
            )

        if requested_status == Task.Status.DONE:
            notify_mentions(task)

    return task


def notify_mentions(task):
    """
    Send a completion notice to every mentioned user not yet notified.

    Returns:
        Number of users notified by this call
    """
    notified = 0
    for mention in repository.list_unnotified_mentions(task.pk):
        if not repository.mark_mention_notified(mention):
            continue
        emit_notification(
            mention.user,
            title='Task completed',
            message=f'"{task.title}" on {task.task_date} is done.',
            type=Notification.Type.COMPLETED,
            task=task,
        )
        notified += 1
    if notified:
        logger.info("Notified %s mentioned user(s) of task %s", notified, task.pk)
    return notified


# =============================================================================
# Attachments
# =============================================================================

def add_attachment(actor, task_id, name, url, type=Attachment.AttachmentType.LINK):
    """
    Attach a link to a task.

    Adding an attachment does not change the status; the next checklist
    toggle (or a manual Done) picks it up.

    Raises:
        ValidationError: If name or url is missing or the URL scheme is not allowed
        PermissionDenied: If actor may not modify the task
    """
    name = (name or '').strip()
    url = (url or '').strip()
    if not name:
        raise ValidationError("Attachment name is required.")
    if not url:
        raise ValidationError("Attachment URL is required.")
    if not url.lower().startswith(Attachment.ALLOWED_URL_SCHEMES):
        raise ValidationError("URL must start with http://, https://, ftp://, mailto: or file://")
    if type not in Attachment.AttachmentType.values:
        type = Attachment.AttachmentType.LINK

    with transaction.atomic():
        task = repository.lock_task(task_id)
        if not can_access_task(actor, task):
            raise PermissionDenied("You don't have permission to add attachments to this task.")

        attachment = Attachment.objects.create(
            task=task,
            name=name,
            url=url,
            type=type,
            uploaded_by=actor,
        )

        log_task_activity(
            task=task,
            user=actor,
            action_type=TaskActivity.ActionType.ATTACHMENT_ADDED,
            description=f'Attachment added: "{name}"',
        )

    return attachment


def delete_attachment(actor, attachment_id):
    """
    Remove an attachment. A done task that required proof and just lost its
    last attachment drops back to in_progress.

    Returns:
        The task after removal
    """
    with transaction.atomic():
        attachment = Attachment.objects.get(pk=attachment_id)
        task = repository.lock_task(attachment.task_id)
        if not can_access_task(actor, task):
            raise PermissionDenied("You don't have permission to remove this attachment.")

        name = attachment.name
        attachment.delete()

        log_task_activity(
            task=task,
            user=actor,
            action_type=TaskActivity.ActionType.ATTACHMENT_REMOVED,
            description=f'Attachment removed: "{name}"',
        )

        old_status = task.status
        new_status = regressed_status(task, repository.count_attachments(task.pk))
        if new_status != old_status:
            repository.update_task_status(task, new_status)
            log_task_activity(
                task=task,
                user=actor,
                action_type=TaskActivity.ActionType.STATUS_CHANGED,
                description='Status reverted to In Progress: last required attachment removed',
                field_name='status',
                old_value=old_status,
                new_value=new_status,
            )

    return task


# =============================================================================
# Timeline
# =============================================================================

def build_timeline(day, department=None, staff=None):
    """
    Collect every active staff member's tasks for one day.

    Args:
        day: Calendar date
        department: Optional Department to narrow to
        staff: Optional User to narrow to

    Returns:
        List of dicts with staff, tasks (with placement), and stats
    """
    members = User.objects.active_staff().select_related('department').order_by(
        'department__name', 'first_name', 'last_name'
    )
    if department is not None:
        members = members.filter(department=department)
    if staff is not None:
        members = members.filter(pk=staff.pk)
    members = list(members)

    tasks = (
        Task.objects.filter(task_date=day, staff__in=members)
        .annotate(attachment_count=Count('attachments'))
        .prefetch_related('checklist_items')
        .order_by('start_time', 'id')
    )
    by_staff = {member.pk: [] for member in members}
    for task in tasks:
        by_staff[task.staff_id].append(task)

    rows = []
    for member in members:
        member_tasks = by_staff[member.pk]
        placements = {p.task_id: p for p in compute_day_layout(member_tasks)}
        done = sum(1 for task in member_tasks if task.status == Task.Status.DONE)
        total = len(member_tasks)
        rows.append({
            'staff': member,
            'tasks': [
                {'task': task, 'placement': placements.get(task.pk)}
                for task in member_tasks
            ],
            'stats': {
                'done': done,
                'total': total,
                'percent': round(done * 100 / total) if total else 0,
            },
        })
    return rows
