"""
Storage operations used by the scheduling and completion engine.

Thin wrappers over the ORM so the engine reads as a sequence of named
steps. Nothing here checks permissions; callers do.
"""

from django.db import IntegrityError, transaction

from apps.routines.models import RoutineTemplate
from .models import Task, ChecklistItem, Attachment, TaskMention


# =============================================================================
# Templates
# =============================================================================

def list_active_templates(department_id):
    if department_id is None:
        return []
    return list(
        RoutineTemplate.objects.filter(department_id=department_id, is_active=True)
        .order_by('title', 'id')
    )


# =============================================================================
# Tasks
# =============================================================================

def list_personal_routine_tasks(staff_id):
    """Routine tasks of one staff member, most recent first (ties: highest id)."""
    return list(
        Task.objects.filter(staff_id=staff_id, is_routine=True)
        .order_by('-task_date', '-id')
    )


def find_task(staff_id, task_date, title):
    return Task.objects.filter(staff_id=staff_id, task_date=task_date, title=title).first()


def insert_task(**fields):
    """
    Insert a task row inside a savepoint.

    Returns:
        The created Task, or None if (staff, task_date, title) already exists
    """
    try:
        with transaction.atomic():
            return Task.objects.create(**fields)
    except IntegrityError:
        return None


def update_task_status(task, status):
    task.status = status
    task.save(update_fields=['status', 'updated_at'])
    return task


def lock_task(task_id):
    """Fetch a task with its row locked for the current transaction."""
    return Task.objects.select_for_update().get(pk=task_id)


# =============================================================================
# Checklist
# =============================================================================

def create_checklist_items(task, texts):
    """Create checklist items in the given order."""
    return ChecklistItem.objects.bulk_create([
        ChecklistItem(task=task, text=text, sort_order=index)
        for index, text in enumerate(texts)
    ])


def list_checklist_items(task_id):
    return list(ChecklistItem.objects.filter(task_id=task_id).order_by('sort_order', 'id'))


def list_checklist_texts(task_id):
    return list(
        ChecklistItem.objects.filter(task_id=task_id)
        .order_by('sort_order', 'id')
        .values_list('text', flat=True)
    )


def set_checklist_item_done(item, done, completed_at=None):
    item.set_done(done, completed_at)
    item.save(update_fields=['is_done', 'completed_at'])
    return item


# =============================================================================
# Attachments & mentions
# =============================================================================

def count_attachments(task_id):
    return Attachment.objects.filter(task_id=task_id).count()


def list_unnotified_mentions(task_id):
    return list(
        TaskMention.objects.filter(task_id=task_id, notified_on_complete=False)
        .select_related('user')
        .order_by('id')
    )


def mark_mention_notified(mention):
    """
    Flip notified_on_complete.

    Returns:
        True if this call flipped the flag, False if it was already set
    """
    updated = TaskMention.objects.filter(
        pk=mention.pk, notified_on_complete=False
    ).update(notified_on_complete=True)
    mention.notified_on_complete = True
    return updated == 1
