"""
Task status workflow.

All status derivation lives here so views and services never compare
raw status strings:

    todo → in_progress → done

The checklist decides the status; the attachment-required gate may hold
a fully checked task in in_progress. Manual overrides only re-check the
gate (see services.set_task_status).
"""

from .exceptions import CompletionGateError
from .models import Task


def recompute_status(current_status, done_count, total_count,
                     attachment_required=False, attachment_count=0):
    """
    Derive a task's status from its checklist progress.

    Args:
        current_status: Status the task has now
        done_count: Number of checked items
        total_count: Number of checklist items
        attachment_required: Whether the task has the attachment gate
        attachment_count: Number of attachments on the task

    Returns:
        One of Task.Status values
    """
    if total_count == 0:
        # No checklist: status is only changed by explicit overrides
        return current_status
    if done_count == 0:
        return Task.Status.TODO
    if done_count < total_count:
        return Task.Status.IN_PROGRESS
    if attachment_required and attachment_count == 0:
        return Task.Status.IN_PROGRESS
    return Task.Status.DONE


def check_completion_gate(task, attachment_count):
    """
    Raise CompletionGateError if the task may not be marked as done.
    """
    if task.attachment_required and attachment_count == 0:
        raise CompletionGateError()


def regressed_status(task, attachment_count):
    """
    Status after an attachment was removed.

    A done task that needs proof of work and has lost its last attachment
    drops back to in_progress. Anything else keeps its status.
    """
    if (task.status == Task.Status.DONE
            and task.attachment_required
            and attachment_count == 0):
        return Task.Status.IN_PROGRESS
    return task.status
