"""
Task management models.

Models:
- Task: One dated block on a staff member's timeline
- ChecklistItem: Ordered checklist entries driving the task status
- Attachment: Proof-of-work links counted by the attachment-required gate
- TaskMention: Users to notify once the task is done
"""

from django.db import models
from django.db.models import Q
from django.conf import settings

from apps.routines.models import validate_routine_days


class Task(models.Model):
    """
    Main Task model.

    A task belongs to exactly one staff member and one calendar date.
    (staff, task_date, title) is unique; routine generation relies on it.

    Status workflow (derived from checklist progress, see workflow.py):
    todo → in_progress → done, plus manual override to any status.
    """

    class Status(models.TextChoices):
        TODO = 'todo', 'To Do'
        IN_PROGRESS = 'in_progress', 'In Progress'
        DONE = 'done', 'Done'

    class Category(models.TextChoices):
        JOBDESK = 'jobdesk', 'Jobdesk'
        TUGAS_TAMBAHAN = 'tugas_tambahan', 'Tugas Tambahan'
        INISIATIF = 'inisiatif', 'Inisiatif'
        REQUEST = 'request', 'Request'

    title = models.CharField(max_length=255)

    # Relationships
    staff = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='tasks',
        help_text='Staff member who owns this task'
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_tasks',
        help_text='Empty for system-generated tasks'
    )

    category = models.CharField(
        max_length=20,
        choices=Category.choices,
        default=Category.JOBDESK,
    )
    status = models.CharField(
        max_length=15,
        choices=Status.choices,
        default=Status.TODO,
        db_index=True,
    )

    # Timeline placement
    task_date = models.DateField(db_index=True)
    start_time = models.TimeField()
    end_time = models.TimeField()

    # Recurrence
    is_routine = models.BooleanField(default=False)
    routine_days = models.JSONField(
        null=True,
        blank=True,
        validators=[validate_routine_days],
        help_text='Weekdays this routine repeats on (0=Sunday .. 6=Saturday)'
    )

    attachment_required = models.BooleanField(
        default=False,
        help_text='Task cannot reach Done without at least one attachment'
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'task'
        verbose_name_plural = 'tasks'
        ordering = ['task_date', 'start_time']
        constraints = [
            models.UniqueConstraint(
                fields=['staff', 'task_date', 'title'],
                name='unique_task_per_staff_day_title',
            ),
        ]
        indexes = [
            models.Index(fields=['staff', 'task_date'], name='task_staff_date_idx'),
            models.Index(fields=['staff', 'is_routine'], name='task_staff_routine_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.task_date:%Y-%m-%d})"

    @property
    def is_system_generated(self):
        return self.created_by_id is None

    @property
    def is_done(self):
        return self.status == self.Status.DONE


class ChecklistItem(models.Model):
    """
    Checklist entry owned by exactly one task.

    completed_at is set if and only if is_done is true.
    """

    task = models.ForeignKey(
        Task,
        on_delete=models.CASCADE,
        related_name='checklist_items',
    )
    text = models.CharField(max_length=500)
    sort_order = models.PositiveIntegerField(default=0)
    is_done = models.BooleanField(default=False)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = 'checklist item'
        verbose_name_plural = 'checklist items'
        ordering = ['sort_order', 'id']
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(completed_at__isnull=False, is_done=True)
                    | Q(completed_at__isnull=True, is_done=False)
                ),
                name='checklist_completed_at_matches_done',
            ),
        ]

    def __str__(self):
        return self.text

    def set_done(self, done, when=None):
        """Flip is_done and completed_at together."""
        self.is_done = done
        self.completed_at = when if done else None


class Attachment(models.Model):
    """
    Task attachment model.

    Attachments are links (documents, drive folders, screenshots hosted
    elsewhere). Only their existence matters to the completion gate.
    """

    ALLOWED_URL_SCHEMES = ('http://', 'https://', 'ftp://', 'mailto:', 'file://')

    class AttachmentType(models.TextChoices):
        LINK = 'link', 'Link'
        IMAGE = 'image', 'Image'
        FILE = 'file', 'File'

    task = models.ForeignKey(
        Task,
        on_delete=models.CASCADE,
        related_name='attachments',
    )
    name = models.CharField(max_length=255)
    url = models.CharField(max_length=1000)
    type = models.CharField(
        max_length=10,
        choices=AttachmentType.choices,
        default=AttachmentType.LINK,
    )
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='task_attachments',
    )
    uploaded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'attachment'
        verbose_name_plural = 'attachments'
        ordering = ['uploaded_at']

    def __str__(self):
        return f"Attachment: {self.name} for {self.task.title}"


class TaskMention(models.Model):
    """
    A user tagged on a task, notified once when the task reaches Done.
    """

    task = models.ForeignKey(
        Task,
        on_delete=models.CASCADE,
        related_name='mentions',
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='task_mentions',
    )
    notified_on_complete = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'task mention'
        verbose_name_plural = 'task mentions'
        constraints = [
            models.UniqueConstraint(
                fields=['task', 'user'],
                name='unique_mention_per_task_user',
            ),
        ]

    def __str__(self):
        return f"{self.user} on {self.task.title}"
