"""
In-app notification model.

Delivery (browser push, email) lives outside this project; a row here is
what the frontend polls and renders.
"""

from django.db import models
from django.conf import settings


class Notification(models.Model):

    class Type(models.TextChoices):
        INFO = 'info', 'Info'
        WARNING = 'warning', 'Warning'
        SUCCESS = 'success', 'Success'
        ERROR = 'error', 'Error'
        DEADLINE = 'deadline', 'Deadline'
        TRANSITION = 'transition', 'Transition'
        REQUEST = 'request', 'Request'
        MENTION = 'mention', 'Mention'
        COMPLETED = 'completed', 'Completed'

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications',
    )
    task = models.ForeignKey(
        'tasks.Task',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='notifications',
    )
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True)
    type = models.CharField(
        max_length=20,
        choices=Type.choices,
        default=Type.INFO,
    )
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = 'notification'
        verbose_name_plural = 'notifications'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'is_read'], name='notification_user_read_idx'),
        ]

    def __str__(self):
        return f"{self.title} → {self.user}"
