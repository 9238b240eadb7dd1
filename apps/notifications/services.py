"""
Service layer for notifications app.

Every engine event that should reach a person (mentions, completion,
assignment) goes through emit_notification.
"""

import logging

from .models import Notification

logger = logging.getLogger(__name__)


def emit_notification(user, title, message='', type=Notification.Type.INFO, task=None):
    """
    Persist an unread notification for a user.

    Args:
        user: Recipient User
        title: Short headline
        message: Body text (optional)
        type: One of Notification.Type choices (default: info)
        task: Related Task (optional)

    Returns:
        Created Notification instance
    """
    if type not in Notification.Type.values:
        type = Notification.Type.INFO

    notification = Notification.objects.create(
        user=user,
        title=title,
        message=message or '',
        type=type,
        task=task,
    )
    logger.debug("Notification %s (%s) emitted to user %s", notification.pk, type, user.pk)
    return notification
