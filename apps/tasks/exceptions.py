"""
Exceptions raised by the task lifecycle services.
"""

from django.core.exceptions import ValidationError


class CompletionGateError(ValidationError):
    """
    Raised when a task is moved to Done while its attachment
    requirement is unmet.
    """

    default_message = 'This task requires at least one attachment before it can be marked as done.'

    def __init__(self, message=None, code='attachment_required', params=None):
        super().__init__(message or self.default_message, code=code, params=params)
