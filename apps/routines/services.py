"""
Service layer for routines app.

Routine templates are owned by admins. Every function takes the acting
user and raises PermissionDenied for anyone else.

Services:
- list_templates / get_template: Read templates
- create_template / update_template / delete_template: Admin CRUD
"""

import logging

from django.core.exceptions import PermissionDenied
from django.db import transaction

from apps.tasks.permissions import can_manage_templates
from .models import RoutineTemplate

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    'department', 'title', 'routine_days', 'default_start_time',
    'duration_hours', 'checklist_template', 'start_date', 'is_active',
)


def _require_admin(actor):
    if not can_manage_templates(actor):
        raise PermissionDenied("Only admins can manage routine templates.")


def list_templates(actor, department=None, active_only=False):
    """
    Templates ordered by department name, then title.
    """
    _require_admin(actor)
    queryset = RoutineTemplate.objects.select_related('department')
    if department is not None:
        queryset = queryset.filter(department=department)
    if active_only:
        queryset = queryset.filter(is_active=True)
    return queryset.order_by('department__name', 'title')


def get_template(actor, pk):
    _require_admin(actor)
    return RoutineTemplate.objects.select_related('department').get(pk=pk)


def create_template(actor, **fields):
    """
    Create a routine template.

    Args:
        actor: Admin user (or None for the system)
        **fields: Any of EDITABLE_FIELDS

    Returns:
        Created RoutineTemplate

    Raises:
        PermissionDenied: If actor is not an admin
        ValidationError: If the template fails model validation
    """
    _require_admin(actor)
    template = RoutineTemplate(**{k: v for k, v in fields.items() if k in EDITABLE_FIELDS})
    template.full_clean()
    template.save()
    logger.info("Routine template %s (%s) created", template.pk, template.title)
    return template


def update_template(actor, pk, **fields):
    """
    Update the given fields of a routine template.

    Raises:
        RoutineTemplate.DoesNotExist: If pk is unknown
        PermissionDenied: If actor is not an admin
        ValidationError: If the result fails model validation
    """
    _require_admin(actor)
    with transaction.atomic():
        template = RoutineTemplate.objects.select_for_update().get(pk=pk)
        for name, value in fields.items():
            if name in EDITABLE_FIELDS:
                setattr(template, name, value)
        template.full_clean()
        template.save()
    logger.info("Routine template %s updated", template.pk)
    return template


def delete_template(actor, pk):
    """Delete a template; tasks already generated from it stay."""
    _require_admin(actor)
    template = RoutineTemplate.objects.get(pk=pk)
    template.delete()
    logger.info("Routine template %s deleted", pk)
