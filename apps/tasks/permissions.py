"""
Permission helpers for tasks app.

Role-based access control, evaluated against an explicit actor:
- None: the system (scheduled jobs, management commands), full access
- Admin: full access to every staff member's tasks and templates
- Staff: own tasks only
"""

from .models import Task


def is_admin_actor(actor):
    """System and admins share unrestricted access."""
    return actor is None or actor.is_admin()


def can_access_staff(actor, staff_id):
    """
    Check if actor may read or mutate tasks owned by staff_id.
    """
    if is_admin_actor(actor):
        return True
    return actor.pk == staff_id


def can_access_task(actor, task):
    return can_access_staff(actor, task.staff_id)


def can_create_task_for(actor, staff, category):
    """
    Staff create tasks for themselves; anyone may file a Request for
    a colleague.
    """
    if can_access_staff(actor, staff.pk):
        return True
    return category == Task.Category.REQUEST


def can_manage_templates(actor):
    """Routine templates are admin-owned."""
    return is_admin_actor(actor)
