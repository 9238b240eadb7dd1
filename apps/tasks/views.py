"""
Views for tasks app.

Includes:
- Timeline for one day (JSON, or an HTML partial for HTMX requests)
- Task list over a date range with filters
- Task creation
- Manual status change and checklist toggle
- Link attachments
"""

from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.shortcuts import render
from django.utils import timezone
from django.utils.dateparse import parse_date
from django.views.decorators.http import require_GET, require_POST

from apps.accounts.models import User
from apps.departments.models import Department
from .filters import TaskFilter
from .forms import TaskForm, AttachmentForm, TaskStatusForm
from .models import Task
from .permissions import is_admin_actor
from .responses import json_error, json_success, json_view, parse_json_body
from .services import (
    create_task, toggle_checklist_item, set_task_status,
    add_attachment, delete_attachment, build_timeline,
)


def _time(value):
    return value.strftime('%H:%M:%S') if value else None


def serialize_task(task, placement=None):
    checklist = list(task.checklist_items.all())
    data = {
        'id': task.pk,
        'staff_id': task.staff_id,
        'title': task.title,
        'category': task.category,
        'status': task.status,
        'task_date': task.task_date.isoformat(),
        'start_time': _time(task.start_time),
        'end_time': _time(task.end_time),
        'is_routine': task.is_routine,
        'routine_days': task.routine_days,
        'attachment_required': task.attachment_required,
        'created_by_id': task.created_by_id,
        'checklist': [
            {
                'id': item.pk,
                'text': item.text,
                'sort_order': item.sort_order,
                'is_done': item.is_done,
                'completed_at': item.completed_at.isoformat() if item.completed_at else None,
            }
            for item in checklist
        ],
    }
    if hasattr(task, 'attachment_count'):
        data['attachment_count'] = task.attachment_count
    if placement is not None:
        data['placement'] = placement.as_dict()
    return data


def _form_errors(form):
    return {field: [str(e) for e in errors] for field, errors in form.errors.items()}


def _optional_pk(value, label):
    if not value:
        return None
    if not str(value).isdigit():
        raise ValidationError(f"Invalid {label}.")
    return int(value)


# =============================================================================
# Timeline
# =============================================================================

@login_required
@json_view
@require_GET
def timeline(request):
    """
    Every active staff member's tasks for ?date= (default today), with
    completion stats and layout placements.

    Optional filters: ?department=<id>, ?staff=<id>.
    """
    day = timezone.localdate()
    if request.GET.get('date'):
        day = parse_date(request.GET['date'])
        if day is None:
            raise ValidationError("Invalid date. Use YYYY-MM-DD.")

    department = None
    department_id = _optional_pk(request.GET.get('department'), 'department')
    if department_id:
        department = Department.objects.get(pk=department_id)

    staff = None
    staff_id = _optional_pk(request.GET.get('staff'), 'staff')
    if staff_id:
        staff = User.objects.get(pk=staff_id)

    rows = build_timeline(day, department=department, staff=staff)

    if request.htmx:
        context = {
            'day': day,
            'rows': rows,
            'status_choices': Task.Status.choices,
        }
        return render(request, 'tasks/partials/timeline.html', context)

    return json_success({
        'date': day.isoformat(),
        'staff': [
            {
                'id': row['staff'].pk,
                'name': row['staff'].get_full_name(),
                'department': row['staff'].department.name if row['staff'].department else None,
                'stats': row['stats'],
                'tasks': [serialize_task(entry['task'], entry['placement']) for entry in row['tasks']],
            }
            for row in rows
        ],
    })


# =============================================================================
# Task List & Creation
# =============================================================================

@login_required
@json_view
@require_GET
def task_list(request):
    """
    Tasks filtered by TaskFilter. Staff only see their own tasks.
    """
    queryset = Task.objects.select_related('staff').prefetch_related('checklist_items')
    if not is_admin_actor(request.user):
        queryset = queryset.filter(staff=request.user)

    task_filter = TaskFilter(request.GET, queryset=queryset)
    if not task_filter.is_valid():
        return json_error('Invalid filters.', errors=_form_errors(task_filter.form))

    tasks = task_filter.qs.order_by('task_date', 'start_time', 'id')
    return json_success([serialize_task(task) for task in tasks])


@login_required
@json_view
@require_POST
def task_create(request):
    form = TaskForm(parse_json_body(request))
    if not form.is_valid():
        return json_error('Invalid task.', errors=_form_errors(form))

    data = form.cleaned_data
    task = create_task(
        request.user,
        data['staff'] or request.user,
        title=data['title'],
        task_date=data['task_date'],
        start_time=data['start_time'],
        end_time=data['end_time'],
        category=data['category'],
        is_routine=data['is_routine'],
        routine_days=data['routine_days'],
        attachment_required=data['attachment_required'],
        checklist=data['checklist'],
        mentions=data['mentions'],
    )
    return json_success(serialize_task(task), status=201, message='Task created.')


# =============================================================================
# Status & Checklist
# =============================================================================

@login_required
@json_view
@require_POST
def task_status_change(request, pk):
    form = TaskStatusForm(parse_json_body(request))
    if not form.is_valid():
        return json_error('Invalid status.', errors=_form_errors(form))

    task = set_task_status(request.user, pk, form.cleaned_data['status'])
    return json_success({'id': task.pk, 'status': task.status})


@login_required
@json_view
@require_POST
def checklist_toggle(request, item_id):
    result = toggle_checklist_item(request.user, item_id)
    return json_success(result)


# =============================================================================
# Attachments
# =============================================================================

@login_required
@json_view
@require_POST
def attachment_add(request, pk):
    form = AttachmentForm(parse_json_body(request))
    if not form.is_valid():
        return json_error('Invalid attachment.', errors=_form_errors(form))

    attachment = add_attachment(request.user, pk, **form.cleaned_data)
    return json_success({
        'id': attachment.pk,
        'task_id': attachment.task_id,
        'name': attachment.name,
        'url': attachment.url,
        'type': attachment.type,
    }, status=201)


@login_required
@json_view
@require_POST
def attachment_delete(request, attachment_id):
    task = delete_attachment(request.user, attachment_id)
    return json_success({'task_id': task.pk, 'status': task.status})
