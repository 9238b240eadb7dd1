"""
Views for routines app.

JSON endpoints:
- Routine template list/create and detail/update/delete (admin only)
- Routine generation for a single day
"""

from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.forms.models import model_to_dict
from django.utils import timezone
from django.utils.dateparse import parse_date
from django.views.decorators.http import require_http_methods, require_POST

from apps.departments.models import Department
from apps.tasks.responses import json_error, json_success, json_view, parse_json_body
from .forms import RoutineTemplateForm
from .materializer import materialize_routines
from .services import (
    list_templates, get_template, create_template, update_template, delete_template,
)


def serialize_template(template):
    return {
        'id': template.pk,
        'department_id': template.department_id,
        'department': template.department.name,
        'title': template.title,
        'routine_days': template.routine_days,
        'days_display': template.days_display,
        'default_start_time': template.default_start_time.strftime('%H:%M:%S'),
        'end_time': template.end_time.strftime('%H:%M:%S'),
        'duration_hours': float(template.duration_hours),
        'checklist_template': template.checklist_template,
        'start_date': template.start_date.isoformat() if template.start_date else None,
        'is_active': template.is_active,
    }


def _form_errors(form):
    return {field: [str(e) for e in errors] for field, errors in form.errors.items()}


# =============================================================================
# Routine Templates
# =============================================================================

@login_required
@json_view
@require_http_methods(['GET', 'POST'])
def template_list(request):
    """
    GET: templates, optionally ?department=<id> and ?active=1
    POST: create a template
    """
    if request.method == 'GET':
        department = None
        department_id = request.GET.get('department')
        if department_id:
            if not department_id.isdigit():
                raise ValidationError("Invalid department.")
            department = Department.objects.get(pk=department_id)
        templates = list_templates(
            request.user,
            department=department,
            active_only=request.GET.get('active') in ('1', 'true'),
        )
        return json_success([serialize_template(t) for t in templates])

    form = RoutineTemplateForm(parse_json_body(request))
    if not form.is_valid():
        return json_error('Invalid routine template.', errors=_form_errors(form))
    template = create_template(request.user, **form.cleaned_data)
    return json_success(serialize_template(template), status=201)


@login_required
@json_view
@require_http_methods(['GET', 'POST', 'PUT', 'DELETE'])
def template_detail(request, pk):
    """
    GET: one template
    POST/PUT: update the fields present in the payload
    DELETE: remove the template
    """
    template = get_template(request.user, pk)

    if request.method == 'GET':
        return json_success(serialize_template(template))

    if request.method == 'DELETE':
        delete_template(request.user, pk)
        return json_success(message='Routine template deleted.')

    data = model_to_dict(template, fields=RoutineTemplateForm.Meta.fields)
    data.update(parse_json_body(request))
    form = RoutineTemplateForm(data, instance=template)
    if not form.is_valid():
        return json_error('Invalid routine template.', errors=_form_errors(form))
    template = update_template(request.user, pk, **form.cleaned_data)
    return json_success(serialize_template(template))


# =============================================================================
# Routine Generation
# =============================================================================

@login_required
@json_view
@require_POST
def generate(request):
    """
    Materialize routines for one day.

    Payload: {"staff": "all" | <id>, "date": "YYYY-MM-DD"}; staff members
    always generate for themselves, the date defaults to today.
    """
    payload = parse_json_body(request)
    day = timezone.localdate()
    if payload.get('date'):
        day = parse_date(str(payload['date']))
        if day is None:
            raise ValidationError("Invalid date. Use YYYY-MM-DD.")

    result = materialize_routines(request.user, payload.get('staff', 'all'), [day])
    return json_success(
        result.as_dict(),
        message=f'{result.created_count} routine task(s) generated for {day.isoformat()}.',
    )
