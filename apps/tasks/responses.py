"""
JSON response helpers shared by the task and routine endpoints.

Error mapping:
- ValidationError (incl. CompletionGateError) → 400
- PermissionDenied → 403
- ObjectDoesNotExist / Http404 → 404
"""

import json
import logging
from functools import wraps

from django.core.exceptions import ObjectDoesNotExist, PermissionDenied, ValidationError
from django.http import Http404, JsonResponse

logger = logging.getLogger(__name__)


def json_error(message, status=400, **extra):
    return JsonResponse({'success': False, 'message': message, **extra}, status=status)


def json_success(data=None, status=200, **extra):
    payload = {'success': True, **extra}
    if data is not None:
        payload['data'] = data
    return JsonResponse(payload, status=status)


def validation_message(exc):
    return ' '.join(exc.messages)


def parse_json_body(request):
    """
    Request payload as a dict: JSON body when sent as JSON, form data otherwise.
    """
    if request.content_type == 'application/json':
        if not request.body:
            return {}
        try:
            payload = json.loads(request.body)
        except ValueError:
            raise ValidationError("Request body is not valid JSON.")
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object.")
        return payload
    return request.POST.dict()


def json_view(view_func):
    """Translate service exceptions into JSON error responses."""

    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except ValidationError as exc:
            return json_error(validation_message(exc), status=400)
        except PermissionDenied as exc:
            logger.info("Permission denied for user %s on %s", request.user.pk, request.path)
            return json_error(str(exc) or 'Permission denied.', status=403)
        except (ObjectDoesNotExist, Http404):
            return json_error('Not found.', status=404)

    return wrapper
