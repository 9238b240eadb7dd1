"""
Forms for tasks app.

Includes:
- TaskForm: Create tasks (checklist and mentions as JSON lists)
- AttachmentForm: Attach a link
- TaskStatusForm: Manual status override
"""

from django import forms

from apps.accounts.models import User
from apps.routines.models import validate_routine_days
from .models import Task, Attachment

TIME_INPUT_FORMATS = ['%H:%M', '%H:%M:%S']


def _string_list(value, label):
    if value in (None, ''):
        return []
    if not isinstance(value, list):
        raise forms.ValidationError(f'{label} must be a list.')
    return value


class TaskForm(forms.Form):
    """
    Task creation payload.

    staff defaults to the requesting user when left empty.
    """

    title = forms.CharField(max_length=255)
    staff = forms.ModelChoiceField(
        queryset=User.objects.filter(is_active=True),
        required=False,
    )
    category = forms.ChoiceField(choices=Task.Category.choices, required=False)
    task_date = forms.DateField()
    start_time = forms.TimeField(input_formats=TIME_INPUT_FORMATS)
    end_time = forms.TimeField(input_formats=TIME_INPUT_FORMATS)
    is_routine = forms.BooleanField(required=False)
    routine_days = forms.JSONField(required=False)
    attachment_required = forms.BooleanField(required=False)
    checklist = forms.JSONField(required=False)
    mentions = forms.JSONField(required=False)

    def clean_category(self):
        return self.cleaned_data.get('category') or Task.Category.JOBDESK

    def clean_routine_days(self):
        days = _string_list(self.cleaned_data.get('routine_days'), 'Routine days')
        validate_routine_days(days)
        return days

    def clean_checklist(self):
        items = _string_list(self.cleaned_data.get('checklist'), 'Checklist')
        return [item for item in items if isinstance(item, str)]

    def clean_mentions(self):
        return _string_list(self.cleaned_data.get('mentions'), 'Mentions')

    def clean(self):
        cleaned_data = super().clean()
        start = cleaned_data.get('start_time')
        end = cleaned_data.get('end_time')
        if start and end and end < start:
            self.add_error('end_time', 'End time cannot be before start time.')
        return cleaned_data


class AttachmentForm(forms.Form):
    name = forms.CharField(max_length=255)
    url = forms.CharField(max_length=1000)
    type = forms.ChoiceField(choices=Attachment.AttachmentType.choices, required=False)

    def clean_url(self):
        url = self.cleaned_data['url'].strip()
        if not url.lower().startswith(Attachment.ALLOWED_URL_SCHEMES):
            raise forms.ValidationError(
                'URL must start with http://, https://, ftp://, mailto: or file://'
            )
        return url

    def clean_type(self):
        return self.cleaned_data.get('type') or Attachment.AttachmentType.LINK


class TaskStatusForm(forms.Form):
    status = forms.ChoiceField(choices=Task.Status.choices)
