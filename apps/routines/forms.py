"""
Forms for routines app.
"""

from django import forms

from .models import RoutineTemplate


class RoutineTemplateForm(forms.ModelForm):
    """
    Create/update a routine template from form or JSON data.

    routine_days and checklist_template arrive as JSON lists.
    """

    class Meta:
        model = RoutineTemplate
        fields = [
            'department', 'title', 'routine_days', 'default_start_time',
            'duration_hours', 'checklist_template', 'start_date', 'is_active',
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['default_start_time'].input_formats = ['%H:%M', '%H:%M:%S']
        self.fields['default_start_time'].required = False
        self.fields['duration_hours'].required = False
        self.fields['is_active'].required = False

    def clean_title(self):
        title = (self.cleaned_data.get('title') or '').strip()
        if not title:
            raise forms.ValidationError('Title is required.')
        return title

    def clean_default_start_time(self):
        return self.cleaned_data.get('default_start_time') or RoutineTemplate._meta.get_field(
            'default_start_time').get_default()

    def clean_duration_hours(self):
        duration = self.cleaned_data.get('duration_hours')
        if duration is None:
            return 1
        return duration

    def clean_checklist_template(self):
        items = self.cleaned_data.get('checklist_template') or []
        if isinstance(items, list):
            items = [item.strip() if isinstance(item, str) else item for item in items]
            items = [item for item in items if item != '']
        return items

    def clean_routine_days(self):
        return self.cleaned_data.get('routine_days') or []

    def clean_is_active(self):
        if 'is_active' not in self.data:
            return self.instance.is_active if self.instance.pk else True
        return self.cleaned_data.get('is_active')
