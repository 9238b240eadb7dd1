"""
Task filters using django-filter.

Provides the task list query surface:
- Date range (start_date / end_date on task_date)
- Department and staff member
- Status and category
"""

import django_filters

from apps.accounts.models import User
from apps.departments.models import Department
from .models import Task


class TaskFilter(django_filters.FilterSet):
    """
    Usage in views:
        filterset = TaskFilter(request.GET, queryset=queryset)
        tasks = filterset.qs
    """

    start_date = django_filters.DateFilter(field_name='task_date', lookup_expr='gte')
    end_date = django_filters.DateFilter(field_name='task_date', lookup_expr='lte')
    department = django_filters.ModelChoiceFilter(
        field_name='staff__department',
        queryset=Department.objects.all(),
    )
    staff = django_filters.ModelChoiceFilter(
        queryset=User.objects.filter(is_active=True),
    )
    status = django_filters.MultipleChoiceFilter(choices=Task.Status.choices)
    category = django_filters.ChoiceFilter(choices=Task.Category.choices)
    is_routine = django_filters.BooleanFilter()

    class Meta:
        model = Task
        fields = ['start_date', 'end_date', 'department', 'staff', 'status', 'category', 'is_routine']
