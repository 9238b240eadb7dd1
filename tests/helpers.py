"""
Shared builders for the test suite.
"""

from datetime import date, time

from apps.accounts.models import User
from apps.departments.models import Department
from apps.routines.models import RoutineTemplate
from apps.tasks.models import Task, ChecklistItem

MONDAY = date(2024, 6, 3)


def make_department(name='Sales', code='SLS'):
    return Department.objects.create(name=name, code=code)


def make_user(email, department=None, role=User.Role.STAFF, first_name='', **extra):
    return User.objects.create_user(
        email=email,
        password='test-pass-123',
        first_name=first_name or email.split('@')[0].title(),
        last_name='Test',
        department=department,
        role=role,
        **extra,
    )


def make_template(department, title='Daily Report', routine_days=(1, 2, 3, 4, 5),
                  start=time(9, 0), duration=1, checklist=('Collect data', 'Send report'), **extra):
    return RoutineTemplate.objects.create(
        department=department,
        title=title,
        routine_days=list(routine_days),
        default_start_time=start,
        duration_hours=duration,
        checklist_template=list(checklist),
        **extra,
    )


def make_task(staff, title='Task', task_date=MONDAY, start=time(9, 0), end=time(10, 0),
              checklist=(), **extra):
    task = Task.objects.create(
        staff=staff,
        title=title,
        task_date=task_date,
        start_time=start,
        end_time=end,
        **extra,
    )
    for index, text in enumerate(checklist):
        ChecklistItem.objects.create(task=task, text=text, sort_order=index)
    return task
