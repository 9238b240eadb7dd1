"""
Tests for the JSON/HTMX endpoints.
"""

import json
from datetime import time

from django.test import TestCase
from django.urls import reverse

from apps.accounts.models import User
from apps.routines.models import RoutineTemplate
from apps.tasks.models import Task

from .helpers import MONDAY, make_department, make_task, make_template, make_user


class JsonClientMixin:

    def post_json(self, url, payload=None, method='post'):
        return getattr(self.client, method)(
            url, data=json.dumps(payload or {}), content_type='application/json'
        )


class TaskEndpointTests(JsonClientMixin, TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.sales = make_department('Sales', 'SLS')
        cls.alice = make_user('alice@example.com', department=cls.sales)
        cls.bob = make_user('bob@example.com', department=cls.sales)

    def setUp(self):
        self.client.force_login(self.alice)

    def test_login_required(self):
        self.client.logout()
        response = self.client.get(reverse('tasks:timeline'))
        self.assertEqual(response.status_code, 302)

    def test_timeline_json(self):
        task = make_task(self.alice, title='Report', checklist=('Draft',))

        response = self.client.get(reverse('tasks:timeline'), {'date': MONDAY.isoformat()})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(body['data']['date'], '2024-06-03')
        rows = {row['id']: row for row in body['data']['staff']}
        alice_tasks = rows[self.alice.pk]['tasks']
        self.assertEqual(alice_tasks[0]['id'], task.pk)
        self.assertEqual(alice_tasks[0]['start_time'], '09:00:00')
        self.assertEqual(alice_tasks[0]['checklist'][0]['text'], 'Draft')
        self.assertEqual(alice_tasks[0]['placement']['width_pct'], 100)
        self.assertEqual(rows[self.bob.pk]['stats']['total'], 0)

    def test_timeline_htmx_partial(self):
        make_task(self.alice, title='Report')

        response = self.client.get(
            reverse('tasks:timeline'), {'date': MONDAY.isoformat()}, HTTP_HX_REQUEST='true'
        )

        self.assertEqual(response.status_code, 200)
        self.assertTemplateUsed(response, 'tasks/partials/timeline.html')
        self.assertContains(response, 'Report')

    def test_timeline_rejects_bad_date(self):
        response = self.client.get(reverse('tasks:timeline'), {'date': 'June'})
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()['success'])

    def test_create_task(self):
        response = self.post_json(reverse('tasks:task_create'), {
            'title': 'Client call',
            'task_date': '2024-06-03',
            'start_time': '13:00',
            'end_time': '14:00',
            'category': 'inisiatif',
            'checklist': ['Agenda', 'Notes'],
            'mentions': [self.bob.pk],
        })

        self.assertEqual(response.status_code, 201)
        task = Task.objects.get(title='Client call')
        self.assertEqual(task.staff, self.alice)
        self.assertEqual(task.category, Task.Category.INISIATIF)
        self.assertEqual(task.checklist_items.count(), 2)
        self.assertEqual(response.json()['data']['id'], task.pk)

    def test_create_task_validation_errors(self):
        response = self.post_json(reverse('tasks:task_create'), {
            'title': 'Backwards',
            'task_date': '2024-06-03',
            'start_time': '14:00',
            'end_time': '13:00',
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn('end_time', response.json()['errors'])

    def test_create_for_colleague_is_forbidden(self):
        response = self.post_json(reverse('tasks:task_create'), {
            'title': 'Your job',
            'staff': self.bob.pk,
            'task_date': '2024-06-03',
            'start_time': '09:00',
            'end_time': '10:00',
        })
        self.assertEqual(response.status_code, 403)

    def test_task_list_filters(self):
        make_task(self.alice, title='Monday')
        make_task(self.alice, title='Later', task_date=MONDAY.replace(day=10), status=Task.Status.DONE)
        make_task(self.bob, title='Not mine')

        response = self.client.get(reverse('tasks:task_list'), {
            'start_date': '2024-06-01', 'end_date': '2024-06-30', 'status': 'done',
        })

        self.assertEqual(response.status_code, 200)
        self.assertEqual([t['title'] for t in response.json()['data']], ['Later'])

        response = self.client.get(reverse('tasks:task_list'))
        self.assertEqual({t['title'] for t in response.json()['data']}, {'Monday', 'Later'})

    def test_manual_done_gate_rejection(self):
        task = make_task(self.alice, attachment_required=True)

        response = self.post_json(reverse('tasks:task_status_change', args=[task.pk]), {'status': 'done'})

        self.assertEqual(response.status_code, 400)
        self.assertIn('attachment', response.json()['message'])

    def test_status_change(self):
        task = make_task(self.alice)

        response = self.post_json(
            reverse('tasks:task_status_change', args=[task.pk]), {'status': 'in_progress'}
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['status'], 'in_progress')

    def test_status_change_unknown_task(self):
        response = self.post_json(reverse('tasks:task_status_change', args=[999999]), {'status': 'done'})
        self.assertEqual(response.status_code, 404)

    def test_checklist_toggle(self):
        task = make_task(self.alice, checklist=('a', 'b'))
        item = task.checklist_items.first()

        response = self.client.post(reverse('tasks:checklist_toggle', args=[item.pk]))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data'], {
            'new_status': 'in_progress', 'done_count': 1, 'total_count': 2,
        })

    def test_checklist_toggle_on_colleague_task(self):
        task = make_task(self.bob, checklist=('a',))
        response = self.client.post(
            reverse('tasks:checklist_toggle', args=[task.checklist_items.get().pk])
        )
        self.assertEqual(response.status_code, 403)

    def test_checklist_toggle_requires_post(self):
        task = make_task(self.alice, checklist=('a',))
        response = self.client.get(
            reverse('tasks:checklist_toggle', args=[task.checklist_items.get().pk])
        )
        self.assertEqual(response.status_code, 405)

    def test_attachment_add_and_delete(self):
        task = make_task(self.alice, attachment_required=True)

        response = self.post_json(reverse('tasks:attachment_add', args=[task.pk]), {
            'name': 'Proof', 'url': 'https://example.com/proof',
        })
        self.assertEqual(response.status_code, 201)
        attachment_id = response.json()['data']['id']

        self.post_json(reverse('tasks:task_status_change', args=[task.pk]), {'status': 'done'})
        response = self.client.post(reverse('tasks:attachment_delete', args=[attachment_id]))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['status'], 'in_progress')

    def test_attachment_bad_url(self):
        task = make_task(self.alice)
        response = self.post_json(reverse('tasks:attachment_add', args=[task.pk]), {
            'name': 'Proof', 'url': 'javascript:alert(1)',
        })
        self.assertEqual(response.status_code, 400)
        self.assertIn('url', response.json()['errors'])


class RoutineEndpointTests(JsonClientMixin, TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.sales = make_department('Sales', 'SLS')
        cls.alice = make_user('alice@example.com', department=cls.sales)
        cls.bob = make_user('bob@example.com', department=cls.sales)
        cls.admin = make_user('admin@example.com', role=User.Role.ADMIN)
        cls.template = make_template(cls.sales)

    def test_staff_cannot_manage_templates(self):
        self.client.force_login(self.alice)

        self.assertEqual(self.client.get(reverse('routines:template_list')).status_code, 403)
        response = self.post_json(reverse('routines:template_list'), {
            'department': self.sales.pk, 'title': 'Sneaky',
        })
        self.assertEqual(response.status_code, 403)

    def test_admin_lists_templates(self):
        make_template(self.sales, title='Archived', is_active=False)
        self.client.force_login(self.admin)

        response = self.client.get(reverse('routines:template_list'), {'active': '1'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual([t['title'] for t in response.json()['data']], ['Daily Report'])

    def test_admin_creates_template_with_defaults(self):
        self.client.force_login(self.admin)

        response = self.post_json(reverse('routines:template_list'), {
            'department': self.sales.pk,
            'title': 'Weekly review',
            'routine_days': [5],
            'checklist_template': ['Numbers', ' ', 'Slides'],
        })

        self.assertEqual(response.status_code, 201)
        template = RoutineTemplate.objects.get(title='Weekly review')
        self.assertEqual(template.default_start_time, time(9, 0))
        self.assertEqual(float(template.duration_hours), 1.0)
        self.assertEqual(template.checklist_template, ['Numbers', 'Slides'])
        self.assertTrue(template.is_active)

    def test_invalid_template_is_rejected(self):
        self.client.force_login(self.admin)

        for payload in (
            {'department': self.sales.pk, 'title': 'Bad day', 'routine_days': [7]},
            {'department': self.sales.pk, 'title': 'No time', 'duration_hours': 0},
            {'department': self.sales.pk, 'title': 'Clock', 'default_start_time': '25:00'},
            {'title': 'Nowhere'},
        ):
            response = self.post_json(reverse('routines:template_list'), payload)
            self.assertEqual(response.status_code, 400, payload)

        self.assertEqual(RoutineTemplate.objects.count(), 1)

    def test_admin_updates_and_deletes_template(self):
        self.client.force_login(self.admin)
        url = reverse('routines:template_detail', args=[self.template.pk])

        response = self.post_json(url, {'default_start_time': '08:30', 'duration_hours': 2}, method='put')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['end_time'], '10:30:00')
        self.template.refresh_from_db()
        self.assertEqual(self.template.title, 'Daily Report')
        self.assertEqual(self.template.routine_days, [1, 2, 3, 4, 5])

        response = self.client.delete(url)
        self.assertEqual(response.status_code, 200)
        self.assertFalse(RoutineTemplate.objects.exists())

    def test_template_not_found(self):
        self.client.force_login(self.admin)
        response = self.client.get(reverse('routines:template_detail', args=[999999]))
        self.assertEqual(response.status_code, 404)

    def test_staff_generate_only_for_themselves(self):
        self.client.force_login(self.alice)

        response = self.post_json(reverse('routines:generate'), {'staff': 'all', 'date': '2024-06-03'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['created_count'], 1)
        self.assertEqual(list(Task.objects.values_list('staff_id', flat=True)), [self.alice.pk])

    def test_admin_generates_for_everyone(self):
        self.client.force_login(self.admin)

        response = self.post_json(reverse('routines:generate'), {'staff': 'all', 'date': '2024-06-03'})

        self.assertEqual(response.json()['data']['created_count'], 2)

    def test_generate_rejects_unknown_staff(self):
        self.client.force_login(self.admin)
        response = self.post_json(reverse('routines:generate'), {'staff': 999999, 'date': '2024-06-03'})
        self.assertEqual(response.status_code, 400)
