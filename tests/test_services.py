"""
Tests for the task lifecycle services.
"""

from datetime import time

from django.core.exceptions import PermissionDenied, ValidationError
from django.test import TestCase

from apps.accounts.models import User
from apps.activity_log.models import TaskActivity
from apps.notifications.models import Notification
from apps.routines.models import RoutineTemplate
from apps.tasks.exceptions import CompletionGateError
from apps.tasks.models import Task, ChecklistItem, TaskMention
from apps.tasks.services import (
    create_task, toggle_checklist_item, recompute_task_status, set_task_status,
    add_attachment, delete_attachment, notify_mentions, build_timeline,
)

from .helpers import MONDAY, make_department, make_task, make_user


class ChecklistToggleTests(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.alice = make_user('alice@example.com')

    def _items(self, task):
        return list(task.checklist_items.order_by('sort_order'))

    def test_four_item_progression(self):
        task = make_task(self.alice, checklist=('a', 'b', 'c', 'd'))
        statuses = [
            toggle_checklist_item(self.alice, item.pk)['new_status']
            for item in self._items(task)
        ]
        self.assertEqual(statuses, [
            Task.Status.IN_PROGRESS, Task.Status.IN_PROGRESS,
            Task.Status.IN_PROGRESS, Task.Status.DONE,
        ])
        task.refresh_from_db()
        self.assertEqual(task.status, Task.Status.DONE)

    def test_toggle_reports_counts_and_sets_completed_at(self):
        task = make_task(self.alice, checklist=('a', 'b'))
        first = self._items(task)[0]

        result = toggle_checklist_item(self.alice, first.pk)

        self.assertEqual(result, {
            'new_status': Task.Status.IN_PROGRESS, 'done_count': 1, 'total_count': 2,
        })
        first.refresh_from_db()
        self.assertTrue(first.is_done)
        self.assertIsNotNone(first.completed_at)

        result = toggle_checklist_item(self.alice, first.pk)

        self.assertEqual(result['new_status'], Task.Status.TODO)
        first.refresh_from_db()
        self.assertFalse(first.is_done)
        self.assertIsNone(first.completed_at)

    def test_gate_holds_task_until_attachment_then_retoggle_completes(self):
        task = make_task(self.alice, attachment_required=True, checklist=('a', 'b', 'c', 'd'))
        items = self._items(task)
        for item in items:
            result = toggle_checklist_item(self.alice, item.pk)
        self.assertEqual(result['new_status'], Task.Status.IN_PROGRESS)
        self.assertEqual(result['done_count'], 4)

        add_attachment(self.alice, task.pk, 'Report', 'https://drive.example.com/report')
        task.refresh_from_db()
        self.assertEqual(task.status, Task.Status.IN_PROGRESS)

        toggle_checklist_item(self.alice, items[0].pk)
        result = toggle_checklist_item(self.alice, items[0].pk)

        self.assertEqual(result['new_status'], Task.Status.DONE)

    def test_recompute_picks_up_new_attachment(self):
        task = make_task(self.alice, attachment_required=True, checklist=('a',))
        toggle_checklist_item(self.alice, self._items(task)[0].pk)
        add_attachment(self.alice, task.pk, 'Proof', 'https://example.com/proof.png')

        self.assertEqual(recompute_task_status(self.alice, task.pk), Task.Status.DONE)

    def test_other_staff_cannot_toggle(self):
        bob = make_user('bob@example.com')
        task = make_task(self.alice, checklist=('a',))

        with self.assertRaises(PermissionDenied):
            toggle_checklist_item(bob, self._items(task)[0].pk)

    def test_admin_can_toggle_any_task(self):
        admin = make_user('admin@example.com', role=User.Role.ADMIN)
        task = make_task(self.alice, checklist=('a',))

        result = toggle_checklist_item(admin, self._items(task)[0].pk)

        self.assertEqual(result['new_status'], Task.Status.DONE)

    def test_unknown_item(self):
        with self.assertRaises(ChecklistItem.DoesNotExist):
            toggle_checklist_item(self.alice, 999999)

    def test_toggle_and_status_change_are_logged(self):
        task = make_task(self.alice, checklist=('a',))
        toggle_checklist_item(self.alice, self._items(task)[0].pk)

        actions = set(task.activities.values_list('action_type', flat=True))
        self.assertEqual(actions, {
            TaskActivity.ActionType.CHECKLIST_TOGGLED,
            TaskActivity.ActionType.STATUS_CHANGED,
        })


class ManualStatusTests(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.alice = make_user('alice@example.com')

    def test_done_rejected_without_required_attachment(self):
        task = make_task(self.alice, attachment_required=True)

        with self.assertRaises(CompletionGateError):
            set_task_status(self.alice, task.pk, Task.Status.DONE)

        task.refresh_from_db()
        self.assertEqual(task.status, Task.Status.TODO)

    def test_done_allowed_once_attached(self):
        task = make_task(self.alice, attachment_required=True)
        add_attachment(self.alice, task.pk, 'Proof', 'https://example.com/p')

        task = set_task_status(self.alice, task.pk, Task.Status.DONE)

        self.assertEqual(task.status, Task.Status.DONE)

    def test_manual_done_does_not_check_the_checklist(self):
        task = make_task(self.alice, checklist=('a', 'b'))

        task = set_task_status(self.alice, task.pk, Task.Status.DONE)

        self.assertEqual(task.status, Task.Status.DONE)

    def test_unknown_status_rejected(self):
        task = make_task(self.alice)
        with self.assertRaises(ValidationError):
            set_task_status(self.alice, task.pk, 'archived')

    def test_other_staff_cannot_change_status(self):
        task = make_task(self.alice)
        with self.assertRaises(PermissionDenied):
            set_task_status(make_user('bob@example.com'), task.pk, Task.Status.IN_PROGRESS)


class AttachmentTests(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.alice = make_user('alice@example.com')

    def test_deleting_last_required_attachment_regresses_to_in_progress(self):
        task = make_task(self.alice, attachment_required=True, checklist=('a',))
        attachment = add_attachment(self.alice, task.pk, 'Proof', 'https://example.com/p')
        toggle_checklist_item(self.alice, task.checklist_items.get().pk)
        task.refresh_from_db()
        self.assertEqual(task.status, Task.Status.DONE)

        task = delete_attachment(self.alice, attachment.pk)

        self.assertEqual(task.status, Task.Status.IN_PROGRESS)
        task.refresh_from_db()
        self.assertEqual(task.status, Task.Status.IN_PROGRESS)

    def test_regression_ignores_checklist_state(self):
        task = make_task(self.alice, attachment_required=True, checklist=('a', 'b'))
        attachment = add_attachment(self.alice, task.pk, 'Proof', 'https://example.com/p')
        set_task_status(self.alice, task.pk, Task.Status.DONE)

        task = delete_attachment(self.alice, attachment.pk)

        self.assertEqual(task.status, Task.Status.IN_PROGRESS)

    def test_remaining_attachment_keeps_done(self):
        task = make_task(self.alice, attachment_required=True)
        first = add_attachment(self.alice, task.pk, 'One', 'https://example.com/1')
        add_attachment(self.alice, task.pk, 'Two', 'https://example.com/2')
        set_task_status(self.alice, task.pk, Task.Status.DONE)

        task = delete_attachment(self.alice, first.pk)

        self.assertEqual(task.status, Task.Status.DONE)

    def test_ungated_task_stays_done(self):
        task = make_task(self.alice)
        attachment = add_attachment(self.alice, task.pk, 'Notes', 'https://example.com/n')
        set_task_status(self.alice, task.pk, Task.Status.DONE)

        task = delete_attachment(self.alice, attachment.pk)

        self.assertEqual(task.status, Task.Status.DONE)

    def test_url_scheme_is_validated(self):
        task = make_task(self.alice)
        for url in ('javascript:alert(1)', 'drive.example.com/file', ''):
            with self.assertRaises(ValidationError):
                add_attachment(self.alice, task.pk, 'Bad', url)

        for url in ('ftp://files.example.com/a', 'mailto:boss@example.com', 'file:///tmp/a.txt'):
            add_attachment(self.alice, task.pk, 'Ok', url)
        self.assertEqual(task.attachments.count(), 3)


class MentionTests(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.alice = make_user('alice@example.com')
        cls.bob = make_user('bob@example.com')
        cls.carol = make_user('carol@example.com')

    def _create(self, **extra):
        return create_task(
            self.alice, self.alice, 'Quarterly review', MONDAY, '09:00', '10:00',
            checklist=['Draft'], mentions=[self.bob.pk, self.carol.pk], **extra,
        )

    def _completed_notices(self, user):
        return Notification.objects.filter(user=user, type=Notification.Type.COMPLETED).count()

    def test_mentioned_users_are_told_on_creation(self):
        task = self._create()

        self.assertEqual(task.mentions.count(), 2)
        self.assertEqual(
            Notification.objects.filter(type=Notification.Type.MENTION, task=task).count(), 2
        )

    def test_completion_notifies_each_mention_exactly_once(self):
        task = self._create()

        toggle_checklist_item(self.alice, task.checklist_items.get().pk)
        recompute_task_status(self.alice, task.pk)
        recompute_task_status(self.alice, task.pk)
        set_task_status(self.alice, task.pk, Task.Status.DONE)
        self.assertEqual(notify_mentions(task), 0)

        self.assertEqual(self._completed_notices(self.bob), 1)
        self.assertEqual(self._completed_notices(self.carol), 1)
        self.assertFalse(TaskMention.objects.filter(task=task, notified_on_complete=False).exists())

    def test_manual_done_notifies(self):
        task = self._create()

        set_task_status(self.alice, task.pk, Task.Status.DONE)

        self.assertEqual(self._completed_notices(self.bob), 1)

    def test_no_notice_before_done(self):
        task = create_task(
            self.alice, self.alice, 'Two steps', MONDAY, '09:00', '10:00',
            checklist=['One', 'Two'], mentions=[self.bob.pk],
        )
        toggle_checklist_item(self.alice, task.checklist_items.first().pk)

        self.assertEqual(self._completed_notices(self.bob), 0)


class CreateTaskTests(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.sales = make_department('Sales', 'SLS')
        cls.alice = make_user('alice@example.com', department=cls.sales)
        cls.bob = make_user('bob@example.com', department=cls.sales)
        cls.admin = make_user('admin@example.com', role=User.Role.ADMIN)

    def test_checklist_keeps_order_and_drops_blanks(self):
        task = create_task(
            self.alice, self.alice, 'Prep', MONDAY, '09:00', '09:30',
            checklist=['First', '  ', '', 'Second '],
        )
        self.assertEqual(
            list(task.checklist_items.values_list('text', 'sort_order')),
            [('First', 0), ('Second', 1)],
        )

    def test_self_and_unknown_mentions_are_ignored(self):
        task = create_task(
            self.alice, self.alice, 'Prep', MONDAY, '09:00', '09:30',
            mentions=[self.alice.pk, 999999, 'x', self.bob.pk],
        )
        self.assertEqual(list(task.mentions.values_list('user_id', flat=True)), [self.bob.pk])

    def test_assigning_to_someone_else_notifies_them(self):
        task = create_task(self.admin, self.bob, 'Call client', MONDAY, '13:00', '14:00')

        notice = Notification.objects.get(user=self.bob, type=Notification.Type.INFO)
        self.assertEqual(notice.task, task)
        self.assertEqual(task.created_by, self.admin)

    def test_staff_cannot_assign_regular_work_to_colleagues(self):
        with self.assertRaises(PermissionDenied):
            create_task(self.alice, self.bob, 'Your job', MONDAY, '09:00', '10:00')

    def test_staff_can_file_requests_for_colleagues(self):
        task = create_task(
            self.alice, self.bob, 'Need numbers', MONDAY, '09:00', '10:00',
            category=Task.Category.REQUEST,
        )
        self.assertEqual(task.staff, self.bob)

    def test_duplicate_title_on_same_day_is_rejected(self):
        create_task(self.alice, self.alice, 'Prep', MONDAY, '09:00', '10:00')
        with self.assertRaises(ValidationError):
            create_task(self.alice, self.alice, 'Prep', MONDAY, '11:00', '12:00')

    def test_field_validation(self):
        with self.assertRaises(ValidationError):
            create_task(self.alice, self.alice, '  ', MONDAY, '09:00', '10:00')
        with self.assertRaises(ValidationError):
            create_task(self.alice, self.alice, 'Bad time', MONDAY, '9am', '10:00')
        with self.assertRaises(ValidationError):
            create_task(self.alice, self.alice, 'Backwards', MONDAY, '11:00', '10:00')
        with self.assertRaises(ValidationError):
            create_task(self.alice, self.alice, 'Bad days', MONDAY, '09:00', '10:00',
                        is_routine=True, routine_days=[8])

    def test_routine_task_registers_department_template(self):
        task = create_task(
            self.alice, self.alice, 'Stock count', MONDAY, '09:00', '10:30',
            is_routine=True, routine_days=[1, 3], checklist=['Shelves', 'Cold room'],
        )

        template = RoutineTemplate.objects.get(department=self.sales, title='Stock count')
        self.assertEqual(template.routine_days, [1, 3])
        self.assertEqual(template.default_start_time, time(9, 0))
        self.assertEqual(float(template.duration_hours), 1.5)
        self.assertEqual(template.checklist_template, ['Shelves', 'Cold room'])
        self.assertEqual(task.routine_days, [1, 3])

    def test_task_routine_days_are_validated_on_the_model(self):
        for days in (3, '1,3', ['1'], [7]):
            task = Task(
                staff=self.alice, title='Edited in admin', task_date=MONDAY,
                start_time=time(9, 0), end_time=time(10, 0), is_routine=True, routine_days=days,
            )
            with self.assertRaises(ValidationError, msg=days):
                task.full_clean()

    def test_routine_without_days_repeats_on_its_weekday(self):
        task = create_task(self.alice, self.alice, 'Weekly sync', MONDAY, '09:00', '10:00',
                           is_routine=True)
        self.assertEqual(task.routine_days, [1])

    def test_zero_length_routine_gets_one_hour_template(self):
        create_task(self.alice, self.alice, 'Ping', MONDAY, '09:00', '09:00', is_routine=True)

        template = RoutineTemplate.objects.get(title='Ping')
        self.assertEqual(float(template.duration_hours), 1.0)

    def test_creation_is_logged(self):
        task = create_task(self.alice, self.alice, 'Prep', MONDAY, '09:00', '10:00')
        self.assertTrue(
            task.activities.filter(action_type=TaskActivity.ActionType.CREATED, user=self.alice).exists()
        )


class TimelineTests(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.sales = make_department('Sales', 'SLS')
        cls.ops = make_department('Operations', 'OPS')
        cls.alice = make_user('alice@example.com', department=cls.sales)
        cls.bob = make_user('bob@example.com', department=cls.ops)
        make_user('admin@example.com', role=User.Role.ADMIN)

    def test_rows_carry_tasks_stats_and_placements(self):
        done = make_task(self.alice, title='A', start=time(9, 0), end=time(10, 0), status=Task.Status.DONE)
        make_task(self.alice, title='B', start=time(9, 30), end=time(10, 30))

        rows = build_timeline(MONDAY)

        self.assertEqual([row['staff'] for row in rows], [self.bob, self.alice])
        alice_row = rows[1]
        self.assertEqual(alice_row['stats'], {'done': 1, 'total': 2, 'percent': 50})
        self.assertEqual([entry['task'].title for entry in alice_row['tasks']], ['A', 'B'])
        placement = alice_row['tasks'][0]['placement']
        self.assertEqual(placement.task_id, done.pk)
        self.assertEqual(alice_row['tasks'][1]['placement'].left_pct, 12)
        self.assertEqual(rows[0]['stats'], {'done': 0, 'total': 0, 'percent': 0})

    def test_department_filter(self):
        rows = build_timeline(MONDAY, department=self.sales)
        self.assertEqual([row['staff'] for row in rows], [self.alice])
