# tasks/tests/test_services.py
from datetime import timedelta
from unittest import mock

from django.test import TestCase, override_settings
from django.utils import timezone

from accounts.models import User
from tasks import services
from tasks.exceptions import (
    ConflictError,
    ExternalServiceError,
    NothingToScheduleError,
    NotFoundError,
    QuotaExceededError,
    ValidationError,
)
from tasks.models import Task
from tasks.schemas import ScheduleItemPayload


@override_settings(FREE_SCHEDULE_TASK_LIMIT=5, FREE_SUGGESTION_LIMIT=5)
class GenerateScheduleTestCase(TestCase):
    """Tests for schedule orchestration and the fallback trigger."""

    def setUp(self):
        self.user = User.objects.create_user('ana@example.com', 'Ana', 'pw12345')
        self.now = timezone.now()

    def _add(self, title, priority='Medium', deadline=None, status=Task.Status.INCOMPLETE, user=None):
        return Task.objects.create(
            user=user or self.user, title=title, priority=priority,
            deadline=deadline, status=status,
        )

    def test_nothing_to_schedule(self):
        """Only complete tasks means there is nothing to schedule."""
        self._add('Done already', status=Task.Status.COMPLETE)
        with mock.patch('tasks.ai_client.request_schedule') as request_schedule:
            with self.assertRaises(NothingToScheduleError):
                services.generate_schedule(self.user)
        request_schedule.assert_not_called()

    def test_free_user_task_limit(self):
        for i in range(6):
            self._add(f'Task {i}')
        with mock.patch('tasks.ai_client.request_schedule') as request_schedule:
            with self.assertRaises(QuotaExceededError):
                services.generate_schedule(self.user)
        request_schedule.assert_not_called()

    def test_free_user_at_limit_is_allowed(self):
        for i in range(5):
            self._add(f'Task {i}')
        with mock.patch('tasks.ai_client.request_schedule',
                        side_effect=ExternalServiceError('down')):
            result = services.generate_schedule(self.user)
        self.assertEqual(result['totalTasks'], 5)

    def test_premium_user_has_no_limit(self):
        self.user.is_premium = True
        self.user.save()
        for i in range(8):
            self._add(f'Task {i}')
        with mock.patch('tasks.ai_client.request_schedule',
                        side_effect=ExternalServiceError('down')):
            result = services.generate_schedule(self.user)
        self.assertEqual(len(result['schedule']), 8)

    def test_fallback_on_ai_failure(self):
        """AI failure still yields a schedule in priority/deadline order."""
        self._add('A', 'Low')
        b = self._add('B', 'High', self.now + timedelta(days=5))
        c = self._add('C', 'High', self.now + timedelta(days=2))
        self._add('Finished', 'High', status=Task.Status.COMPLETE)

        with mock.patch('tasks.ai_client.request_schedule',
                        side_effect=ExternalServiceError('timeout')):
            result = services.generate_schedule(self.user)

        self.assertEqual(result['source'], services.SOURCE_FALLBACK)
        self.assertEqual(result['totalTasks'], 3)
        schedule = result['schedule']
        self.assertEqual([e['title'] for e in schedule], ['C', 'B', 'A'])
        self.assertEqual(schedule[0]['taskId'], c.id)
        self.assertEqual(schedule[1]['taskId'], b.id)
        self.assertEqual(schedule[2]['suggestedTimeSlot'], '13:00 - 15:00')
        self.assertIn('generatedAt', result)

    @override_settings(AI_API_KEY='')
    def test_unconfigured_ai_falls_back(self):
        self._add('Only task', 'High')
        result = services.generate_schedule(self.user)
        self.assertEqual(result['source'], services.SOURCE_FALLBACK)
        self.assertEqual(result['schedule'][0]['title'], 'Only task')

    def test_ai_schedule_is_reconciled(self):
        gym = self._add('Gym', 'Low')
        report = self._add('Write report', 'High')
        items = [
            ScheduleItemPayload(taskTitle='write REPORT', suggestedTimeSlot='8:00 - 10:00'),
            ScheduleItemPayload(taskTitle='Gym'),
        ]

        with mock.patch('tasks.ai_client.request_schedule', return_value=items) as request_schedule:
            result = services.generate_schedule(self.user)

        sent = request_schedule.call_args[0][0]
        self.assertEqual(sorted(t['title'] for t in sent), ['Gym', 'Write report'])
        self.assertEqual(result['source'], services.SOURCE_AI)
        self.assertEqual([e['taskId'] for e in result['schedule']], [report.id, gym.id])
        self.assertEqual(result['schedule'][0]['suggestedTimeSlot'], '8:00 - 10:00')
        self.assertEqual(result['schedule'][1]['suggestedTimeSlot'], '11:00 - 13:00')

    def test_other_users_tasks_are_ignored(self):
        other = User.objects.create_user('bo@example.com', 'Bo', 'pw12345')
        self._add('Theirs', user=other)
        with self.assertRaises(NothingToScheduleError):
            services.generate_schedule(self.user)


@override_settings(FREE_SUGGESTION_LIMIT=5)
class GenerateSuggestionTestCase(TestCase):
    """Tests for the one-time suggestion gate."""

    def setUp(self):
        self.user = User.objects.create_user('ana@example.com', 'Ana', 'pw12345')
        self.task = Task.objects.create(user=self.user, title='Plan trip')

    def test_missing_task_id(self):
        for task_id in (None, '', '   ', 123):
            with self.subTest(task_id=task_id):
                with self.assertRaises(ValidationError):
                    services.generate_suggestion(self.user, task_id)

    def test_unknown_task(self):
        with self.assertRaises(NotFoundError):
            services.generate_suggestion(self.user, 'does-not-exist')

    def test_task_of_another_user(self):
        other = User.objects.create_user('bo@example.com', 'Bo', 'pw12345')
        with self.assertRaises(NotFoundError):
            services.generate_suggestion(other, self.task.id)

    def test_existing_suggestion_conflicts(self):
        """Regeneration is rejected and the stored suggestion is left alone."""
        self.task.ai_suggestion = 'Book flights first.'
        self.task.save()

        with mock.patch('tasks.ai_client.request_suggestion') as request_suggestion:
            with self.assertRaises(ConflictError):
                services.generate_suggestion(self.user, self.task.id)

        request_suggestion.assert_not_called()
        self.task.refresh_from_db()
        self.assertEqual(self.task.ai_suggestion, 'Book flights first.')

    def test_quota_counts_tasks_with_suggestions(self):
        for i in range(5):
            Task.objects.create(user=self.user, title=f'Done {i}', ai_suggestion='tip')
        self.assertEqual(services.count_suggestions_used(self.user), 5)

        with mock.patch('tasks.ai_client.request_suggestion') as request_suggestion:
            with self.assertRaises(QuotaExceededError):
                services.generate_suggestion(self.user, self.task.id)
        request_suggestion.assert_not_called()

    def test_quota_ignores_empty_and_deleted_suggestions(self):
        for i in range(4):
            Task.objects.create(user=self.user, title=f'Done {i}', ai_suggestion='tip')
        Task.objects.create(user=self.user, title='Blank', ai_suggestion='')
        deleted = Task.objects.create(user=self.user, title='Gone', ai_suggestion='tip')
        deleted.delete()

        with mock.patch('tasks.ai_client.request_suggestion', return_value='Pack light.'):
            task = services.generate_suggestion(self.user, self.task.id)
        self.assertEqual(task.ai_suggestion, 'Pack light.')

    def test_premium_user_has_no_quota(self):
        self.user.is_premium = True
        self.user.save()
        for i in range(10):
            Task.objects.create(user=self.user, title=f'Done {i}', ai_suggestion='tip')

        with mock.patch('tasks.ai_client.request_suggestion', return_value='Start early.'):
            task = services.generate_suggestion(self.user, self.task.id)
        self.assertEqual(task.ai_suggestion, 'Start early.')

    def test_suggestion_is_persisted(self):
        with mock.patch('tasks.ai_client.request_suggestion', return_value='Book flights first.'):
            services.generate_suggestion(self.user, self.task.id)
        self.task.refresh_from_db()
        self.assertEqual(self.task.ai_suggestion, 'Book flights first.')

    def test_ai_failure_surfaces(self):
        """There is no fallback for suggestions; the store is not touched."""
        with mock.patch('tasks.ai_client.request_suggestion',
                        side_effect=ExternalServiceError('down')):
            with self.assertRaises(ExternalServiceError):
                services.generate_suggestion(self.user, self.task.id)
        self.task.refresh_from_db()
        self.assertIsNone(self.task.ai_suggestion)
