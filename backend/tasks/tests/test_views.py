# tasks/tests/test_views.py
from unittest import mock

from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import User
from accounts.tokens import issue_token
from tasks.exceptions import ExternalServiceError
from tasks.models import Task


class AuthenticatedAPITestCase(TestCase):

    def setUp(self):
        self.user = User.objects.create_user('ana@example.com', 'Ana', 'pw12345')
        self.client = APIClient()
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(self.user)}')


class TaskCrudTestCase(AuthenticatedAPITestCase):
    """Tests for /api/tasks/ endpoints."""

    def test_requires_token(self):
        response = APIClient().get('/api/tasks/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_task_defaults(self):
        response = self.client.post('/api/tasks/', {'title': 'Buy milk'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        task = response.data['task']
        self.assertEqual(task['title'], 'Buy milk')
        self.assertEqual(task['priority'], 'Medium')
        self.assertEqual(task['status'], 'Incomplete')
        self.assertEqual(task['userId'], self.user.id)
        self.assertIsNone(task['aiSuggestion'])
        self.assertIsNotNone(task['createdAt'])

    def test_create_task_validation(self):
        bad_payloads = [
            {},
            {'title': '   '},
            {'title': 'x' * 256},
            {'title': 'Ok', 'priority': 'Urgent'},
            {'title': 'Ok', 'deadline': 'not-a-date'},
        ]
        for payload in bad_payloads:
            with self.subTest(payload=payload):
                response = self.client.post('/api/tasks/', payload, format='json')
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertFalse(response.data['success'])
        self.assertEqual(Task.objects.count(), 0)

    def test_ai_suggestion_not_writable(self):
        response = self.client.post(
            '/api/tasks/', {'title': 'Sneaky', 'aiSuggestion': 'free tip'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(Task.objects.get().ai_suggestion)

    def test_list_only_own_tasks(self):
        other = User.objects.create_user('bo@example.com', 'Bo', 'pw12345')
        Task.objects.create(user=self.user, title='Mine')
        Task.objects.create(user=other, title='Theirs')

        response = self.client.get('/api/tasks/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([t['title'] for t in response.data['tasks']], ['Mine'])

    def test_update_task(self):
        task = Task.objects.create(user=self.user, title='Draft')

        response = self.client.put(
            f'/api/tasks/{task.id}/',
            {'status': 'Complete', 'priority': 'High', 'deadline': '2025-12-01T09:00:00Z'},
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        task.refresh_from_db()
        self.assertEqual(task.status, Task.Status.COMPLETE)
        self.assertEqual(task.priority, Task.Priority.HIGH)
        self.assertEqual(task.title, 'Draft')
        self.assertIsNotNone(task.deadline)

    def test_update_and_delete_other_users_task(self):
        other = User.objects.create_user('bo@example.com', 'Bo', 'pw12345')
        task = Task.objects.create(user=other, title='Theirs')

        put = self.client.put(f'/api/tasks/{task.id}/', {'title': 'Mine now'}, format='json')
        delete = self.client.delete(f'/api/tasks/{task.id}/')

        self.assertEqual(put.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(delete.status_code, status.HTTP_404_NOT_FOUND)
        task.refresh_from_db()
        self.assertEqual(task.title, 'Theirs')

    def test_delete_task(self):
        task = Task.objects.create(user=self.user, title='Old')

        response = self.client.delete(f'/api/tasks/{task.id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertFalse(Task.objects.filter(id=task.id).exists())

    def test_deleting_user_cascades(self):
        Task.objects.create(user=self.user, title='One')
        Task.objects.create(user=self.user, title='Two')
        self.user.delete()
        self.assertEqual(Task.objects.count(), 0)


class ScheduleViewTestCase(AuthenticatedAPITestCase):
    """Tests for POST /api/schedule/generate/."""

    def test_nothing_to_schedule(self):
        response = self.client.post('/api/schedule/generate/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'nothing_to_schedule')

    @override_settings(FREE_SCHEDULE_TASK_LIMIT=5)
    def test_sixth_task_exceeds_free_limit(self):
        for i in range(6):
            Task.objects.create(user=self.user, title=f'Task {i}')

        with mock.patch('tasks.ai_client.request_schedule') as request_schedule:
            response = self.client.post('/api/schedule/generate/')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['code'], 'quota_exceeded')
        self.assertNotIn('schedule', response.data)
        request_schedule.assert_not_called()

    def test_fallback_response_shape(self):
        Task.objects.create(user=self.user, title='Low one', priority='Low')
        Task.objects.create(user=self.user, title='High one', priority='High')

        with mock.patch('tasks.ai_client.request_schedule',
                        side_effect=ExternalServiceError('bad JSON')):
            response = self.client.post('/api/schedule/generate/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['totalTasks'], 2)
        self.assertEqual(response.data['source'], 'fallback')
        self.assertIn('generatedAt', response.data)
        first = response.data['schedule'][0]
        self.assertEqual(first['title'], 'High one')
        self.assertEqual(first['suggestedTimeSlot'], '9:00 - 11:00')
        self.assertEqual(first['estimatedDuration'], '2 hours')

    def test_unexpected_error_is_reported(self):
        Task.objects.create(user=self.user, title='Task')
        with mock.patch('tasks.services.generate_schedule', side_effect=RuntimeError('boom')):
            response = self.client.post('/api/schedule/generate/')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['error'], 'Failed to generate AI schedule')


class SuggestionViewTestCase(AuthenticatedAPITestCase):
    """Tests for POST /api/tasks/suggestions/."""

    def setUp(self):
        super().setUp()
        self.task = Task.objects.create(user=self.user, title='Plan trip')

    def test_missing_task_id(self):
        response = self.client.post('/api/tasks/suggestions/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'validation_error')

    def test_non_object_body_is_validation_error(self):
        """A JSON array or scalar body is rejected as invalid input."""
        for body in (['x'], 'x', 42):
            with self.subTest(body=body):
                response = self.client.post('/api/tasks/suggestions/', body, format='json')
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertEqual(response.data['code'], 'validation_error')
        self.task.refresh_from_db()
        self.assertIsNone(self.task.ai_suggestion)

    def test_unknown_task(self):
        response = self.client.post('/api/tasks/suggestions/', {'taskId': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_generates_and_returns_task(self):
        with mock.patch('tasks.ai_client.request_suggestion', return_value='Book flights first.'):
            response = self.client.post(
                '/api/tasks/suggestions/', {'taskId': self.task.id}, format='json'
            )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['task']['id'], self.task.id)
        self.assertEqual(response.data['task']['aiSuggestion'], 'Book flights first.')

    def test_regeneration_conflicts(self):
        self.task.ai_suggestion = 'Existing'
        self.task.save()

        response = self.client.post(
            '/api/tasks/suggestions/', {'taskId': self.task.id}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'conflict')

    @override_settings(AI_API_KEY='')
    def test_unconfigured_ai_is_visible_failure(self):
        response = self.client.post(
            '/api/tasks/suggestions/', {'taskId': self.task.id}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(response.data['code'], 'external_service_error')


class PremiumAndHealthTestCase(AuthenticatedAPITestCase):

    def test_activate_premium(self):
        response = self.client.post('/api/premium/activate/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['user']['isPremium'])
        self.user.refresh_from_db()
        self.assertTrue(self.user.is_premium)

    def test_health_is_public(self):
        response = APIClient().get('/api/health/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'healthy')
