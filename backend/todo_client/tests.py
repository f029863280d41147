# todo_client/tests.py
import json
import shutil
import tempfile
from pathlib import Path
from unittest import mock

import requests
from django.test import SimpleTestCase

from .api import ApiError, TodoApiClient
from .session import AuthSession


def _response(status_code=200, body=None, text=''):
    response = mock.Mock()
    response.status_code = status_code
    if body is None:
        response.json.side_effect = ValueError('no json')
    else:
        response.json.return_value = body
    response.text = text
    return response


class AuthSessionTestCase(SimpleTestCase):
    """Tests for the explicit load/save/clear lifecycle."""

    def setUp(self):
        self.tmp = Path(tempfile.mkdtemp())
        self.addCleanup(shutil.rmtree, self.tmp, ignore_errors=True)
        self.path = self.tmp / 'auth.json'

    def test_nothing_happens_before_load(self):
        self.path.write_text(json.dumps({'token': 'abc'}))
        session = AuthSession(self.path)
        self.assertFalse(session.is_authenticated)

    def test_save_then_load(self):
        AuthSession(self.path).save('abc', {'id': '1'})

        session = AuthSession(self.path)
        self.assertEqual(session.load(), 'abc')
        self.assertTrue(session.is_authenticated)
        self.assertIsNone(session.user, "User is fetched again after load")
        self.assertEqual(session.auth_headers(), {'Authorization': 'Bearer abc'})

    def test_clear_removes_file(self):
        session = AuthSession(self.path)
        session.save('abc', {'id': '1'})
        session.clear()

        self.assertFalse(self.path.exists())
        self.assertIsNone(session.token)
        self.assertIsNone(session.user)
        self.assertEqual(session.auth_headers(), {})

    def test_unreadable_file_loads_nothing(self):
        self.path.write_text('{not json')
        session = AuthSession(self.path)
        self.assertIsNone(session.load())

    def test_in_memory_session(self):
        session = AuthSession()
        session.save('abc')
        self.assertEqual(session.load(), None)
        self.assertFalse(session.is_authenticated)


class TodoApiClientTestCase(SimpleTestCase):
    """Tests for the REST client using a stubbed requests session."""

    def setUp(self):
        self.http = mock.Mock(spec=requests.Session)
        self.session = AuthSession()
        self.api = TodoApiClient('http://api.test/', session=self.session, http=self.http)

    def test_login_stores_token(self):
        user = {'id': '1', 'name': 'Ana', 'email': 'ana@example.com', 'isPremium': False}
        self.http.request.return_value = _response(200, {'user': user, 'token': 'tok'})

        self.assertEqual(self.api.login('ana@example.com', 'pw'), user)

        self.assertEqual(self.session.token, 'tok')
        method, url = self.http.request.call_args[0]
        self.assertEqual((method, url), ('POST', 'http://api.test/api/auth/login/'))

    def test_requests_carry_bearer_token(self):
        self.session.save('tok')
        self.http.request.return_value = _response(200, {'tasks': []})

        self.assertEqual(self.api.list_tasks(), [])

        headers = self.http.request.call_args[1]['headers']
        self.assertEqual(headers['Authorization'], 'Bearer tok')

    def test_error_body_becomes_api_error(self):
        self.session.save('tok')
        self.http.request.return_value = _response(
            403, {'success': False, 'error': 'Upgrade', 'code': 'quota_exceeded'}
        )

        with self.assertRaises(ApiError) as ctx:
            self.api.generate_schedule()

        self.assertEqual(ctx.exception.status_code, 403)
        self.assertEqual(ctx.exception.message, 'Upgrade')
        self.assertEqual(ctx.exception.code, 'quota_exceeded')

    def test_non_json_error(self):
        self.http.request.return_value = _response(500, None, text='Server Error')
        with self.assertRaises(ApiError) as ctx:
            self.api.login('a@example.com', 'pw')
        self.assertEqual(ctx.exception.message, 'Server Error')

    def test_current_user_clears_rejected_session(self):
        self.session.save('stale')
        self.http.request.return_value = _response(401, {'detail': 'Invalid token'})

        self.assertIsNone(self.api.current_user())
        self.assertFalse(self.session.is_authenticated)

    def test_current_user_without_token_skips_request(self):
        self.assertIsNone(self.api.current_user())
        self.http.request.assert_not_called()

    def test_generate_suggestion_sends_task_id(self):
        self.session.save('tok')
        self.http.request.return_value = _response(200, {'task': {'id': 't1', 'aiSuggestion': 'Tip'}})

        task = self.api.generate_suggestion('t1')

        self.assertEqual(task['aiSuggestion'], 'Tip')
        self.assertEqual(self.http.request.call_args[1]['json'], {'taskId': 't1'})
