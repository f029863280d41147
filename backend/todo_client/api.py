# todo_client/api.py
from typing import Any, Dict, List, Optional

import requests

from .session import AuthSession

DEFAULT_TIMEOUT = 60


class ApiError(Exception):
    def __init__(self, status_code: int, message: str, code: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        self.code = code
        super().__init__(f"{status_code}: {message}")


class TodoApiClient:
    """Thin wrapper over the REST API. Authentication state lives in ``session``."""

    def __init__(self, base_url: str, session: Optional[AuthSession] = None,
                 http: Optional[requests.Session] = None, timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip('/')
        self.session = session or AuthSession()
        self.http = http or requests.Session()
        self.timeout = timeout

    def _req(self, method: str, path: str, json: Optional[dict] = None) -> Dict[str, Any]:
        headers = dict(self.session.auth_headers())
        if json is not None:
            headers["Content-Type"] = "application/json"

        r = self.http.request(method, f"{self.base_url}{path}", headers=headers,
                              json=json, timeout=self.timeout)
        if r.status_code >= 400:
            try:
                body = r.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {}
            message = body.get('error') or body.get('detail') or r.text or f"{method} {path} failed"
            raise ApiError(r.status_code, str(message), body.get('code'))
        return r.json()

    # ---------- Auth ----------

    def signup(self, name: str, email: str, password: str) -> Dict[str, Any]:
        data = self._req("POST", "/api/auth/signup/",
                         json={"name": name, "email": email, "password": password})
        self.session.save(data["token"], data["user"])
        return data["user"]

    def login(self, email: str, password: str) -> Dict[str, Any]:
        data = self._req("POST", "/api/auth/login/", json={"email": email, "password": password})
        self.session.save(data["token"], data["user"])
        return data["user"]

    def current_user(self) -> Optional[Dict[str, Any]]:
        """Return the signed-in user, clearing the session if the server rejects the token."""
        if not self.session.is_authenticated:
            return None
        try:
            data = self._req("GET", "/api/auth/me/")
        except (ApiError, requests.RequestException):
            self.session.clear()
            return None
        self.session.user = data["user"]
        return data["user"]

    def logout(self) -> None:
        self.session.clear()

    # ---------- Tasks ----------

    def list_tasks(self) -> List[Dict[str, Any]]:
        return self._req("GET", "/api/tasks/")["tasks"]

    def create_task(self, title: str, description: Optional[str] = None,
                    deadline: Optional[str] = None, priority: str = "Medium") -> Dict[str, Any]:
        payload = {"title": title, "priority": priority}
        if description is not None:
            payload["description"] = description
        if deadline is not None:
            payload["deadline"] = deadline
        return self._req("POST", "/api/tasks/", json=payload)["task"]

    def update_task(self, task_id: str, **updates) -> Dict[str, Any]:
        return self._req("PUT", f"/api/tasks/{task_id}/", json=updates)["task"]

    def delete_task(self, task_id: str) -> bool:
        return bool(self._req("DELETE", f"/api/tasks/{task_id}/").get("success"))

    # ---------- AI ----------

    def generate_schedule(self) -> Dict[str, Any]:
        return self._req("POST", "/api/schedule/generate/", json={})

    def generate_suggestion(self, task_id: str) -> Dict[str, Any]:
        return self._req("POST", "/api/tasks/suggestions/", json={"taskId": task_id})["task"]

    # ---------- Premium ----------

    def activate_premium(self) -> Dict[str, Any]:
        user = self._req("POST", "/api/premium/activate/")["user"]
        self.session.user = user
        return user
