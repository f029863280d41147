# todo_client/session.py
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class AuthSession:
    """
    Bearer token and signed-in user for one API client.

    Only the token is persisted (to ``token_path`` when given); the user is
    fetched again after ``load()``. Nothing is read or written until ``load``,
    ``save`` or ``clear`` is called.
    """

    def __init__(self, token_path: Optional[Path] = None):
        self.token_path = Path(token_path).expanduser() if token_path else None
        self.token: Optional[str] = None
        self.user: Optional[Dict[str, Any]] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def load(self) -> Optional[str]:
        """Read the persisted token, if any, and return it."""
        self.token = None
        self.user = None
        if self.token_path is None or not self.token_path.exists():
            return None

        try:
            data = json.loads(self.token_path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable token file %s: %s", self.token_path, e)
            return None

        token = data.get('token') if isinstance(data, dict) else None
        self.token = token or None
        return self.token

    def save(self, token: str, user: Optional[Dict[str, Any]] = None) -> None:
        self.token = token
        self.user = user
        if self.token_path is None:
            return
        self.token_path.parent.mkdir(parents=True, exist_ok=True)
        self.token_path.write_text(json.dumps({'token': token}), encoding='utf-8')

    def clear(self) -> None:
        self.token = None
        self.user = None
        if self.token_path is not None and self.token_path.exists():
            self.token_path.unlink()

    def auth_headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {'Authorization': f'Bearer {self.token}'}
