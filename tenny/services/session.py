from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from loguru import logger

from tenny.config import settings


class FileTokenStore:
    """Keeps the bearer token in a small JSON file between app restarts."""

    def __init__(self, path: str) -> None:
        self.path = Path(path).expanduser()

    def load(self) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable token file {}: {}", self.path, e)
            return None
        token = data.get("token") if isinstance(data, dict) else None
        return token or None

    def save(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"token": token}), encoding="utf-8")

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()


class Session:
    """
    Auth context handed to ApiClient.

    Holds the bearer token and the current user, and knows what to do when the
    backend says the token is no longer valid (on_unauthorized, e.g. switch to
    the login page).
    """

    def __init__(
        self,
        token: Optional[str] = None,
        store: Optional[FileTokenStore] = None,
        on_unauthorized: Optional[Callable[[], None]] = None,
    ) -> None:
        self._lock = threading.Lock()
        self.store = store
        self.on_unauthorized = on_unauthorized
        self.user: Optional[Dict[str, Any]] = None
        # set by a 401, cleared by the next login
        self.expired = False
        if token is None and store is not None:
            token = store.load()
        self._token = token

    @classmethod
    def from_settings(cls, on_unauthorized: Optional[Callable[[], None]] = None) -> "Session":
        store = FileTokenStore(settings.TOKEN_PATH) if settings.persist_token else None
        return cls(store=store, on_unauthorized=on_unauthorized)

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return bool(self._token)

    def auth_headers(self) -> Dict[str, str]:
        token = self._token
        return {"Authorization": f"Bearer {token}"} if token else {}

    def login(self, token: str, user: Optional[Dict[str, Any]] = None) -> None:
        with self._lock:
            self._token = token
            self.user = user
            self.expired = False
            if self.store is not None:
                self.store.save(token)

    def clear(self) -> None:
        with self._lock:
            self._token = None
            self.user = None
            if self.store is not None:
                self.store.clear()

    def expire(self) -> None:
        """Called on a 401: drop credentials, then hand over to the login route."""
        logger.warning("Session expired; clearing token")
        self.clear()
        self.expired = True
        if self.on_unauthorized is not None:
            self.on_unauthorized()
