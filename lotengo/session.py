from __future__ import annotations

import json
import logging
from typing import Any

from lotengo.auth_service import public_user
from lotengo.errors import PersistenceFailure
from lotengo.repositories.users import InMemoryUsersRepository

logger = logging.getLogger(__name__)

DEFAULT_SESSION_KEY = "@lotengo_auth"


class SessionStore:
    """Persisted record of the logged-in user, kept beside the database blob.

    The cached copy can go stale (ratings, migrations); ``load`` prefers the
    canonical row from the database and only falls back to the cache when the
    row is gone.
    """

    def __init__(self, backend: Any, users: InMemoryUsersRepository, *, key: str = DEFAULT_SESSION_KEY) -> None:
        self._backend = backend
        self._users = users
        self.key = key
        self.user: dict[str, Any] | None = None

    def set_user(self, user: dict[str, Any] | None) -> None:
        self.user = public_user(user) if user is not None else None
        if self.user is None:
            self._delete()
        else:
            self._write(self.user)

    def clear(self) -> None:
        self.set_user(None)

    def update_user(self, updates: dict[str, Any]) -> dict[str, Any] | None:
        if self.user is None:
            return None
        self.user = {**self.user, **updates}
        self._write(self.user)
        return self.user

    def load(self) -> dict[str, Any] | None:
        try:
            raw = self._backend.read(self.key)
        except PersistenceFailure as exc:
            logger.warning("session_load_failed key=%s error=%s", self.key, exc.message)
            raw = None
        cached = None
        if raw is not None:
            try:
                cached = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("session_blob_corrupt key=%s", self.key)
        if not isinstance(cached, dict) or not cached.get("id"):
            self.user = None
            return None
        canonical = self._users.get(str(cached["id"]))
        self.user = public_user(canonical) if canonical is not None else cached
        return self.user

    def _write(self, user: dict[str, Any]) -> None:
        try:
            self._backend.write(self.key, json.dumps(user, sort_keys=True, ensure_ascii=True))
        except PersistenceFailure as exc:
            logger.warning("session_save_failed key=%s error=%s", self.key, exc.message)

    def _delete(self) -> None:
        try:
            self._backend.delete(self.key)
        except PersistenceFailure as exc:
            logger.warning("session_clear_failed key=%s error=%s", self.key, exc.message)
