from __future__ import annotations

from typing import Any

from lotengo.document_store import DocumentStore
from lotengo.domain import utcnow_iso
from lotengo.errors import NotFoundError
from lotengo.repositories.notifications import InMemoryNotificationsRepository


class NotificationLedger:
    """Append-only per-user event records; only the read flag ever changes."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store
        self.repository = InMemoryNotificationsRepository(store)

    def enqueue(
        self,
        *,
        user_id: str,
        notification_type: str,
        title: str,
        body: str,
        payload: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        # Persisting is the caller's job: enqueue always runs inside a lifecycle operation.
        notification = {
            "id": self.repository.next_id(),
            "user_id": user_id,
            "type": notification_type,
            "title": title,
            "body": body,
            "payload": dict(payload or {}),
            "created_at": utcnow_iso(),
            "read": False,
        }
        return self.repository.insert(notification)

    def get_notifications(self, user_id: str) -> list[dict[str, Any]]:
        return self.repository.list_by_user(user_id)

    def get_unread_count(self, user_id: str) -> int:
        return len(self.repository.list_unread(user_id))

    def mark_as_read(self, notification_id: str) -> dict[str, Any]:
        with self._store.transaction():
            notification = self.repository.get(notification_id)
            if notification is None:
                raise NotFoundError(code="NOTIFICATION_NOT_FOUND", message="notification not found")
            if not notification.get("read"):
                notification["read"] = True
                self._store.save()
        return notification

    def mark_all_as_read(self, user_id: str) -> int:
        with self._store.transaction():
            unread = self.repository.list_unread(user_id)
            for notification in unread:
                notification["read"] = True
            if unread:
                self._store.save()
        return len(unread)
