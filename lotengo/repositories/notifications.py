from __future__ import annotations

from typing import Any

from lotengo.domain import newest_first
from lotengo.repositories.base import InMemoryTableRepository


class InMemoryNotificationsRepository(InMemoryTableRepository):
    table_name = "notifications"

    def list_by_user(self, user_id: str) -> list[dict[str, Any]]:
        return newest_first(self.where(lambda n: n.get("user_id") == user_id))

    def list_unread(self, user_id: str) -> list[dict[str, Any]]:
        return self.where(lambda n: n.get("user_id") == user_id and not n.get("read"))
