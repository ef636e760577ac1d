from __future__ import annotations

from typing import Any

from lotengo.domain import id_sequence, oldest_first
from lotengo.repositories.base import InMemoryTableRepository


class InMemoryChatsRepository(InMemoryTableRepository):
    table_name = "chats"

    def get_by_request(self, request_id: str) -> dict[str, Any] | None:
        return self.first(lambda c: c.get("request_id") == request_id)

    def list_by_participant(self, user_id: str) -> list[dict[str, Any]]:
        return self.where(lambda c: c.get("buyer_id") == user_id or c.get("seller_id") == user_id)


class InMemoryMessagesRepository(InMemoryTableRepository):
    table_name = "messages"

    def list_by_chat(self, chat_id: str) -> list[dict[str, Any]]:
        return oldest_first(self.where(lambda m: m.get("chat_id") == chat_id))

    def last_by_chat(self) -> dict[str, dict[str, Any]]:
        """Latest message per chat id in one pass over the table."""
        latest: dict[str, dict[str, Any]] = {}
        for message in self.rows:
            chat_id = str(message.get("chat_id"))
            current = latest.get(chat_id)
            if current is None or _message_key(message) > _message_key(current):
                latest[chat_id] = message
        return latest


def _message_key(message: dict[str, Any]) -> tuple[str, int]:
    return (str(message.get("created_at", "")), id_sequence(str(message["id"])))
