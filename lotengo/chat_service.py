from __future__ import annotations

from typing import Any

from lotengo.document_store import DocumentStore
from lotengo.domain import MESSAGE_TYPES, NEW_MESSAGE, id_sequence, utcnow_iso
from lotengo.errors import AuthError, InvalidInputError, NotFoundError
from lotengo.notification_ledger import NotificationLedger
from lotengo.repositories.chats import InMemoryChatsRepository, InMemoryMessagesRepository

_ATTACHMENT_BODIES = {"image": "Imagen adjunta", "file": "Archivo adjunto"}


class ChatService:
    def __init__(self, store: DocumentStore, notifications: NotificationLedger) -> None:
        self._store = store
        self._notifications = notifications
        self.chats = InMemoryChatsRepository(store)
        self.messages = InMemoryMessagesRepository(store)

    def get_chat_by_request(self, request_id: str) -> dict[str, Any] | None:
        return self.chats.get_by_request(request_id)

    def get_chat_by_id(self, chat_id: str) -> dict[str, Any] | None:
        return self.chats.get(chat_id)

    def require_chat(self, chat_id: str) -> dict[str, Any]:
        chat = self.chats.get(chat_id)
        if chat is None:
            raise NotFoundError(code="CHAT_NOT_FOUND", message="chat not found")
        return chat

    def get_chats_by_user(self, user_id: str) -> list[dict[str, Any]]:
        """Chats of a user, most recent activity first."""
        last_by_chat = self.messages.last_by_chat()

        def _activity(chat: dict[str, Any]) -> tuple[str, int]:
            last = last_by_chat.get(chat["id"])
            if last is not None:
                return (str(last["created_at"]), id_sequence(str(last["id"])))
            return (str(chat.get("created_at", "")), 0)

        return sorted(self.chats.list_by_participant(user_id), key=_activity, reverse=True)

    def get_messages(self, chat_id: str) -> list[dict[str, Any]]:
        return self.messages.list_by_chat(chat_id)

    def get_last_message(self, chat_id: str) -> dict[str, Any] | None:
        messages = self.messages.list_by_chat(chat_id)
        return messages[-1] if messages else None

    def send_message(
        self,
        chat_id: str,
        sender_id: str,
        message_type: str,
        *,
        text: str | None = None,
        uri: str | None = None,
        file_name: str | None = None,
    ) -> dict[str, Any]:
        chat = self.require_chat(chat_id)
        if sender_id not in (chat["buyer_id"], chat["seller_id"]):
            raise AuthError("sender is not a participant of this chat", forbidden=True)
        if message_type not in MESSAGE_TYPES:
            raise InvalidInputError(f"unsupported message type: {message_type}")
        if message_type == "text" and not (text or "").strip():
            raise InvalidInputError("text messages need text")
        if message_type in ("image", "file") and not (uri or "").strip():
            raise InvalidInputError(f"{message_type} messages need a uri")
        if message_type == "file" and not (file_name or "").strip():
            raise InvalidInputError("file messages need a file_name")

        with self._store.transaction():
            message: dict[str, Any] = {
                "id": self.messages.next_id(),
                "chat_id": chat_id,
                "sender_id": sender_id,
                "type": message_type,
                "created_at": utcnow_iso(),
            }
            if message_type == "text":
                message["text"] = text
            else:
                message["uri"] = uri
                if file_name:
                    message["file_name"] = file_name
            self.messages.insert(message)

            recipient_id = chat["seller_id"] if sender_id == chat["buyer_id"] else chat["buyer_id"]
            self._notifications.enqueue(
                user_id=recipient_id,
                notification_type=NEW_MESSAGE,
                title="Nuevo mensaje",
                body=text if message_type == "text" else _ATTACHMENT_BODIES[message_type],
                payload={"chatId": chat_id},
            )
            self._store.save()
        return message
