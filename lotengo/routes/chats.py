from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from lotengo.errors import AuthError
from lotengo.marketplace import marketplace
from lotengo.routes._deps import current_user_id, trace_id_from_request
from lotengo.schemas import MessageSendRequest, success_envelope

router = APIRouter(prefix="/api/v1", tags=["chats"])


def _participant_chat(chat_id: str, request: Request) -> dict:
    chat = marketplace.chats.require_chat(chat_id)
    if current_user_id(request) not in (chat["buyer_id"], chat["seller_id"]):
        raise AuthError("not a participant of this chat", forbidden=True)
    return chat


@router.get("/chats")
def list_my_chats(request: Request):
    user_id = current_user_id(request)
    items = [
        {"chat": chat, "last_message": marketplace.chats.get_last_message(chat["id"])}
        for chat in marketplace.chats.get_chats_by_user(user_id)
    ]
    return success_envelope({"items": items, "total": len(items)}, trace_id_from_request(request))


@router.get("/chats/{chat_id}")
def get_chat(chat_id: str, request: Request):
    return success_envelope(_participant_chat(chat_id, request), trace_id_from_request(request))


@router.get("/chats/{chat_id}/messages")
def list_messages(chat_id: str, request: Request):
    _participant_chat(chat_id, request)
    items = marketplace.chats.get_messages(chat_id)
    return success_envelope({"items": items, "total": len(items)}, trace_id_from_request(request))


@router.post("/chats/{chat_id}/messages")
def send_message(chat_id: str, payload: MessageSendRequest, request: Request):
    data = marketplace.chats.send_message(
        chat_id,
        current_user_id(request),
        payload.type,
        text=payload.text,
        uri=payload.uri,
        file_name=payload.file_name,
    )
    return JSONResponse(status_code=201, content=success_envelope(data, trace_id_from_request(request)))
