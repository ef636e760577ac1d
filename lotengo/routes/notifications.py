from __future__ import annotations

from fastapi import APIRouter, Request

from lotengo.errors import NotFoundError
from lotengo.marketplace import marketplace
from lotengo.routes._deps import current_user_id, trace_id_from_request
from lotengo.schemas import success_envelope

router = APIRouter(prefix="/api/v1", tags=["notifications"])


@router.get("/notifications")
def list_notifications(request: Request):
    user_id = current_user_id(request)
    items = marketplace.notifications.get_notifications(user_id)
    return success_envelope(
        {"items": items, "total": len(items), "unread": marketplace.notifications.get_unread_count(user_id)},
        trace_id_from_request(request),
    )


@router.get("/notifications/unread-count")
def unread_count(request: Request):
    count = marketplace.notifications.get_unread_count(current_user_id(request))
    return success_envelope({"unread": count}, trace_id_from_request(request))


@router.post("/notifications/read-all")
def mark_all_read(request: Request):
    updated = marketplace.notifications.mark_all_as_read(current_user_id(request))
    return success_envelope({"updated": updated}, trace_id_from_request(request))


@router.post("/notifications/{notification_id}/read")
def mark_read(notification_id: str, request: Request):
    existing = marketplace.notifications.repository.get(notification_id)
    # Another user's notification is reported as missing rather than forbidden.
    if existing is None or existing.get("user_id") != current_user_id(request):
        raise NotFoundError(code="NOTIFICATION_NOT_FOUND", message="notification not found")
    data = marketplace.notifications.mark_as_read(notification_id)
    return success_envelope(data, trace_id_from_request(request))
