from __future__ import annotations

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from lotengo.errors import AuthError, NotFoundError
from lotengo.marketplace import marketplace
from lotengo.routes._deps import current_user_id, trace_id_from_request
from lotengo.schemas import RequestCreateRequest, RequestStatusUpdateRequest, success_envelope

router = APIRouter(prefix="/api/v1", tags=["requests"])


@router.post("/requests")
def create_request(payload: RequestCreateRequest, request: Request):
    body = payload.model_dump()
    body["location"] = payload.location.model_dump(exclude_none=True)
    data = marketplace.requests.create_request(buyer_id=current_user_id(request), **body)
    return JSONResponse(status_code=201, content=success_envelope(data, trace_id_from_request(request)))


@router.get("/requests/mine")
def list_my_requests(request: Request):
    items = marketplace.requests.get_requests_by_buyer(current_user_id(request))
    return success_envelope({"items": items, "total": len(items)}, trace_id_from_request(request))


@router.get("/requests/open")
def list_open_requests(request: Request):
    items = marketplace.requests.list_open_requests_for_seller(current_user_id(request))
    return success_envelope({"items": items, "total": len(items)}, trace_id_from_request(request))


@router.get("/requests/{request_id}")
def get_request(request_id: str, request: Request):
    data = marketplace.requests.require_request(request_id)
    return success_envelope(data, trace_id_from_request(request))


@router.post("/requests/{request_id}/status")
def update_request_status(request_id: str, payload: RequestStatusUpdateRequest, request: Request):
    existing = marketplace.requests.require_request(request_id)
    if existing.get("buyer_id") != current_user_id(request):
        raise AuthError("only the owning buyer can change the request status", forbidden=True)
    data = marketplace.requests.update_request_status(request_id, payload.status)
    return success_envelope(data, trace_id_from_request(request))


@router.post("/requests/{request_id}/cancel")
def cancel_request(request_id: str, request: Request):
    data = marketplace.requests.cancel_request(request_id, current_user_id(request))
    return success_envelope(data, trace_id_from_request(request))


@router.get("/requests/{request_id}/offers")
def list_request_offers(
    request_id: str,
    request: Request,
    sort_by: str = Query(default="price", pattern="^(price|eta)$"),
):
    marketplace.requests.require_request(request_id)
    items = marketplace.offers.get_offers_by_request(request_id, sort_by=sort_by)
    return success_envelope({"items": items, "total": len(items)}, trace_id_from_request(request))


@router.get("/requests/{request_id}/chat")
def get_request_chat(request_id: str, request: Request):
    chat = marketplace.chats.get_chat_by_request(request_id)
    if chat is None:
        raise NotFoundError(code="CHAT_NOT_FOUND", message="no chat for this request")
    return success_envelope(chat, trace_id_from_request(request))


@router.get("/requests/{request_id}/ratings")
def list_request_ratings(request_id: str, request: Request):
    items = marketplace.ratings.get_ratings_by_request(request_id)
    rated = marketplace.ratings.has_user_rated(request_id, current_user_id(request))
    return success_envelope(
        {"items": items, "total": len(items), "already_rated": rated},
        trace_id_from_request(request),
    )
