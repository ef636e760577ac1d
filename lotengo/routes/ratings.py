from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from lotengo.marketplace import marketplace
from lotengo.routes._deps import current_user_id, trace_id_from_request
from lotengo.schemas import RatingCreateRequest, success_envelope

router = APIRouter(prefix="/api/v1", tags=["ratings"])


@router.post("/ratings")
def create_rating(payload: RatingCreateRequest, request: Request):
    data = marketplace.ratings.create_rating(from_user_id=current_user_id(request), **payload.model_dump())
    return JSONResponse(status_code=201, content=success_envelope(data, trace_id_from_request(request)))


@router.get("/users/{user_id}/ratings")
def list_user_ratings(user_id: str, request: Request):
    items = marketplace.ratings.get_ratings_for_user(user_id)
    return success_envelope({"items": items, "total": len(items)}, trace_id_from_request(request))
