from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from lotengo.errors import NotFoundError
from lotengo.marketplace import marketplace
from lotengo.routes._deps import current_user_id, trace_id_from_request
from lotengo.schemas import OfferCreateRequest, success_envelope

router = APIRouter(prefix="/api/v1", tags=["offers"])


@router.post("/offers")
def create_offer(payload: OfferCreateRequest, request: Request):
    data = marketplace.offers.create_offer(seller_id=current_user_id(request), **payload.model_dump())
    return JSONResponse(status_code=201, content=success_envelope(data, trace_id_from_request(request)))


@router.get("/offers/mine")
def list_my_offers(request: Request):
    items = marketplace.offers.get_offers_by_seller(current_user_id(request))
    return success_envelope({"items": items, "total": len(items)}, trace_id_from_request(request))


@router.get("/offers/{offer_id}")
def get_offer(offer_id: str, request: Request):
    offer = marketplace.offers.get_offer_by_id(offer_id)
    if offer is None:
        raise NotFoundError(code="OFFER_NOT_FOUND", message="offer not found")
    return success_envelope(offer, trace_id_from_request(request))


@router.post("/offers/{offer_id}/accept")
def accept_offer(offer_id: str, request: Request):
    result = marketplace.offers.accept_offer(offer_id, acting_user_id=current_user_id(request))
    data = {
        "offer": result["offer"],
        "request": result["request"],
        "chat": result["chat"],
    }
    return success_envelope(data, trace_id_from_request(request))


@router.post("/offers/{offer_id}/withdraw")
def withdraw_offer(offer_id: str, request: Request):
    data = marketplace.offers.withdraw_offer(offer_id, current_user_id(request))
    return success_envelope(data, trace_id_from_request(request))


@router.post("/offers/{offer_id}/reject")
def reject_offer(offer_id: str, request: Request):
    data = marketplace.offers.reject_offer(offer_id, current_user_id(request))
    return success_envelope(data, trace_id_from_request(request))
