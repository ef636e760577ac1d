from __future__ import annotations

from fastapi import APIRouter, Header, Request

from lotengo.errors import AuthError
from lotengo.marketplace import marketplace
from lotengo.routes._deps import trace_id_from_request
from lotengo.schemas import success_envelope

router = APIRouter(prefix="/api/v1/internal", tags=["internal"])


def _require_internal(x_internal_debug: str | None) -> None:
    if (x_internal_debug or "").strip().lower() != "true":
        raise AuthError("internal endpoint requires x-internal-debug: true", forbidden=True)


@router.post("/store/reset")
def reset_store(request: Request, x_internal_debug: str | None = Header(default=None, alias="x-internal-debug")):
    _require_internal(x_internal_debug)
    db = marketplace.reset()
    counts = {name: len(rows) for name, rows in db.items() if isinstance(rows, list)}
    return success_envelope({"reset": True, "tables": counts}, trace_id_from_request(request))


@router.get("/store/counters")
def store_counters(request: Request, x_internal_debug: str | None = Header(default=None, alias="x-internal-debug")):
    _require_internal(x_internal_debug)
    return success_envelope(dict(marketplace.store.get().get("counters", {})), trace_id_from_request(request))
