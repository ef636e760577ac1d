from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from lotengo.errors import AuthError, NotFoundError
from lotengo.marketplace import marketplace
from lotengo.routes._deps import current_user_id, trace_id_from_request
from lotengo.schemas import ProductCreateRequest, ProductUpdateRequest, success_envelope

router = APIRouter(prefix="/api/v1", tags=["products"])


def _owned_product(product_id: str, request: Request) -> dict:
    product = marketplace.products.get_product_by_id(product_id)
    if product is None:
        raise NotFoundError(code="PRODUCT_NOT_FOUND", message="product not found")
    if product.get("seller_id") != current_user_id(request):
        raise AuthError("product belongs to another seller", forbidden=True)
    return product


@router.post("/products")
def create_product(payload: ProductCreateRequest, request: Request):
    data = marketplace.products.create_product(seller_id=current_user_id(request), **payload.model_dump())
    return JSONResponse(status_code=201, content=success_envelope(data, trace_id_from_request(request)))


@router.get("/products")
def list_my_products(request: Request):
    items = marketplace.products.get_products_by_seller(current_user_id(request))
    return success_envelope({"items": items, "total": len(items)}, trace_id_from_request(request))


@router.get("/products/{product_id}")
def get_product(product_id: str, request: Request):
    product = marketplace.products.get_product_by_id(product_id)
    if product is None:
        raise NotFoundError(code="PRODUCT_NOT_FOUND", message="product not found")
    return success_envelope(product, trace_id_from_request(request))


@router.put("/products/{product_id}")
def update_product(product_id: str, payload: ProductUpdateRequest, request: Request):
    _owned_product(product_id, request)
    data = marketplace.products.update_product(product_id, payload.model_dump(exclude_unset=True))
    return success_envelope(data, trace_id_from_request(request))


@router.delete("/products/{product_id}")
def delete_product(product_id: str, request: Request):
    _owned_product(product_id, request)
    marketplace.products.delete_product(product_id)
    return success_envelope({"product_id": product_id, "deleted": True}, trace_id_from_request(request))
