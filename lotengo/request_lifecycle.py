from __future__ import annotations

import logging
from typing import Any

from lotengo.document_store import DocumentStore
from lotengo.domain import (
    NEW_REQUEST,
    OFFER_SUBMITTED,
    OFFER_WITHDRAWN,
    REQUEST_ACCEPTED,
    REQUEST_ACCEPTED_NOTICE,
    REQUEST_CANCELLED,
    REQUEST_CANCELLED_NOTICE,
    REQUEST_CLOSED,
    REQUEST_CLOSED_NOTICE,
    REQUEST_OPEN,
    REQUEST_TRANSITIONS,
    calc_distance,
    normalize_location,
    utcnow_iso,
)
from lotengo.errors import AuthError, IllegalTransitionError, InvalidInputError, NotFoundError
from lotengo.notification_ledger import NotificationLedger
from lotengo.repositories.offers import InMemoryOffersRepository
from lotengo.repositories.requests import InMemoryRequestsRepository
from lotengo.repositories.users import InMemoryUsersRepository

logger = logging.getLogger(__name__)

_OPTIONAL_TEXT_FIELDS = ("description", "unit", "notes", "category")


class RequestLifecycle:
    def __init__(self, store: DocumentStore, notifications: NotificationLedger) -> None:
        self._store = store
        self._notifications = notifications
        self.requests = InMemoryRequestsRepository(store)
        self.offers = InMemoryOffersRepository(store)
        self.users = InMemoryUsersRepository(store)

    def create_request(
        self,
        *,
        buyer_id: str,
        title: str,
        location: dict[str, Any] | None,
        description: str | None = None,
        quantity: float | None = None,
        unit: str | None = None,
        notes: str | None = None,
        category: str | None = None,
    ) -> dict[str, Any]:
        buyer = self.users.get(buyer_id)
        if buyer is None:
            raise NotFoundError(code="USER_NOT_FOUND", message="buyer not found")
        if buyer.get("role") != "buyer":
            raise AuthError("only buyers can post requests", forbidden=True)
        clean_title = str(title or "").strip()
        if not clean_title:
            raise InvalidInputError("title is required")
        clean_location = normalize_location(location)
        if clean_location is None:
            raise InvalidInputError("a valid delivery location is required")
        if quantity is not None and quantity <= 0:
            raise InvalidInputError("quantity must be positive")

        with self._store.transaction():
            request: dict[str, Any] = {
                "id": self.requests.next_id(),
                "buyer_id": buyer_id,
                "title": clean_title,
                "location": clean_location,
                "status": REQUEST_OPEN,
                "created_at": utcnow_iso(),
            }
            if quantity is not None:
                request["quantity"] = quantity
            for field, value in zip(_OPTIONAL_TEXT_FIELDS, (description, unit, notes, category)):
                if value is not None and str(value).strip():
                    request[field] = str(value).strip()
            self.requests.insert(request)

            # Broadcast to every seller; O(sellers) rows per request.
            for seller in self.users.list_by_role("seller"):
                self._notifications.enqueue(
                    user_id=seller["id"],
                    notification_type=NEW_REQUEST,
                    title="Nueva solicitud",
                    body=f'"{clean_title}" - Nuevo pedido disponible',
                    payload={"requestId": request["id"]},
                )
            self._store.save()
        return request

    def get_request_by_id(self, request_id: str) -> dict[str, Any] | None:
        return self.requests.get(request_id)

    def require_request(self, request_id: str) -> dict[str, Any]:
        request = self.requests.get(request_id)
        if request is None:
            raise NotFoundError(code="REQUEST_NOT_FOUND", message="request not found")
        return request

    def get_requests_by_buyer(self, buyer_id: str) -> list[dict[str, Any]]:
        return self.requests.list_by_buyer(buyer_id)

    def get_open_requests(self) -> list[dict[str, Any]]:
        return self.requests.list_by_status(REQUEST_OPEN)

    def get_all_requests(self) -> list[dict[str, Any]]:
        return self.requests.list_all()

    def list_open_requests_for_seller(self, seller_id: str) -> list[dict[str, Any]]:
        """Open requests annotated with ``already_offered`` and ``distance_km`` for one seller."""
        seller = self.users.get(seller_id)
        if seller is None:
            raise NotFoundError(code="USER_NOT_FOUND", message="seller not found")
        offered = self.offers.request_ids_for_seller(seller_id)
        origin = seller.get("location")
        items = []
        for request in self.get_open_requests():
            distance = None
            if origin and request.get("location"):
                distance = calc_distance(origin, request["location"])
            items.append(
                {
                    "request": request,
                    "already_offered": request["id"] in offered,
                    "distance_km": distance,
                }
            )
        return items

    def update_request_status(
        self,
        request_id: str,
        status: str,
        accepted_offer_id: str | None = None,
    ) -> dict[str, Any]:
        if status not in REQUEST_TRANSITIONS:
            raise InvalidInputError(f"unknown request status: {status}")
        with self._store.transaction():
            request = self.require_request(request_id)
            current = request["status"]
            if status != current and status not in REQUEST_TRANSITIONS.get(current, set()):
                raise IllegalTransitionError(current=current, requested=status)
            if accepted_offer_id:
                self._stamp_accepted_offer(request, accepted_offer_id)
            request["status"] = status
            if status != current:
                self._notify_transition(request, status)
            self._store.save()
        return request

    def cancel_request(self, request_id: str, buyer_id: str) -> dict[str, Any]:
        request = self.require_request(request_id)
        if request.get("buyer_id") != buyer_id:
            raise AuthError("only the owning buyer can cancel a request", forbidden=True)
        return self.update_request_status(request_id, REQUEST_CANCELLED)

    def _stamp_accepted_offer(self, request: dict[str, Any], offer_id: str) -> None:
        """``accepted_offer_id`` is written once; repeating the same id is allowed."""
        current = request.get("accepted_offer_id")
        if current == offer_id:
            return
        if current:
            raise InvalidInputError(
                f"request already has accepted offer {current}",
                code="REQUEST_ACCEPTED_OFFER_LOCKED",
            )
        offer = self.offers.get(offer_id)
        if offer is None or offer.get("request_id") != request["id"]:
            raise NotFoundError(code="OFFER_NOT_FOUND", message="offer not found for this request")
        request["accepted_offer_id"] = offer_id

    def _notify_transition(self, request: dict[str, Any], status: str) -> None:
        if status in (REQUEST_CLOSED, REQUEST_ACCEPTED):
            accepted = self.offers.get(str(request.get("accepted_offer_id") or ""))
            if accepted is None:
                return
            closed = status == REQUEST_CLOSED
            self._notifications.enqueue(
                user_id=accepted["seller_id"],
                notification_type=REQUEST_CLOSED_NOTICE if closed else REQUEST_ACCEPTED_NOTICE,
                title="Solicitud cerrada" if closed else "Entrega confirmada",
                body=(
                    f'El comprador cerró "{request["title"]}"'
                    if closed
                    else f'El comprador confirmó la entrega de "{request["title"]}"'
                ),
                payload={"requestId": request["id"], "offerId": accepted["id"]},
            )
        elif status == REQUEST_CANCELLED:
            for offer in self.offers.list_by_request(request["id"]):
                if offer.get("status") != OFFER_SUBMITTED:
                    continue
                offer["status"] = OFFER_WITHDRAWN
                self._notifications.enqueue(
                    user_id=offer["seller_id"],
                    notification_type=REQUEST_CANCELLED_NOTICE,
                    title="Solicitud cancelada",
                    body=f'"{request["title"]}" fue cancelada por el comprador',
                    payload={"requestId": request["id"], "offerId": offer["id"]},
                )
            logger.info("request_cancelled request_id=%s", request["id"])
