from __future__ import annotations

from typing import Any

from lotengo.acceptance import AcceptanceOrchestrator
from lotengo.document_store import DocumentStore
from lotengo.domain import (
    ETA_UNIT_MINUTES,
    NEW_OFFER,
    OFFER_REJECTED,
    OFFER_REJECTED_NOTICE,
    OFFER_TRANSITIONS,
    OFFER_WITHDRAWN,
    OFFER_WITHDRAWN_NOTICE,
    OFFER_SUBMITTED,
    REQUEST_OPEN,
    eta_minutes,
    utcnow_iso,
)
from lotengo.errors import (
    AuthError,
    DuplicateOfferError,
    IllegalTransitionError,
    InvalidInputError,
    NotFoundError,
)
from lotengo.notification_ledger import NotificationLedger
from lotengo.repositories.offers import InMemoryOffersRepository
from lotengo.repositories.requests import InMemoryRequestsRepository
from lotengo.repositories.users import InMemoryUsersRepository


def format_price(amount: float) -> str:
    return "$" + f"{amount:,.0f}".replace(",", ".")


class OfferLifecycle:
    def __init__(
        self,
        store: DocumentStore,
        notifications: NotificationLedger,
        acceptance: AcceptanceOrchestrator | None = None,
    ) -> None:
        self._store = store
        self._notifications = notifications
        self._acceptance = acceptance or AcceptanceOrchestrator(store, notifications)
        self.offers = InMemoryOffersRepository(store)
        self.requests = InMemoryRequestsRepository(store)
        self.users = InMemoryUsersRepository(store)

    def create_offer(
        self,
        *,
        request_id: str,
        seller_id: str,
        price: float,
        eta_value: float,
        eta_unit: str,
        notes: str | None = None,
        attachments: list[str] | None = None,
    ) -> dict[str, Any]:
        with self._store.transaction():
            seller = self.users.get(seller_id)
            if seller is None:
                raise NotFoundError(code="USER_NOT_FOUND", message="seller not found")
            if seller.get("role") != "seller":
                raise AuthError("only sellers can submit offers", forbidden=True)
            request = self.requests.get(request_id)
            if request is None:
                raise NotFoundError(code="REQUEST_NOT_FOUND", message="request not found")
            if self.offers.find_by_request_and_seller(request_id=request_id, seller_id=seller_id) is not None:
                raise DuplicateOfferError()
            if request.get("status") != REQUEST_OPEN:
                raise IllegalTransitionError(current=request["status"], requested=OFFER_SUBMITTED, code="OFFER_TRANSITION_INVALID")
            if price is None or price <= 0:
                raise InvalidInputError("price must be positive")
            if eta_value is None or eta_value <= 0:
                raise InvalidInputError("eta_value must be positive")
            if eta_unit not in ETA_UNIT_MINUTES:
                raise InvalidInputError(f"unsupported eta_unit: {eta_unit}")

            offer: dict[str, Any] = {
                "id": self.offers.next_id(),
                "request_id": request_id,
                "seller_id": seller_id,
                "price": price,
                "eta_value": eta_value,
                "eta_unit": eta_unit,
                "attachments": list(attachments or []),
                "status": OFFER_SUBMITTED,
                "created_at": utcnow_iso(),
            }
            if notes is not None and str(notes).strip():
                offer["notes"] = str(notes).strip()
            self.offers.insert(offer)
            self._notifications.enqueue(
                user_id=request["buyer_id"],
                notification_type=NEW_OFFER,
                title="Nueva oferta recibida",
                body=f"{seller.get('name') or 'Vendedor'} envió una oferta de {format_price(price)}",
                payload={"requestId": request_id, "offerId": offer["id"]},
            )
            self._store.save()
        return offer

    def get_offer_by_id(self, offer_id: str) -> dict[str, Any] | None:
        return self.offers.get(offer_id)

    def get_offers_by_request(self, request_id: str, *, sort_by: str = "price") -> list[dict[str, Any]]:
        offers = self.offers.list_by_request(request_id)
        if sort_by == "eta":
            return sorted(offers, key=lambda o: eta_minutes(o["eta_value"], o["eta_unit"]))
        if sort_by != "price":
            raise InvalidInputError(f"unsupported sort: {sort_by}")
        return sorted(offers, key=lambda o: o["price"])

    def get_offers_by_seller(self, seller_id: str) -> list[dict[str, Any]]:
        return self.offers.list_by_seller(seller_id)

    def has_seller_offered_on_request(self, seller_id: str, request_id: str) -> bool:
        return self.offers.find_by_request_and_seller(request_id=request_id, seller_id=seller_id) is not None

    def seller_offered_request_ids(self, seller_id: str) -> set[str]:
        """Computed once per listing pass; membership checks are then O(1)."""
        return self.offers.request_ids_for_seller(seller_id)

    def accept_offer(self, offer_id: str, *, acting_user_id: str | None = None) -> dict[str, Any]:
        return self._acceptance.accept_offer(offer_id, acting_user_id=acting_user_id)

    def withdraw_offer(self, offer_id: str, seller_id: str) -> dict[str, Any]:
        offer = self._require_offer(offer_id)
        if offer.get("seller_id") != seller_id:
            raise AuthError("only the offering seller can withdraw it", forbidden=True)
        with self._store.transaction():
            self._transition(offer, OFFER_WITHDRAWN)
            request = self.requests.get(str(offer["request_id"]))
            if request is not None:
                self._notifications.enqueue(
                    user_id=request["buyer_id"],
                    notification_type=OFFER_WITHDRAWN_NOTICE,
                    title="Oferta retirada",
                    body=f'Un vendedor retiró su oferta para "{request["title"]}"',
                    payload={"requestId": request["id"], "offerId": offer_id},
                )
            self._store.save()
        return offer

    def reject_offer(self, offer_id: str, buyer_id: str) -> dict[str, Any]:
        offer = self._require_offer(offer_id)
        request = self.requests.get(str(offer["request_id"]))
        if request is None:
            raise NotFoundError(code="REQUEST_NOT_FOUND", message="request not found")
        if request.get("buyer_id") != buyer_id:
            raise AuthError("only the request's buyer can reject offers", forbidden=True)
        with self._store.transaction():
            self._transition(offer, OFFER_REJECTED)
            self._notifications.enqueue(
                user_id=offer["seller_id"],
                notification_type=OFFER_REJECTED_NOTICE,
                title="Oferta rechazada",
                body=f'Tu oferta para "{request["title"]}" fue rechazada',
                payload={"requestId": request["id"], "offerId": offer_id},
            )
            self._store.save()
        return offer

    def _require_offer(self, offer_id: str) -> dict[str, Any]:
        offer = self.offers.get(offer_id)
        if offer is None:
            raise NotFoundError(code="OFFER_NOT_FOUND", message="offer not found")
        return offer

    @staticmethod
    def _transition(offer: dict[str, Any], new_status: str) -> None:
        current = offer["status"]
        if new_status not in OFFER_TRANSITIONS.get(current, set()):
            raise IllegalTransitionError(current=current, requested=new_status, code="OFFER_TRANSITION_INVALID")
        offer["status"] = new_status
