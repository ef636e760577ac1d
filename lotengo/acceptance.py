"""Offer acceptance: the one multi-step orchestration in the marketplace.

Accepting an offer, in a single store transaction:

1. marks the offer ``ACCEPTED``;
2. overwrites every competing offer on the request to ``REJECTED``;
3. moves the request ``OPEN -> NEGOTIATING`` and stamps ``accepted_offer_id``;
4. opens the request's chat between its buyer and the offer's seller;
5. posts the system message announcing the acceptance;
6. notifies the seller.

Either all of it lands and is persisted once, or the snapshot taken on entry
is restored.
"""

from __future__ import annotations

import logging
from typing import Any

from lotengo.document_store import DocumentStore
from lotengo.domain import (
    OFFER_ACCEPTED,
    OFFER_ACCEPTED_NOTICE,
    OFFER_REJECTED,
    OFFER_SUBMITTED,
    REQUEST_NEGOTIATING,
    REQUEST_OPEN,
    SYSTEM_SENDER,
    utcnow_iso,
)
from lotengo.errors import AuthError, IllegalTransitionError, NotFoundError
from lotengo.notification_ledger import NotificationLedger
from lotengo.repositories.chats import InMemoryChatsRepository, InMemoryMessagesRepository
from lotengo.repositories.offers import InMemoryOffersRepository
from lotengo.repositories.requests import InMemoryRequestsRepository

logger = logging.getLogger(__name__)

ACCEPTANCE_SYSTEM_MESSAGE = "Oferta aceptada! Ya pueden coordinar la entrega."


class AcceptanceOrchestrator:
    def __init__(self, store: DocumentStore, notifications: NotificationLedger) -> None:
        self._store = store
        self._notifications = notifications
        self.offers = InMemoryOffersRepository(store)
        self.requests = InMemoryRequestsRepository(store)
        self.chats = InMemoryChatsRepository(store)
        self.messages = InMemoryMessagesRepository(store)

    def accept_offer(self, offer_id: str, *, acting_user_id: str | None = None) -> dict[str, Any]:
        with self._store.transaction():
            # Preconditions run under the store lock: a concurrent acceptance must see NEGOTIATING.
            offer = self.offers.get(offer_id)
            if offer is None:
                raise NotFoundError(code="OFFER_NOT_FOUND", message="offer not found")
            request = self.requests.get(str(offer.get("request_id")))
            if request is None:
                raise NotFoundError(code="REQUEST_NOT_FOUND", message="request not found")
            if acting_user_id is not None and acting_user_id != request.get("buyer_id"):
                raise AuthError("only the request's buyer can accept offers", forbidden=True)
            if request.get("status") != REQUEST_OPEN:
                raise IllegalTransitionError(current=request["status"], requested=REQUEST_NEGOTIATING)
            if offer.get("status") != OFFER_SUBMITTED:
                raise IllegalTransitionError(
                    current=offer["status"],
                    requested=OFFER_ACCEPTED,
                    code="OFFER_TRANSITION_INVALID",
                )

            offer["status"] = OFFER_ACCEPTED
            for competing in self.offers.list_by_request(request["id"]):
                if competing["id"] != offer_id:
                    competing["status"] = OFFER_REJECTED

            request["status"] = REQUEST_NEGOTIATING
            request["accepted_offer_id"] = offer_id

            now = utcnow_iso()
            chat = self.chats.insert(
                {
                    "id": self.chats.next_id(),
                    "request_id": request["id"],
                    "buyer_id": request["buyer_id"],
                    "seller_id": offer["seller_id"],
                    "created_at": now,
                }
            )
            message = self.messages.insert(
                {
                    "id": self.messages.next_id(),
                    "chat_id": chat["id"],
                    "sender_id": SYSTEM_SENDER,
                    "type": "text",
                    "text": ACCEPTANCE_SYSTEM_MESSAGE,
                    "created_at": now,
                }
            )
            notification = self._notifications.enqueue(
                user_id=offer["seller_id"],
                notification_type=OFFER_ACCEPTED_NOTICE,
                title="Tu oferta fue aceptada!",
                body=f'Tu oferta para "{request["title"]}" fue aceptada',
                payload={"requestId": request["id"], "offerId": offer_id},
            )
            self._store.save()

        logger.info(
            "offer_accepted offer_id=%s request_id=%s chat_id=%s",
            offer_id,
            request["id"],
            chat["id"],
        )
        return {
            "offer": offer,
            "request": request,
            "chat": chat,
            "message": message,
            "notification": notification,
        }
