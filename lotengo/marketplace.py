from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from lotengo.acceptance import AcceptanceOrchestrator
from lotengo.auth_service import AuthService
from lotengo.chat_service import ChatService
from lotengo.document_store import DocumentStore, create_store_from_env
from lotengo.notification_ledger import NotificationLedger
from lotengo.offer_lifecycle import OfferLifecycle
from lotengo.product_catalog import ProductCatalog
from lotengo.rating_gate import RatingGate
from lotengo.repositories.users import InMemoryUsersRepository
from lotengo.request_lifecycle import RequestLifecycle
from lotengo.session import DEFAULT_SESSION_KEY, SessionStore


class Marketplace:
    """Every lifecycle component wired to one explicitly owned document store."""

    def __init__(self, store: DocumentStore, *, session_key: str = DEFAULT_SESSION_KEY) -> None:
        self.store = store
        self.notifications = NotificationLedger(store)
        self.requests = RequestLifecycle(store, self.notifications)
        self.acceptance = AcceptanceOrchestrator(store, self.notifications)
        self.offers = OfferLifecycle(store, self.notifications, self.acceptance)
        self.chats = ChatService(store, self.notifications)
        self.ratings = RatingGate(store)
        self.auth = AuthService(store)
        self.products = ProductCatalog(store)
        self.session = SessionStore(store.backend, InMemoryUsersRepository(store), key=session_key)

    def reset(self) -> dict[str, Any]:
        self.session.clear()
        return self.store.reset()


def create_marketplace_from_env(environ: Mapping[str, str] | None = None) -> Marketplace:
    env = os.environ if environ is None else environ
    store = create_store_from_env(env)
    session_key = env.get("LOTENGO_SESSION_KEY", DEFAULT_SESSION_KEY).strip() or DEFAULT_SESSION_KEY
    market = Marketplace(store, session_key=session_key)
    market.session.load()
    return market


marketplace = create_marketplace_from_env()
