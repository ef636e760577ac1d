from __future__ import annotations

import pytest

from lotengo.acceptance import ACCEPTANCE_SYSTEM_MESSAGE
from lotengo.errors import AuthError, IllegalTransitionError, NotFoundError

BOGOTA = {"lat": 4.711, "lng": -74.0721, "address": "Cl. 26 #13-19, Bogotá"}


def _bicycle_with_two_offers(market):
    request = market.requests.create_request(buyer_id="u2", title="Bicicleta usada", location=BOGOTA)
    first = market.offers.create_offer(
        request_id=request["id"], seller_id="u4", price=100000, eta_value=1, eta_unit="days"
    )
    second = market.offers.create_offer(
        request_id=request["id"], seller_id="u5", price=80000, eta_value=3, eta_unit="hours"
    )
    return request, first, second


def test_accepting_an_offer_runs_every_step(market):
    request, first, second = _bicycle_with_two_offers(market)

    result = market.offers.accept_offer(second["id"], acting_user_id="u2")

    assert market.offers.get_offer_by_id(second["id"])["status"] == "ACCEPTED"
    assert market.offers.get_offer_by_id(first["id"])["status"] == "REJECTED"
    stored_request = market.requests.get_request_by_id(request["id"])
    assert stored_request["status"] == "NEGOTIATING"
    assert stored_request["accepted_offer_id"] == second["id"]

    chat = market.chats.get_chat_by_request(request["id"])
    assert chat == result["chat"]
    assert (chat["buyer_id"], chat["seller_id"]) == ("u2", "u5")
    messages = market.chats.get_messages(chat["id"])
    assert len(messages) == 1
    assert messages[0]["sender_id"] == "system"
    assert messages[0]["text"] == ACCEPTANCE_SYSTEM_MESSAGE

    accepted_notices = [n for n in market.store.table("notifications") if n["type"] == "OFFER_ACCEPTED"]
    assert [n["user_id"] for n in accepted_notices] == ["u5"]
    assert accepted_notices[0]["payload"] == {"requestId": request["id"], "offerId": second["id"]}


def test_acceptance_is_persisted_once(market):
    request, _, second = _bicycle_with_two_offers(market)
    writes: list[str] = []
    original_write = market.store.backend.write

    def _recording_write(key, payload):
        writes.append(key)
        original_write(key, payload)

    market.store.backend.write = _recording_write
    market.offers.accept_offer(second["id"])
    assert writes == [market.store.db_key]


def test_second_acceptance_on_same_request_is_refused(market):
    request, first, second = _bicycle_with_two_offers(market)
    market.offers.accept_offer(second["id"])

    with pytest.raises(IllegalTransitionError) as exc:
        market.offers.accept_offer(first["id"])
    assert exc.value.current == "NEGOTIATING"
    chats = [c for c in market.store.table("chats") if c["request_id"] == request["id"]]
    assert len(chats) == 1


def test_only_owning_buyer_may_accept(market):
    _, _, second = _bicycle_with_two_offers(market)
    with pytest.raises(AuthError) as exc:
        market.offers.accept_offer(second["id"], acting_user_id="u1")
    assert exc.value.code == "AUTH_FORBIDDEN"
    with pytest.raises(NotFoundError) as missing:
        market.offers.accept_offer("o404")
    assert missing.value.code == "OFFER_NOT_FOUND"


def test_failure_mid_acceptance_rolls_everything_back(market, monkeypatch):
    request, first, second = _bicycle_with_two_offers(market)
    counters_before = dict(market.store.get()["counters"])

    def _boom(**kwargs):
        raise RuntimeError("notification sink down")

    monkeypatch.setattr(market.notifications, "enqueue", _boom)
    with pytest.raises(RuntimeError):
        market.offers.accept_offer(second["id"])

    assert market.offers.get_offer_by_id(first["id"])["status"] == "SUBMITTED"
    assert market.offers.get_offer_by_id(second["id"])["status"] == "SUBMITTED"
    stored_request = market.requests.get_request_by_id(request["id"])
    assert stored_request["status"] == "OPEN"
    assert "accepted_offer_id" not in stored_request
    assert market.chats.get_chat_by_request(request["id"]) is None
    assert market.store.get()["counters"] == counters_before
