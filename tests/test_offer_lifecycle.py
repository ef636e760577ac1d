from __future__ import annotations

import pytest

from lotengo.errors import AuthError, DuplicateOfferError, IllegalTransitionError, InvalidInputError
from lotengo.offer_lifecycle import format_price


def _offer(market, seller_id: str, price: float = 100000, eta_value: float = 1, eta_unit: str = "hours", request_id="r1"):
    return market.offers.create_offer(
        request_id=request_id,
        seller_id=seller_id,
        price=price,
        eta_value=eta_value,
        eta_unit=eta_unit,
    )


def test_format_price_uses_dot_thousands():
    assert format_price(100000) == "$100.000"
    assert format_price(1500) == "$1.500"
    assert format_price(80) == "$80"


def test_create_offer_notifies_buyer(market):
    offer = _offer(market, "u3", price=150000)

    assert offer["id"] == "o3"
    assert offer["status"] == "SUBMITTED"
    assert offer["attachments"] == []
    notices = [n for n in market.store.table("notifications") if n["type"] == "NEW_OFFER"]
    assert len(notices) == 1
    assert notices[0]["user_id"] == "u1"
    assert notices[0]["body"] == "Carlos Ruiz envió una oferta de $150.000"
    assert notices[0]["payload"] == {"requestId": "r1", "offerId": "o3"}


def test_second_offer_from_same_seller_is_rejected(market):
    _offer(market, "u3")
    with pytest.raises(DuplicateOfferError) as exc:
        _offer(market, "u3", price=1)
    assert exc.value.code == "OFFER_DUPLICATE"
    assert exc.value.http_status == 409
    assert len(market.offers.get_offers_by_request("r1")) == 1
    assert market.offers.has_seller_offered_on_request("u3", "r1") is True
    assert market.offers.has_seller_offered_on_request("u4", "r1") is False


def test_offer_preconditions(market):
    with pytest.raises(AuthError):
        _offer(market, "u1")
    with pytest.raises(IllegalTransitionError) as closed:
        _offer(market, "u5", request_id="r2")
    assert closed.value.code == "OFFER_TRANSITION_INVALID"
    with pytest.raises(InvalidInputError):
        _offer(market, "u3", price=0)
    with pytest.raises(InvalidInputError):
        _offer(market, "u3", eta_value=-1)
    with pytest.raises(InvalidInputError):
        _offer(market, "u3", eta_unit="weeks")


def test_offers_sorted_by_price_and_eta(market):
    _offer(market, "u3", price=150000, eta_value=2, eta_unit="hours")
    _offer(market, "u4", price=90000, eta_value=1, eta_unit="days")
    _offer(market, "u5", price=120000, eta_value=90, eta_unit="min")

    by_price = market.offers.get_offers_by_request("r1")
    assert [o["seller_id"] for o in by_price] == ["u4", "u5", "u3"]
    by_eta = market.offers.get_offers_by_request("r1", sort_by="eta")
    assert [o["seller_id"] for o in by_eta] == ["u5", "u3", "u4"]
    with pytest.raises(InvalidInputError):
        market.offers.get_offers_by_request("r1", sort_by="rating")


def test_seller_offers_newest_first(market):
    first = _offer(market, "u3")
    market.requests.create_request(buyer_id="u2", title="Bicicleta usada", location={"lat": 4.7, "lng": -74.0})
    second = _offer(market, "u3", request_id="r3")
    ids = [o["id"] for o in market.offers.get_offers_by_seller("u3")]
    assert ids[:2] == [second["id"], first["id"]]
    assert market.offers.seller_offered_request_ids("u3") == {"r1", "r2", "r3"}


def test_withdraw_offer(market):
    offer = _offer(market, "u4")
    with pytest.raises(AuthError):
        market.offers.withdraw_offer(offer["id"], "u3")

    withdrawn = market.offers.withdraw_offer(offer["id"], "u4")
    assert withdrawn["status"] == "WITHDRAWN"
    assert any(n["type"] == "OFFER_WITHDRAWN" and n["user_id"] == "u1" for n in market.store.table("notifications"))
    with pytest.raises(IllegalTransitionError):
        market.offers.withdraw_offer(offer["id"], "u4")


def test_reject_offer(market):
    offer = _offer(market, "u5")
    with pytest.raises(AuthError):
        market.offers.reject_offer(offer["id"], "u2")

    rejected = market.offers.reject_offer(offer["id"], "u1")
    assert rejected["status"] == "REJECTED"
    assert any(n["type"] == "OFFER_REJECTED" and n["user_id"] == "u5" for n in market.store.table("notifications"))
    with pytest.raises(IllegalTransitionError):
        market.offers.accept_offer(offer["id"])
