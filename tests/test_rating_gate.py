from __future__ import annotations

import pytest

from lotengo.errors import (
    AuthError,
    DuplicateRatingError,
    InvalidInputError,
    NotFoundError,
    RatingNotEligibleError,
)
from lotengo.rating_gate import incremental_mean

MEDELLIN = {"lat": 6.2442, "lng": -75.5812}


def _accepted_request(market, *, buyer_id: str, seller_id: str, title: str = "Arreglo de sala") -> str:
    request = market.requests.create_request(buyer_id=buyer_id, title=title, location=MEDELLIN)
    offer = market.offers.create_offer(
        request_id=request["id"], seller_id=seller_id, price=50000, eta_value=1, eta_unit="days"
    )
    market.offers.accept_offer(offer["id"], acting_user_id=buyer_id)
    return request["id"]


def test_incremental_mean_rounds_half_up():
    assert incremental_mean(0.0, 0, 4) == 4.0
    assert incremental_mean(4.5, 1, 4) == 4.3
    assert incremental_mean(4.5, 2, 4) == 4.3


def test_three_five_star_ratings_average_five(market):
    for buyer_id in ("u1", "u2", "u1"):
        request_id = _accepted_request(market, buyer_id=buyer_id, seller_id="u4")
        market.ratings.create_rating(request_id=request_id, from_user_id=buyer_id, to_user_id="u4", stars=5)
    user = market.auth.get_user_by_id("u4")
    assert user["rating_avg"] == 5.0
    assert user["rating_count"] == 3


def test_one_and_five_average_three(market):
    first = _accepted_request(market, buyer_id="u1", seller_id="u5")
    second = _accepted_request(market, buyer_id="u2", seller_id="u5")
    market.ratings.create_rating(request_id=first, from_user_id="u1", to_user_id="u5", stars=1)
    market.ratings.create_rating(request_id=second, from_user_id="u2", to_user_id="u5", stars=5, comment=" ok ")
    user = market.auth.get_user_by_id("u5")
    assert user["rating_avg"] == 3.0
    assert user["rating_count"] == 2
    assert market.ratings.get_ratings_by_request(second)[0]["comment"] == "ok"


def test_buyer_and_accepted_seller_rate_each_other(market):
    market.ratings.create_rating(request_id="r2", from_user_id="u1", to_user_id="u3", stars=4)
    market.ratings.create_rating(request_id="r2", from_user_id="u3", to_user_id="u1", stars=5)
    assert len(market.ratings.get_ratings_by_request("r2")) == 2
    assert market.auth.get_user_by_id("u1")["rating_count"] == 3


def test_duplicate_rating_leaves_average_untouched(market):
    market.ratings.create_rating(request_id="r2", from_user_id="u1", to_user_id="u3", stars=5)
    with pytest.raises(DuplicateRatingError) as exc:
        market.ratings.create_rating(request_id="r2", from_user_id="u1", to_user_id="u3", stars=1)
    assert exc.value.http_status == 409
    user = market.auth.get_user_by_id("u3")
    assert user["rating_count"] == 2
    assert user["rating_avg"] == 4.5
    assert market.ratings.has_user_rated("r2", "u1") is True
    assert market.ratings.has_user_rated("r2", "u3") is False


def test_request_without_accepted_offer_cannot_be_rated(market):
    with pytest.raises(RatingNotEligibleError) as exc:
        market.ratings.create_rating(request_id="r1", from_user_id="u1", to_user_id="u4", stars=1)
    assert exc.value.code == "RATING_NOT_ELIGIBLE"
    assert market.auth.get_user_by_id("u4")["rating_count"] == 0


@pytest.mark.parametrize(
    ("from_user_id", "to_user_id"),
    [
        ("u2", "u3"),  # outsider rating the seller
        ("u1", "u4"),  # buyer rating a seller whose offer was rejected
        ("u3", "u3"),  # self rating
        ("u4", "u1"),  # rejected seller rating the buyer
    ],
)
def test_only_transaction_parties_may_rate(market, from_user_id, to_user_id):
    before = market.auth.get_user_by_id(to_user_id)["rating_count"]
    with pytest.raises(AuthError) as exc:
        market.ratings.create_rating(request_id="r2", from_user_id=from_user_id, to_user_id=to_user_id, stars=5)
    assert exc.value.http_status == 403
    assert market.auth.get_user_by_id(to_user_id)["rating_count"] == before
    assert market.ratings.get_ratings_by_request("r2") == []


@pytest.mark.parametrize("stars", [0, 6, True, 3.5])
def test_stars_outside_range_are_refused(market, stars):
    with pytest.raises(InvalidInputError):
        market.ratings.create_rating(request_id="r2", from_user_id="u1", to_user_id="u3", stars=stars)
    assert market.ratings.get_ratings_for_user("u3") == []


def test_rating_unknown_request_or_user(market):
    with pytest.raises(NotFoundError) as exc:
        market.ratings.create_rating(request_id="r404", from_user_id="u1", to_user_id="u3", stars=4)
    assert exc.value.code == "REQUEST_NOT_FOUND"
    with pytest.raises(NotFoundError) as user_exc:
        market.ratings.create_rating(request_id="r2", from_user_id="u1", to_user_id="u404", stars=4)
    assert user_exc.value.code == "USER_NOT_FOUND"
