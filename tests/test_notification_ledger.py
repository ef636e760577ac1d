from __future__ import annotations

import pytest

from lotengo.errors import NotFoundError


def _enqueue(market, user_id: str, title: str) -> dict:
    return market.notifications.enqueue(
        user_id=user_id,
        notification_type="NEW_MESSAGE",
        title=title,
        body="cuerpo",
        payload={"chatId": "c1"},
    )


def test_notifications_listed_newest_first_per_user(market):
    first = _enqueue(market, "u1", "uno")
    second = _enqueue(market, "u1", "dos")
    _enqueue(market, "u3", "otro")

    assert [n["id"] for n in market.notifications.get_notifications("u1")] == [second["id"], first["id"]]
    assert market.notifications.get_unread_count("u1") == 2
    assert first["read"] is False


def test_mark_as_read_only_touches_one(market):
    first = _enqueue(market, "u1", "uno")
    _enqueue(market, "u1", "dos")

    market.notifications.mark_as_read(first["id"])

    assert market.notifications.get_unread_count("u1") == 1
    with pytest.raises(NotFoundError) as exc:
        market.notifications.mark_as_read("n404")
    assert exc.value.code == "NOTIFICATION_NOT_FOUND"


def test_mark_all_as_read_is_scoped_to_user(market):
    _enqueue(market, "u1", "uno")
    _enqueue(market, "u1", "dos")
    _enqueue(market, "u3", "otro")

    assert market.notifications.mark_all_as_read("u1") == 2
    assert market.notifications.mark_all_as_read("u1") == 0
    assert market.notifications.get_unread_count("u1") == 0
    assert market.notifications.get_unread_count("u3") == 1
