from __future__ import annotations

import pytest

from lotengo.errors import AuthError, InvalidInputError, NotFoundError


def test_seed_messages_are_oldest_first(market):
    assert [m["id"] for m in market.chats.get_messages("c1")] == ["m1", "m2"]
    assert market.chats.get_last_message("c1")["id"] == "m2"
    assert market.chats.get_last_message("c404") is None


def test_send_text_message_notifies_other_participant(market):
    message = market.chats.send_message("c1", "u1", "text", text="¿A qué hora llegas?")

    assert message["id"] == "m3"
    assert market.chats.get_last_message("c1") == message
    notices = [n for n in market.store.table("notifications") if n["type"] == "NEW_MESSAGE"]
    assert len(notices) == 1
    assert notices[0]["user_id"] == "u3"
    assert notices[0]["body"] == "¿A qué hora llegas?"
    assert notices[0]["payload"] == {"chatId": "c1"}


def test_attachment_messages_use_placeholder_body(market):
    market.chats.send_message("c1", "u3", "image", uri="file:///tmp/foto.jpg")
    market.chats.send_message("c1", "u3", "file", uri="file:///tmp/factura.pdf", file_name="factura.pdf")
    bodies = [n["body"] for n in market.notifications.get_notifications("u1")]
    assert bodies == ["Archivo adjunto", "Imagen adjunta"]


def test_message_validation(market):
    with pytest.raises(AuthError) as exc:
        market.chats.send_message("c1", "u4", "text", text="hola")
    assert exc.value.http_status == 403
    with pytest.raises(InvalidInputError):
        market.chats.send_message("c1", "u1", "text", text="  ")
    with pytest.raises(InvalidInputError):
        market.chats.send_message("c1", "u1", "image")
    with pytest.raises(InvalidInputError):
        market.chats.send_message("c1", "u1", "file", uri="file:///tmp/x.pdf")
    with pytest.raises(InvalidInputError):
        market.chats.send_message("c1", "u1", "audio", uri="file:///tmp/x.ogg")
    with pytest.raises(NotFoundError) as missing:
        market.chats.send_message("c404", "u1", "text", text="hola")
    assert missing.value.code == "CHAT_NOT_FOUND"
    assert len(market.chats.get_messages("c1")) == 2


def test_user_chats_follow_latest_activity(market):
    request = market.requests.create_request(buyer_id="u1", title="Pintura", location={"lat": 6.25, "lng": -75.56})
    offer = market.offers.create_offer(request_id=request["id"], seller_id="u5", price=1000, eta_value=1, eta_unit="days")
    new_chat = market.offers.accept_offer(offer["id"])["chat"]

    assert [c["id"] for c in market.chats.get_chats_by_user("u1")] == [new_chat["id"], "c1"]
    market.chats.send_message("c1", "u1", "text", text="seguimos?")
    assert [c["id"] for c in market.chats.get_chats_by_user("u1")] == ["c1", new_chat["id"]]
    assert [c["id"] for c in market.chats.get_chats_by_user("u5")] == [new_chat["id"]]
    assert market.chats.get_chats_by_user("u2") == []
