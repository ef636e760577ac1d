from __future__ import annotations

from conftest import BOGOTA, as_user


def _create_bicycle_request(client) -> str:
    resp = client.post(
        "/api/v1/requests",
        headers=as_user("u2"),
        json={"title": "Bicicleta usada", "location": BOGOTA, "quantity": 1, "category": "deportes"},
    )
    assert resp.status_code == 201
    return resp.json()["data"]["id"]


def _offer(client, request_id: str, seller_id: str, price: int, eta_value: int = 1, eta_unit: str = "days"):
    return client.post(
        "/api/v1/offers",
        headers=as_user(seller_id),
        json={"request_id": request_id, "price": price, "eta_value": eta_value, "eta_unit": eta_unit},
    )


def test_health_and_trace_headers(client):
    resp = client.get("/api/v1/health", headers={"x-trace-id": "trace_abc"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["data"]["status"] == "ok"
    assert body["meta"]["trace_id"] == "trace_abc"
    assert resp.headers["x-trace-id"] == "trace_abc"
    assert resp.headers["x-request-id"].startswith("req_")


def test_full_negotiation_flow(client):
    request_id = _create_bicycle_request(client)
    first = _offer(client, request_id, "u4", 100000)
    second = _offer(client, request_id, "u5", 80000, eta_value=3, eta_unit="hours")
    assert first.status_code == 201
    assert second.status_code == 201
    first_id = first.json()["data"]["id"]
    second_id = second.json()["data"]["id"]

    listed = client.get(f"/api/v1/requests/{request_id}/offers", headers=as_user("u2"))
    assert [o["id"] for o in listed.json()["data"]["items"]] == [second_id, first_id]

    forbidden = client.post(f"/api/v1/offers/{second_id}/accept", headers=as_user("u1"))
    assert forbidden.status_code == 403
    assert forbidden.json()["error"]["code"] == "AUTH_FORBIDDEN"

    accepted = client.post(f"/api/v1/offers/{second_id}/accept", headers=as_user("u2"))
    assert accepted.status_code == 200
    data = accepted.json()["data"]
    assert data["offer"]["status"] == "ACCEPTED"
    assert data["request"]["status"] == "NEGOTIATING"
    chat_id = data["chat"]["id"]

    again = client.post(f"/api/v1/offers/{first_id}/accept", headers=as_user("u2"))
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "REQUEST_TRANSITION_INVALID"
    assert client.get(f"/api/v1/offers/{first_id}", headers=as_user("u4")).json()["data"]["status"] == "REJECTED"

    chat = client.get(f"/api/v1/requests/{request_id}/chat", headers=as_user("u2"))
    assert chat.json()["data"]["id"] == chat_id
    assert client.get(f"/api/v1/chats/{chat_id}/messages", headers=as_user("u4")).status_code == 403

    sent = client.post(
        f"/api/v1/chats/{chat_id}/messages",
        headers=as_user("u2"),
        json={"type": "text", "text": "¿Tiene casco incluido?"},
    )
    assert sent.status_code == 201
    messages = client.get(f"/api/v1/chats/{chat_id}/messages", headers=as_user("u5")).json()["data"]["items"]
    assert [m["sender_id"] for m in messages] == ["system", "u2"]

    notifications = client.get("/api/v1/notifications", headers=as_user("u5")).json()["data"]
    types = [n["type"] for n in notifications["items"]]
    assert types[:2] == ["NEW_MESSAGE", "OFFER_ACCEPTED"]
    assert "NEW_REQUEST" in types
    assert notifications["unread"] == len(types)

    assert client.post(f"/api/v1/requests/{request_id}/status", headers=as_user("u2"), json={"status": "CLOSED"}).status_code == 200
    confirmed = client.post(f"/api/v1/requests/{request_id}/status", headers=as_user("u2"), json={"status": "ACCEPTED"})
    assert confirmed.json()["data"]["status"] == "ACCEPTED"

    rating = client.post(
        "/api/v1/ratings",
        headers=as_user("u2"),
        json={"request_id": request_id, "to_user_id": "u5", "stars": 5},
    )
    assert rating.status_code == 201
    duplicate = client.post(
        "/api/v1/ratings",
        headers=as_user("u2"),
        json={"request_id": request_id, "to_user_id": "u5", "stars": 1},
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["code"] == "RATING_DUPLICATE"
    profile = client.get("/api/v1/users/u5", headers=as_user("u2")).json()["data"]
    assert profile["rating_avg"] == 5.0
    assert profile["rating_count"] == 1
    assert "password_hash" not in profile


def test_duplicate_offer_returns_conflict_envelope(client):
    assert _offer(client, "r1", "u3", 50000).status_code == 201
    resp = _offer(client, "r1", "u3", 40000)
    assert resp.status_code == 409
    body = resp.json()
    assert body["success"] is False
    assert body["error"]["code"] == "OFFER_DUPLICATE"
    assert body["error"]["class"] == "business_rule"
    assert body["error"]["retryable"] is False


def test_open_requests_for_seller(client):
    resp = client.get("/api/v1/requests/open", headers=as_user("u3"))
    items = resp.json()["data"]["items"]
    assert [item["request"]["id"] for item in items] == ["r1"]
    assert items[0]["already_offered"] is False


def test_status_change_by_non_owner_is_forbidden(client):
    resp = client.post("/api/v1/requests/r2/status", headers=as_user("u2"), json={"status": "CLOSED"})
    assert resp.status_code == 403


def test_illegal_status_change_conflicts(client):
    resp = client.post("/api/v1/requests/r1/status", headers=as_user("u1"), json={"status": "CLOSED"})
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "REQUEST_TRANSITION_INVALID"


def test_status_change_ignores_client_supplied_accepted_offer(client):
    resp = client.post(
        "/api/v1/requests/r2/status",
        headers=as_user("u1"),
        json={"status": "CLOSED", "accepted_offer_id": "o2"},
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["accepted_offer_id"] == "o1"
    assert resp.json()["data"]["status"] == "CLOSED"


def test_missing_user_is_unauthorized(client):
    resp = client.get("/api/v1/requests/mine")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "AUTH_UNAUTHORIZED"


def test_invalid_payload_and_unknown_route(client):
    bad = client.post("/api/v1/offers", headers=as_user("u3"), json={"request_id": "r1", "price": -5})
    assert bad.status_code == 400
    assert bad.json()["error"]["code"] == "REQ_VALIDATION_FAILED"
    missing = client.get("/api/v1/nowhere", headers=as_user("u3"))
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "REQ_NOT_FOUND"
    unknown = client.get("/api/v1/requests/r404", headers=as_user("u1"))
    assert unknown.status_code == 404
    assert unknown.json()["error"]["code"] == "REQUEST_NOT_FOUND"


def test_notification_read_endpoints(client):
    _create_bicycle_request(client)
    listed = client.get("/api/v1/notifications", headers=as_user("u3")).json()["data"]
    notification_id = listed["items"][0]["id"]

    assert client.post(f"/api/v1/notifications/{notification_id}/read", headers=as_user("u4")).status_code == 404
    read = client.post(f"/api/v1/notifications/{notification_id}/read", headers=as_user("u3"))
    assert read.json()["data"]["read"] is True
    assert client.get("/api/v1/notifications/unread-count", headers=as_user("u3")).json()["data"]["unread"] == 0
    assert client.post("/api/v1/notifications/read-all", headers=as_user("u4")).json()["data"]["updated"] == 1


def test_product_crud_enforces_owner(client):
    created = client.post(
        "/api/v1/products",
        headers=as_user("u4"),
        json={"name": "Arreglo floral", "category": "flores", "price_base": 45000},
    )
    assert created.status_code == 201
    product_id = created.json()["data"]["id"]

    assert client.put(f"/api/v1/products/{product_id}", headers=as_user("u3"), json={"name": "x"}).status_code == 403
    updated = client.put(f"/api/v1/products/{product_id}", headers=as_user("u4"), json={"price_base": 50000})
    assert updated.json()["data"]["price_base"] == 50000
    assert client.delete(f"/api/v1/products/{product_id}", headers=as_user("u4")).status_code == 200
    assert client.get(f"/api/v1/products/{product_id}", headers=as_user("u4")).status_code == 404


def test_internal_reset_requires_debug_header(client):
    _create_bicycle_request(client)
    assert client.post("/api/v1/internal/store/reset").status_code == 403
    resp = client.post("/api/v1/internal/store/reset", headers={"x-internal-debug": "true"})
    assert resp.status_code == 200
    assert resp.json()["data"]["tables"]["requests"] == 2


def test_rating_requires_accepted_counterpart(client):
    open_request = client.post("/api/v1/ratings", headers=as_user("u1"), json={"request_id": "r1", "to_user_id": "u3", "stars": 4})
    assert open_request.status_code == 409
    assert open_request.json()["error"]["code"] == "RATING_NOT_ELIGIBLE"
    outsider = client.post("/api/v1/ratings", headers=as_user("u1"), json={"request_id": "r2", "to_user_id": "u4", "stars": 4})
    assert outsider.status_code == 403
