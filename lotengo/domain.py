from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Any

USER_ROLES = {"buyer", "seller"}

REQUEST_OPEN = "OPEN"
REQUEST_NEGOTIATING = "NEGOTIATING"
REQUEST_CLOSED = "CLOSED"
REQUEST_ACCEPTED = "ACCEPTED"
REQUEST_CANCELLED = "CANCELLED"

OFFER_SUBMITTED = "SUBMITTED"
OFFER_ACCEPTED = "ACCEPTED"
OFFER_REJECTED = "REJECTED"
OFFER_WITHDRAWN = "WITHDRAWN"

REQUEST_TRANSITIONS: dict[str, set[str]] = {
    REQUEST_OPEN: {REQUEST_NEGOTIATING, REQUEST_CANCELLED},
    REQUEST_NEGOTIATING: {REQUEST_CLOSED},
    REQUEST_CLOSED: {REQUEST_ACCEPTED},
    REQUEST_ACCEPTED: set(),
    REQUEST_CANCELLED: set(),
}

OFFER_TRANSITIONS: dict[str, set[str]] = {
    OFFER_SUBMITTED: {OFFER_ACCEPTED, OFFER_REJECTED, OFFER_WITHDRAWN},
    OFFER_ACCEPTED: set(),
    OFFER_REJECTED: set(),
    OFFER_WITHDRAWN: set(),
}

MESSAGE_TYPES = {"text", "image", "file"}
SYSTEM_SENDER = "system"

ETA_UNIT_MINUTES: dict[str, int] = {"min": 1, "hours": 60, "days": 1440}

# Notification type tags.
NEW_REQUEST = "NEW_REQUEST"
NEW_OFFER = "NEW_OFFER"
OFFER_ACCEPTED_NOTICE = "OFFER_ACCEPTED"
OFFER_REJECTED_NOTICE = "OFFER_REJECTED"
OFFER_WITHDRAWN_NOTICE = "OFFER_WITHDRAWN"
REQUEST_CLOSED_NOTICE = "REQUEST_CLOSED"
REQUEST_ACCEPTED_NOTICE = "REQUEST_ACCEPTED"
REQUEST_CANCELLED_NOTICE = "REQUEST_CANCELLED"
NEW_MESSAGE = "NEW_MESSAGE"

# ~11m at the equator; two addresses closer than this on both axes are the same place.
COORDINATE_EPSILON = 0.0001
EARTH_RADIUS_KM = 6371.0


def utcnow_iso() -> str:
    return datetime.now(UTC).isoformat()


def id_sequence(row_id: str) -> int:
    digits = row_id[1:]
    return int(digits) if digits.isdigit() else 0


def newest_first(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return sorted(rows, key=lambda r: (str(r.get("created_at", "")), id_sequence(str(r["id"]))), reverse=True)


def oldest_first(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return sorted(rows, key=lambda r: (str(r.get("created_at", "")), id_sequence(str(r["id"]))))


def locations_match(a: dict[str, Any], b: dict[str, Any]) -> bool:
    return (
        abs(float(a["lat"]) - float(b["lat"])) < COORDINATE_EPSILON
        and abs(float(a["lng"]) - float(b["lng"])) < COORDINATE_EPSILON
    )


def calc_distance(origin: dict[str, Any], target: dict[str, Any]) -> float:
    """Great-circle distance in km, rounded to one decimal."""
    d_lat = math.radians(float(target["lat"]) - float(origin["lat"]))
    d_lng = math.radians(float(target["lng"]) - float(origin["lng"]))
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(float(origin["lat"])))
        * math.cos(math.radians(float(target["lat"])))
        * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return round(EARTH_RADIUS_KM * c, 1)


def eta_minutes(value: float, unit: str) -> float:
    return float(value) * ETA_UNIT_MINUTES.get(unit, 1)


def normalize_location(raw: Any) -> dict[str, Any] | None:
    if not isinstance(raw, dict):
        return None
    try:
        lat = float(raw["lat"])
        lng = float(raw["lng"])
    except (KeyError, TypeError, ValueError):
        return None
    if not (-90.0 <= lat <= 90.0) or not (-180.0 <= lng <= 180.0):
        return None
    location: dict[str, Any] = {"lat": lat, "lng": lng}
    address = raw.get("address")
    if isinstance(address, str) and address.strip():
        location["address"] = address.strip()
    return location
