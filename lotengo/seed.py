"""Fixed initial database used for first-run bootstrap, reset and field backfill."""

from __future__ import annotations

import copy
from typing import Any

from lotengo.security import hash_password

TABLES = (
    "users",
    "products",
    "requests",
    "offers",
    "chats",
    "messages",
    "ratings",
    "password_resets",
    "notifications",
)

# Optional user fields introduced after the first release; filled from the seed on load.
USER_BACKFILL_FIELDS = ("location", "department", "city", "address", "business_name")

SEED_PASSWORD = "123456"


def _user(
    user_id: str,
    *,
    role: str,
    name: str,
    email: str,
    phone: str,
    location: dict[str, Any],
    city: str,
    department: str,
    address: str,
    business_name: str | None = None,
    rating_avg: float = 0.0,
    rating_count: int = 0,
) -> dict[str, Any]:
    user: dict[str, Any] = {
        "id": user_id,
        "role": role,
        "name": name,
        "phone": phone,
        "email": email,
        "password_hash": hash_password(SEED_PASSWORD, salt=f"seed{user_id}"),
        "created_at": "2025-01-10T12:00:00+00:00",
        "rating_avg": rating_avg,
        "rating_count": rating_count,
        "location": location,
        "department": department,
        "city": city,
        "address": address,
        "frequent_addresses": [],
    }
    if business_name is not None:
        user["business_name"] = business_name
    return user


_SEED_DB: dict[str, Any] = {
    "users": [
        _user(
            "u1",
            role="buyer",
            name="Laura Gómez",
            email="laura@lotengo.co",
            phone="3001234567",
            location={"lat": 6.2442, "lng": -75.5812, "address": "Cra. 43A #1-50, Medellín"},
            city="Medellín",
            department="Antioquia",
            address="Cra. 43A #1-50",
            rating_avg=4.5,
            rating_count=2,
        ),
        _user(
            "u2",
            role="buyer",
            name="Andrés Pérez",
            email="andres@lotengo.co",
            phone="3109876543",
            location={"lat": 4.711, "lng": -74.0721, "address": "Cl. 26 #13-19, Bogotá"},
            city="Bogotá",
            department="Bogotá D.C.",
            address="Cl. 26 #13-19",
        ),
        _user(
            "u3",
            role="seller",
            name="Carlos Ruiz",
            email="carlos@lotengo.co",
            phone="3155551122",
            location={"lat": 6.2518, "lng": -75.5636, "address": "Centro, Medellín"},
            city="Medellín",
            department="Antioquia",
            address="Cl. 52 #49-28",
            business_name="Bicis El Centro",
            rating_avg=4.0,
            rating_count=1,
        ),
        _user(
            "u4",
            role="seller",
            name="María Torres",
            email="maria@lotengo.co",
            phone="3204443322",
            location={"lat": 6.2088, "lng": -75.5673, "address": "El Poblado, Medellín"},
            city="Medellín",
            department="Antioquia",
            address="Cl. 10 #38-15",
            business_name="Tienda Torres",
        ),
        _user(
            "u5",
            role="seller",
            name="Jorge Díaz",
            email="jorge@lotengo.co",
            phone="3017778899",
            location={"lat": 4.6097, "lng": -74.0817, "address": "Chapinero, Bogotá"},
            city="Bogotá",
            department="Bogotá D.C.",
            address="Cra. 7 #45-10",
            business_name="Electro Díaz",
        ),
    ],
    "products": [
        {
            "id": "p1",
            "seller_id": "u3",
            "name": "Bicicleta de ruta",
            "category": "Otro",
            "price_base": 850000,
            "eta_value": 2,
            "eta_unit": "days",
            "notes": "Incluye casco",
            "conditions": "Usada, buen estado",
            "images": [],
            "created_at": "2025-01-11T09:00:00+00:00",
        },
        {
            "id": "p2",
            "seller_id": "u5",
            "name": "Audífonos inalámbricos",
            "category": "Electrónica",
            "price_base": 120000,
            "eta_value": 3,
            "eta_unit": "hours",
            "images": [],
            "created_at": "2025-01-11T10:00:00+00:00",
        },
    ],
    "requests": [
        {
            "id": "r1",
            "buyer_id": "u1",
            "title": "Almuerzo para 10 personas",
            "description": "Bandeja paisa o similar",
            "quantity": 10,
            "unit": "porciones",
            "category": "Comida",
            "location": {"lat": 6.2442, "lng": -75.5812, "address": "Cra. 43A #1-50, Medellín"},
            "status": "OPEN",
            "created_at": "2025-01-12T11:00:00+00:00",
        },
        {
            "id": "r2",
            "buyer_id": "u1",
            "title": "Reparación de nevera",
            "category": "Servicios",
            "location": {"lat": 6.2442, "lng": -75.5812, "address": "Cra. 43A #1-50, Medellín"},
            "status": "NEGOTIATING",
            "accepted_offer_id": "o1",
            "created_at": "2025-01-12T08:00:00+00:00",
        },
    ],
    "offers": [
        {
            "id": "o1",
            "request_id": "r2",
            "seller_id": "u3",
            "price": 150000,
            "eta_value": 1,
            "eta_unit": "days",
            "notes": "Repuestos incluidos",
            "attachments": [],
            "status": "ACCEPTED",
            "created_at": "2025-01-12T08:30:00+00:00",
        },
        {
            "id": "o2",
            "request_id": "r2",
            "seller_id": "u4",
            "price": 180000,
            "eta_value": 5,
            "eta_unit": "hours",
            "attachments": [],
            "status": "REJECTED",
            "created_at": "2025-01-12T08:45:00+00:00",
        },
    ],
    "chats": [
        {
            "id": "c1",
            "request_id": "r2",
            "buyer_id": "u1",
            "seller_id": "u3",
            "created_at": "2025-01-12T09:00:00+00:00",
        },
    ],
    "messages": [
        {
            "id": "m1",
            "chat_id": "c1",
            "sender_id": "system",
            "type": "text",
            "text": "Oferta aceptada! Ya pueden coordinar la entrega.",
            "created_at": "2025-01-12T09:00:00+00:00",
        },
        {
            "id": "m2",
            "chat_id": "c1",
            "sender_id": "u3",
            "type": "text",
            "text": "Hola, puedo ir mañana a las 9am.",
            "created_at": "2025-01-12T09:05:00+00:00",
        },
    ],
    "ratings": [],
    "password_resets": [],
    "notifications": [],
    "counters": {
        "users": 5,
        "products": 2,
        "requests": 2,
        "offers": 2,
        "chats": 1,
        "messages": 2,
    },
}


def seed_database() -> dict[str, Any]:
    """Fresh deep copy of the seed; callers may mutate it freely."""
    return copy.deepcopy(_SEED_DB)
