from __future__ import annotations

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

from lotengo.document_store import DocumentStore
from lotengo.domain import USER_ROLES, locations_match, normalize_location, utcnow_iso
from lotengo.errors import AuthError, InvalidInputError, NotFoundError
from lotengo.repositories.password_resets import InMemoryPasswordResetsRepository
from lotengo.repositories.users import InMemoryUsersRepository
from lotengo.security import env_int, hash_password, verify_password

_PROFILE_FIELDS = ("name", "phone", "department", "city", "address", "business_name")


def public_user(user: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in user.items() if key != "password_hash"}


class AuthService:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store
        self.users = InMemoryUsersRepository(store)
        self.password_resets = InMemoryPasswordResetsRepository(store)
        self.max_frequent_addresses = env_int("LOTENGO_MAX_FREQUENT_ADDRESSES", default=5)
        self.password_reset_ttl_min = env_int("LOTENGO_PASSWORD_RESET_TTL_MIN", default=10)

    def register(
        self,
        *,
        name: str,
        phone: str,
        email: str,
        password: str,
        role: str,
        department: str | None = None,
        city: str | None = None,
        address: str | None = None,
        business_name: str | None = None,
    ) -> dict[str, Any]:
        clean_email = str(email or "").strip()
        if not clean_email or "@" not in clean_email:
            raise InvalidInputError("a valid email is required")
        if role not in USER_ROLES:
            raise InvalidInputError(f"unsupported role: {role}")
        if not str(name or "").strip():
            raise InvalidInputError("name is required")
        if len(password or "") < 6:
            raise InvalidInputError("password must have at least 6 characters")
        if self.users.get_by_email(clean_email) is not None:
            raise InvalidInputError("email already registered", code="USER_EMAIL_TAKEN")

        with self._store.transaction():
            user: dict[str, Any] = {
                "id": self.users.next_id(),
                "role": role,
                "name": name.strip(),
                "phone": str(phone or "").strip(),
                "email": clean_email,
                "password_hash": hash_password(password),
                "created_at": utcnow_iso(),
                "rating_avg": 0.0,
                "rating_count": 0,
                "frequent_addresses": [],
            }
            for field, value in (
                ("department", department),
                ("city", city),
                ("address", address),
                ("business_name", business_name),
            ):
                if value is not None:
                    user[field] = value
            self.users.insert(user)
            self._store.save()
        return user

    def login(self, email: str, password: str) -> dict[str, Any] | None:
        user = self.users.get_by_email(email)
        if user is None or not verify_password(password, str(user.get("password_hash", ""))):
            return None
        return user

    def get_user_by_id(self, user_id: str) -> dict[str, Any] | None:
        return self.users.get(user_id)

    def require_user(self, user_id: str) -> dict[str, Any]:
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError(code="USER_NOT_FOUND", message="user not found")
        return user

    def update_profile(self, user_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        user = self.require_user(user_id)
        location = None
        if updates.get("location") is not None:
            location = normalize_location(updates["location"])
            if location is None:
                raise InvalidInputError("invalid location")
        with self._store.transaction():
            for field in _PROFILE_FIELDS:
                if updates.get(field) is not None:
                    user[field] = updates[field]
            if location is not None:
                user["location"] = location
            self._store.save()
        return user

    def request_password_reset(self, email: str) -> str:
        user = self.users.get_by_email(email)
        if user is None:
            raise NotFoundError(code="USER_NOT_FOUND", message="no account with that email")
        otp = f"{secrets.randbelow(900000) + 100000}"
        now = datetime.now(UTC)
        with self._store.transaction():
            self.password_resets.insert(
                {
                    "id": self.password_resets.next_id(),
                    "email": user["email"],
                    "otp_code": otp,
                    "expires_at": (now + timedelta(minutes=self.password_reset_ttl_min)).isoformat(),
                    "used": False,
                    "created_at": now.isoformat(),
                }
            )
            self._store.save()
        return otp

    def verify_otp(self, email: str, code: str) -> bool:
        return self.password_resets.find_unused(email=email, otp_code=code, now=datetime.now(UTC)) is not None

    def reset_password(self, email: str, code: str, new_password: str) -> None:
        if len(new_password or "") < 6:
            raise InvalidInputError("password must have at least 6 characters")
        reset = self.password_resets.find_unused(email=email, otp_code=code, now=datetime.now(UTC))
        if reset is None:
            raise InvalidInputError("invalid or expired code", code="OTP_INVALID")
        with self._store.transaction():
            reset["used"] = True
            user = self.users.get_by_email(email)
            if user is not None:
                user["password_hash"] = hash_password(new_password)
            self._store.save()

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        user = self.require_user(user_id)
        if not verify_password(current_password, str(user.get("password_hash", ""))):
            raise AuthError("current password is incorrect")
        if len(new_password or "") < 6:
            raise InvalidInputError("password must have at least 6 characters")
        with self._store.transaction():
            user["password_hash"] = hash_password(new_password)
            self._store.save()

    def save_frequent_address(self, user_id: str, location: dict[str, Any]) -> list[dict[str, Any]]:
        """Prepend ``location`` unless an approximately equal address is already stored."""
        user = self.require_user(user_id)
        clean = normalize_location(location)
        if clean is None:
            raise InvalidInputError("invalid location")
        addresses = list(user.get("frequent_addresses") or [])
        if any(locations_match(existing, clean) for existing in addresses):
            return addresses
        with self._store.transaction():
            user["frequent_addresses"] = [clean, *addresses][: self.max_frequent_addresses]
            self._store.save()
        return user["frequent_addresses"]
