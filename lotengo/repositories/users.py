from __future__ import annotations

from typing import Any

from lotengo.repositories.base import InMemoryTableRepository


class InMemoryUsersRepository(InMemoryTableRepository):
    table_name = "users"

    def get_by_email(self, email: str) -> dict[str, Any] | None:
        needle = email.strip().lower()
        return self.first(lambda u: str(u.get("email", "")).lower() == needle)

    def list_by_role(self, role: str) -> list[dict[str, Any]]:
        return self.where(lambda u: u.get("role") == role)
