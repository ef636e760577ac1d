from __future__ import annotations

from datetime import datetime
from typing import Any

from lotengo.repositories.base import InMemoryTableRepository


class InMemoryPasswordResetsRepository(InMemoryTableRepository):
    table_name = "password_resets"

    def find_unused(self, *, email: str, otp_code: str, now: datetime | None = None) -> dict[str, Any] | None:
        needle = email.strip().lower()

        def _matches(row: dict[str, Any]) -> bool:
            if str(row.get("email", "")).lower() != needle or row.get("otp_code") != otp_code or row.get("used"):
                return False
            if now is None:
                return True
            try:
                expires_at = datetime.fromisoformat(str(row.get("expires_at")))
            except ValueError:
                return False
            return expires_at > now

        return self.first(_matches)
