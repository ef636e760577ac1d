from __future__ import annotations

from typing import Any

from lotengo.repositories.base import InMemoryTableRepository


class InMemoryRatingsRepository(InMemoryTableRepository):
    table_name = "ratings"

    def find_by_request_and_rater(self, *, request_id: str, from_user_id: str) -> dict[str, Any] | None:
        return self.first(lambda r: r.get("request_id") == request_id and r.get("from_user_id") == from_user_id)

    def list_by_request(self, request_id: str) -> list[dict[str, Any]]:
        return self.where(lambda r: r.get("request_id") == request_id)

    def list_for_user(self, user_id: str) -> list[dict[str, Any]]:
        return self.where(lambda r: r.get("to_user_id") == user_id)
