from __future__ import annotations

from typing import Any

from lotengo.domain import newest_first
from lotengo.repositories.base import InMemoryTableRepository


class InMemoryRequestsRepository(InMemoryTableRepository):
    table_name = "requests"

    def list_by_buyer(self, buyer_id: str) -> list[dict[str, Any]]:
        return newest_first(self.where(lambda r: r.get("buyer_id") == buyer_id))

    def list_by_status(self, status: str) -> list[dict[str, Any]]:
        return newest_first(self.where(lambda r: r.get("status") == status))

    def list_all(self) -> list[dict[str, Any]]:
        return newest_first(list(self.rows))
