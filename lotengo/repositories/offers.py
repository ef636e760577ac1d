from __future__ import annotations

from typing import Any

from lotengo.domain import newest_first
from lotengo.repositories.base import InMemoryTableRepository


class InMemoryOffersRepository(InMemoryTableRepository):
    table_name = "offers"

    def find_by_request_and_seller(self, *, request_id: str, seller_id: str) -> dict[str, Any] | None:
        return self.first(lambda o: o.get("request_id") == request_id and o.get("seller_id") == seller_id)

    def list_by_request(self, request_id: str) -> list[dict[str, Any]]:
        return self.where(lambda o: o.get("request_id") == request_id)

    def list_by_seller(self, seller_id: str) -> list[dict[str, Any]]:
        return newest_first(self.where(lambda o: o.get("seller_id") == seller_id))

    def request_ids_for_seller(self, seller_id: str) -> set[str]:
        return {str(o["request_id"]) for o in self.rows if o.get("seller_id") == seller_id}
