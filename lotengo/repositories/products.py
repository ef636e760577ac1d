from __future__ import annotations

from typing import Any

from lotengo.domain import newest_first
from lotengo.repositories.base import InMemoryTableRepository


class InMemoryProductsRepository(InMemoryTableRepository):
    table_name = "products"

    def list_by_seller(self, seller_id: str) -> list[dict[str, Any]]:
        return newest_first(self.where(lambda p: p.get("seller_id") == seller_id))
