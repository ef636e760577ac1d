from __future__ import annotations

from typing import Any

from lotengo.document_store import DocumentStore
from lotengo.domain import ETA_UNIT_MINUTES, utcnow_iso
from lotengo.errors import AuthError, InvalidInputError, NotFoundError
from lotengo.repositories.products import InMemoryProductsRepository
from lotengo.repositories.users import InMemoryUsersRepository

_EDITABLE_FIELDS = ("name", "category", "price_base", "eta_value", "eta_unit", "notes", "conditions", "images")


class ProductCatalog:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store
        self.products = InMemoryProductsRepository(store)
        self.users = InMemoryUsersRepository(store)

    def create_product(self, *, seller_id: str, name: str, category: str, **fields: Any) -> dict[str, Any]:
        seller = self.users.get(seller_id)
        if seller is None:
            raise NotFoundError(code="USER_NOT_FOUND", message="seller not found")
        if seller.get("role") != "seller":
            raise AuthError("only sellers have a catalog", forbidden=True)
        if not str(name or "").strip() or not str(category or "").strip():
            raise InvalidInputError("name and category are required")
        self._validate(fields)
        with self._store.transaction():
            product: dict[str, Any] = {
                "id": self.products.next_id(),
                "seller_id": seller_id,
                "name": name.strip(),
                "category": category.strip(),
                "images": list(fields.pop("images", None) or []),
                "created_at": utcnow_iso(),
            }
            product.update({key: value for key, value in fields.items() if key in _EDITABLE_FIELDS and value is not None})
            self.products.insert(product)
            self._store.save()
        return product

    def get_products_by_seller(self, seller_id: str) -> list[dict[str, Any]]:
        return self.products.list_by_seller(seller_id)

    def get_product_by_id(self, product_id: str) -> dict[str, Any] | None:
        return self.products.get(product_id)

    def update_product(self, product_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        product = self.products.get(product_id)
        if product is None:
            raise NotFoundError(code="PRODUCT_NOT_FOUND", message="product not found")
        self._validate(updates)
        with self._store.transaction():
            for field in _EDITABLE_FIELDS:
                if updates.get(field) is not None:
                    product[field] = updates[field]
            self._store.save()
        return product

    def delete_product(self, product_id: str) -> bool:
        with self._store.transaction():
            deleted = self.products.delete(product_id)
            if deleted:
                self._store.save()
        return deleted

    @staticmethod
    def _validate(fields: dict[str, Any]) -> None:
        eta_unit = fields.get("eta_unit")
        if eta_unit is not None and eta_unit not in ETA_UNIT_MINUTES:
            raise InvalidInputError(f"unsupported eta_unit: {eta_unit}")
        price_base = fields.get("price_base")
        if price_base is not None and price_base < 0:
            raise InvalidInputError("price_base must not be negative")
