from __future__ import annotations

from collections.abc import Callable
from typing import Any

from lotengo.document_store import DocumentStore


class InMemoryTableRepository:
    """Row access for one table of the document store.

    Every call reads the table fresh from the store, so a reload or a
    transaction rollback is always visible. Returned rows are the live rows.
    """

    table_name = ""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    @property
    def rows(self) -> list[dict[str, Any]]:
        return self._store.table(self.table_name)

    def next_id(self) -> str:
        return self._store.next_id(self.table_name)

    def get(self, row_id: str) -> dict[str, Any] | None:
        for row in self.rows:
            if row.get("id") == row_id:
                return row
        return None

    def insert(self, row: dict[str, Any]) -> dict[str, Any]:
        self.rows.append(row)
        return row

    def where(self, predicate: Callable[[dict[str, Any]], bool]) -> list[dict[str, Any]]:
        return [row for row in self.rows if predicate(row)]

    def first(self, predicate: Callable[[dict[str, Any]], bool]) -> dict[str, Any] | None:
        for row in self.rows:
            if predicate(row):
                return row
        return None

    def delete(self, row_id: str) -> bool:
        rows = self.rows
        for index, row in enumerate(rows):
            if row.get("id") == row_id:
                del rows[index]
                return True
        return False
