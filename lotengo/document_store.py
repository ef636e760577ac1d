from __future__ import annotations

import copy
import json
import logging
import os
import sqlite3
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from lotengo.errors import PersistenceFailure
from lotengo.seed import TABLES, USER_BACKFILL_FIELDS, seed_database

logger = logging.getLogger(__name__)

DEFAULT_DB_KEY = "@lotengo_db"
DEFAULT_SQLITE_PATH = ".local/lotengo-store.sqlite3"


class InMemoryBlobBackend:
    """Key-value blob storage kept in process memory."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._blobs: dict[str, str] = {}

    def read(self, key: str) -> str | None:
        with self._lock:
            return self._blobs.get(key)

    def write(self, key: str, payload: str) -> None:
        with self._lock:
            self._blobs[key] = payload

    def delete(self, key: str) -> None:
        with self._lock:
            self._blobs.pop(key, None)


class SqliteBlobBackend:
    """Key-value blob storage in a single sqlite table."""

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._initialize_database()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self._db_path))

    def _initialize_database(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_store (
                  key TEXT PRIMARY KEY,
                  payload TEXT NOT NULL
                )
                """
            )
            conn.commit()

    def read(self, key: str) -> str | None:
        try:
            with self._lock, self._connect() as conn:
                row = conn.execute("SELECT payload FROM kv_store WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"blob read failed: {exc}") from exc
        if row is None or not isinstance(row[0], str):
            return None
        return row[0]

    def write(self, key: str, payload: str) -> None:
        try:
            with self._lock, self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO kv_store(key, payload)
                    VALUES (?, ?)
                    ON CONFLICT(key) DO UPDATE SET payload = excluded.payload
                    """,
                    (key, payload),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"blob write failed: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            with self._lock, self._connect() as conn:
                conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                conn.commit()
        except sqlite3.Error as exc:
            raise PersistenceFailure(f"blob delete failed: {exc}") from exc


class DocumentStore:
    """Single mutable snapshot of every table plus per-table id counters.

    ``get()`` hands out the live snapshot; callers mutate rows in place and
    then call ``save()``, which serializes the whole document to the blob
    backend. Write failures are logged and swallowed: the in-memory snapshot
    stays authoritative.
    """

    def __init__(self, backend: Any | None = None, *, db_key: str = DEFAULT_DB_KEY) -> None:
        self.backend = backend if backend is not None else InMemoryBlobBackend()
        self.db_key = db_key
        self._db: dict[str, Any] = seed_database()
        self._tx_depth = 0
        self._tx_dirty = False
        self._tx_backup: dict[str, Any] | None = None
        self._lock = threading.RLock()

    def get(self) -> dict[str, Any]:
        return self._db

    def table(self, name: str) -> list[dict[str, Any]]:
        rows = self._db.get(name)
        if not isinstance(rows, list):
            rows = []
            self._db[name] = rows
        return rows

    def next_id(self, table: str) -> str:
        counters = self._db.get("counters")
        if not isinstance(counters, dict):
            counters = {}
            self._db["counters"] = counters
        current = int(counters.get(table) or 0)
        counters[table] = current + 1
        return f"{table[0]}{current + 1}"

    def load(self) -> dict[str, Any]:
        try:
            raw = self.backend.read(self.db_key)
        except PersistenceFailure as exc:
            logger.warning("store_load_failed key=%s error=%s; restoring seed", self.db_key, exc.message)
            raw = None
        payload = None
        if raw is not None:
            try:
                payload = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("store_blob_corrupt key=%s; restoring seed", self.db_key)
            else:
                if not isinstance(payload, dict):
                    logger.warning("store_blob_invalid key=%s type=%s; restoring seed", self.db_key, type(payload).__name__)
                    payload = None
        with self._lock:
            if payload is None:
                logger.info("store_bootstrap_from_seed key=%s", self.db_key)
                self._replace(seed_database())
                self.save()
                return self._db
            self._replace(self._normalize(payload))
            self._backfill_from_seed(self._db)
            return self._db

    def _replace(self, db: dict[str, Any]) -> None:
        # In place: references handed out by get() must stay attached.
        self._db.clear()
        self._db.update(db)

    @staticmethod
    def _normalize(payload: dict[str, Any]) -> dict[str, Any]:
        for name in TABLES:
            if not isinstance(payload.get(name), list):
                payload[name] = []
        counters = payload.get("counters")
        if not isinstance(counters, dict):
            payload["counters"] = {}
        return payload

    @staticmethod
    def _backfill_from_seed(db: dict[str, Any]) -> None:
        seed_users = {row["id"]: row for row in seed_database()["users"]}
        for user in db["users"]:
            seed_user = seed_users.get(user.get("id"))
            if seed_user is None:
                continue
            for field in USER_BACKFILL_FIELDS:
                if user.get(field) is None and seed_user.get(field) is not None:
                    user[field] = copy.deepcopy(seed_user[field])
            if "frequent_addresses" not in user:
                user["frequent_addresses"] = []

    def save(self) -> bool:
        with self._lock:
            if self._tx_depth > 0:
                self._tx_dirty = True
                return True
            blob = json.dumps(self._db, sort_keys=True, ensure_ascii=True, separators=(",", ":"))
            try:
                self.backend.write(self.db_key, blob)
            except PersistenceFailure as exc:
                logger.warning("store_save_failed key=%s error=%s", self.db_key, exc.message)
                return False
            return True

    def reset(self) -> dict[str, Any]:
        with self._lock:
            self._replace(seed_database())
            logger.info("store_reset key=%s", self.db_key)
            self.save()
            return self._db

    @contextmanager
    def transaction(self) -> Iterator[dict[str, Any]]:
        """Group mutations; persist once on success, restore the prior snapshot on error.

        The store lock is held from entry to exit, so transactions from
        different threads run one after the other and never share a backup.
        """
        with self._lock:
            if self._tx_depth == 0:
                self._tx_backup = copy.deepcopy(self._db)
                self._tx_dirty = False
            self._tx_depth += 1
            try:
                yield self._db
            except BaseException:
                self._tx_depth -= 1
                if self._tx_depth == 0:
                    if self._tx_backup is not None:
                        self._replace(self._tx_backup)
                    self._tx_backup = None
                    self._tx_dirty = False
                raise
            self._tx_depth -= 1
            if self._tx_depth == 0:
                self._tx_backup = None
                if self._tx_dirty:
                    self._tx_dirty = False
                    self.save()


def create_blob_backend_from_env(environ: Mapping[str, str] | None = None) -> InMemoryBlobBackend | SqliteBlobBackend:
    env = os.environ if environ is None else environ
    backend = env.get("LOTENGO_STORE_BACKEND", "memory").strip().lower() or "memory"
    if backend == "sqlite":
        return SqliteBlobBackend(env.get("LOTENGO_STORE_SQLITE_PATH", DEFAULT_SQLITE_PATH))
    if backend == "memory":
        return InMemoryBlobBackend()
    raise ValueError(f"unsupported LOTENGO_STORE_BACKEND: {backend}")


def create_store_from_env(
    environ: Mapping[str, str] | None = None,
    *,
    backend: Any | None = None,
) -> DocumentStore:
    env = os.environ if environ is None else environ
    db_key = env.get("LOTENGO_DB_KEY", DEFAULT_DB_KEY).strip() or DEFAULT_DB_KEY
    store = DocumentStore(backend if backend is not None else create_blob_backend_from_env(env), db_key=db_key)
    store.load()
    return store
