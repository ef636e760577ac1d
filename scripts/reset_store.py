#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from lotengo.document_store import DocumentStore, SqliteBlobBackend


def main() -> int:
    parser = argparse.ArgumentParser(description="Restore the marketplace sqlite store to the seed dataset")
    parser.add_argument("--db-path", default=".local/lotengo-store.sqlite3", help="sqlite file path")
    parser.add_argument("--db-key", default="@lotengo_db", help="blob key holding the database")
    parser.add_argument("--session-key", default="@lotengo_auth", help="blob key holding the session")
    parser.add_argument("--keep-session", action="store_true", help="leave the persisted session untouched")
    args = parser.parse_args()

    backend = SqliteBlobBackend(args.db_path)
    store = DocumentStore(backend, db_key=args.db_key)
    db = store.reset()
    if not args.keep_session:
        backend.delete(args.session_key)

    summary = {
        "db_path": args.db_path,
        "db_key": args.db_key,
        "session_cleared": not args.keep_session,
        "tables": {name: len(rows) for name, rows in db.items() if isinstance(rows, list)},
    }
    print(json.dumps(summary, ensure_ascii=True, sort_keys=True, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
