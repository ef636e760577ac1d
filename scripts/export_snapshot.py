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
from lotengo.security import redact_sensitive


def main() -> int:
    parser = argparse.ArgumentParser(description="Dump the persisted marketplace document as JSON")
    parser.add_argument("--db-path", default=".local/lotengo-store.sqlite3", help="sqlite file path")
    parser.add_argument("--db-key", default="@lotengo_db", help="blob key holding the database")
    parser.add_argument("--output", default="", help="write to this file instead of stdout")
    parser.add_argument("--table", action="append", default=[], help="only export these tables (repeatable)")
    parser.add_argument("--no-redact", action="store_true", help="keep password hashes and reset codes")
    args = parser.parse_args()

    store = DocumentStore(SqliteBlobBackend(args.db_path), db_key=args.db_key)
    db = store.load()
    snapshot = {name: db[name] for name in args.table if name in db} if args.table else db
    if not args.no_redact:
        snapshot = redact_sensitive(snapshot)

    content = json.dumps(snapshot, ensure_ascii=False, sort_keys=True, indent=2)
    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(content + "\n", encoding="utf-8")
        print(json.dumps({"output": str(out_path), "tables": sorted(snapshot)}, ensure_ascii=True, indent=2))
    else:
        print(content)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
