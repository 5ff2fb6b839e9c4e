#!/usr/bin/env python

import argparse
import json
import sqlite3
from pathlib import Path

from media_metadata import config
from media_metadata.database.ops import DBOperations


def connect_db(db_path: Path) -> sqlite3.Connection:
    """Opens the DB read-only and checks that both catalog tables exist."""
    if not db_path.exists():
        raise SystemExit(f"DB not found: {db_path}")

    conn = sqlite3.connect(f"{db_path.resolve().as_uri()}?mode=ro", uri=True)
    try:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'").fetchall()
    except sqlite3.DatabaseError as e:
        conn.close()
        raise SystemExit(f"Not a metadata DB: {db_path} ({e})")

    missing = {config.FILES_TABLE, config.METADATA_TABLE} - {name for (name,) in rows}
    if missing:
        conn.close()
        raise SystemExit(f"Not a metadata DB: {db_path} (missing tables: {', '.join(sorted(missing))})")
    return conn


def show_summary(db_ops: DBOperations):
    files = db_ops.count_rows(config.FILES_TABLE)
    records = db_ops.count_rows(config.METADATA_TABLE)
    # Uncapped count of the backlog, not one run's worth
    pending = len(db_ops.fetch_candidates(config.get_supported_mime_types(), -1))
    orphans = len(db_ops.fetch_orphan_hashes())

    print("Metadata catalog summary:")
    print(f"  indexed files:     {files}")
    print(f"  metadata records:  {records}")
    print(f"  pending files:     {pending}")
    print(f"  orphaned records:  {orphans}")


def list_pending(db_ops: DBOperations, limit: int):
    candidates = db_ops.fetch_candidates(config.get_supported_mime_types(), limit)
    if not candidates:
        print("No files are waiting for metadata extraction.")
        return

    print("Files waiting for metadata extraction:")
    print("contenthash                              | pathnamehash                             | timecreated")
    print("-----------------------------------------+------------------------------------------+------------")
    for c in candidates:
        print(f"{c.contenthash.ljust(40)} | {c.pathnamehash.ljust(40)} | {c.timecreated}")


def list_orphans(db_ops: DBOperations):
    orphans = sorted(db_ops.fetch_orphan_hashes())
    if not orphans:
        print("No orphaned metadata records found.")
        return

    print(f"Orphaned metadata records ({len(orphans)}):")
    for contenthash in orphans:
        print(f"  {contenthash}")


def show_record(db_ops: DBOperations, contenthash: str):
    rec = db_ops.get_metadata_record(contenthash)
    if rec is None:
        print(f"No metadata for contenthash={contenthash}")
        return

    print("Metadata record:")
    print(f"  contenthash:   {rec.contenthash}")
    print(f"  pathnamehash:  {rec.pathnamehash}")
    print(f"  duration:      {rec.duration}")
    print(f"  bitrate:       {rec.bitrate}")
    print(f"  size:          {rec.size}")
    print(f"  streams:       {rec.videostreams} video, {rec.audiostreams} audio")
    print(f"  dimensions:    {rec.width}x{rec.height}")
    print(f"  timecreated:   {rec.timecreated}")
    print("\n  Probe payload:")
    print(json.dumps(json.loads(rec.metadata), indent=2, sort_keys=True))


def parse_args():
    p = argparse.ArgumentParser(description="Query helper for the media metadata SQLite DB.")
    p.add_argument("--db", required=True, help="Path to the metadata database")
    p.add_argument("--limit", type=int, default=config.MAX_FILES, help="Max rows for --pending")
    group = p.add_mutually_exclusive_group(required=True)
    group.add_argument("--summary", action="store_true", help="Counts of files, records, pending and orphans")
    group.add_argument("--pending", action="store_true", help="List files still waiting for extraction")
    group.add_argument("--orphans", action="store_true", help="List metadata records with no file left")
    group.add_argument("--show", metavar="CONTENTHASH", help="Show one metadata record and its payload")
    return p.parse_args()


def main():
    args = parse_args()
    db_path = Path(args.db).resolve()
    conn = connect_db(db_path)

    try:
        db_ops = DBOperations(conn)
        if args.summary:
            show_summary(db_ops)
        elif args.pending:
            list_pending(db_ops, args.limit)
        elif args.orphans:
            list_orphans(db_ops)
        elif args.show:
            show_record(db_ops, args.show)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
