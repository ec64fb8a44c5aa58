"""
Operator CLI for the show ingest job.

    python -m showfinder.show_ingest.cli run [--batch-size N] [--dry-run]
    python -m showfinder.show_ingest.cli url https://example.com/shows [--dry-run]
    python -m showfinder.show_ingest.cli pending [--limit 20]
    python -m showfinder.show_ingest.cli init-db

Exit codes: 0 = run completed (possibly with failed sources), 1 = fatal
configuration error.
"""

from __future__ import annotations

import argparse
import json
import logging
from typing import List, Optional

from showfinder.db import get_engine
from showfinder.schema import ensure_schema

from .ingest_flow import run_ingest
from .models import RunReport
from .store import IngestStore, SqlIngestStore


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Card show listing ingest")
    p.add_argument("--verbose", action="store_true")
    sub = p.add_subparsers(dest="cmd", required=True)

    run = sub.add_parser("run", help="Process one scheduled batch of scraping sources")
    run.add_argument("--batch-size", type=int, default=None, help="Override SHOW_INGEST_BATCH_SIZE")
    run.add_argument("--dry-run", action="store_true", help="Fetch/extract/validate only; write nothing")

    one = sub.add_parser("url", help="Process a single URL outside the scheduler")
    one.add_argument("url")
    one.add_argument("--dry-run", action="store_true", help="Fetch/extract/validate only; write nothing")

    pend = sub.add_parser("pending", help="Show the most recent PENDING queue rows")
    pend.add_argument("--limit", type=int, default=20)

    sub.add_parser("init-db", help="Create the ingest tables if they do not exist")

    return p.parse_args(argv)


def _print_report(report: RunReport) -> None:
    print(report.message)
    for r in report.results:
        status = "ok  " if r.success else "FAIL"
        print(
            f"  {status} {r.url}  shows={r.show_count} extracted={r.extracted} "
            f"invalid={r.invalid} stale={r.stale} insert_failed={r.insert_failed}"
            + (f" error={r.error}" if r.error else "")
        )


def print_pending(store: IngestStore, limit: int) -> None:
    rows = store.recent_pending(limit)
    print(f"\n=== PENDING (latest {len(rows)}) ===")
    for row in rows:
        payload = row.get("raw_payload") or {}
        if isinstance(payload, str):
            payload = json.loads(payload)
        print(
            f"#{row.get('id')}  {payload.get('startDate') or '?'}  {payload.get('name') or '?'}"
            f"  ({payload.get('city') or '?'}, {payload.get('state') or '?'})  <- {row.get('source_url')}"
        )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "init-db":
        ensure_schema(get_engine())
        print("Schema ensured.")
        return 0

    if args.cmd == "pending":
        print_pending(SqlIngestStore(get_engine()), args.limit)
        return 0

    if args.cmd == "url":
        report = run_ingest(urls=[args.url], dry_run=args.dry_run)
    else:
        report = run_ingest(batch_size=args.batch_size, dry_run=args.dry_run)

    _print_report(report)
    return 1 if report.error else 0


if __name__ == "__main__":
    raise SystemExit(main())
