#!/usr/bin/env python3
"""
Pinwatch operator maintenance commands.

Subcommands:
  archive             Move live reports older than the retention window
                      into the archive (run nightly from cron).
  recalculate-stats   Rebuild the total/today/this-week counters.
  consolidate TARGET  Re-key a bucket (pending, verified or archive) by
                      address key, merging duplicates.
  delete-since DATE   Delete reports added on or after DATE, after a
                      y/n confirmation.
  purge-rate-limits   Drop expired rate limit counters.
  issue-token UID     Print a verifier bearer token for UID.

Exit code:
  0 = command completed
  1 = command failed or completed with per-row failures
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from sqlalchemy.orm import Session

from pinwatch.core.security import create_verifier_token
from pinwatch.core.settings import settings
from pinwatch.db.session import SessionLocal
from pinwatch.services.archival import ArchivalMigrator
from pinwatch.services.errors import ReportError
from pinwatch.services.maintenance import (
    CONSOLIDATION_TARGETS,
    ConsolidationMigration,
    RangeDeleter,
    repository_for,
)
from pinwatch.services.rate_limit import RateLimiter
from pinwatch.services.stats import StatsAggregator

logger = logging.getLogger(__name__)


def say(msg: str) -> None:
    print(f"[pinwatch] {msg}")


def fail(msg: str) -> None:
    print(f"[pinwatch][FAIL] {msg}", file=sys.stderr)


def run_archive(db: Session, args: argparse.Namespace) -> int:
    result = ArchivalMigrator().run(db)
    say(
        f"Archived {result.moved}/{result.attempted} reports "
        f"({result.merged} merged, {result.failed} failed, "
        f"{result.purged_rate_limits} rate limit counters purged)"
    )
    return 0 if result.complete else 1


def run_recalculate(db: Session, args: argparse.Namespace) -> int:
    snapshot = StatsAggregator().recalculate(db)
    say(
        "Stats recalculated successfully: "
        f"total={snapshot.total} today={snapshot.today} this_week={snapshot.this_week}"
    )
    return 0


def run_consolidate(db: Session, args: argparse.Namespace) -> int:
    migration = ConsolidationMigration(repository_for(args.target, args.batch_size))
    result = migration.run(db)
    say(f"Processed {result.processed} rows into {result.unique} unique addresses")
    for address, count in result.top_addresses:
        say(f"  {count:>5}  {address}")
    return 0


def run_delete_since(db: Session, args: argparse.Namespace) -> int:
    confirm = (lambda prompt: "y") if args.yes else input
    result = RangeDeleter(confirm=confirm).run(db, args.cutoff)
    say(f"{result.message} (live={result.live}, archive={result.archive})")
    return 0


def run_purge_rate_limits(db: Session, args: argparse.Namespace) -> int:
    removed = RateLimiter().purge_expired(db)
    say(f"Purged {removed} expired rate limit counters")
    return 0


def run_issue_token(db: Session, args: argparse.Namespace) -> int:
    print(create_verifier_token(args.uid, expires_minutes=args.minutes))
    return 0


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Pinwatch maintenance commands")
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help="Logging level for service output (default: %(default)s)",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    archive = commands.add_parser("archive", help="Archive reports past the retention window")
    archive.set_defaults(handler=run_archive)

    recalc = commands.add_parser("recalculate-stats", help="Rebuild report counters")
    recalc.set_defaults(handler=run_recalculate)

    consolidate = commands.add_parser("consolidate", help="Merge duplicate address keys")
    consolidate.add_argument("target", choices=CONSOLIDATION_TARGETS)
    consolidate.add_argument(
        "--batch-size",
        type=int,
        default=settings.max_batch_size,
        help="Rows per write batch (default: %(default)s)",
    )
    consolidate.set_defaults(handler=run_consolidate)

    delete = commands.add_parser("delete-since", help="Delete reports from a date onwards")
    delete.add_argument("cutoff", help='"2024-10-25" or "2024-10-25T12:30:00.000Z"')
    delete.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    delete.set_defaults(handler=run_delete_since)

    purge = commands.add_parser("purge-rate-limits", help="Drop expired quota counters")
    purge.set_defaults(handler=run_purge_rate_limits)

    token = commands.add_parser("issue-token", help="Print a verifier bearer token")
    token.add_argument("uid")
    token.add_argument("--minutes", type=int, default=None, help="Token lifetime")
    token.set_defaults(handler=run_issue_token)

    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())

    db = SessionLocal()
    try:
        return args.handler(db, args)
    except ReportError as exc:
        fail(exc.message)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
