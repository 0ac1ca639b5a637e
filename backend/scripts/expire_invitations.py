#!/usr/bin/env python3
"""
Cron script: expires friend invitations and approval requests past their deadline.

Usage:
    python scripts/expire_invitations.py
    python scripts/expire_invitations.py --now 2026-01-31T00:00:00+00:00

Crontab (daily at midnight, America/Los_Angeles):
    CRON_TZ=America/Los_Angeles
    0 0 * * * cd /path/to/backend && python scripts/expire_invitations.py

A failed run exits non-zero and is not retried; the records stay pending,
so the next daily run picks them up.
"""
import argparse
import asyncio
import logging
import sys
from datetime import datetime, timezone

from kids_scheduler.config import settings
from kids_scheduler.database import engine, get_store
from kids_scheduler.services.sweeper import sweep_expired

logger = logging.getLogger("expire_invitations")


def parse_now(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


async def run(now: datetime) -> int:
    logger.info(f"Starting expiry sweep at {now.isoformat()}")
    try:
        result = await sweep_expired(get_store(), now)
    except Exception:
        logger.exception("Expiry sweep failed")
        return 1
    finally:
        await engine.dispose()

    logger.info(
        f"Sweep complete: {result.invitations} invitations, "
        f"{result.approval_requests} approval requests expired"
    )
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Expire stale friend invitations")
    parser.add_argument(
        "--now",
        type=parse_now,
        default=None,
        help="Reference time in ISO 8601 (default: current UTC time)",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    now = args.now or datetime.now(timezone.utc)
    sys.exit(asyncio.run(run(now)))


if __name__ == "__main__":
    main()
