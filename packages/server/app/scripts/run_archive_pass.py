"""
Script to run one automatic archive pass outside the worker.

Handles every user with auto-archiving enabled, regardless of their
configured time, unless --hour is given. Exits 1 when any owner's archive
or retention step failed.
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime

from app.core.config import get_settings
from app.core.logging import configure_logging
from app.services.archive import now_in_zone, run_archive_pass

settings = get_settings()


async def run(hour=None, now=None) -> int:
    now = now or now_in_zone(settings.archive_timezone)
    summaries = await run_archive_pass(now, scheduled_hour=hour)
    for summary in summaries:
        print(json.dumps(summary.model_dump(mode="json")))
    return 1 if any(s.failed or s.cleanup_error for s in summaries) else 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run one archive pass.")
    parser.add_argument("--hour", type=int, help="Only users scheduled for this hour (0-23)")
    parser.add_argument(
        "--now",
        type=datetime.fromisoformat,
        help="Evaluate as of this ISO timestamp instead of the current time",
    )
    args = parser.parse_args(argv)

    configure_logging(settings.log_level, settings.log_format)
    return asyncio.run(run(args.hour, args.now))


if __name__ == "__main__":
    sys.exit(main())
