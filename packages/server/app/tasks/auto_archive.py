"""
ARQ background task: the automatic archive pass.

Runs every hour on the hour. Each run handles the users whose
``auto_archive_time`` falls in the current hour of ``archive_timezone``.
Only the hour is honoured: a user set to 09:30 is archived at 09:00.
"""

from __future__ import annotations

import structlog

from app.core.config import get_settings
from app.services.archive import now_in_zone, run_archive_pass

log = structlog.get_logger()


async def auto_archive_todos(ctx: dict) -> dict:
    """Archive finished and overdue todos, then apply retention.

    Returns counts for the ARQ job result.
    """
    now = now_in_zone(get_settings().archive_timezone)
    summaries = await run_archive_pass(now, scheduled_hour=now.hour)

    result = {
        "owners": len(summaries),
        "failed": sum(1 for s in summaries if s.failed),
        "cleanup_failed": sum(1 for s in summaries if s.cleanup_error),
        "finished": sum(s.finished for s in summaries),
        "unfinished": sum(s.unfinished for s in summaries),
        "purged_todos": sum(s.purged_todos for s in summaries),
        "purged_logs": sum(s.purged_logs for s in summaries),
    }
    if summaries:
        log.info("auto_archive.run_finished", hour=now.hour, **result)
    return result


# ARQ worker settings
class WorkerSettings:
    """ARQ worker configuration."""

    functions = [auto_archive_todos]
    cron_jobs = [
        # Run every hour
        {
            "coroutine": auto_archive_todos,
            "hour": None,  # every hour
            "minute": 0,
        },
    ]
