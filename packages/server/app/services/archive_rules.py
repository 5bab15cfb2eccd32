"""
Archive classification rules.

Pure functions deciding whether a todo belongs in the archive and in which
bucket. They depend only on their arguments, so the automatic pass can be
re-run any number of times with the same outcome.

Grace periods:
- HOUR: an open todo is overdue once ``now - grace hours`` has reached its
  due date.
- DAY: grace counts whole calendar days from the start of the due date's
  day, in ``now``'s timezone. With a 1-day grace a todo due yesterday at 23:00
  is overdue from midnight on; with 0 days it is overdue as soon as it is due.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from planner_shared.schemas.archive import ArchivePolicySettings, ArchiveSnapshot
from planner_shared.schemas.common import (
    OPEN_TODO_STATUSES,
    ArchiveBucket,
    GraceUnit,
    TodoStatus,
)

FINISHED_REASON = "Auto-archived: completed"


@dataclass(frozen=True)
class ArchiveDecision:
    bucket: ArchiveBucket
    reason: str


def as_aware(value: datetime, tz: timezone = timezone.utc) -> datetime:
    """Attach ``tz`` to naive datetimes (SQLite hands them back without one)."""
    return value if value.tzinfo is not None else value.replace(tzinfo=tz)


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def overdue_threshold(now: datetime, policy: ArchivePolicySettings) -> datetime:
    """Latest due date (inclusive) that counts as overdue at ``now``."""
    now = as_aware(now)
    grace = policy.unfinished_grace_days
    if policy.unfinished_grace_unit == GraceUnit.HOUR:
        return now - timedelta(hours=grace)

    # Due before the start of (today - grace + 1 days), and already due
    day_cutoff = start_of_day(now) - timedelta(days=grace - 1) - timedelta(microseconds=1)
    return min(now, day_cutoff)


def unfinished_reason(due_date: datetime) -> str:
    return f"Auto-archived: overdue (due {as_aware(due_date).date().isoformat()})"


def classify(now: datetime, todo: Any, policy: ArchivePolicySettings) -> Optional[ArchiveDecision]:
    """Return the archive decision for ``todo`` at ``now``, or None if it stays active."""
    if todo.archived_at is not None:
        return None

    status = TodoStatus(todo.status)
    if status == TodoStatus.COMPLETE:
        return ArchiveDecision(ArchiveBucket.FINISHED, FINISHED_REASON)

    if status in OPEN_TODO_STATUSES and todo.due_date is not None:
        if as_aware(todo.due_date) <= overdue_threshold(now, policy):
            return ArchiveDecision(ArchiveBucket.UNFINISHED, unfinished_reason(todo.due_date))

    return None


# ---------------------------------------------------------------------------
# Manual archiving
# ---------------------------------------------------------------------------


def default_bucket(todo: Any) -> ArchiveBucket:
    """Bucket for a user-archived todo when none is chosen explicitly."""
    if TodoStatus(todo.status) == TodoStatus.COMPLETE:
        return ArchiveBucket.FINISHED
    return ArchiveBucket.UNFINISHED


def manual_reason(todo: Any, bucket: ArchiveBucket) -> Optional[str]:
    if bucket == ArchiveBucket.UNFINISHED and todo.due_date is not None:
        return f"Overdue (due {as_aware(todo.due_date).isoformat()})"
    return None


def snapshot(todo: Any) -> dict:
    """Denormalized copy of the todo kept by its archive log entry."""
    return ArchiveSnapshot(
        title=todo.title,
        status=todo.status,
        priority=todo.priority,
        due_date=as_aware(todo.due_date).isoformat() if todo.due_date else None,
        custom_status_id=str(todo.custom_status_id) if todo.custom_status_id else None,
        tags=list(todo.tags or []),
    ).model_dump(mode="json")
