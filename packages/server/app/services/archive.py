"""
Archive service: automatic archive pass, retention cleanup, manual
archive/unarchive and archive log browsing.

Handles:
- Per-owner archive transactions (todo state + audit rows, all or nothing)
- Retention of archived todos and log entries per bucket
- Manual archive/unarchive with all-or-nothing ownership checks
- Archive log grouping by day for the history view
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

import structlog
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.database import SessionScope, get_session_context
from app.core.errors import PersistenceError, PlannerError
from app.models.archive import ArchiveLog, ArchivePolicy
from app.models.todo import Todo
from app.services import positions
from app.services import todos as todo_service
from app.services.archive_policy import list_enabled_policies, to_settings
from app.services.archive_rules import (
    ArchiveDecision,
    as_aware,
    classify,
    default_bucket,
    manual_reason,
    overdue_threshold,
    snapshot,
    start_of_day,
)
from planner_shared.schemas.archive import (
    ArchiveDaySummary,
    ArchiveLogDay,
    ArchiveLogRead,
    ArchivePolicySettings,
    OwnerSummary,
)
from planner_shared.schemas.common import OPEN_TODO_STATUSES, ArchiveBucket, TodoStatus

log = structlog.get_logger()


def now_in_zone(tz_name: str) -> datetime:
    """Current time in the zone whose midnights bound archive days."""
    return datetime.now(ZoneInfo(tz_name))


@dataclass
class RetentionResult:
    purged_logs: int = 0
    purged_todos: int = 0


# ---------------------------------------------------------------------------
# Writing archive state
# ---------------------------------------------------------------------------


async def _write_archive(
    session: AsyncSession,
    owner_id: uuid.UUID,
    entries: Sequence[tuple[Todo, ArchiveDecision]],
    archived_at: datetime,
    auto_archived: bool,
) -> None:
    """Mark todos archived and append one log row each, in the caller's transaction."""
    for todo, decision in entries:
        todo.archived_at = archived_at
        todo.archived_bucket = decision.bucket.value
        todo.archived_reason = decision.reason
        todo.archived_by_system = auto_archived
        session.add(todo)

    session.add_all(
        ArchiveLog(
            todo_id=todo.id,
            owner_id=owner_id,
            bucket=decision.bucket.value,
            reason=decision.reason,
            auto_archived=auto_archived,
            archived_at=archived_at,
            snapshot=snapshot(todo),
        )
        for todo, decision in entries
    )
    await session.flush()

    # Columns the archived todos left keep dense positions
    scopes = {(TodoStatus(todo.status), todo.custom_status_id) for todo, _ in entries}
    for status, custom_status_id in scopes:
        await positions.close_gap(
            session, Todo, todo_service.todo_scope(owner_id, status, custom_status_id)
        )


# ---------------------------------------------------------------------------
# Automatic pass
# ---------------------------------------------------------------------------


async def find_archivable(
    session: AsyncSession,
    owner_id: uuid.UUID,
    policy: ArchivePolicySettings,
    now: datetime,
) -> list[tuple[Todo, ArchiveDecision]]:
    """Active todos that are complete or overdue, with their decisions."""
    threshold = overdue_threshold(now, policy).astimezone(timezone.utc)
    active = (Todo.owner_id == owner_id, Todo.archived_at.is_(None))

    completed = await session.execute(
        select(Todo).where(*active, Todo.status == TodoStatus.COMPLETE.value)
    )
    overdue = await session.execute(
        select(Todo).where(
            *active,
            Todo.status.in_([s.value for s in OPEN_TODO_STATUSES]),
            Todo.due_date.is_not(None),
            Todo.due_date <= threshold,
        )
    )

    entries = []
    for todo in [*completed.scalars().all(), *overdue.scalars().all()]:
        decision = classify(now, todo, policy)
        if decision is not None:
            entries.append((todo, decision))
    return entries


async def archive_todos_for_owner(
    session: AsyncSession,
    owner_id: uuid.UUID,
    policy: ArchivePolicySettings,
    now: datetime,
) -> OwnerSummary:
    entries = await find_archivable(session, owner_id, policy, now)
    summary = OwnerSummary(owner_id=owner_id)
    if not entries:
        return summary

    await _write_archive(session, owner_id, entries, as_aware(now).astimezone(timezone.utc), auto_archived=True)
    summary.finished = sum(1 for _, d in entries if d.bucket == ArchiveBucket.FINISHED)
    summary.unfinished = len(entries) - summary.finished
    return summary


async def cleanup_old_archives(
    session: AsyncSession,
    owner_id: uuid.UUID,
    policy: ArchivePolicySettings,
    now: datetime,
) -> RetentionResult:
    """Delete archived todos and log rows older than their bucket's window.

    Log rows and todos are purged independently; a null window keeps the
    bucket forever.
    """
    result = RetentionResult()
    windows = (
        (ArchiveBucket.FINISHED, policy.cleanup_finished_after_days),
        (ArchiveBucket.UNFINISHED, policy.cleanup_unfinished_after_days),
    )
    for bucket, days in windows:
        if not days:
            continue
        cutoff = (as_aware(now) - timedelta(days=days)).astimezone(timezone.utc)

        logs = await session.execute(
            delete(ArchiveLog).where(
                ArchiveLog.owner_id == owner_id,
                ArchiveLog.bucket == bucket.value,
                ArchiveLog.archived_at <= cutoff,
            ).execution_options(synchronize_session=False)
        )
        todos = await session.execute(
            delete(Todo).where(
                Todo.owner_id == owner_id,
                Todo.archived_bucket == bucket.value,
                Todo.archived_at.is_not(None),
                Todo.archived_at <= cutoff,
            ).execution_options(synchronize_session=False)
        )
        result.purged_logs += logs.rowcount or 0
        result.purged_todos += todos.rowcount or 0
    return result


async def _archive_owner(
    session_scope: SessionScope, policy_row: ArchivePolicy, now: datetime
) -> OwnerSummary:
    """Archive step: todo state and audit rows commit together or not at all."""
    owner_id = policy_row.owner_id
    try:
        async with session_scope() as session:
            return await archive_todos_for_owner(session, owner_id, to_settings(policy_row), now)
    except (SQLAlchemyError, PlannerError) as exc:
        log.error("archive.owner_failed", owner_id=str(owner_id), error=str(exc))
        return OwnerSummary(owner_id=owner_id, failed=True, error=str(exc))


async def _clean_owner(
    session_scope: SessionScope, policy_row: ArchivePolicy, now: datetime, summary: OwnerSummary
) -> None:
    """Retention step, committed on its own after the archive step."""
    try:
        async with session_scope() as session:
            retention = await cleanup_old_archives(
                session, policy_row.owner_id, to_settings(policy_row), now
            )
    except (SQLAlchemyError, PlannerError) as exc:
        log.error("archive.cleanup_failed", owner_id=str(policy_row.owner_id), error=str(exc))
        summary.cleanup_error = str(exc)
        return
    summary.purged_logs = retention.purged_logs
    summary.purged_todos = retention.purged_todos


async def run_archive_pass(
    now: datetime,
    *,
    session_scope: SessionScope = get_session_context,
    scheduled_hour: Optional[int] = None,
) -> list[OwnerSummary]:
    """One automatic pass over every user with auto-archiving enabled.

    Owners are processed one after another. Per owner the archive step and the
    retention step each run in their own transaction; a failure rolls back
    that step only and the pass moves on. Re-running the pass is a no-op for
    todos already archived.
    """
    async with session_scope() as session:
        policies = await list_enabled_policies(session)
    if scheduled_hour is not None:
        policies = [p for p in policies if to_settings(p).scheduled_hour == scheduled_hour]

    if not policies:
        log.info("archive.pass_empty")
        return []

    summaries: list[OwnerSummary] = []
    for policy_row in policies:
        summary = await _archive_owner(session_scope, policy_row, now)
        await _clean_owner(session_scope, policy_row, now, summary)
        if not summary.failed:
            log.info(
                "archive.owner_done",
                owner_id=str(summary.owner_id),
                finished=summary.finished,
                unfinished=summary.unfinished,
                purged_logs=summary.purged_logs,
                purged_todos=summary.purged_todos,
            )
        summaries.append(summary)

    log.info(
        "archive.pass_finished",
        owners=len(summaries),
        failed=sum(1 for s in summaries if s.failed),
        cleanup_failed=sum(1 for s in summaries if s.cleanup_error),
    )
    return summaries


# ---------------------------------------------------------------------------
# Manual archive / unarchive
# ---------------------------------------------------------------------------


async def manual_archive(
    session: AsyncSession,
    owner_id: uuid.UUID,
    todo_ids: Sequence[uuid.UUID],
    *,
    bucket: Optional[ArchiveBucket] = None,
    reason: Optional[str] = None,
    auto_archived: bool = False,
    now: Optional[datetime] = None,
) -> list[Todo]:
    todos = await todo_service.get_owned_todos(session, owner_id, todo_ids)
    archived_at = as_aware(now or datetime.now(timezone.utc)).astimezone(timezone.utc)

    entries = []
    for todo in todos:
        chosen = bucket or default_bucket(todo)
        entries.append((todo, ArchiveDecision(chosen, reason or manual_reason(todo, chosen))))

    try:
        await _write_archive(session, owner_id, entries, archived_at, auto_archived)
    except SQLAlchemyError as exc:
        raise PersistenceError() from exc

    log.info("archive.manual", owner_id=str(owner_id), count=len(todos), auto_archived=auto_archived)
    return todos


async def manual_unarchive(
    session: AsyncSession,
    owner_id: uuid.UUID,
    todo_ids: Sequence[uuid.UUID],
) -> list[Todo]:
    """Return todos to their active columns; archive history stays untouched."""
    todos = await todo_service.get_owned_todos(session, owner_id, todo_ids)
    try:
        for todo in todos:
            if todo.archived_at is None:
                continue
            # Rejoin the active scope at its end; read before the todo itself
            # becomes active so autoflush cannot count it
            position = await todo_service.next_todo_position(
                session, owner_id, TodoStatus(todo.status), todo.custom_status_id
            )
            todo.archived_at = None
            todo.archived_bucket = None
            todo.archived_reason = None
            todo.archived_by_system = False
            todo.position = position
            session.add(todo)
            await session.flush()
    except SQLAlchemyError as exc:
        raise PersistenceError() from exc

    log.info("archive.unarchived", owner_id=str(owner_id), count=len(todos))
    return todos


# ---------------------------------------------------------------------------
# Archive log browsing
# ---------------------------------------------------------------------------


async def list_archive_logs(
    session: AsyncSession,
    owner_id: uuid.UUID,
    now: datetime,
    *,
    days: int = 14,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> list[ArchiveLogDay]:
    """Archive entries grouped per calendar day, newest day first."""
    days = min(max(days, 1), 30)
    range_end = start_of_day(as_aware(date_to or now)) + timedelta(days=1)
    if date_from is not None:
        range_start = start_of_day(as_aware(date_from))
    else:
        range_start = range_end - timedelta(days=days)

    result = await session.execute(
        select(ArchiveLog)
        .where(
            ArchiveLog.owner_id == owner_id,
            ArchiveLog.archived_at >= range_start.astimezone(timezone.utc),
            ArchiveLog.archived_at < range_end.astimezone(timezone.utc),
        )
        .order_by(ArchiveLog.archived_at.desc())
    )

    grouped: dict[str, ArchiveLogDay] = {}
    for entry in result.scalars().all():
        key = as_aware(entry.archived_at).astimezone(as_aware(now).tzinfo).date().isoformat()
        day = grouped.setdefault(key, ArchiveLogDay(date=key))
        if entry.bucket == ArchiveBucket.FINISHED.value:
            day.finished += 1
        else:
            day.unfinished += 1
        day.entries.append(ArchiveLogRead.model_validate(entry))

    return sorted(grouped.values(), key=lambda d: d.date, reverse=True)


async def latest_summary(
    session: AsyncSession, owner_id: uuid.UUID, now: datetime
) -> Optional[ArchiveDaySummary]:
    """Counts of today's archive entries, or None when nothing was archived today."""
    days = await list_archive_logs(session, owner_id, now, days=1)
    today = as_aware(now).date().isoformat()
    for day in days:
        if day.date == today:
            return ArchiveDaySummary(
                date=day.date,
                finished=day.finished,
                unfinished=day.unfinished,
                total=day.finished + day.unfinished,
            )
    return None
