"""
Tests for manual archive/unarchive and archive log browsing.

Tests cover:
- All-or-nothing ownership checks
- Default bucket and reason per todo, explicit bucket and reason
- Unarchive appends to the end of the active column (empty or not) and
  keeps history
- Log grouping per day and today's summary
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func
from sqlmodel import select

from app.core.errors import OwnershipError
from app.models.archive import ArchiveLog
from app.models.todo import Todo
from app.services.archive import (
    latest_summary,
    list_archive_logs,
    manual_archive,
    manual_unarchive,
)
from app.services.todos import create_todo
from planner_shared.schemas.common import ArchiveBucket, TodoStatus
from planner_shared.schemas.todos import TodoCreate

UTC = timezone.utc
NOW = datetime(2026, 10, 18, 15, 0, tzinfo=UTC)


async def new_todo(scope, owner, **fields):
    async with scope() as session:
        todo = await create_todo(session, owner.id, TodoCreate(title="todo", **fields))
    return todo.id


async def test_foreign_id_rejects_batch(scope, user, other_user):
    mine = await new_todo(scope, user)
    theirs = await new_todo(scope, other_user)

    with pytest.raises(OwnershipError) as exc_info:
        async with scope() as session:
            await manual_archive(session, user.id, [mine, theirs])

    assert exc_info.value.status_code == 403
    assert exc_info.value.ids == [theirs]
    async with scope() as session:
        assert (await session.get(Todo, mine)).archived_at is None
        assert (await session.execute(select(func.count()).select_from(ArchiveLog))).scalar_one() == 0


async def test_missing_id_rejects_batch(scope, user):
    mine = await new_todo(scope, user)
    missing = uuid.uuid4()

    with pytest.raises(OwnershipError) as exc_info:
        async with scope() as session:
            await manual_archive(session, user.id, [mine, missing])
    assert str(missing) in exc_info.value.detail


async def test_default_buckets_and_reasons(scope, user):
    due = NOW - timedelta(days=2)
    done = await new_todo(scope, user, status=TodoStatus.COMPLETE)
    late = await new_todo(scope, user, due_date=due)

    async with scope() as session:
        todos = await manual_archive(session, user.id, [done, late], now=NOW)

    by_id = {t.id: t for t in todos}
    assert by_id[done].archived_bucket == ArchiveBucket.FINISHED.value
    assert by_id[done].archived_reason is None
    assert by_id[late].archived_bucket == ArchiveBucket.UNFINISHED.value
    assert by_id[late].archived_reason == f"Overdue (due {due.isoformat()})"
    assert all(t.archived_by_system is False for t in todos)

    async with scope() as session:
        logs = (await session.execute(select(ArchiveLog))).scalars().all()
    assert len(logs) == 2
    assert all(entry.auto_archived is False for entry in logs)


async def test_explicit_bucket_and_reason(scope, user):
    todo_id = await new_todo(scope, user)

    async with scope() as session:
        [todo] = await manual_archive(
            session, user.id, [todo_id], bucket=ArchiveBucket.FINISHED, reason="Dropped", now=NOW
        )
    assert todo.archived_bucket == "FINISHED"
    assert todo.archived_reason == "Dropped"


async def test_unarchive_appends_and_keeps_history(scope, user):
    first = await new_todo(scope, user)
    second = await new_todo(scope, user)
    third = await new_todo(scope, user)

    async with scope() as session:
        await manual_archive(session, user.id, [first], now=NOW)
    async with scope() as session:
        [todo] = await manual_unarchive(session, user.id, [first])

    assert todo.archived_at is None
    assert todo.archived_bucket is None
    assert todo.archived_reason is None
    assert todo.archived_by_system is False

    async with scope() as session:
        rows = (
            await session.execute(
                select(Todo).where(Todo.archived_at.is_(None)).order_by(Todo.position)
            )
        ).scalars().all()
        logs = (await session.execute(select(func.count()).select_from(ArchiveLog))).scalar_one()
    assert [(t.id, t.position) for t in rows] == [(second, 0), (third, 1), (first, 2)]
    assert logs == 1


async def test_unarchive_into_empty_column(scope, user):
    only = await new_todo(scope, user, status=TodoStatus.IN_PROGRESS)

    async with scope() as session:
        await manual_archive(session, user.id, [only], now=NOW)
    async with scope() as session:
        [todo] = await manual_unarchive(session, user.id, [only])

    assert todo.position == 0


async def test_unarchive_last_todo_keeps_column_dense(scope, user):
    ids = [await new_todo(scope, user, status=TodoStatus.IN_PROGRESS) for _ in range(3)]

    async with scope() as session:
        await manual_archive(session, user.id, [ids[-1]], now=NOW)
    async with scope() as session:
        await manual_unarchive(session, user.id, [ids[-1]])

    async with scope() as session:
        rows = (
            await session.execute(
                select(Todo)
                .where(Todo.owner_id == user.id, Todo.archived_at.is_(None))
                .order_by(Todo.position)
            )
        ).scalars().all()
    assert [(t.id, t.position) for t in rows] == [(ids[0], 0), (ids[1], 1), (ids[2], 2)]


async def test_unarchive_foreign_rejected(scope, user, other_user):
    theirs = await new_todo(scope, other_user)
    with pytest.raises(OwnershipError):
        async with scope() as session:
            await manual_unarchive(session, user.id, [theirs])


async def test_logs_grouped_per_day(scope, user):
    ids = [await new_todo(scope, user) for _ in range(3)]
    async with scope() as session:
        await manual_archive(session, user.id, ids[:1], now=NOW - timedelta(days=2))
    async with scope() as session:
        await manual_archive(session, user.id, ids[1:], bucket=ArchiveBucket.FINISHED, now=NOW)

    async with scope() as session:
        days = await list_archive_logs(session, user.id, NOW)

    assert [d.date for d in days] == ["2026-10-18", "2026-10-16"]
    assert (days[0].finished, days[0].unfinished, len(days[0].entries)) == (2, 0, 2)
    assert (days[1].finished, days[1].unfinished) == (0, 1)

    async with scope() as session:
        recent = await list_archive_logs(session, user.id, NOW, days=1)
    assert [d.date for d in recent] == ["2026-10-18"]


async def test_latest_summary(scope, user):
    async with scope() as session:
        assert await latest_summary(session, user.id, NOW) is None

    todo_id = await new_todo(scope, user, status=TodoStatus.COMPLETE)
    async with scope() as session:
        await manual_archive(session, user.id, [todo_id], now=NOW - timedelta(hours=1))

    async with scope() as session:
        summary = await latest_summary(session, user.id, NOW)
    assert (summary.date, summary.finished, summary.unfinished, summary.total) == ("2026-10-18", 1, 0, 1)
