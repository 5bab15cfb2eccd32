"""
Tests for the scheduled archive job and the one-shot script.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError

from app.core.logging import configure_logging
from app.scripts import run_archive_pass as script
from app.services import archive as archive_service
from app.services.archive_policy import upsert_policy
from app.services.todos import create_todo
from app.tasks import auto_archive
from planner_shared.schemas.common import TodoStatus
from planner_shared.schemas.todos import TodoCreate

NOW = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def pass_on_test_db(scope, monkeypatch):
    """Route both entry points to the test database at a fixed time."""

    async def run_pass(now, **kwargs):
        return await archive_service.run_archive_pass(now, session_scope=scope, **kwargs)

    monkeypatch.setattr(auto_archive, "run_archive_pass", run_pass)
    monkeypatch.setattr(auto_archive, "now_in_zone", lambda tz: NOW)
    monkeypatch.setattr(script, "run_archive_pass", run_pass)


@pytest.fixture
async def scheduled_user(scope, user):
    async with scope() as session:
        await upsert_policy(session, user.id, {"auto_archive_enabled": True, "auto_archive_time": "09:00"})
        await create_todo(session, user.id, TodoCreate(title="done", status=TodoStatus.COMPLETE))
    return user


async def test_worker_job_counts(pass_on_test_db, scheduled_user):
    result = await auto_archive.auto_archive_todos({})

    assert result == {
        "owners": 1,
        "failed": 0,
        "cleanup_failed": 0,
        "finished": 1,
        "unfinished": 0,
        "purged_todos": 0,
        "purged_logs": 0,
    }


async def test_worker_job_other_hour(pass_on_test_db, scope, user):
    async with scope() as session:
        await upsert_policy(session, user.id, {"auto_archive_time": "17:00"})

    result = await auto_archive.auto_archive_todos({})

    assert result["owners"] == 0


async def test_worker_job_runs_half_hour_in_its_hour(pass_on_test_db, scope, user):
    async with scope() as session:
        await upsert_policy(session, user.id, {"auto_archive_enabled": True, "auto_archive_time": "09:30"})
        await create_todo(session, user.id, TodoCreate(title="done", status=TodoStatus.COMPLETE))

    result = await auto_archive.auto_archive_todos({})

    assert result["owners"] == 1
    assert result["finished"] == 1


def test_worker_settings_hourly():
    [cron] = auto_archive.WorkerSettings.cron_jobs
    assert cron["coroutine"] is auto_archive.auto_archive_todos
    assert cron["minute"] == 0


async def test_script_prints_summaries(pass_on_test_db, scheduled_user, capsys):
    configure_logging("info", "json")
    exit_code = await script.run(hour=None, now=NOW)

    assert exit_code == 0
    captured = capsys.readouterr()
    assert "archive.pass_finished" in captured.err
    [line] = captured.out.strip().splitlines()
    summary = json.loads(line)
    assert summary["owner_id"] == str(scheduled_user.id)
    assert summary["finished"] == 1


async def test_script_fails_on_cleanup_error(pass_on_test_db, scheduled_user, capsys, monkeypatch):
    configure_logging("info", "json")

    async def broken_cleanup(session, owner_id, policy, now):
        raise OperationalError("DELETE FROM todos", {}, Exception("disk I/O error"))

    monkeypatch.setattr(archive_service, "cleanup_old_archives", broken_cleanup)

    assert await script.run(hour=None, now=NOW) == 1
    [line] = capsys.readouterr().out.strip().splitlines()
    summary = json.loads(line)
    assert summary["failed"] is False
    assert summary["finished"] == 1
    assert "disk I/O error" in summary["cleanup_error"]
