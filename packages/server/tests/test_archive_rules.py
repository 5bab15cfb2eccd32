"""
Unit tests for archive classification.

Tests cover:
- Completed todos go to FINISHED
- Overdue open todos go to UNFINISHED after the grace period (DAY and HOUR)
- Boundaries: due exactly at the threshold vs one second later
- Already archived and undated todos stay put
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from app.services.archive_rules import (
    FINISHED_REASON,
    classify,
    default_bucket,
    manual_reason,
    overdue_threshold,
    snapshot,
)
from planner_shared.schemas.archive import ArchivePolicySettings
from planner_shared.schemas.common import ArchiveBucket, GraceUnit

UTC = timezone.utc


def todo(status="WAIT", due=None, archived_at=None, **extra):
    fields = dict(
        title="Write report",
        status=status,
        priority="MEDIUM",
        due_date=due,
        archived_at=archived_at,
        custom_status_id=None,
        tags=["work"],
    )
    fields.update(extra)
    return SimpleNamespace(**fields)


def policy(grace=1, unit=GraceUnit.DAY):
    return ArchivePolicySettings(unfinished_grace_days=grace, unfinished_grace_unit=unit)


class TestFinished:
    def test_complete_is_finished(self):
        decision = classify(datetime(2026, 10, 18, 9, tzinfo=UTC), todo("COMPLETE"), policy())
        assert decision.bucket == ArchiveBucket.FINISHED
        assert decision.reason == FINISHED_REASON

    def test_complete_without_due_date_is_finished(self):
        now = datetime(2026, 10, 18, 9, tzinfo=UTC)
        assert classify(now, todo("COMPLETE", due=None), policy()).bucket == ArchiveBucket.FINISHED

    def test_already_archived_is_skipped(self):
        now = datetime(2026, 10, 18, 9, tzinfo=UTC)
        archived = todo("COMPLETE", archived_at=now - timedelta(days=1))
        assert classify(now, archived, policy()) is None


class TestUnfinishedDayGrace:
    def test_due_yesterday_late_evening_after_midnight(self):
        """Grace counts from start of day: due 23:00 yesterday is overdue at 00:30."""
        now = datetime(2026, 10, 18, 0, 30, tzinfo=UTC)
        decision = classify(now, todo(due=datetime(2026, 10, 17, 23, 0, tzinfo=UTC)), policy(1))
        assert decision.bucket == ArchiveBucket.UNFINISHED
        assert decision.reason == "Auto-archived: overdue (due 2026-10-17)"

    def test_due_today_not_yet_overdue(self):
        now = datetime(2026, 10, 18, 23, 59, tzinfo=UTC)
        assert classify(now, todo(due=datetime(2026, 10, 18, 0, 0, tzinfo=UTC)), policy(1)) is None

    def test_two_day_grace(self):
        now = datetime(2026, 10, 18, 0, 30, tzinfo=UTC)
        assert classify(now, todo(due=datetime(2026, 10, 16, 23, 0, tzinfo=UTC)), policy(2)) is not None
        assert classify(now, todo(due=datetime(2026, 10, 17, 1, 0, tzinfo=UTC)), policy(2)) is None

    def test_zero_grace_is_overdue_once_due(self):
        now = datetime(2026, 10, 18, 9, 0, tzinfo=UTC)
        assert classify(now, todo(due=datetime(2026, 10, 18, 8, 0, tzinfo=UTC)), policy(0)) is not None
        assert classify(now, todo(due=datetime(2026, 10, 18, 10, 0, tzinfo=UTC)), policy(0)) is None

    def test_boundary_exact_threshold_eligible(self):
        now = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)
        threshold = overdue_threshold(now, policy(1))
        assert classify(now, todo(due=threshold), policy(1)) is not None
        assert classify(now, todo(due=threshold + timedelta(seconds=1)), policy(1)) is None

    def test_in_progress_is_open(self):
        now = datetime(2026, 10, 18, 9, 0, tzinfo=UTC)
        overdue = todo("IN_PROGRESS", due=datetime(2026, 10, 10, tzinfo=UTC))
        assert classify(now, overdue, policy()).bucket == ArchiveBucket.UNFINISHED

    def test_undated_open_todo_stays(self):
        now = datetime(2026, 10, 18, 9, 0, tzinfo=UTC)
        assert classify(now, todo(due=None), policy()) is None


class TestUnfinishedHourGrace:
    def test_exact_hours(self):
        now = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)
        p = policy(3, GraceUnit.HOUR)
        assert classify(now, todo(due=datetime(2026, 10, 18, 9, 0, tzinfo=UTC)), p) is not None
        assert classify(now, todo(due=datetime(2026, 10, 18, 9, 0, 1, tzinfo=UTC)), p) is None

    def test_threshold_is_now_minus_hours(self):
        now = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)
        assert overdue_threshold(now, policy(5, GraceUnit.HOUR)) == now - timedelta(hours=5)


class TestTimezones:
    def test_naive_due_date_is_utc(self):
        now = datetime(2026, 10, 18, 0, 30, tzinfo=UTC)
        assert classify(now, todo(due=datetime(2026, 10, 17, 23, 0)), policy(1)) is not None

    def test_start_of_day_in_now_zone(self):
        """Day boundaries follow the zone of ``now``."""
        plus_two = timezone(timedelta(hours=2))
        now = datetime(2026, 10, 18, 0, 30, tzinfo=plus_two)
        # 21:30 UTC on the 17th is 23:30 in +02:00, i.e. yesterday there
        assert classify(now, todo(due=datetime(2026, 10, 17, 21, 30, tzinfo=UTC)), policy(1)) is not None
        # 22:30 UTC on the 17th is 00:30 on the 18th in +02:00, i.e. today
        assert classify(now, todo(due=datetime(2026, 10, 17, 22, 30, tzinfo=UTC)), policy(1)) is None


class TestManualHelpers:
    @pytest.mark.parametrize(
        "status,bucket",
        [("COMPLETE", ArchiveBucket.FINISHED), ("WAIT", ArchiveBucket.UNFINISHED), ("IN_PROGRESS", ArchiveBucket.UNFINISHED)],
    )
    def test_default_bucket(self, status, bucket):
        assert default_bucket(todo(status)) == bucket

    def test_manual_reason_for_overdue(self):
        due = datetime(2026, 10, 17, 23, 0, tzinfo=UTC)
        assert manual_reason(todo(due=due), ArchiveBucket.UNFINISHED) == f"Overdue (due {due.isoformat()})"
        assert manual_reason(todo(due=None), ArchiveBucket.UNFINISHED) is None
        assert manual_reason(todo("COMPLETE", due=due), ArchiveBucket.FINISHED) is None

    def test_snapshot_fields(self):
        data = snapshot(todo(due=datetime(2026, 10, 17, tzinfo=UTC)))
        assert data == {
            "title": "Write report",
            "status": "WAIT",
            "priority": "MEDIUM",
            "due_date": "2026-10-17T00:00:00+00:00",
            "custom_status_id": None,
            "tags": ["work"],
        }
