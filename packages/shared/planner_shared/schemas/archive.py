"""
Archive-related Pydantic schemas shared between server and clients.

Covers: per-user archive policy (settings + partial update), manual
archive/unarchive requests, archive log entries and the per-owner summary
produced by an automatic archive pass.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from .common import ArchiveBucket, GraceUnit

TIME_OF_DAY_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------

class ArchivePolicySettings(BaseModel):
    """Full archive policy. Defaults apply to users who never saved one."""

    auto_archive_enabled: bool = True
    auto_archive_time: str = Field(
        default="09:00",
        pattern=TIME_OF_DAY_PATTERN,
        description="Trigger time of the daily pass (24h HH:mm); the pass runs at the start of that hour",
    )
    unfinished_grace_days: int = Field(
        default=1,
        ge=0,
        le=720,
        description="Delay after the due date before an open todo is archived",
    )
    unfinished_grace_unit: GraceUnit = GraceUnit.DAY
    cleanup_finished_after_days: Optional[int] = Field(
        default=90,
        ge=1,
        le=365,
        description="Retention of finished archives in days (null = keep forever)",
    )
    cleanup_unfinished_after_days: Optional[int] = Field(
        default=30,
        ge=1,
        le=365,
        description="Retention of unfinished archives in days (null = keep forever)",
    )

    model_config = {"from_attributes": True}

    @property
    def scheduled_hour(self) -> int:
        return int(self.auto_archive_time.split(":", 1)[0])


class ArchivePolicyUpdate(BaseModel):
    """Partial update: only the fields that are set are merged."""

    auto_archive_enabled: Optional[bool] = None
    auto_archive_time: Optional[str] = Field(default=None, pattern=TIME_OF_DAY_PATTERN)
    unfinished_grace_days: Optional[int] = Field(default=None, ge=0, le=720)
    unfinished_grace_unit: Optional[GraceUnit] = None
    cleanup_finished_after_days: Optional[int] = Field(default=None, ge=1, le=365)
    cleanup_unfinished_after_days: Optional[int] = Field(default=None, ge=1, le=365)


# ---------------------------------------------------------------------------
# Manual archive
# ---------------------------------------------------------------------------

class ArchiveAction(str, Enum):
    ARCHIVE = "ARCHIVE"
    UNARCHIVE = "UNARCHIVE"


class ArchiveRequest(BaseModel):
    """Request body for POST /todos/archive."""
    todo_ids: List[uuid.UUID] = Field(min_length=1)
    action: ArchiveAction = ArchiveAction.ARCHIVE
    bucket: Optional[ArchiveBucket] = None
    reason: Optional[str] = Field(default=None, max_length=500)
    auto_archived: bool = False


# ---------------------------------------------------------------------------
# Audit log
# ---------------------------------------------------------------------------

class ArchiveSnapshot(BaseModel):
    """Denormalized copy of a todo taken when it was archived."""
    title: str
    status: str
    priority: str
    due_date: Optional[str] = None
    custom_status_id: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class ArchiveLogRead(BaseModel):
    id: uuid.UUID
    todo_id: uuid.UUID
    bucket: ArchiveBucket
    reason: Optional[str] = None
    auto_archived: bool
    archived_at: datetime
    snapshot: dict[str, Any]

    model_config = {"from_attributes": True}


class ArchiveLogDay(BaseModel):
    date: str
    finished: int = 0
    unfinished: int = 0
    entries: List[ArchiveLogRead] = Field(default_factory=list)


class ArchiveDaySummary(BaseModel):
    date: str
    finished: int
    unfinished: int
    total: int


# ---------------------------------------------------------------------------
# Automatic pass
# ---------------------------------------------------------------------------

class OwnerSummary(BaseModel):
    """Outcome of one owner's share of an archive pass."""
    owner_id: uuid.UUID
    finished: int = 0
    unfinished: int = 0
    purged_logs: int = 0
    purged_todos: int = 0
    failed: bool = False
    error: Optional[str] = None
    cleanup_error: Optional[str] = None
