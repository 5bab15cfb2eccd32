"""Archive policy and archive log models."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import JSONType, TimestampMixin, UUIDMixin


class ArchivePolicy(TimestampMixin, SQLModel, table=True):
    """Per-user archive settings; absent rows mean defaults."""

    __tablename__ = "archive_policies"

    owner_id: uuid.UUID = Field(
        foreign_key="users.id", ondelete="CASCADE", primary_key=True, nullable=False
    )
    auto_archive_enabled: bool = Field(default=True, nullable=False, index=True)
    auto_archive_time: str = Field(default="09:00", nullable=False)
    unfinished_grace_days: int = Field(default=1, nullable=False)
    unfinished_grace_unit: str = Field(default="DAY", nullable=False)  # DAY | HOUR
    # NULL keeps archives forever; new rows take their windows from the settings
    cleanup_finished_after_days: Optional[int] = Field(default=None)
    cleanup_unfinished_after_days: Optional[int] = Field(default=None)


class ArchiveLog(UUIDMixin, SQLModel, table=True):
    """Append-only audit row written whenever a todo is archived.

    ``todo_id`` is deliberately not a foreign key: the todo may be purged by
    retention while the entry lives on with its snapshot.
    """

    __tablename__ = "archive_logs"
    __table_args__ = (
        sa.Index("ix_archive_logs_owner_bucket_at", "owner_id", "bucket", "archived_at"),
    )

    todo_id: uuid.UUID = Field(nullable=False, index=True)
    owner_id: uuid.UUID = Field(foreign_key="users.id", ondelete="CASCADE", nullable=False)
    bucket: str = Field(nullable=False)  # FINISHED | UNFINISHED
    reason: Optional[str] = None
    auto_archived: bool = Field(default=False, nullable=False)
    archived_at: datetime = Field(nullable=False, sa_type=sa.DateTime(timezone=True))
    snapshot: dict = Field(default_factory=dict, sa_type=JSONType, nullable=False)
