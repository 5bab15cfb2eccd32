"""Todo model."""

from datetime import datetime
from typing import List, Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import JSONType, OwnedMixin, TimestampMixin, UUIDMixin


class Todo(UUIDMixin, TimestampMixin, OwnedMixin, SQLModel, table=True):
    __tablename__ = "todos"
    __table_args__ = (
        sa.Index("ix_todos_scope", "owner_id", "status", "custom_status_id", "position"),
    )

    title: str = Field(nullable=False)
    description: Optional[str] = None
    status: str = Field(nullable=False, default="WAIT")  # WAIT | IN_PROGRESS | COMPLETE
    custom_status_id: Optional[uuid.UUID] = Field(default=None, foreign_key="custom_statuses.id")
    priority: str = Field(nullable=False, default="MEDIUM")  # LOW | MEDIUM | HIGH | URGENT
    tags: List[str] = Field(default_factory=list, sa_type=JSONType, nullable=False)
    due_date: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    task_id: Optional[uuid.UUID] = Field(default=None, foreign_key="tasks.id", ondelete="SET NULL")
    position: int = Field(default=0, nullable=False)

    # archived_bucket is set iff archived_at is set
    archived_at: Optional[datetime] = Field(
        default=None, sa_type=sa.DateTime(timezone=True), index=True
    )
    archived_bucket: Optional[str] = None  # FINISHED | UNFINISHED
    archived_reason: Optional[str] = None
    archived_by_system: bool = Field(default=False, nullable=False)
