"""Task and task list models (kanban board of a project)."""

from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import OwnedMixin, TimestampMixin, UUIDMixin


class TaskList(UUIDMixin, TimestampMixin, OwnedMixin, SQLModel, table=True):
    __tablename__ = "task_lists"

    project_id: uuid.UUID = Field(
        foreign_key="projects.id", ondelete="CASCADE", nullable=False, index=True
    )
    name: str = Field(nullable=False)
    kind: str = Field(nullable=False, default="CUSTOM")  # TODO | IN_PROGRESS | COMPLETE | CUSTOM
    color: Optional[str] = None
    position: int = Field(default=0, nullable=False)


class Task(UUIDMixin, TimestampMixin, OwnedMixin, SQLModel, table=True):
    __tablename__ = "tasks"
    __table_args__ = (sa.Index("ix_tasks_scope", "owner_id", "task_list_id", "position"),)

    task_list_id: uuid.UUID = Field(
        foreign_key="task_lists.id", ondelete="CASCADE", nullable=False
    )
    title: str = Field(nullable=False)
    description: Optional[str] = None
    status: str = Field(nullable=False, default="TODO")  # TODO | IN_PROGRESS | COMPLETE
    priority: str = Field(nullable=False, default="MEDIUM")
    position: int = Field(default=0, nullable=False)
