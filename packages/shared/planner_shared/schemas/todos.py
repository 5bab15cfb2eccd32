"""Todo-related Pydantic schemas for shared use across server and frontend codegen."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic import UUID4

from .common import ArchiveBucket, TodoPriority, TodoStatus


# ---------------------------------------------------------------------------
# Todo CRUD
# ---------------------------------------------------------------------------

class TodoBase(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    priority: TodoPriority = TodoPriority.MEDIUM
    tags: List[str] = Field(default_factory=list)
    due_date: Optional[datetime] = None


class TodoCreate(TodoBase):
    status: TodoStatus = TodoStatus.WAIT
    custom_status_id: Optional[UUID4] = None
    task_id: Optional[UUID4] = None


class TodoUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    priority: Optional[TodoPriority] = None
    tags: Optional[List[str]] = None
    due_date: Optional[datetime] = None
    status: Optional[TodoStatus] = None


class TodoRead(BaseModel):
    id: UUID4
    owner_id: UUID4
    title: str
    description: Optional[str] = None
    status: TodoStatus
    custom_status_id: Optional[UUID4] = None
    priority: TodoPriority
    tags: List[str] = Field(default_factory=list)
    due_date: Optional[datetime] = None
    task_id: Optional[UUID4] = None
    position: int
    archived_at: Optional[datetime] = None
    archived_bucket: Optional[ArchiveBucket] = None
    archived_reason: Optional[str] = None
    archived_by_system: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------

class TodoMove(BaseModel):
    """Request body for POST /todos/{todoId}/move (drag and drop).

    Out-of-range or negative positions land at the end of the target group.
    """
    status: TodoStatus
    custom_status_id: Optional[UUID4] = None
    position: int = -1


class TodoMoveResult(BaseModel):
    todo: TodoRead
    undo_action_id: Optional[str] = None


class TodoReorder(BaseModel):
    """Request body for PATCH /todos/reorder."""
    status: TodoStatus
    custom_status_id: Optional[UUID4] = None
    todo_ids: List[UUID4] = Field(min_length=1)
