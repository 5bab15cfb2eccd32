"""Task and task-list Pydantic schemas for shared use across server and frontend codegen."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic import UUID4

from .common import ListKind, TaskStatus, TodoPriority


# ---------------------------------------------------------------------------
# Task lists
# ---------------------------------------------------------------------------

class TaskListCreate(BaseModel):
    project_id: UUID4
    name: str = Field(min_length=1)
    kind: Optional[ListKind] = None  # inferred from the name when omitted
    color: Optional[str] = None


class TaskListRead(BaseModel):
    id: UUID4
    owner_id: UUID4
    project_id: UUID4
    name: str
    kind: ListKind
    color: Optional[str] = None
    position: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Task CRUD
# ---------------------------------------------------------------------------

class TaskCreate(BaseModel):
    task_list_id: UUID4
    title: str = Field(min_length=1)
    description: Optional[str] = None
    priority: TodoPriority = TodoPriority.MEDIUM


class TaskRead(BaseModel):
    id: UUID4
    owner_id: UUID4
    task_list_id: UUID4
    title: str
    description: Optional[str] = None
    status: TaskStatus
    priority: TodoPriority
    position: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Move
# ---------------------------------------------------------------------------

class TaskMove(BaseModel):
    """Request body for POST /tasks/move."""
    task_id: UUID4
    new_list_id: UUID4
    new_position: int


class TaskListWithTasks(TaskListRead):
    tasks: List[TaskRead] = Field(default_factory=list)
