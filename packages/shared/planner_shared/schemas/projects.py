from typing import Optional, List
from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from .common import ListKind
from .tasks import TaskListWithTasks


class ProjectBase(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    color: Optional[str] = None


class ProjectCreate(ProjectBase):
    pass


class ProjectRead(ProjectBase):
    id: UUID
    owner_id: UUID
    position: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectDetail(ProjectRead):
    task_lists: List[TaskListWithTasks] = Field(default_factory=list)


class ProjectReorder(BaseModel):
    project_ids: List[UUID] = Field(min_length=1)


# Lists created with every new project: (name, kind, color)
DEFAULT_TASK_LISTS: list[tuple[str, ListKind, str]] = [
    ("TODO", ListKind.TODO, "#6b7280"),
    ("IN PROGRESS", ListKind.IN_PROGRESS, "#2563eb"),
    ("COMPLETE", ListKind.COMPLETE, "#10b981"),
]
