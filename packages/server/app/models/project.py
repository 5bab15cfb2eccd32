"""Project model."""

from typing import Optional

from sqlmodel import Field, SQLModel

from .base import OwnedMixin, TimestampMixin, UUIDMixin


class Project(UUIDMixin, TimestampMixin, OwnedMixin, SQLModel, table=True):
    __tablename__ = "projects"

    name: str = Field(nullable=False)
    description: Optional[str] = None
    color: Optional[str] = None
    position: int = Field(default=0, nullable=False)
