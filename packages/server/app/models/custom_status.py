"""Custom status model: user-defined todo board columns."""

from typing import Optional

from sqlmodel import Field, SQLModel

from .base import OwnedMixin, TimestampMixin, UUIDMixin


class CustomStatus(UUIDMixin, TimestampMixin, OwnedMixin, SQLModel, table=True):
    __tablename__ = "custom_statuses"

    name: str = Field(nullable=False)
    color: Optional[str] = None
    position: int = Field(default=0, nullable=False)
