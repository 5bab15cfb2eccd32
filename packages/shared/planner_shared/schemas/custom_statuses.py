"""Custom status schemas: user-defined columns for the todo board."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class CustomStatusCreate(BaseModel):
    name: str = Field(min_length=1)
    color: Optional[str] = None


class CustomStatusUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    color: Optional[str] = None


class CustomStatusRead(BaseModel):
    id: UUID
    owner_id: UUID
    name: str
    color: Optional[str] = None
    position: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CustomStatusReorder(BaseModel):
    status_ids: List[UUID] = Field(min_length=1)
