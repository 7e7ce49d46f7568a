"""Tag and category payloads (same shape)."""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional


class LabelCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    workspace_id: Optional[int] = None


class LabelUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=255)


class LabelResponse(BaseModel):
    id: int
    name: str
    workspace_id: int
    user_id: Optional[int]
    hidden: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
