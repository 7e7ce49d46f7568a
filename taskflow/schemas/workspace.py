from pydantic import BaseModel, ConfigDict, EmailStr, Field
from datetime import datetime
from typing import Literal, Optional


class WorkspaceCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None


class WorkspaceUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None


class WorkspaceResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    access_level: str
    is_default: bool
    other_users_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PermissionCreate(BaseModel):
    email: EmailStr
    access_level: Literal["edit", "view"] = "view"


class PermissionUpdate(BaseModel):
    access_level: Literal["edit", "view"]


class PermissionResponse(BaseModel):
    id: int
    workspace_id: int
    user_id: Optional[int]
    email: str
    access_level: str
    is_default: bool
    is_pending: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
