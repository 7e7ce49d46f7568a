"""Pydantic schemas for task request/response validation."""

from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Optional, List, Union

from taskflow.models.enums import TaskStatus, TaskPriority, ViewMode
from taskflow.services.filters import FilterGroup


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    workspace_id: Optional[int] = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.NORMAL
    due_date: Optional[date] = None
    start_date: Optional[date] = None
    completion_date: Optional[date] = None
    tag_id: Optional[int] = None
    category_id: Optional[int] = None
    # None assigns the creator
    assignee_ids: Optional[List[int]] = None

    model_config = ConfigDict(use_enum_values=True)


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[date] = None
    start_date: Optional[date] = None
    completion_date: Optional[date] = None
    tag_id: Optional[int] = None
    category_id: Optional[int] = None
    assignee_ids: Optional[List[int]] = None

    model_config = ConfigDict(use_enum_values=True)


class StatusUpdate(BaseModel):
    status: TaskStatus
    notes: Optional[str] = None

    model_config = ConfigDict(use_enum_values=True)


class CompleteRequest(BaseModel):
    notes: Optional[str] = None


class TaskMoveRequest(BaseModel):
    """Drop target: a planner bucket key or a tracker tag id (None = Unassigned)."""
    view: ViewMode
    bucket: Optional[str] = None
    tag_id: Optional[int] = None

    model_config = ConfigDict(use_enum_values=True)


class TaskQuery(BaseModel):
    workspace_id: Optional[int] = None
    view: ViewMode = ViewMode.PLANNER
    # None = the filters enabled for the view, [] = none of them
    preset_keys: Optional[List[str]] = None
    filters: List[FilterGroup] = Field(default_factory=list)
    assignee_ids: Optional[List[int]] = None
    category_ids: Optional[List[int]] = None
    statuses: Optional[List[TaskStatus]] = None

    model_config = ConfigDict(use_enum_values=True)


class TaskResponse(BaseModel):
    id: int
    user_id: Optional[int]
    workspace_id: int
    title: str
    description: Optional[str]
    status: str
    priority: str
    due_date: Optional[date]
    start_date: Optional[date]
    completion_date: Optional[date]
    tag_id: Optional[int]
    category_id: Optional[int]
    tag_name: Optional[str]
    category_name: Optional[str]
    assignee_ids: List[int]
    assignee_names: List[str]
    last_modified: datetime
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TaskGroupResponse(BaseModel):
    name: str
    key: Union[str, int, None]
    tasks: List[TaskResponse]

    model_config = ConfigDict(from_attributes=True)


class TaskListResponse(BaseModel):
    view: str
    groups: List[TaskGroupResponse]


class TaskHistoryResponse(BaseModel):
    id: int
    task_id: int
    status: str
    action_date: datetime
    notes: Optional[str]

    model_config = ConfigDict(from_attributes=True)
