"""Closed value sets shared by models, schemas and services."""

from enum import Enum


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    DONE = "done"


class TaskPriority(str, Enum):
    URGENT = "urgent"
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


class AccessLevel(str, Enum):
    VIEW = "view"
    EDIT = "edit"
    OWNER = "owner"


class ViewMode(str, Enum):
    PLANNER = "planner"
    TRACKER = "tracker"


def sql_in(enum_cls) -> str:
    """Render the enum values as a SQL IN list for CHECK constraints."""
    return ", ".join(f"'{member.value}'" for member in enum_cls)
