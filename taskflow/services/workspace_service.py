"""Workspace service"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from taskflow.core.config import settings
from taskflow.core.exceptions import InvariantViolationError
from taskflow.models.enums import AccessLevel
from taskflow.models.label import Tag, Category
from taskflow.models.task import Task, TaskAssignee, TaskHistory
from taskflow.models.user import User
from taskflow.models.workspace import Workspace, WorkspacePermission
from taskflow.services.access import require_access
from taskflow.services.lifecycle import get_today, initial_dates
from taskflow.services.preset_catalog import create_default_presets

logger = logging.getLogger(__name__)

DEFAULT_WORKSPACE_NAME = "Default Workspace"
FALLBACK_WORKSPACE_NAME = "My Workspace"
DEFAULT_WORKSPACE_DESCRIPTION = "Default workspace for your tasks"


def create_workspace(db: Session, user: User, name: str, description: Optional[str] = None,
                     is_default: bool = False) -> Workspace:
    """Create a workspace owned by ``user`` with its preset filters (no commit)."""
    workspace = Workspace(name=name, description=description or "", user_id=user.id)
    db.add(workspace)
    db.flush()

    db.add(WorkspacePermission(
        workspace_id=workspace.id,
        user_id=user.id,
        email=user.email,
        access_level=AccessLevel.OWNER.value,
        is_default=is_default,
    ))
    create_default_presets(db, user.id, workspace.id)
    logger.info(f"Workspace {workspace.id} '{name}' created by user {user.id}")
    return workspace


def list_workspaces(db: Session, user: User) -> List[dict]:
    rows = db.query(Workspace, WorkspacePermission).join(
        WorkspacePermission, WorkspacePermission.workspace_id == Workspace.id
    ).filter(
        WorkspacePermission.user_id == user.id
    ).order_by(Workspace.name).all()

    result = []
    for workspace, permission in rows:
        members = db.query(WorkspacePermission).filter(
            WorkspacePermission.workspace_id == workspace.id
        ).count()
        result.append({
            "id": workspace.id,
            "name": workspace.name,
            "description": workspace.description,
            "access_level": permission.access_level,
            "is_default": permission.is_default,
            "other_users_count": members - 1,
            "created_at": workspace.created_at,
            "updated_at": workspace.updated_at,
        })
    return result


def update_workspace(db: Session, user: User, workspace_id: int, name: str,
                     description: Optional[str] = None) -> Workspace:
    require_access(db, user, workspace_id, AccessLevel.OWNER)
    workspace = db.query(Workspace).filter(Workspace.id == workspace_id).first()
    workspace.name = name
    workspace.description = description or ""
    db.commit()
    db.refresh(workspace)
    return workspace


def delete_workspace(db: Session, user: User, workspace_id: int) -> None:
    permission = require_access(db, user, workspace_id, AccessLevel.OWNER)
    if permission.is_default:
        raise InvariantViolationError("Cannot delete the default workspace")

    workspace = db.query(Workspace).filter(Workspace.id == workspace_id).first()
    members = [p for p in workspace.permissions if p.is_default and p.user_id is not None]
    for member in members:
        reassign_default(db, member.user, workspace_id)

    db.delete(workspace)
    db.commit()
    logger.info(f"Workspace {workspace_id} deleted by user {user.id}")


def set_default(db: Session, user: User, workspace_id: int) -> WorkspacePermission:
    target = require_access(db, user, workspace_id, AccessLevel.VIEW)
    db.query(WorkspacePermission).filter(
        WorkspacePermission.user_id == user.id,
        WorkspacePermission.id != target.id
    ).update({WorkspacePermission.is_default: False}, synchronize_session="fetch")
    target.is_default = True
    db.commit()
    return target


def reassign_default(db: Session, user: User, leaving_workspace_id: int) -> int:
    """
    Give ``user`` a new default workspace when they lose ``leaving_workspace_id``.

    Picks the lowest-id workspace they can still access, or creates a fresh
    one when there is none. Returns the new default workspace id (no commit).
    """
    other = db.query(WorkspacePermission).filter(
        WorkspacePermission.user_id == user.id,
        WorkspacePermission.workspace_id != leaving_workspace_id
    ).order_by(WorkspacePermission.workspace_id).first()

    if other:
        other.is_default = True
        logger.info(f"Workspace {other.workspace_id} is now default for user {user.id}")
        return other.workspace_id

    workspace = create_workspace(db, user, FALLBACK_WORKSPACE_NAME, DEFAULT_WORKSPACE_DESCRIPTION, is_default=True)
    logger.info(f"Created workspace {workspace.id} as new default for user {user.id}")
    return workspace.id


def get_default_workspace_id(db: Session, user: User) -> Optional[int]:
    permission = db.query(WorkspacePermission).filter(
        WorkspacePermission.user_id == user.id,
        WorkspacePermission.is_default == True
    ).first()
    return permission.workspace_id if permission else None


# ============ NEW USER BOOTSTRAP ============

EXAMPLE_TASKS = [
    ("Click status button on the left to start working",
     "Status cycles: To Do -> In Progress -> Paused -> In Progress -> Paused ...\n\nStart date is automatically recorded",
     "normal", "todo", True, "Practice"),
    ("Click anywhere on a task to edit it",
     "Try clicking the title, description, category, or any part - everything is editable!",
     "normal", "in_progress", True, "Practice"),
    ("Double-click status to mark Done", None, "normal", "todo", True, "Practice"),
    ("Create your first real task",
     "Edit in the Add New Task section above to create your own tasks",
     "normal", "todo", False, "Practice"),
    ("Plan your day with Planner view", "Completed tasks are hidden by default.",
     "normal", "todo", False, "Pro Tips"),
    ("Switch to Tracker view to check your recent progress",
     "Shows your completed and in-progress tasks in the past 7 days. Change the time period with filters.",
     "normal", "todo", False, "Pro Tips"),
    ("Invite team members to collaborate",
     "Navigate to User Menu -> Manage Access to invite others to your workspace",
     "low", "todo", False, "Pro Tips"),
]


def seed_example_tasks(db: Session, user: User, workspace_id: int) -> List[Task]:
    category = Category(name="User Guide", workspace_id=workspace_id, user_id=user.id)
    tags = {
        name: Tag(name=name, workspace_id=workspace_id, user_id=user.id)
        for name in ("Practice", "Pro Tips")
    }
    db.add(category)
    db.add_all(tags.values())
    db.flush()

    today = get_today()
    now = datetime.utcnow()
    tasks = []
    for title, description, priority, status, due_today, tag_name in EXAMPLE_TASKS:
        task = Task(
            user_id=user.id,
            workspace_id=workspace_id,
            title=title,
            description=description,
            priority=priority,
            status=status,
            due_date=today if due_today else None,
            category_id=category.id,
            tag_id=tags[tag_name].id,
            **initial_dates(status, today),
        )
        task.assignees.append(TaskAssignee(user_id=user.id, assigned_by=user.id, assigned_at=now))
        task.history.append(TaskHistory(status=status, notes="Task created", action_date=now))
        db.add(task)
        tasks.append(task)

    logger.info(f"Seeded {len(tasks)} example tasks for user {user.id} in workspace {workspace_id}")
    return tasks


def bootstrap_user(db: Session, user: User) -> Workspace:
    """Default workspace, "General" tag, presets and (optionally) the example tasks."""
    workspace = create_workspace(db, user, DEFAULT_WORKSPACE_NAME, DEFAULT_WORKSPACE_DESCRIPTION, is_default=True)
    db.add(Tag(name="General", workspace_id=workspace.id, user_id=user.id))
    if settings.SEED_EXAMPLE_TASKS:
        seed_example_tasks(db, user, workspace.id)
    return workspace
