"""Workspace access guard: view < edit < owner."""

from typing import Optional

from sqlalchemy.orm import Session

from taskflow.core.exceptions import AccessDeniedError, NotFoundError
from taskflow.models.enums import AccessLevel
from taskflow.models.user import User
from taskflow.models.workspace import Workspace, WorkspacePermission

ACCESS_RANK = {
    AccessLevel.VIEW: 1,
    AccessLevel.EDIT: 2,
    AccessLevel.OWNER: 3,
}


def satisfies(level: str, minimum: AccessLevel) -> bool:
    return ACCESS_RANK[AccessLevel(level)] >= ACCESS_RANK[minimum]


def get_permission(db: Session, user_id: int, workspace_id: int) -> Optional[WorkspacePermission]:
    return db.query(WorkspacePermission).filter(
        WorkspacePermission.user_id == user_id,
        WorkspacePermission.workspace_id == workspace_id
    ).first()


def get_workspace(db: Session, workspace_id: int) -> Workspace:
    workspace = db.query(Workspace).filter(Workspace.id == workspace_id).first()
    if not workspace:
        raise NotFoundError("Workspace not found")
    return workspace


def require_access(db: Session, user: User, workspace_id: int,
                   minimum: AccessLevel = AccessLevel.VIEW) -> WorkspacePermission:
    """Return the caller's permission row or raise if it is below ``minimum``."""
    get_workspace(db, workspace_id)
    permission = get_permission(db, user.id, workspace_id)
    if permission is None:
        raise AccessDeniedError("Access denied")
    if not satisfies(permission.access_level, minimum):
        if minimum == AccessLevel.OWNER:
            raise AccessDeniedError("Only owners can perform this action")
        raise AccessDeniedError(f"{minimum.value.capitalize()} access required")
    return permission


def owner_count(db: Session, workspace_id: int) -> int:
    return db.query(WorkspacePermission).filter(
        WorkspacePermission.workspace_id == workspace_id,
        WorkspacePermission.access_level == AccessLevel.OWNER.value
    ).count()
