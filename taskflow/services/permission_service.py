"""
Workspace membership management.

Only owners manage members. A workspace always keeps at least one owner:
removing, downgrading or leaving as the last owner is rejected.
"""

import logging
from typing import List

from sqlalchemy.orm import Session

from taskflow.core.exceptions import (
    ConflictError,
    InvalidInputError,
    InvariantViolationError,
    NotFoundError,
)
from taskflow.models.enums import AccessLevel
from taskflow.models.preference import FilterPreference, UserPreference
from taskflow.models.user import User
from taskflow.models.workspace import Workspace, WorkspacePermission
from taskflow.services.access import require_access, get_permission, owner_count
from taskflow.services.preset_catalog import create_default_presets
from taskflow.services.workspace_service import reassign_default

logger = logging.getLogger(__name__)

ASSIGNABLE_LEVELS = (AccessLevel.EDIT.value, AccessLevel.VIEW.value)


def _get_member(db: Session, workspace_id: int, permission_id: int) -> WorkspacePermission:
    permission = db.query(WorkspacePermission).filter(
        WorkspacePermission.id == permission_id,
        WorkspacePermission.workspace_id == workspace_id
    ).first()
    if not permission:
        raise NotFoundError("Permission not found")
    return permission


def _ensure_not_last_owner(db: Session, permission: WorkspacePermission, message: str) -> None:
    if permission.access_level == AccessLevel.OWNER.value and owner_count(db, permission.workspace_id) <= 1:
        raise InvariantViolationError(message)


def _sync_primary_owner(db: Session, workspace_id: int) -> None:
    """Point workspaces.user_id at a remaining owner."""
    owner = db.query(WorkspacePermission).filter(
        WorkspacePermission.workspace_id == workspace_id,
        WorkspacePermission.access_level == AccessLevel.OWNER.value
    ).order_by(WorkspacePermission.id).first()
    if owner:
        db.query(Workspace).filter(Workspace.id == workspace_id).update({Workspace.user_id: owner.user_id})


def list_members(db: Session, user: User, workspace_id: int) -> List[WorkspacePermission]:
    require_access(db, user, workspace_id, AccessLevel.VIEW)
    return db.query(WorkspacePermission).filter(
        WorkspacePermission.workspace_id == workspace_id
    ).order_by(WorkspacePermission.created_at.desc(), WorkspacePermission.id.desc()).all()


def add_member(db: Session, user: User, workspace_id: int, email: str, access_level: str) -> WorkspacePermission:
    """Grant access by e-mail; unknown e-mails stay pending until they register."""
    if access_level not in ASSIGNABLE_LEVELS:
        raise InvalidInputError("Invalid access level")
    require_access(db, user, workspace_id, AccessLevel.OWNER)

    email = email.lower()
    existing = db.query(WorkspacePermission).filter(
        WorkspacePermission.workspace_id == workspace_id,
        WorkspacePermission.email == email
    ).first()
    if existing:
        raise ConflictError("User already has access to this workspace")

    invitee = db.query(User).filter(User.email == email).first()
    permission = WorkspacePermission(
        workspace_id=workspace_id,
        user_id=invitee.id if invitee else None,
        email=email,
        access_level=access_level,
        is_default=False,
    )
    db.add(permission)
    if invitee:
        create_default_presets(db, invitee.id, workspace_id)
    db.commit()
    db.refresh(permission)

    if invitee:
        logger.info(f"User {email} added to workspace {workspace_id} with {access_level} access by user {user.id}")
    else:
        logger.info(f"Invitation pending for {email} on workspace {workspace_id} ({access_level})")
    return permission


def update_member(db: Session, user: User, workspace_id: int, permission_id: int,
                  access_level: str) -> WorkspacePermission:
    if access_level not in ASSIGNABLE_LEVELS:
        raise InvalidInputError("Invalid access level")
    require_access(db, user, workspace_id, AccessLevel.OWNER)

    permission = _get_member(db, workspace_id, permission_id)
    _ensure_not_last_owner(db, permission, "Cannot downgrade the only owner")

    was_owner = permission.access_level == AccessLevel.OWNER.value
    permission.access_level = access_level
    if was_owner:
        db.flush()
        _sync_primary_owner(db, workspace_id)
    db.commit()
    db.refresh(permission)
    return permission


def remove_member(db: Session, user: User, workspace_id: int, permission_id: int) -> None:
    require_access(db, user, workspace_id, AccessLevel.OWNER)

    permission = _get_member(db, workspace_id, permission_id)
    _ensure_not_last_owner(db, permission, "Cannot remove the only owner")
    _drop_permission(db, permission)
    db.commit()
    logger.info(f"Permission {permission_id} removed from workspace {workspace_id} by user {user.id}")


def transfer_ownership(db: Session, user: User, workspace_id: int, permission_id: int) -> WorkspacePermission:
    """Target becomes owner and the caller drops to edit, in one commit."""
    caller = require_access(db, user, workspace_id, AccessLevel.OWNER)

    target = _get_member(db, workspace_id, permission_id)
    if target.is_pending:
        raise InvalidInputError("Cannot transfer ownership to pending user")
    if target.id == caller.id:
        raise InvalidInputError("You already own this workspace")

    target.access_level = AccessLevel.OWNER.value
    caller.access_level = AccessLevel.EDIT.value
    db.query(Workspace).filter(Workspace.id == workspace_id).update({Workspace.user_id: target.user_id})
    db.commit()
    db.refresh(target)
    logger.info(f"Ownership of workspace {workspace_id} transferred from user {user.id} to user {target.user_id}")
    return target


def leave_workspace(db: Session, user: User, workspace_id: int) -> None:
    permission = get_permission(db, user.id, workspace_id)
    if not permission:
        raise NotFoundError("Permission not found")
    _ensure_not_last_owner(db, permission, "Cannot leave workspace as the only owner")
    _drop_permission(db, permission)
    db.commit()
    logger.info(f"User {user.id} left workspace {workspace_id}")


def _drop_member_filters(db: Session, user_id: int, workspace_id: int) -> None:
    for pref in db.query(FilterPreference).filter(
        FilterPreference.user_id == user_id,
        FilterPreference.workspace_id == workspace_id
    ).all():
        db.delete(pref)
    db.query(UserPreference).filter(
        UserPreference.user_id == user_id,
        UserPreference.workspace_id == workspace_id
    ).delete(synchronize_session=False)


def _drop_permission(db: Session, permission: WorkspacePermission) -> None:
    """Delete a membership row and repair owner / default bookkeeping (no commit)."""
    workspace_id = permission.workspace_id
    was_owner = permission.access_level == AccessLevel.OWNER.value
    member = permission.user if permission.is_default else None

    if permission.user_id is not None:
        _drop_member_filters(db, permission.user_id, workspace_id)
    db.delete(permission)
    db.flush()

    if was_owner:
        _sync_primary_owner(db, workspace_id)
    if member is not None:
        reassign_default(db, member, workspace_id)


def activate_invitations(db: Session, user: User) -> List[WorkspacePermission]:
    """Attach pending e-mail invitations to a newly registered user (no commit)."""
    pending = db.query(WorkspacePermission).filter(
        WorkspacePermission.email == user.email,
        WorkspacePermission.user_id.is_(None)
    ).all()
    for permission in pending:
        permission.user_id = user.id
        create_default_presets(db, user.id, permission.workspace_id)
        logger.info(f"Activated invitation to workspace {permission.workspace_id} for user {user.id}")
    return pending
