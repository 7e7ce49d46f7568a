from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from taskflow.core.database import get_db
from taskflow.core.deps import get_current_user
from taskflow.models.user import User
from taskflow.schemas.workspace import (
    WorkspaceCreate,
    WorkspaceUpdate,
    WorkspaceResponse,
    PermissionCreate,
    PermissionUpdate,
    PermissionResponse,
)
from taskflow.services import workspace_service, permission_service
from taskflow.services.access import require_access

router = APIRouter(prefix="/workspaces", tags=["workspaces"])


def _workspace_response(db: Session, user: User, workspace_id: int) -> dict:
    for row in workspace_service.list_workspaces(db, user):
        if row["id"] == workspace_id:
            return row
    return None


@router.get("", response_model=List[WorkspaceResponse])
def list_workspaces(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return workspace_service.list_workspaces(db, current_user)


@router.post("", response_model=WorkspaceResponse, status_code=status.HTTP_201_CREATED)
def create_workspace(
    data: WorkspaceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    workspace = workspace_service.create_workspace(db, current_user, data.name.strip(), data.description)
    db.commit()
    return _workspace_response(db, current_user, workspace.id)


@router.put("/{workspace_id}", response_model=WorkspaceResponse)
def update_workspace(
    workspace_id: int,
    data: WorkspaceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    workspace_service.update_workspace(db, current_user, workspace_id, data.name.strip(), data.description)
    return _workspace_response(db, current_user, workspace_id)


@router.delete("/{workspace_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_workspace(
    workspace_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    workspace_service.delete_workspace(db, current_user, workspace_id)


@router.patch("/{workspace_id}/set-default", response_model=WorkspaceResponse)
def set_default(
    workspace_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    workspace_service.set_default(db, current_user, workspace_id)
    return _workspace_response(db, current_user, workspace_id)


# ============ MEMBERS ============

@router.get("/{workspace_id}/permissions", response_model=List[PermissionResponse])
def list_permissions(
    workspace_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return permission_service.list_members(db, current_user, workspace_id)


@router.post("/{workspace_id}/permissions", response_model=PermissionResponse, status_code=status.HTTP_201_CREATED)
def add_permission(
    workspace_id: int,
    data: PermissionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return permission_service.add_member(db, current_user, workspace_id, data.email, data.access_level)


@router.put("/{workspace_id}/permissions/{permission_id}", response_model=PermissionResponse)
def update_permission(
    workspace_id: int,
    permission_id: int,
    data: PermissionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return permission_service.update_member(db, current_user, workspace_id, permission_id, data.access_level)


@router.delete("/{workspace_id}/permissions/{permission_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_permission(
    workspace_id: int,
    permission_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    permission_service.remove_member(db, current_user, workspace_id, permission_id)


@router.post("/{workspace_id}/permissions/{permission_id}/transfer-ownership", response_model=PermissionResponse)
def transfer_ownership(
    workspace_id: int,
    permission_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return permission_service.transfer_ownership(db, current_user, workspace_id, permission_id)


@router.post("/{workspace_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
def leave_workspace(
    workspace_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    permission_service.leave_workspace(db, current_user, workspace_id)


@router.get("/{workspace_id}/access")
def my_access(
    workspace_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    permission = require_access(db, current_user, workspace_id)
    return {"workspace_id": workspace_id, "access_level": permission.access_level}
