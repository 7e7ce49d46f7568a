"""Tag and category routes share one factory; only the model and prefix differ."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from taskflow.core.database import get_db
from taskflow.core.deps import get_current_user
from taskflow.core.exceptions import NotFoundError
from taskflow.models.label import Tag, Category
from taskflow.models.user import User
from taskflow.schemas.label import LabelCreate, LabelUpdate, LabelResponse
from taskflow.services import label_service
from taskflow.services.workspace_service import get_default_workspace_id


def _workspace_or_default(db: Session, user: User, workspace_id: Optional[int]) -> int:
    if workspace_id is not None:
        return workspace_id
    default_id = get_default_workspace_id(db, user)
    if default_id is None:
        raise NotFoundError("Workspace not found")
    return default_id


def build_router(model, prefix: str) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[prefix.strip("/")])

    @router.get("", response_model=List[LabelResponse])
    def list_labels(
        workspace_id: Optional[int] = Query(None),
        include_hidden: bool = Query(False),
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user)
    ):
        workspace_id = _workspace_or_default(db, current_user, workspace_id)
        return label_service.list_labels(db, current_user, model, workspace_id, include_hidden=include_hidden)

    @router.post("", response_model=LabelResponse, status_code=status.HTTP_201_CREATED)
    def create_label(
        data: LabelCreate,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user)
    ):
        workspace_id = _workspace_or_default(db, current_user, data.workspace_id)
        return label_service.create_label(db, current_user, model, workspace_id, data.name)

    @router.put("/{label_id}", response_model=LabelResponse)
    def rename_label(
        label_id: int,
        data: LabelUpdate,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user)
    ):
        return label_service.rename_label(db, current_user, model, label_id, data.name)

    @router.patch("/{label_id}/toggle-hidden", response_model=LabelResponse)
    def toggle_hidden(
        label_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user)
    ):
        return label_service.toggle_hidden(db, current_user, model, label_id)

    @router.delete("/{label_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_label(
        label_id: int,
        db: Session = Depends(get_db),
        current_user: User = Depends(get_current_user)
    ):
        label_service.delete_label(db, current_user, model, label_id)

    return router


tags_router = build_router(Tag, "/tags")
categories_router = build_router(Category, "/categories")
