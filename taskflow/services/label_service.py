"""Tag / category service.

Tags and categories share one implementation; ``model`` is either class.
"""

import logging
from typing import List, Type, Union

from sqlalchemy.orm import Session

from taskflow.core.exceptions import ConflictError, NotFoundError, InvalidInputError
from taskflow.models.enums import AccessLevel
from taskflow.models.label import Tag, Category
from taskflow.models.task import Task
from taskflow.models.user import User
from taskflow.services.access import require_access

logger = logging.getLogger(__name__)

Label = Union[Tag, Category]

# Task column pointing at each label table
_TASK_COLUMN = {Tag: Task.tag_id, Category: Task.category_id}


def _label_kind(model) -> str:
    return model.__name__


def get_label(db: Session, model: Type[Label], label_id: int) -> Label:
    label = db.query(model).filter(model.id == label_id).first()
    if not label:
        raise NotFoundError(f"{_label_kind(model)} not found")
    return label


def _ensure_unique(db: Session, model, workspace_id: int, name: str, exclude_id: int = None) -> None:
    query = db.query(model).filter(model.workspace_id == workspace_id, model.name == name)
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    if query.first():
        raise ConflictError(f"{_label_kind(model)} '{name}' already exists in this workspace")


def list_labels(db: Session, user: User, model: Type[Label], workspace_id: int,
                include_hidden: bool = False) -> List[Label]:
    require_access(db, user, workspace_id, AccessLevel.VIEW)
    query = db.query(model).filter(model.workspace_id == workspace_id)
    if not include_hidden:
        query = query.filter(model.hidden == False)
    return query.order_by(model.name).all()


def create_label(db: Session, user: User, model: Type[Label], workspace_id: int, name: str) -> Label:
    require_access(db, user, workspace_id, AccessLevel.EDIT)
    name = name.strip()
    if not name:
        raise InvalidInputError(f"{_label_kind(model)} name is required")
    _ensure_unique(db, model, workspace_id, name)

    label = model(name=name, workspace_id=workspace_id, user_id=user.id, hidden=False)
    db.add(label)
    db.commit()
    db.refresh(label)
    return label


def rename_label(db: Session, user: User, model: Type[Label], label_id: int, name: str) -> Label:
    label = get_label(db, model, label_id)
    require_access(db, user, label.workspace_id, AccessLevel.EDIT)
    name = name.strip()
    if not name:
        raise InvalidInputError(f"{_label_kind(model)} name is required")
    _ensure_unique(db, model, label.workspace_id, name, exclude_id=label.id)

    label.name = name
    db.commit()
    db.refresh(label)
    return label


def toggle_hidden(db: Session, user: User, model: Type[Label], label_id: int) -> Label:
    label = get_label(db, model, label_id)
    require_access(db, user, label.workspace_id, AccessLevel.EDIT)
    label.hidden = not label.hidden
    db.commit()
    db.refresh(label)
    return label


def delete_label(db: Session, user: User, model: Type[Label], label_id: int) -> None:
    """Delete the label; tasks keep existing with the reference cleared."""
    label = get_label(db, model, label_id)
    require_access(db, user, label.workspace_id, AccessLevel.EDIT)

    column = _TASK_COLUMN[model]
    cleared = db.query(Task).filter(column == label.id).update({column: None}, synchronize_session="fetch")
    db.delete(label)
    db.commit()
    logger.info(f"{_label_kind(model)} {label_id} deleted by user {user.id}, cleared on {cleared} tasks")


def check_label(db: Session, model: Type[Label], label_id, workspace_id: int) -> None:
    """A task may only point at a label of its own workspace."""
    if label_id is None:
        return
    label = db.query(model).filter(model.id == label_id).first()
    if not label or label.workspace_id != workspace_id:
        raise InvalidInputError(f"{_label_kind(model)} {label_id} does not belong to this workspace")
