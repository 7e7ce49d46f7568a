"""Task service"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from taskflow.core.exceptions import InvalidInputError, NotFoundError
from taskflow.models.enums import AccessLevel, TaskStatus, TaskPriority, ViewMode
from taskflow.models.label import Tag, Category
from taskflow.models.task import Task, TaskAssignee, TaskHistory
from taskflow.models.user import User
from taskflow.models.workspace import WorkspacePermission
from taskflow.services import lifecycle
from taskflow.services.access import require_access
from taskflow.services.filters import FilterGroup, apply_filters
from taskflow.services.grouping import TaskGroup, group_tasks, resolve_planner_drop, resolve_tracker_drop
from taskflow.services.label_service import check_label
from taskflow.services.preference_service import resolve_filters
from taskflow.services.workspace_service import get_default_workspace_id

logger = logging.getLogger(__name__)

# fields a plain edit may overwrite as-is
EDITABLE_FIELDS = ("title", "description", "priority", "due_date", "start_date", "tag_id", "category_id")


def get_task(db: Session, user: User, task_id: int, minimum: AccessLevel = AccessLevel.VIEW) -> Task:
    task = db.query(Task).filter(Task.id == task_id).first()
    if not task:
        raise NotFoundError("Task not found")
    require_access(db, user, task.workspace_id, minimum)
    return task


def _check_assignees(db: Session, workspace_id: int, user_ids: List[int]) -> List[int]:
    """Only active members of the workspace can be assigned."""
    wanted = list(dict.fromkeys(user_ids))
    if not wanted:
        return []
    members = {
        user_id for (user_id,) in db.query(WorkspacePermission.user_id).filter(
            WorkspacePermission.workspace_id == workspace_id,
            WorkspacePermission.user_id.in_(wanted)
        )
    }
    outsiders = [uid for uid in wanted if uid not in members]
    if outsiders:
        raise InvalidInputError(f"Users {outsiders} are not members of this workspace")
    return wanted


def _set_assignees(task: Task, user_ids: List[int], assigned_by: int) -> None:
    """Replace the assignee set, keeping rows of users that stay assigned."""
    keep = [a for a in task.assignees if a.user_id in user_ids]
    present = {a.user_id for a in keep}
    now = datetime.utcnow()
    added = [
        TaskAssignee(user_id=uid, assigned_by=assigned_by, assigned_at=now)
        for uid in user_ids if uid not in present
    ]
    task.assignees = keep + added


def _check_completion_date(status: str, completion_date: Optional[date]) -> None:
    if completion_date is not None and status != TaskStatus.DONE.value:
        raise InvalidInputError("completion_date can only be set on done tasks")


def create_task(db: Session, user: User, workspace_id: Optional[int], data: Dict[str, Any],
                today: date = None) -> Task:
    if workspace_id is None:
        workspace_id = get_default_workspace_id(db, user)
        if workspace_id is None:
            raise InvalidInputError("No default workspace")
    require_access(db, user, workspace_id, AccessLevel.EDIT)

    status = TaskStatus(data.get("status") or TaskStatus.TODO).value
    _check_completion_date(status, data.get("completion_date"))
    check_label(db, Tag, data.get("tag_id"), workspace_id)
    check_label(db, Category, data.get("category_id"), workspace_id)
    assignee_ids = data.get("assignee_ids")
    assignee_ids = _check_assignees(db, workspace_id, [user.id] if assignee_ids is None else assignee_ids)

    stamps = lifecycle.initial_dates(status, today or lifecycle.get_today())
    task = Task(
        user_id=user.id,
        workspace_id=workspace_id,
        title=data["title"],
        description=data.get("description"),
        status=status,
        priority=TaskPriority(data.get("priority") or TaskPriority.NORMAL).value,
        due_date=data.get("due_date"),
        start_date=data.get("start_date") or stamps.get("start_date"),
        completion_date=data.get("completion_date") or stamps.get("completion_date"),
        tag_id=data.get("tag_id"),
        category_id=data.get("category_id"),
    )
    _set_assignees(task, assignee_ids, user.id)
    task.history.append(TaskHistory(status=status, notes="Task created", action_date=datetime.utcnow()))
    db.add(task)
    db.commit()
    db.refresh(task)
    logger.info(f"Task {task.id} created in workspace {workspace_id} by user {user.id}")
    return task


def update_task(db: Session, user: User, task_id: int, changes: Dict[str, Any], today: date = None) -> Task:
    """Partial update; a status change goes through the lifecycle and is logged in history."""
    task = get_task(db, user, task_id, AccessLevel.EDIT)

    if "tag_id" in changes:
        check_label(db, Tag, changes["tag_id"], task.workspace_id)
    if "category_id" in changes:
        check_label(db, Category, changes["category_id"], task.workspace_id)
    if "title" in changes and not changes["title"]:
        raise InvalidInputError("Title is required")
    if "priority" in changes:
        if changes["priority"] is None:
            raise InvalidInputError("Priority is required")
        changes["priority"] = TaskPriority(changes["priority"]).value

    new_status = changes.get("status") or task.status
    if "completion_date" in changes:
        _check_completion_date(new_status, changes["completion_date"])

    if "assignee_ids" in changes:
        _set_assignees(task, _check_assignees(db, task.workspace_id, changes["assignee_ids"] or []), user.id)

    for field in EDITABLE_FIELDS:
        if field in changes:
            setattr(task, field, changes[field])

    if changes.get("status"):
        lifecycle.apply_status(task, changes["status"], notes="Status updated via edit", today=today)
    if changes.get("completion_date") is not None:
        task.completion_date = changes["completion_date"]

    task.last_modified = datetime.utcnow()
    db.commit()
    db.refresh(task)
    return task


def set_status(db: Session, user: User, task_id: int, status: str, notes: Optional[str] = None,
               today: date = None) -> Task:
    task = get_task(db, user, task_id, AccessLevel.EDIT)
    lifecycle.apply_status(task, status, notes=notes, today=today)
    db.commit()
    db.refresh(task)
    return task


def cycle_status(db: Session, user: User, task_id: int, today: date = None) -> Task:
    task = get_task(db, user, task_id, AccessLevel.EDIT)
    if lifecycle.cycle_status(task, today=today) is not None:
        db.commit()
        db.refresh(task)
    return task


def complete_task(db: Session, user: User, task_id: int, notes: Optional[str] = None,
                  today: date = None) -> Task:
    task = get_task(db, user, task_id, AccessLevel.EDIT)
    if lifecycle.complete(task, notes=notes, today=today) is not None:
        db.commit()
        db.refresh(task)
    return task


def cycle_priority(db: Session, user: User, task_id: int) -> Task:
    task = get_task(db, user, task_id, AccessLevel.EDIT)
    lifecycle.cycle_priority(task)
    db.commit()
    db.refresh(task)
    return task


def move_task(db: Session, user: User, task_id: int, view: str, bucket: Optional[str] = None,
              tag_id: Optional[int] = None, today: date = None) -> Task:
    """
    Drag-and-drop. In the planner ``bucket`` names the target status bucket,
    in the tracker ``tag_id`` is the target tag (None for "Unassigned").
    Dropping on the task's own bucket changes nothing.
    """
    task = get_task(db, user, task_id, AccessLevel.EDIT)

    if ViewMode(view) == ViewMode.PLANNER:
        try:
            target = resolve_planner_drop(task, bucket)
        except ValueError as e:
            raise InvalidInputError(str(e))
        if target is None:
            return task
        lifecycle.apply_status(task, target, notes="Moved in planner", today=today)
    else:
        if not resolve_tracker_drop(task, tag_id):
            return task
        check_label(db, Tag, tag_id, task.workspace_id)
        task.tag_id = tag_id
        task.last_modified = datetime.utcnow()

    db.commit()
    db.refresh(task)
    return task


def delete_task(db: Session, user: User, task_id: int) -> None:
    task = get_task(db, user, task_id, AccessLevel.EDIT)
    db.delete(task)
    db.commit()
    logger.info(f"Task {task_id} deleted by user {user.id}")


def get_history(db: Session, user: User, task_id: int) -> List[TaskHistory]:
    task = get_task(db, user, task_id)
    return list(task.history)


def export_tasks(db: Session, user: User, workspace_id: int) -> List[Task]:
    require_access(db, user, workspace_id, AccessLevel.VIEW)
    return db.query(Task).filter(Task.workspace_id == workspace_id).order_by(Task.id).all()


def list_tasks(
    db: Session,
    user: User,
    workspace_id: Optional[int],
    view: str = ViewMode.PLANNER.value,
    preset_keys: Optional[List[str]] = None,
    custom_groups: Optional[List[FilterGroup]] = None,
    assignee_ids: Optional[List[int]] = None,
    category_ids: Optional[List[int]] = None,
    statuses: Optional[List[str]] = None,
    today: date = None,
) -> List[TaskGroup]:
    """Filtered, grouped and sorted task read for one workspace and view."""
    if workspace_id is None:
        workspace_id = get_default_workspace_id(db, user)
        if workspace_id is None:
            raise NotFoundError("Workspace not found")
    require_access(db, user, workspace_id, AccessLevel.VIEW)
    view = ViewMode(view)

    query = db.query(Task).filter(Task.workspace_id == workspace_id)
    if statuses:
        query = query.filter(Task.status.in_(statuses))
    if category_ids:
        query = query.filter(Task.category_id.in_(category_ids))
    if assignee_ids:
        query = query.filter(Task.assignees.any(TaskAssignee.user_id.in_(assignee_ids)))

    combined, hide_completed = resolve_filters(db, user, workspace_id, view.value, preset_keys, custom_groups)
    tasks = apply_filters(query.all(), combined, user.id, today or lifecycle.get_today())
    return group_tasks(tasks, view, show_completed=not hide_completed)
