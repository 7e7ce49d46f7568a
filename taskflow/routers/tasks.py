from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from taskflow.core.database import get_db
from taskflow.core.deps import get_current_user
from taskflow.models.enums import TaskStatus, ViewMode
from taskflow.models.user import User
from taskflow.schemas.task import (
    TaskCreate,
    TaskUpdate,
    TaskResponse,
    StatusUpdate,
    CompleteRequest,
    TaskMoveRequest,
    TaskQuery,
    TaskListResponse,
    TaskHistoryResponse,
)
from taskflow.services import task_service
from taskflow.services.grouping import TaskGroup

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _grouped(view: str, groups: List[TaskGroup]) -> TaskListResponse:
    return TaskListResponse(
        view=view,
        groups=[
            {"name": g.name, "key": g.key, "tasks": [TaskResponse.model_validate(t) for t in g.tasks]}
            for g in groups
        ],
    )


@router.get("", response_model=TaskListResponse)
def list_tasks(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    workspace_id: Optional[int] = Query(None),
    view: ViewMode = Query(ViewMode.PLANNER),
    preset_keys: Optional[List[str]] = Query(None),
    assignee_ids: Optional[List[int]] = Query(None),
    category_ids: Optional[List[int]] = Query(None),
    statuses: Optional[List[TaskStatus]] = Query(None)
):
    """Grouped read using the filters enabled for the view (or ``preset_keys``)."""
    groups = task_service.list_tasks(
        db, current_user, workspace_id,
        view=view.value,
        preset_keys=preset_keys,
        assignee_ids=assignee_ids,
        category_ids=category_ids,
        statuses=[s.value for s in statuses] if statuses else None,
    )
    return _grouped(view.value, groups)


@router.post("/query", response_model=TaskListResponse)
def query_tasks(
    query: TaskQuery,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Same as the list read, with ad hoc filter groups AND-ed onto the presets."""
    groups = task_service.list_tasks(
        db, current_user, query.workspace_id,
        view=query.view,
        preset_keys=query.preset_keys,
        custom_groups=query.filters,
        assignee_ids=query.assignee_ids,
        category_ids=query.category_ids,
        statuses=query.statuses,
    )
    return _grouped(query.view, groups)


@router.get("/export", response_model=List[TaskResponse])
def export_tasks(
    workspace_id: int = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return task_service.export_tasks(db, current_user, workspace_id)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    data = task_data.model_dump(exclude={"workspace_id"})
    return task_service.create_task(db, current_user, task_data.workspace_id, data)


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return task_service.get_task(db, current_user, task_id)


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: int,
    task_data: TaskUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return task_service.update_task(db, current_user, task_id, task_data.model_dump(exclude_unset=True))


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    task_service.delete_task(db, current_user, task_id)


# ============ LIFECYCLE ============

@router.patch("/{task_id}/status", response_model=TaskResponse)
def set_status(
    task_id: int,
    data: StatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return task_service.set_status(db, current_user, task_id, data.status, notes=data.notes)


@router.post("/{task_id}/cycle-status", response_model=TaskResponse)
def cycle_status(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return task_service.cycle_status(db, current_user, task_id)


@router.post("/{task_id}/complete", response_model=TaskResponse)
def complete_task(
    task_id: int,
    data: Optional[CompleteRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    notes = data.notes if data else None
    return task_service.complete_task(db, current_user, task_id, notes=notes)


@router.post("/{task_id}/cycle-priority", response_model=TaskResponse)
def cycle_priority(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return task_service.cycle_priority(db, current_user, task_id)


@router.post("/{task_id}/move", response_model=TaskResponse)
def move_task(
    task_id: int,
    data: TaskMoveRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return task_service.move_task(db, current_user, task_id, data.view, bucket=data.bucket, tag_id=data.tag_id)


@router.get("/{task_id}/history", response_model=List[TaskHistoryResponse])
def get_history(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return task_service.get_history(db, current_user, task_id)
