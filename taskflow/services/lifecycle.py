"""
Task status / priority lifecycle.

Status cycle (single click):   todo -> in_progress -> paused -> in_progress -> ...
Complete (double click):       any -> done
Priority ring:                 normal -> high -> urgent -> low -> normal

Every status change goes through ``apply_status`` so the date stamps and the
history row stay consistent with the new status:

- entering in_progress stamps start_date (kept if already set)
- entering done stamps completion_date
- leaving done clears completion_date
"""

import logging
from datetime import date, datetime
from typing import Optional

from taskflow.models.enums import TaskStatus, TaskPriority
from taskflow.models.task import Task, TaskHistory

logger = logging.getLogger(__name__)

STATUS_CYCLE = {
    TaskStatus.TODO: TaskStatus.IN_PROGRESS,
    TaskStatus.IN_PROGRESS: TaskStatus.PAUSED,
    TaskStatus.PAUSED: TaskStatus.IN_PROGRESS,
    TaskStatus.DONE: TaskStatus.DONE,
}

PRIORITY_RING = {
    TaskPriority.NORMAL: TaskPriority.HIGH,
    TaskPriority.HIGH: TaskPriority.URGENT,
    TaskPriority.URGENT: TaskPriority.LOW,
    TaskPriority.LOW: TaskPriority.NORMAL,
}


def get_today() -> date:
    # same UTC clock as the last_modified / created_at stamps
    return datetime.utcnow().date()


def next_status(current: str) -> TaskStatus:
    return STATUS_CYCLE[TaskStatus(current)]


def next_priority(current: str) -> TaskPriority:
    return PRIORITY_RING[TaskPriority(current)]


def stamp_dates(task: Task, new_status: TaskStatus, today: date) -> None:
    """Align start/completion dates with ``new_status``."""
    if new_status == TaskStatus.IN_PROGRESS and task.start_date is None:
        task.start_date = today
    if new_status == TaskStatus.DONE:
        task.completion_date = today
    else:
        task.completion_date = None


def apply_status(task: Task, new_status, notes: Optional[str] = None, today: date = None) -> Optional[TaskHistory]:
    """
    Move ``task`` to ``new_status`` and append the matching history row.

    Returns the new TaskHistory (not yet committed) or None when the status
    is unchanged, in which case nothing is touched.
    """
    new_status = TaskStatus(new_status)
    if task.status == new_status.value:
        return None
    if today is None:
        today = get_today()

    previous = task.status
    stamp_dates(task, new_status, today)
    task.status = new_status.value
    task.last_modified = datetime.utcnow()

    entry = TaskHistory(status=new_status.value, notes=notes, action_date=datetime.utcnow())
    task.history.append(entry)
    logger.info(f"Task {task.id} status {previous} -> {new_status.value}")
    return entry


def cycle_status(task: Task, today: date = None) -> Optional[TaskHistory]:
    """Single-click transition; done is a fixed point."""
    return apply_status(task, next_status(task.status), today=today)


def complete(task: Task, notes: Optional[str] = None, today: date = None) -> Optional[TaskHistory]:
    return apply_status(task, TaskStatus.DONE, notes=notes, today=today)


def cycle_priority(task: Task) -> TaskPriority:
    new_priority = next_priority(task.priority)
    task.priority = new_priority.value
    task.last_modified = datetime.utcnow()
    return new_priority


def initial_dates(status, today: date = None) -> dict:
    """Date stamps for a task created directly in ``status``."""
    status = TaskStatus(status)
    if today is None:
        today = get_today()
    stamps = {}
    if status in (TaskStatus.IN_PROGRESS, TaskStatus.PAUSED):
        stamps["start_date"] = today
    if status == TaskStatus.DONE:
        stamps["start_date"] = today
        stamps["completion_date"] = today
    return stamps
