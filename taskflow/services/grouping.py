"""
Planner / tracker grouping.

Planner: fixed buckets by status, sorted by priority then title.
Tracker: one bucket per tag ("Unassigned" first), sorted by status then title.
"""

from typing import Dict, List, Optional, Union

from pydantic import BaseModel

from taskflow.models.enums import TaskStatus, ViewMode
from taskflow.models.task import Task

IN_PROGRESS_BUCKET = "In Progress & Paused"
TODO_BUCKET = "To Do"
COMPLETED_BUCKET = "Completed"
UNASSIGNED_BUCKET = "Unassigned"

# planner bucket key -> (label, statuses)
PLANNER_BUCKETS = [
    ("in_progress", IN_PROGRESS_BUCKET, (TaskStatus.IN_PROGRESS.value, TaskStatus.PAUSED.value)),
    ("todo", TODO_BUCKET, (TaskStatus.TODO.value,)),
    ("completed", COMPLETED_BUCKET, (TaskStatus.DONE.value,)),
]

# status a task takes when dropped into a planner bucket
PLANNER_DROP_STATUS = {
    "in_progress": TaskStatus.IN_PROGRESS,
    "todo": TaskStatus.TODO,
    "completed": TaskStatus.DONE,
}

PRIORITY_RANK = {"urgent": 0, "high": 1, "normal": 2, "low": 3}
STATUS_RANK = {"done": 0, "in_progress": 1, "paused": 2, "todo": 3}


class TaskGroup(BaseModel):
    name: str
    key: Union[str, int, None]
    tasks: List[Task]

    model_config = {"arbitrary_types_allowed": True}


def planner_sort_key(task: Task):
    return (PRIORITY_RANK[task.priority], task.title)


def tracker_sort_key(task: Task):
    return (STATUS_RANK[task.status], task.title)


def planner_bucket_of(task: Task) -> str:
    for key, _, statuses in PLANNER_BUCKETS:
        if task.status in statuses:
            return key
    raise ValueError(f"Unknown status: {task.status}")


def group_planner(tasks: List[Task], show_completed: bool = False) -> List[TaskGroup]:
    groups = []
    for key, label, statuses in PLANNER_BUCKETS:
        if key == "completed" and not show_completed:
            continue
        members = sorted((t for t in tasks if t.status in statuses), key=planner_sort_key)
        groups.append(TaskGroup(name=label, key=key, tasks=members))
    return groups


def group_tracker(tasks: List[Task]) -> List[TaskGroup]:
    buckets: Dict[Optional[int], List[Task]] = {}
    names: Dict[Optional[int], str] = {None: UNASSIGNED_BUCKET}
    for task in tasks:
        buckets.setdefault(task.tag_id, []).append(task)
        if task.tag_id is not None:
            names[task.tag_id] = task.tag_name

    def order(tag_id):
        # Unassigned first, then tag names
        return (tag_id is not None, names[tag_id].casefold() if tag_id is not None else "")

    return [
        TaskGroup(name=names[tag_id], key=tag_id, tasks=sorted(buckets[tag_id], key=tracker_sort_key))
        for tag_id in sorted(buckets, key=order)
    ]


def group_tasks(tasks: List[Task], view: ViewMode, show_completed: bool = False) -> List[TaskGroup]:
    if ViewMode(view) == ViewMode.PLANNER:
        return group_planner(tasks, show_completed=show_completed)
    return group_tracker(tasks)


def resolve_planner_drop(task: Task, bucket: str) -> Optional[TaskStatus]:
    """Status to apply when ``task`` is dropped on a planner bucket, None for a no-op."""
    if bucket not in PLANNER_DROP_STATUS:
        raise ValueError(f"Unknown planner bucket: {bucket}")
    if planner_bucket_of(task) == bucket:
        return None
    return PLANNER_DROP_STATUS[bucket]


def resolve_tracker_drop(task: Task, tag_id: Optional[int]) -> bool:
    """True when dropping on the tag bucket actually changes the task."""
    return task.tag_id != tag_id
