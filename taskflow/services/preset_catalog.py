"""Built-in preset filters and conversion between stored rows and FilterGroup."""

import logging
from typing import List

from sqlalchemy.orm import Session

from taskflow.models.preference import FilterPreference, FilterCondition
from taskflow.services.filters import FilterGroup, ListCondition, DateDiffCondition, CURRENT_USER

logger = logging.getLogger(__name__)

HIDE_COMPLETED = "hide_completed"

# key, name, view_mode, operator, enabled by default, conditions
PRESETS = [
    (HIDE_COMPLETED, "Hide Completed", "planner", "AND", True, [
        {"condition_type": "list", "field": "status", "operator": "!=", "values": ["done"]},
    ]),
    ("assigned_to_me", "Assigned to Me", "planner", "AND", False, [
        {"condition_type": "list", "field": "assignee", "operator": "=", "values": [CURRENT_USER]},
    ]),
    ("due_in_7_days", "Due in 7 Days", "planner", "AND", False, [
        {"condition_type": "date_diff", "date_from": "today", "date_to": "due_date", "operator": "<=", "days": 7},
    ]),
    ("overdue", "Overdue Tasks", "planner", "AND", False, [
        {"condition_type": "date_diff", "date_from": "today", "date_to": "due_date", "operator": "<", "days": 0},
        {"condition_type": "list", "field": "status", "operator": "!=", "values": ["done"]},
    ]),
    ("high_urgent_priority", "High/Urgent Priority", "planner", "AND", False, [
        {"condition_type": "list", "field": "priority", "operator": "IN", "values": ["high", "urgent"]},
    ]),
    ("active_past_7_days", "Active in Past 7 Days", "tracker", "OR", True, [
        {"condition_type": "list", "field": "status", "operator": "IN", "values": ["in_progress", "paused"]},
        {"condition_type": "date_diff", "date_from": "completion_date", "date_to": "today", "operator": "<=", "days": 7},
    ]),
    ("unchanged_past_14_days", "Unchanged in Past 14 Days", "tracker", "AND", False, [
        {"condition_type": "list", "field": "status", "operator": "!=", "values": ["done"]},
        {"condition_type": "date_diff", "date_from": "last_modified", "date_to": "today", "operator": ">", "days": 14},
    ]),
    ("lasted_more_than_1_day", "Lasted More Than 1 Day", "tracker", "AND", False, [
        {"condition_type": "date_diff", "date_from": "start_date", "date_to": "completion_date", "operator": ">", "days": 1},
    ]),
    ("assigned_to_me_tracker", "Assigned to Me", "tracker", "AND", False, [
        {"condition_type": "list", "field": "assignee", "operator": "=", "values": [CURRENT_USER]},
    ]),
]


def condition_to_row(condition) -> FilterCondition:
    if isinstance(condition, ListCondition):
        return FilterCondition(
            condition_type="list",
            field=condition.field,
            operator=condition.operator,
            values=list(condition.values),
        )
    if isinstance(condition, DateDiffCondition):
        return FilterCondition(
            condition_type="date_diff",
            date_from=condition.date_from,
            date_to=condition.date_to,
            operator=condition.operator,
            values=[condition.days],
            unit="days",
        )
    raise TypeError(f"Unsupported condition: {type(condition).__name__}")


def row_to_condition(row: FilterCondition):
    if row.condition_type == "list":
        return ListCondition(field=row.field, operator=row.operator, values=row.values or [])
    if row.condition_type == "date_diff":
        values = row.values or [0]
        return DateDiffCondition(
            date_from=row.date_from,
            date_to=row.date_to,
            operator=row.operator,
            days=int(values[0]),
        )
    raise ValueError(f"Unknown condition type: {row.condition_type}")


def to_filter_group(pref: FilterPreference) -> FilterGroup:
    return FilterGroup(
        name=pref.key,
        operator=pref.operator,
        conditions=[row_to_condition(row) for row in pref.conditions],
    )


def build_filter(user_id: int, workspace_id: int, key: str, name: str, view_mode: str,
                 group: FilterGroup, enabled: bool = False, is_system: bool = False,
                 is_default: bool = False) -> FilterPreference:
    pref = FilterPreference(
        user_id=user_id,
        workspace_id=workspace_id,
        key=key,
        name=name,
        view_mode=view_mode,
        operator=group.operator,
        is_default=is_default,
        enabled=enabled,
        is_system=is_system,
    )
    pref.conditions = [condition_to_row(c) for c in group.conditions]
    return pref


def create_default_presets(db: Session, user_id: int, workspace_id: int) -> List[FilterPreference]:
    """Add the built-in presets for a user joining a workspace (no commit)."""
    existing = {
        key for (key,) in db.query(FilterPreference.key).filter(
            FilterPreference.user_id == user_id,
            FilterPreference.workspace_id == workspace_id,
        )
    }
    created = []
    for key, name, view_mode, operator, enabled, conditions in PRESETS:
        if key in existing:
            continue
        group = FilterGroup(operator=operator, conditions=conditions)
        pref = build_filter(user_id, workspace_id, key, name, view_mode, group,
                            enabled=enabled, is_system=True, is_default=enabled)
        db.add(pref)
        created.append(pref)

    logger.info(f"Created {len(created)} preset filters for user {user_id} in workspace {workspace_id}")
    return created
