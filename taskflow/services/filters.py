"""
Filter / preset evaluation.

A filter is a group of conditions joined by AND or OR. Conditions are a closed
tagged union discriminated by ``condition_type``:

- ``list``      task[field] (=, !=, IN, NOT IN) values
- ``date_diff`` (date_to - date_from) in days (<, <=, >, >=, =) days

Several enabled presets plus any ad hoc groups are combined with ``AllOf``:
a task is kept only if every group matches it.
"""

from datetime import date, datetime
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from taskflow.models.task import Task

CURRENT_USER = "current_user_id"
NO_VALUE = "none"

ListField = Literal["status", "priority", "tag", "category", "assignee"]
ListOperator = Literal["=", "!=", "IN", "NOT IN"]
DateRef = Literal["today", "due_date", "start_date", "completion_date", "last_modified", "created_at"]
DiffOperator = Literal["<", "<=", ">", ">=", "="]

# front-end spellings
_DATE_REF_ALIASES = {"created_date": "created_at", "updated_at": "last_modified"}
_DIFF_OPERATOR_ALIASES = {"lt": "<", "le": "<=", "gt": ">", "ge": ">=", "eq": "="}
_LIST_OPERATOR_ALIASES = {
    "equals": "=", "not_equals": "!=", "in": "IN", "not_in": "NOT IN", "not in": "NOT IN",
}
_FIELD_ALIASES = {"tag_id": "tag", "category_id": "category"}


class ListCondition(BaseModel):
    condition_type: Literal["list"] = "list"
    field: ListField
    operator: ListOperator = "IN"
    values: List[Union[int, str, None]] = Field(default_factory=list)

    @field_validator("field", mode="before")
    @classmethod
    def _normalize_field(cls, value):
        return _FIELD_ALIASES.get(value, value)

    @field_validator("operator", mode="before")
    @classmethod
    def _normalize_operator(cls, value):
        if isinstance(value, str):
            return _LIST_OPERATOR_ALIASES.get(value.lower(), value.upper())
        return value


class DateDiffCondition(BaseModel):
    condition_type: Literal["date_diff"] = "date_diff"
    date_from: DateRef
    date_to: DateRef
    operator: DiffOperator
    days: int

    @field_validator("date_from", "date_to", mode="before")
    @classmethod
    def _normalize_ref(cls, value):
        return _DATE_REF_ALIASES.get(value, value)

    @field_validator("operator", mode="before")
    @classmethod
    def _normalize_operator(cls, value):
        return _DIFF_OPERATOR_ALIASES.get(value, value)


Condition = Annotated[Union[ListCondition, DateDiffCondition], Field(discriminator="condition_type")]


class FilterGroup(BaseModel):
    operator: Literal["AND", "OR"] = "AND"
    conditions: List[Condition] = Field(min_length=1)
    name: Optional[str] = None


class AllOf(BaseModel):
    """Conjunction of filter groups (enabled presets and ad hoc groups)."""
    groups: List[FilterGroup] = Field(default_factory=list)


# ============ EVALUATION ============

def _as_date(value) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


def _resolve_date(task: Task, ref: str, today: date) -> Optional[date]:
    if ref == "today":
        return today
    return _as_date(getattr(task, ref))


def _compare(diff: int, operator: str, threshold: int) -> bool:
    if operator == "<":
        return diff < threshold
    if operator == "<=":
        return diff <= threshold
    if operator == ">":
        return diff > threshold
    if operator == ">=":
        return diff >= threshold
    if operator == "=":
        return diff == threshold
    raise ValueError(f"Unknown date operator: {operator}")


def _resolve_values(values: List[Any], user_id: Optional[int]) -> set:
    resolved = set()
    for value in values:
        if value == CURRENT_USER:
            resolved.add(user_id)
        elif value is None or value == NO_VALUE:
            resolved.add(None)
        elif isinstance(value, str) and value.isdigit():
            resolved.add(int(value))
        else:
            resolved.add(value)
    return resolved


def _list_hit(task: Task, condition: ListCondition, user_id: Optional[int]) -> bool:
    """Membership test, before the operator's negation is applied."""
    wanted = _resolve_values(condition.values, user_id)

    if condition.field == "assignee":
        assigned = set(task.assignee_ids)
        if not assigned:
            return None in wanted
        return bool(assigned & wanted)

    if condition.field == "tag":
        return task.tag_id in wanted
    if condition.field == "category":
        return task.category_id in wanted
    return getattr(task, condition.field) in wanted


def evaluate_list(task: Task, condition: ListCondition, user_id: Optional[int]) -> bool:
    hit = _list_hit(task, condition, user_id)
    if condition.operator in ("=", "IN"):
        return hit
    return not hit


def evaluate_date_diff(task: Task, condition: DateDiffCondition, today: date) -> bool:
    start = _resolve_date(task, condition.date_from, today)
    end = _resolve_date(task, condition.date_to, today)
    if start is None or end is None:
        return False
    return _compare((end - start).days, condition.operator, condition.days)


def evaluate_condition(task: Task, condition, user_id: Optional[int], today: date) -> bool:
    if isinstance(condition, ListCondition):
        return evaluate_list(task, condition, user_id)
    if isinstance(condition, DateDiffCondition):
        return evaluate_date_diff(task, condition, today)
    raise TypeError(f"Unsupported condition: {type(condition).__name__}")


def evaluate_group(task: Task, group: FilterGroup, user_id: Optional[int], today: date) -> bool:
    results = (evaluate_condition(task, c, user_id, today) for c in group.conditions)
    if group.operator == "OR":
        return any(results)
    return all(results)


def evaluate(task: Task, combined: AllOf, user_id: Optional[int], today: date) -> bool:
    return all(evaluate_group(task, g, user_id, today) for g in combined.groups)


def apply_filters(tasks: List[Task], combined: AllOf, user_id: Optional[int], today: date) -> List[Task]:
    return [t for t in tasks if evaluate(t, combined, user_id, today)]
