from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional

from taskflow.models.enums import ViewMode
from taskflow.services.filters import FilterGroup, Condition


class PreferenceSet(BaseModel):
    key: str = Field(min_length=1, max_length=50)
    value: Any = None


class FilterCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    view_mode: ViewMode
    group: FilterGroup
    enabled: bool = True

    model_config = ConfigDict(use_enum_values=True)


class FilterUpdate(BaseModel):
    enabled: Optional[bool] = None
    days: Optional[int] = None


class FilterResponse(BaseModel):
    id: int
    key: str
    name: str
    view_mode: str
    operator: str
    is_default: bool
    enabled: bool
    is_system: bool
    conditions: List[Condition]
