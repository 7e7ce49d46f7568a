from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Any, Dict, List, Optional

from taskflow.core.database import get_db
from taskflow.core.deps import get_current_user
from taskflow.models.enums import ViewMode
from taskflow.models.preference import FilterPreference
from taskflow.models.user import User
from taskflow.schemas.preference import PreferenceSet, FilterCreate, FilterUpdate, FilterResponse
from taskflow.services import preference_service
from taskflow.services.preset_catalog import to_filter_group

router = APIRouter(prefix="/preferences", tags=["preferences"])


def _filter_response(pref: FilterPreference) -> FilterResponse:
    return FilterResponse(
        id=pref.id,
        key=pref.key,
        name=pref.name,
        view_mode=pref.view_mode,
        operator=pref.operator,
        is_default=pref.is_default,
        enabled=pref.enabled,
        is_system=pref.is_system,
        conditions=to_filter_group(pref).conditions,
    )


@router.get("/{workspace_id}", response_model=Dict[str, Any])
def get_preferences(
    workspace_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return preference_service.get_preferences(db, current_user, workspace_id)


@router.post("/{workspace_id}")
def set_preference(
    workspace_id: int,
    data: PreferenceSet,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    preference_service.set_preference(db, current_user, workspace_id, data.key, data.value)
    return {"key": data.key, "value": data.value}


@router.get("/{workspace_id}/filters", response_model=List[FilterResponse])
def list_filters(
    workspace_id: int,
    view_mode: Optional[ViewMode] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    prefs = preference_service.list_filters(db, current_user, workspace_id, view_mode.value if view_mode else None)
    return [_filter_response(p) for p in prefs]


@router.post("/{workspace_id}/filters", response_model=FilterResponse, status_code=status.HTTP_201_CREATED)
def create_filter(
    workspace_id: int,
    data: FilterCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    pref = preference_service.create_filter(
        db, current_user, workspace_id, data.name.strip(), data.view_mode, data.group, enabled=data.enabled
    )
    return _filter_response(pref)


@router.patch("/{workspace_id}/filters/{key}", response_model=FilterResponse)
def update_filter(
    workspace_id: int,
    key: str,
    data: FilterUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    pref = preference_service.update_filter(db, current_user, workspace_id, key, enabled=data.enabled, days=data.days)
    return _filter_response(pref)


@router.delete("/{workspace_id}/filters/{key}", status_code=status.HTTP_204_NO_CONTENT)
def delete_filter(
    workspace_id: int,
    key: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    preference_service.delete_filter(db, current_user, workspace_id, key)
