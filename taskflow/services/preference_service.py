"""
User preferences and stored filters, both scoped to (user, workspace).

Free-form preferences are JSON blobs under a string key. Filters are typed
(see ``taskflow.services.filters``); the built-in presets can be toggled and
have their day window adjusted, custom filters can be added and removed.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from taskflow.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from taskflow.models.enums import AccessLevel
from taskflow.models.preference import UserPreference, FilterPreference
from taskflow.models.user import User
from taskflow.services.access import require_access
from taskflow.services.filters import AllOf, FilterGroup
from taskflow.services.preset_catalog import build_filter, to_filter_group, HIDE_COMPLETED

logger = logging.getLogger(__name__)


# ============ KEY / VALUE PREFERENCES ============

def get_preferences(db: Session, user: User, workspace_id: int) -> Dict[str, Any]:
    require_access(db, user, workspace_id, AccessLevel.VIEW)
    rows = db.query(UserPreference).filter(
        UserPreference.user_id == user.id,
        UserPreference.workspace_id == workspace_id
    ).all()

    preferences = {}
    for row in rows:
        try:
            preferences[row.preference_key] = json.loads(row.preference_value) if row.preference_value else None
        except ValueError:
            logger.warning(f"Unreadable preference {row.preference_key} for user {user.id}, returning raw value")
            preferences[row.preference_key] = row.preference_value
    return preferences


def set_preference(db: Session, user: User, workspace_id: int, key: str, value: Any) -> UserPreference:
    require_access(db, user, workspace_id, AccessLevel.VIEW)
    if not key or len(key) > 50:
        raise InvalidInputError("Preference key must be 1-50 characters")

    row = db.query(UserPreference).filter(
        UserPreference.user_id == user.id,
        UserPreference.workspace_id == workspace_id,
        UserPreference.preference_key == key
    ).first()
    if row is None:
        row = UserPreference(user_id=user.id, workspace_id=workspace_id, preference_key=key)
        db.add(row)
    row.preference_value = json.dumps(value)
    db.commit()
    db.refresh(row)
    return row


# ============ FILTERS ============

def list_filters(db: Session, user: User, workspace_id: int, view_mode: Optional[str] = None) -> List[FilterPreference]:
    require_access(db, user, workspace_id, AccessLevel.VIEW)
    query = db.query(FilterPreference).filter(
        FilterPreference.user_id == user.id,
        FilterPreference.workspace_id == workspace_id
    )
    if view_mode:
        query = query.filter(FilterPreference.view_mode == view_mode)
    # defaults first, then system presets, then custom filters
    return query.order_by(
        FilterPreference.is_default.desc(),
        FilterPreference.is_system.desc(),
        FilterPreference.id
    ).all()


def get_filter(db: Session, user: User, workspace_id: int, key: str) -> FilterPreference:
    require_access(db, user, workspace_id, AccessLevel.VIEW)
    pref = db.query(FilterPreference).filter(
        FilterPreference.user_id == user.id,
        FilterPreference.workspace_id == workspace_id,
        FilterPreference.key == key
    ).first()
    if not pref:
        raise NotFoundError("Filter not found")
    return pref


def update_filter(db: Session, user: User, workspace_id: int, key: str,
                  enabled: Optional[bool] = None, days: Optional[int] = None) -> FilterPreference:
    pref = get_filter(db, user, workspace_id, key)

    if enabled is not None:
        pref.enabled = enabled
    if days is not None:
        date_rows = [c for c in pref.conditions if c.condition_type == "date_diff"]
        if not date_rows:
            raise InvalidInputError(f"Filter '{key}' has no day window")
        for row in date_rows:
            row.values = [days]

    db.commit()
    db.refresh(pref)
    return pref


def _slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")
    return slug or "filter"


def create_filter(db: Session, user: User, workspace_id: int, name: str, view_mode: str,
                  group: FilterGroup, enabled: bool = True) -> FilterPreference:
    require_access(db, user, workspace_id, AccessLevel.VIEW)
    key = f"custom_{_slugify(name)}"
    exists = db.query(FilterPreference).filter(
        FilterPreference.user_id == user.id,
        FilterPreference.workspace_id == workspace_id,
        FilterPreference.key == key
    ).first()
    if exists:
        raise ConflictError(f"A filter named '{name}' already exists")

    pref = build_filter(user.id, workspace_id, key, name, view_mode, group, enabled=enabled)
    db.add(pref)
    db.commit()
    db.refresh(pref)
    logger.info(f"Custom filter '{key}' created by user {user.id} in workspace {workspace_id}")
    return pref


def delete_filter(db: Session, user: User, workspace_id: int, key: str) -> None:
    pref = get_filter(db, user, workspace_id, key)
    if pref.is_system:
        raise InvalidInputError("Preset filters cannot be deleted, disable them instead")
    db.delete(pref)
    db.commit()


def resolve_filters(db: Session, user: User, workspace_id: int, view_mode: str,
                    preset_keys: Optional[List[str]] = None,
                    custom_groups: Optional[List[FilterGroup]] = None) -> Tuple[AllOf, bool]:
    """
    Build the AllOf for a task read.

    With ``preset_keys`` None the filters enabled for ``view_mode`` apply,
    otherwise exactly the named ones (unknown keys are rejected).
    Also returns whether the stored Hide Completed preset is among them.
    """
    query = db.query(FilterPreference).filter(
        FilterPreference.user_id == user.id,
        FilterPreference.workspace_id == workspace_id
    )
    if preset_keys is None:
        prefs = query.filter(
            FilterPreference.view_mode == view_mode,
            FilterPreference.enabled == True
        ).order_by(FilterPreference.id).all()
    else:
        prefs = query.filter(FilterPreference.key.in_(preset_keys)).order_by(FilterPreference.id).all()
        missing = set(preset_keys) - {p.key for p in prefs}
        if missing:
            raise InvalidInputError(f"Unknown filters: {', '.join(sorted(missing))}")

    groups = [to_filter_group(p) for p in prefs]
    groups.extend(custom_groups or [])
    hide_completed = any(p.key == HIDE_COMPLETED and p.is_system for p in prefs)
    return AllOf(groups=groups), hide_completed
