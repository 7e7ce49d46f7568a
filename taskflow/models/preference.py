"""Per-user, per-workspace preferences and stored filters"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, JSON, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from taskflow.core.database import Base


class UserPreference(Base):
    __tablename__ = "user_preferences"
    __table_args__ = (
        UniqueConstraint("user_id", "workspace_id", "preference_key", name="uq_user_preferences"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    workspace_id = Column(Integer, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False, index=True)
    preference_key = Column(String(50), nullable=False)
    preference_value = Column(Text, nullable=True)  # JSON encoded

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class FilterPreference(Base):
    __tablename__ = "filter_preferences"
    __table_args__ = (
        UniqueConstraint("user_id", "workspace_id", "key", name="uq_filter_preferences"),
        CheckConstraint("view_mode IN ('planner', 'tracker')", name="ck_filter_view_mode"),
        CheckConstraint("operator IN ('AND', 'OR')", name="ck_filter_operator"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    workspace_id = Column(Integer, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False, index=True)
    key = Column(String(100), nullable=False)
    name = Column(String(255), nullable=False)
    view_mode = Column(String(20), nullable=False)
    operator = Column(String(10), nullable=False, default="AND")
    is_default = Column(Boolean, default=False, nullable=False)
    enabled = Column(Boolean, default=False, nullable=False)
    is_system = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    conditions = relationship(
        "FilterCondition",
        cascade="all, delete-orphan",
        order_by="FilterCondition.id",
    )


class FilterCondition(Base):
    __tablename__ = "filter_conditions"
    __table_args__ = (
        CheckConstraint("condition_type IN ('list', 'date_diff')", name="ck_filter_condition_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    filter_id = Column(Integer, ForeignKey("filter_preferences.id", ondelete="CASCADE"), nullable=False, index=True)
    condition_type = Column(String(20), nullable=False)
    field = Column(String(50), nullable=True)
    date_from = Column(String(50), nullable=True)
    date_to = Column(String(50), nullable=True)
    operator = Column(String(30), nullable=False)
    values = Column(JSON, default=list)
    unit = Column(String(20), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
