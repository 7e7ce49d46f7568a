"""Workspace and membership models"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from taskflow.core.database import Base
from taskflow.models.enums import AccessLevel, sql_in


class Workspace(Base):
    __tablename__ = "workspaces"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    permissions = relationship("WorkspacePermission", back_populates="workspace", cascade="all, delete-orphan")
    tasks = relationship("Task", back_populates="workspace", cascade="all, delete-orphan")
    tags = relationship("Tag", cascade="all, delete-orphan")
    categories = relationship("Category", cascade="all, delete-orphan")
    filter_preferences = relationship("FilterPreference", cascade="all, delete-orphan")
    user_preferences = relationship("UserPreference", cascade="all, delete-orphan")


class WorkspacePermission(Base):
    __tablename__ = "workspace_permissions"
    __table_args__ = (
        CheckConstraint(f"access_level IN ({sql_in(AccessLevel)})", name="ck_permission_access_level"),
    )

    id = Column(Integer, primary_key=True, index=True)
    workspace_id = Column(Integer, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False, index=True)
    # NULL until the invited e-mail registers
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    email = Column(String(255), nullable=False, index=True)
    access_level = Column(String(20), nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    workspace = relationship("Workspace", back_populates="permissions")
    user = relationship("User")

    @property
    def is_pending(self) -> bool:
        return self.user_id is None
