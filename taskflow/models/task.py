"""Task model"""

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from taskflow.core.database import Base
from taskflow.models.enums import TaskStatus, TaskPriority, sql_in


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        CheckConstraint(f"status IN ({sql_in(TaskStatus)})", name="ck_tasks_status"),
        CheckConstraint(f"priority IN ({sql_in(TaskPriority)})", name="ck_tasks_priority"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    workspace_id = Column(Integer, ForeignKey("workspaces.id", ondelete="CASCADE"), nullable=False, index=True)
    tag_id = Column(Integer, ForeignKey("tags.id", ondelete="SET NULL"), nullable=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), default=TaskStatus.TODO.value, nullable=False, index=True)
    priority = Column(String(20), default=TaskPriority.NORMAL.value, nullable=False, index=True)

    due_date = Column(Date, nullable=True)
    start_date = Column(Date, nullable=True)
    completion_date = Column(Date, nullable=True)

    last_modified = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)

    workspace = relationship("Workspace", back_populates="tasks")
    tag = relationship("Tag")
    category = relationship("Category")
    assignees = relationship("TaskAssignee", cascade="all, delete-orphan", order_by="TaskAssignee.id")
    history = relationship(
        "TaskHistory",
        cascade="all, delete-orphan",
        order_by="TaskHistory.id",
        back_populates="task",
    )

    # derived fields exposed by TaskResponse

    @property
    def tag_name(self):
        return self.tag.name if self.tag else None

    @property
    def category_name(self):
        return self.category.name if self.category else None

    @property
    def assignee_ids(self):
        return [a.user_id for a in self.assignees]

    @property
    def assignee_names(self):
        return [a.user.name for a in self.assignees if a.user]


class TaskAssignee(Base):
    __tablename__ = "task_assignees"
    __table_args__ = (UniqueConstraint("task_id", "user_id", name="uq_task_assignees"),)

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    assigned_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    assigned_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", foreign_keys=[user_id])


class TaskHistory(Base):
    """Append-only status log, one row per transition."""
    __tablename__ = "task_history"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False)
    action_date = Column(DateTime, default=datetime.utcnow)
    notes = Column(Text, nullable=True)

    task = relationship("Task", back_populates="history")
