"""Task ORM model. Written by the task use cases, read by the notification workflow."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import BaseModel
from app.infrastructure.persistence.models.project import Project
from app.infrastructure.persistence.models.user import User
from app.shared.enums import TaskPriority, TaskStatus, TaskType


def _in_values(column: str, values: list[str]) -> str:
    return "{} IN ({})".format(column, ", ".join(f"'{v}'" for v in values))


class Task(BaseModel, Base):
    """Task within a project, optionally assigned to a project member. Table: task."""

    __tablename__ = "task"

    project_id: Mapped[str] = mapped_column(
        String, ForeignKey("project.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(
        String(32), nullable=False, default=TaskType.TASK.value
    )
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=TaskStatus.TODO.value, index=True
    )
    priority: Mapped[str] = mapped_column(
        String(16), nullable=False, default=TaskPriority.MEDIUM.value
    )
    assignee_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("app_user.id", ondelete="SET NULL"), nullable=True, index=True
    )
    due_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    project: Mapped[Project] = relationship(lazy="raise")
    assignee: Mapped[User | None] = relationship(lazy="raise")

    __table_args__ = (
        Index("ix_task_project_status", "project_id", "status"),
        CheckConstraint(_in_values("status", TaskStatus.values()), name="task_status_check"),
        CheckConstraint(
            _in_values("priority", TaskPriority.values()), name="task_priority_check"
        ),
    )
