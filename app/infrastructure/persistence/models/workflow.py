"""WorkflowRun and WorkflowStep ORM models: durable run state and step log."""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.infrastructure.persistence.database import Base
from app.infrastructure.persistence.models.mixins import BaseModel
from app.shared.enums import StepKind, WorkflowRunStatus


class WorkflowRun(BaseModel, Base):
    """One execution of a workflow function for one trigger. Table: workflow_run.

    (function_id, run_key) is unique: duplicate deliveries of the same
    trigger resolve to the same run. resume_at is the suspend-until time
    for sleeping runs and the retry-at time for pending runs.
    """

    __tablename__ = "workflow_run"

    function_id: Mapped[str] = mapped_column(String(128), nullable=False)
    run_key: Mapped[str] = mapped_column(String(128), nullable=False)
    event_name: Mapped[str] = mapped_column(String(128), nullable=False)
    event_data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=WorkflowRunStatus.PENDING.value
    )
    current_step: Mapped[str | None] = mapped_column(String(128), nullable=True)
    resume_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    lease_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    # Set by each claim; guarded updates match it so a superseded worker cannot write.
    lease_token: Mapped[str | None] = mapped_column(String(64), nullable=True)
    attempt: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    output: Mapped[Any | None] = mapped_column(JSON, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        UniqueConstraint("function_id", "run_key", name="uq_workflow_run_key"),
        Index("ix_workflow_run_due", "status", "resume_at"),
        CheckConstraint(
            "status IN ({})".format(
                ", ".join(f"'{v}'" for v in WorkflowRunStatus.values())
            ),
            name="workflow_run_status_check",
        ),
    )


class WorkflowStep(BaseModel, Base):
    """Completed step of a run (replay log). Table: workflow_step.

    Unique (run_id, name). position is the execution order within the run.
    """

    __tablename__ = "workflow_step"

    run_id: Mapped[str] = mapped_column(
        String, ForeignKey("workflow_run.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    kind: Mapped[str] = mapped_column(
        String(16), nullable=False, default=StepKind.RUN.value
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    output: Mapped[Any | None] = mapped_column(JSON, nullable=True)
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("run_id", "name", name="uq_workflow_step_name"),
        Index("ix_workflow_step_run_position", "run_id", "position"),
    )
