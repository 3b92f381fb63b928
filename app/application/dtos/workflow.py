"""DTOs for workflow events and runs (no dependency on ORM)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

TASK_ASSIGNED_EVENT = "app/task.assigned"


@dataclass(frozen=True)
class WorkflowEvent:
    """Inbound trigger. id, when given, is the idempotency key for the runs it starts."""

    name: str
    data: dict[str, Any] = field(default_factory=dict)
    id: str | None = None


@dataclass(frozen=True)
class NotificationEvent:
    """Immutable input of the task-notification workflow."""

    task_id: str
    origin: str = ""


@dataclass(frozen=True)
class WorkflowRunResult:
    """Workflow run read-model."""

    id: str
    function_id: str
    run_key: str
    event_name: str
    event_data: dict[str, Any]
    status: str
    current_step: str | None
    resume_at: datetime | None
    attempt: int
    output: Any
    error_message: str | None
    started_at: datetime | None
    completed_at: datetime | None
    created_at: datetime
    # Token of the claim that owns the run while it is running.
    lease_token: str | None = None


@dataclass(frozen=True)
class StepRecord:
    """Completed step from the replay log."""

    name: str
    kind: str
    output: Any
    completed_at: datetime
    position: int = 0
