"""Workflow API schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WorkflowEventRequest(BaseModel):
    """Request body for POST /workflows/events (event intake)."""

    name: str = Field(
        ..., min_length=1, max_length=128, description="Event name, e.g. app/task.assigned"
    )
    data: dict[str, Any] = Field(default_factory=dict)
    id: str | None = Field(
        default=None,
        min_length=1,
        max_length=128,
        description="Idempotency key; redelivery with the same id starts no new run",
    )


class WorkflowStepResponse(BaseModel):
    """Completed step of a run."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    kind: str
    position: int
    output: Any
    completed_at: datetime


class WorkflowRunResponse(BaseModel):
    """Workflow run response."""

    model_config = ConfigDict(from_attributes=True)

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


class WorkflowRunDetailResponse(WorkflowRunResponse):
    """Run with its step log."""

    steps: list[WorkflowStepResponse] = Field(default_factory=list)


class WorkflowEventResponse(BaseModel):
    """Runs recorded for an accepted event."""

    runs: list[WorkflowRunResponse]
