"""Pydantic request/response schemas for the API."""

from app.schemas.health import HealthResponse, ReadinessErrorResponse, ReadinessResponse
from app.schemas.task import (
    TaskCreateRequest,
    TaskDeleteRequest,
    TaskDeleteResponse,
    TaskResponse,
    TaskUpdateRequest,
)
from app.schemas.workflow import (
    WorkflowEventRequest,
    WorkflowEventResponse,
    WorkflowRunDetailResponse,
    WorkflowRunResponse,
    WorkflowStepResponse,
)

__all__ = [
    "HealthResponse",
    "ReadinessErrorResponse",
    "ReadinessResponse",
    "TaskCreateRequest",
    "TaskDeleteRequest",
    "TaskDeleteResponse",
    "TaskResponse",
    "TaskUpdateRequest",
    "WorkflowEventRequest",
    "WorkflowEventResponse",
    "WorkflowRunDetailResponse",
    "WorkflowRunResponse",
    "WorkflowStepResponse",
]
