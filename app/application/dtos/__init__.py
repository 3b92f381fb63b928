"""Application DTOs (no ORM dependency)."""

from app.application.dtos.task import (
    AssigneeInfo,
    ProjectInfo,
    ProjectWithMembers,
    TaskCreate,
    TaskDetails,
    TaskResult,
    TaskUpdate,
)
from app.application.dtos.workflow import (
    TASK_ASSIGNED_EVENT,
    NotificationEvent,
    StepRecord,
    WorkflowEvent,
    WorkflowRunResult,
)

__all__ = [
    "AssigneeInfo",
    "NotificationEvent",
    "ProjectInfo",
    "ProjectWithMembers",
    "StepRecord",
    "TASK_ASSIGNED_EVENT",
    "TaskCreate",
    "TaskDetails",
    "TaskResult",
    "TaskUpdate",
    "WorkflowEvent",
    "WorkflowRunResult",
]
