"""Task API schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.shared.enums import TaskPriority, TaskStatus, TaskType
from app.shared.utils.datetime import ensure_utc


class _TaskFields(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=10_000)
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    assignee_id: str | None = Field(default=None, max_length=64)
    due_date: datetime | None = Field(
        default=None, description="Due date; naive values are taken as UTC"
    )

    @field_validator("due_date")
    @classmethod
    def due_date_utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v)

    @field_validator("assignee_id", "description")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v


class TaskCreateRequest(_TaskFields):
    """Request body for POST /tasks."""

    project_id: str = Field(..., min_length=1, max_length=64)
    type: TaskType = TaskType.TASK


class TaskUpdateRequest(_TaskFields):
    """Request body for PUT /tasks/{task_id} (replaces all editable fields)."""


class TaskDeleteRequest(BaseModel):
    """Request body for POST /tasks/delete."""

    task_ids: list[str] = Field(..., min_length=1, max_length=500)


class TaskResponse(BaseModel):
    """Task response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    project_id: str
    title: str
    description: str | None
    type: str
    status: str
    priority: str
    assignee_id: str | None
    due_date: datetime | None
    created_at: datetime
    updated_at: datetime


class TaskDeleteResponse(BaseModel):
    deleted: int
    message: str = "Task deleted successfully"
