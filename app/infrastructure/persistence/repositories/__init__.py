"""Persistence repositories. Re-exports for dependency injection."""

from app.infrastructure.persistence.repositories.base import BaseRepository
from app.infrastructure.persistence.repositories.project_repo import ProjectRepository
from app.infrastructure.persistence.repositories.task_repo import (
    SessionScopedTaskReader,
    TaskRepository,
)
from app.infrastructure.persistence.repositories.workflow_repo import (
    WorkflowRunRepository,
    WorkflowStepRepository,
    run_to_result,
)

__all__ = [
    "BaseRepository",
    "ProjectRepository",
    "SessionScopedTaskReader",
    "TaskRepository",
    "WorkflowRunRepository",
    "WorkflowStepRepository",
    "run_to_result",
]
