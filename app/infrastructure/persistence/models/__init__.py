"""Persistence models: ORM entities and mixins."""

from app.infrastructure.persistence.models.mixins import (
    BaseModel,
    CuidMixin,
    TimestampMixin,
)
from app.infrastructure.persistence.models.project import Project, ProjectMember
from app.infrastructure.persistence.models.task import Task
from app.infrastructure.persistence.models.user import User
from app.infrastructure.persistence.models.workflow import WorkflowRun, WorkflowStep
from app.infrastructure.persistence.models.workspace import Workspace, WorkspaceMember

__all__ = [
    "BaseModel",
    "CuidMixin",
    "Project",
    "ProjectMember",
    "Task",
    "TimestampMixin",
    "User",
    "WorkflowRun",
    "WorkflowStep",
    "Workspace",
    "WorkspaceMember",
]
