"""Task use case dependencies (composition root)."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.use_cases.tasks import TaskService
from app.infrastructure.persistence.database import get_db
from app.infrastructure.persistence.repositories import ProjectRepository, TaskRepository
from app.infrastructure.workflows import SessionEventPublisher

from .workflow import get_event_publisher


def get_task_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    publisher: Annotated[SessionEventPublisher, Depends(get_event_publisher)],
) -> TaskService:
    """TaskService whose repositories and publisher share the request session."""
    return TaskService(TaskRepository(db), ProjectRepository(db), publisher)
