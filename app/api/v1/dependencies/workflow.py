"""Workflow engine dependencies (composition root).

The engine is built once in the lifespan and kept on app.state.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.exceptions import SqlNotConfiguredException
from app.infrastructure.persistence.database import get_db
from app.infrastructure.workflows import SessionEventPublisher, WorkflowEngine


def get_workflow_engine(request: Request) -> WorkflowEngine:
    """Engine created at startup; 503 if the lifespan did not run."""
    engine = getattr(request.app.state, "workflow_engine", None)
    if engine is None:
        raise SqlNotConfiguredException()
    return engine


def get_event_publisher(
    db: Annotated[AsyncSession, Depends(get_db)],
    engine: Annotated[WorkflowEngine, Depends(get_workflow_engine)],
) -> SessionEventPublisher:
    """Publisher writing runs in the request's session (committed with the task)."""
    return SessionEventPublisher(engine, db)
