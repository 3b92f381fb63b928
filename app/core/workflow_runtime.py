"""Workflow runtime wiring shared by the API lifespan and the sweep script."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.interfaces.services import IEmailRenderer, IEmailSender
from app.application.workflows import TaskNotificationWorkflow
from app.core.config import Settings
from app.infrastructure.external.email import EmailTemplateRenderer
from app.infrastructure.persistence.repositories import SessionScopedTaskReader
from app.infrastructure.workflows import WorkflowEngine
from app.infrastructure.workflows.steps import Clock
from app.shared.utils.datetime import utc_now


def build_workflow_engine(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    *,
    email_sender: IEmailSender,
    renderer: IEmailRenderer | None = None,
    clock: Clock = utc_now,
) -> WorkflowEngine:
    """Create the engine and register every workflow function."""
    engine = WorkflowEngine.from_settings(session_factory, settings, clock=clock)
    TaskNotificationWorkflow(
        SessionScopedTaskReader(session_factory),
        email_sender,
        renderer or EmailTemplateRenderer(),
        frontend_url=settings.frontend_url,
    ).register(engine)
    return engine
