"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic (SRP). Used by main.py;
no business logic here, only wiring of infrastructure (database engine,
email delivery, workflow engine and its sweep loop, telemetry).
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI

from app.core.config import get_settings
from app.core.workflow_runtime import build_workflow_engine
from app.infrastructure.external.email import create_email_sender
from app.infrastructure.persistence import database
from app.infrastructure.workflows import WorkflowScheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: database engine, shared HTTP client, workflow engine,
    sweep loop (if enabled), telemetry (if enabled). Shutdown order: sweep
    loop stop, HTTP client close, telemetry shutdown, SQL engine dispose.
    """
    settings = get_settings()

    # ---- Startup ----
    session_factory = database.init_engine()
    if settings.database_create_all:
        await database.create_all()
        logger.info("Database tables created from models")

    # Shared HTTP client for outbound email API calls (connection reuse).
    app.state.http_client = httpx.AsyncClient(timeout=settings.email_timeout_seconds)
    email_sender = create_email_sender(settings, http_client=app.state.http_client)

    engine = build_workflow_engine(settings, session_factory, email_sender=email_sender)
    app.state.workflow_engine = engine
    scheduler = WorkflowScheduler(engine, settings.workflow_poll_interval_seconds)
    app.state.workflow_scheduler = scheduler
    if settings.workflow_scheduler_enabled:
        scheduler.start()
    else:
        logger.info("Workflow sweep loop disabled; run scripts/run_workflow_sweep.py instead")

    if settings.telemetry_enabled:
        from app.shared.telemetry.telemetry import TelemetryConfig, set_telemetry

        telemetry = TelemetryConfig(
            service_name=settings.app_name,
            service_version=settings.app_version,
            enabled=True,
            environment=settings.telemetry_environment,
        )
        telemetry.setup_telemetry(
            exporter_type=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        set_telemetry(telemetry)
        telemetry.instrument_fastapi(app)
        if database.engine is not None:
            telemetry.instrument_sqlalchemy(database.engine)
        logger.info("Telemetry initialized")

    yield

    # ---- Shutdown ----
    await scheduler.stop()
    app.state.workflow_engine = None

    if getattr(app.state, "http_client", None) is not None:
        await app.state.http_client.aclose()
        app.state.http_client = None
        logger.info("HTTP client closed")

    from app.shared.telemetry.telemetry import get_telemetry, set_telemetry

    telemetry_instance = get_telemetry()
    if telemetry_instance is not None:
        telemetry_instance.shutdown()
        set_telemetry(None)
        logger.info("Telemetry shutdown complete")

    await database.dispose_engine()
