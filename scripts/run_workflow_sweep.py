"""Run one workflow sweep: execute every run whose resume time has passed.

Usage:
    python -m scripts.run_workflow_sweep [--loop]
For cron-style deployments that set WORKFLOW_SCHEDULER_ENABLED=false on the API.
With --loop, keeps sweeping every WORKFLOW_POLL_INTERVAL_SECONDS until interrupted.
"""

import asyncio
import sys

import httpx

import app.infrastructure.persistence.database as database
from app.core.config import get_settings
from app.core.workflow_runtime import build_workflow_engine
from app.infrastructure.external.email import create_email_sender
from app.infrastructure.workflows import run_sweep_loop
from app.shared.telemetry.logging import setup_logging


async def main() -> None:
    """Build the workflow runtime, sweep due runs, dispose."""
    settings = get_settings()
    setup_logging()
    session_factory = database.init_engine()
    try:
        async with httpx.AsyncClient(timeout=settings.email_timeout_seconds) as client:
            engine = build_workflow_engine(
                settings,
                session_factory,
                email_sender=create_email_sender(settings, http_client=client),
            )
            if "--loop" in sys.argv[1:]:
                await run_sweep_loop(engine, settings.workflow_poll_interval_seconds)
            else:
                executed = await engine.resume_due_runs()
                print(f"Done. Executed {executed} due run(s)")
    finally:
        await database.dispose_engine()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
