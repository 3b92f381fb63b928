"""Background sweep loop: periodically resumes due workflow runs."""

from __future__ import annotations

import asyncio

from app.infrastructure.workflows.engine import WorkflowEngine
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


async def run_sweep_loop(engine: WorkflowEngine, interval_seconds: float) -> None:
    """Call engine.resume_due_runs() every interval_seconds until cancelled.

    A failing sweep is logged and the loop continues; the runs it did not
    reach stay due and are retried on the next tick.
    """
    logger.info("Workflow sweep loop started (interval=%.1fs)", interval_seconds)
    try:
        while True:
            try:
                await engine.resume_due_runs()
            except Exception:
                logger.exception("Workflow sweep failed")
            await asyncio.sleep(interval_seconds)
    except asyncio.CancelledError:
        logger.info("Workflow sweep loop cancelled")
        raise


class WorkflowScheduler:
    """Owns the sweep task for the lifetime of the service (start in lifespan, stop on shutdown)."""

    def __init__(self, engine: WorkflowEngine, interval_seconds: float = 30.0) -> None:
        self._engine = engine
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(
            run_sweep_loop(self._engine, self._interval), name="workflow-sweep"
        )

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Workflow sweep loop stopped")
