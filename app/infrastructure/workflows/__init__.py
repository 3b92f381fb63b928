"""Durable workflow runtime: step executor, engine and background sweep."""

from app.infrastructure.workflows.engine import (
    SessionEventPublisher,
    WorkflowEngine,
    WorkflowFunction,
    run_key_for,
)
from app.infrastructure.workflows.scheduler import WorkflowScheduler, run_sweep_loop
from app.infrastructure.workflows.steps import RunSuspended, StepContext

__all__ = [
    "RunSuspended",
    "SessionEventPublisher",
    "StepContext",
    "WorkflowEngine",
    "WorkflowFunction",
    "WorkflowScheduler",
    "run_key_for",
    "run_sweep_loop",
]
