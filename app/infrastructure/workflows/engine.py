"""Workflow engine: function registry, event intake, run execution and retry policy.

Runs are rows in workflow_run. An event creates one run per function
triggered by its name; the run key makes duplicate deliveries land on the
same run. Executing a run means claiming it (conditional UPDATE with a
lease), re-entering the function with a StepContext, and persisting the
outcome: completed, sleeping until a time, pending for a retry, or failed.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.dtos.workflow import StepRecord, WorkflowEvent, WorkflowRunResult
from app.core.config import Settings
from app.domain.exceptions import (
    LeaseLostError,
    NonRetriableError,
    UnknownWorkflowFunctionError,
    ValidationException,
)
from app.infrastructure.persistence.repositories.workflow_repo import (
    WorkflowRunRepository,
    WorkflowStepRepository,
    run_to_result,
)
from app.infrastructure.workflows.steps import (
    Clock,
    RunSuspended,
    StepContext,
    json_output,
)
from app.shared.enums import WorkflowRunStatus
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import add_span_event
from app.shared.utils.datetime import utc_now
from app.shared.utils.generators import stable_digest

logger = get_logger(__name__)

WorkflowHandler = Callable[[WorkflowEvent, StepContext], Awaitable[Any]]


@dataclass(frozen=True)
class WorkflowFunction:
    """A registered function: id, the event name that triggers it, and its body."""

    id: str
    trigger: str
    handler: WorkflowHandler


def run_key_for(event: WorkflowEvent) -> str:
    """Idempotency key of the runs an event starts.

    The caller-supplied event id when present, otherwise a digest of the
    canonical {name, data} JSON so redelivery of the same payload dedupes.
    """
    if event.id:
        return event.id
    return stable_digest({"name": event.name, "data": event.data})


class WorkflowEngine:
    """Executes registered workflow functions durably against the database."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        max_attempts: int = 5,
        retry_base_seconds: float = 10.0,
        retry_max_seconds: float = 3600.0,
        lease_seconds: int = 300,
        sweep_batch_size: int = 50,
        sweep_concurrency: int = 8,
        clock: Clock = utc_now,
    ) -> None:
        self._session_factory = session_factory
        self.max_attempts = max_attempts
        self.retry_base_seconds = retry_base_seconds
        self.retry_max_seconds = retry_max_seconds
        self.lease_seconds = lease_seconds
        self.sweep_batch_size = sweep_batch_size
        self.sweep_concurrency = sweep_concurrency
        self._clock = clock
        self._functions: dict[str, WorkflowFunction] = {}
        self._tracer = trace.get_tracer(__name__)

    @classmethod
    def from_settings(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings,
        *,
        clock: Clock = utc_now,
    ) -> WorkflowEngine:
        return cls(
            session_factory,
            max_attempts=settings.workflow_max_attempts,
            retry_base_seconds=settings.workflow_retry_base_seconds,
            retry_max_seconds=settings.workflow_retry_max_seconds,
            lease_seconds=settings.workflow_lease_seconds,
            sweep_batch_size=settings.workflow_sweep_batch_size,
            sweep_concurrency=settings.workflow_sweep_concurrency,
            clock=clock,
        )

    # ---- Registry ----

    def register(self, function_id: str, trigger: str, handler: WorkflowHandler) -> None:
        if function_id in self._functions:
            raise ValueError(f"Workflow function already registered: {function_id}")
        self._functions[function_id] = WorkflowFunction(function_id, trigger, handler)
        logger.info("Registered workflow function %s (trigger=%s)", function_id, trigger)

    def create_function(
        self, function_id: str, *, trigger: str
    ) -> Callable[[WorkflowHandler], WorkflowHandler]:
        """Decorator form of register()."""

        def decorator(handler: WorkflowHandler) -> WorkflowHandler:
            self.register(function_id, trigger, handler)
            return handler

        return decorator

    @property
    def functions(self) -> list[WorkflowFunction]:
        return list(self._functions.values())

    def functions_for(self, event_name: str) -> list[WorkflowFunction]:
        return [f for f in self._functions.values() if f.trigger == event_name]

    # ---- Event intake ----

    async def enqueue(
        self, db: AsyncSession, event: WorkflowEvent
    ) -> list[WorkflowRunResult]:
        """Create (or find) the runs for event inside the caller's transaction.

        Nothing executes here; runs become visible to dispatch() and the
        sweep once the caller commits.
        """
        if not event.name:
            raise ValidationException("Event name is required", field="name")
        functions = self.functions_for(event.name)
        if not functions:
            logger.warning("No workflow function listens to event %s", event.name)
            return []
        run_key = run_key_for(event)
        repo = WorkflowRunRepository(db)
        results: list[WorkflowRunResult] = []
        for fn in functions:
            run, created = await repo.get_or_create(fn.id, run_key, event.name, event.data)
            if created:
                logger.info("Run %s created for %s (event=%s)", run.id, fn.id, event.name)
            else:
                logger.info(
                    "Duplicate event %s for %s; existing run %s reused",
                    event.name,
                    fn.id,
                    run.id,
                )
            results.append(run_to_result(run))
        return results

    async def send(self, event: WorkflowEvent) -> list[WorkflowRunResult]:
        """Record the runs for event in their own transaction; does not execute them."""
        async with self._session_factory.begin() as session:
            return await self.enqueue(session, event)

    # ---- Execution ----

    def backoff(self, attempt: int) -> timedelta:
        """Delay before retry number attempt (1-based): base * 2**(attempt-1), capped."""
        seconds = self.retry_base_seconds * (2 ** max(attempt - 1, 0))
        return timedelta(seconds=min(seconds, self.retry_max_seconds))

    async def dispatch(self, run_ids: Iterable[str]) -> None:
        """Execute freshly enqueued runs now; anything missed is picked up by the sweep."""
        for run_id in run_ids:
            try:
                await self.run_pending(run_id)
            except Exception:
                logger.exception("Dispatch of run %s failed; left for the sweep", run_id)

    async def run_pending(self, run_id: str) -> WorkflowRunResult | None:
        """Claim and execute one run. Returns the run afterwards, or None if not claimable.

        If another worker reclaims the run mid-execution (lease expired), this
        worker stops at its next write and leaves the run to the new claim.
        """
        now = self._clock()
        async with self._session_factory.begin() as session:
            run = await WorkflowRunRepository(session).claim(run_id, now, self.lease_seconds)
            if run is None:
                logger.debug("Run %s not claimable at %s", run_id, now.isoformat())
                return None
            claimed = run_to_result(run)
            completed = await WorkflowStepRepository(session).list_for_run(run_id)

        try:
            await self._execute(claimed, completed)
        except LeaseLostError:
            add_span_event("workflow.lease_lost", {"workflow.run_id": run_id})
            logger.warning("Run %s: lease lost to another worker; stopping", run_id)
        return await self.get_run(run_id)

    async def _execute(
        self, run: WorkflowRunResult, completed: list[StepRecord]
    ) -> None:
        fn = self._functions.get(run.function_id)
        if fn is None:
            await self._fail(run, UnknownWorkflowFunctionError(run.function_id))
            return
        ctx = StepContext(
            run.id,
            fn.id,
            run.lease_token,
            self._session_factory,
            completed=completed,
            clock=self._clock,
            lease_seconds=self.lease_seconds,
            tracer=self._tracer,
        )
        event = WorkflowEvent(name=run.event_name, data=run.event_data, id=run.run_key)
        with self._tracer.start_as_current_span(
            "workflow.run",
            attributes={"workflow.run_id": run.id, "workflow.function_id": fn.id},
        ):
            try:
                output = await fn.handler(event, ctx)
                output = json_output("<return>", output)
            except RunSuspended as s:
                add_span_event("workflow.suspended", {"workflow.step": s.step_name})
                async with self._session_factory.begin() as session:
                    await WorkflowRunRepository(session).mark_sleeping(
                        run.id, run.lease_token, s.step_name, s.resume_at
                    )
                return
            except LeaseLostError:
                raise
            except NonRetriableError as e:
                await self._fail(run, e)
                return
            except Exception as e:
                await self._retry_or_fail(run, ctx, e)
                return

        async with self._session_factory.begin() as session:
            await WorkflowRunRepository(session).mark_completed(
                run.id, run.lease_token, output, self._clock()
            )
        logger.info("Run %s (%s) completed", run.id, fn.id)

    async def _fail(self, run: WorkflowRunResult, exc: Exception) -> None:
        logger.error(
            "Run %s (%s) failed permanently: %s",
            run.id,
            run.function_id,
            exc,
            exc_info=exc,
        )
        async with self._session_factory.begin() as session:
            await WorkflowRunRepository(session).mark_failed(
                run.id, run.lease_token, str(exc), self._clock()
            )

    async def _retry_or_fail(
        self, run: WorkflowRunResult, ctx: StepContext, exc: Exception
    ) -> None:
        # A checkpoint during this invocation reset the stored counter to 0.
        attempt = (0 if ctx.executed else run.attempt) + 1
        if attempt >= self.max_attempts:
            logger.error(
                "Run %s (%s) failed after %d attempts: %s",
                run.id,
                run.function_id,
                attempt,
                exc,
                exc_info=exc,
            )
            async with self._session_factory.begin() as session:
                await WorkflowRunRepository(session).mark_failed(
                    run.id,
                    run.lease_token,
                    f"{exc} (after {attempt} attempts)",
                    self._clock(),
                )
            return
        resume_at = self._clock() + self.backoff(attempt)
        logger.warning(
            "Run %s (%s) attempt %d failed, retrying at %s: %s",
            run.id,
            run.function_id,
            attempt,
            resume_at.isoformat(),
            exc,
        )
        async with self._session_factory.begin() as session:
            await WorkflowRunRepository(session).schedule_retry(
                run.id, run.lease_token, attempt, resume_at, str(exc)
            )

    async def resume_due_runs(self, limit: int | None = None) -> int:
        """Sweep: execute every run that is due now. Returns how many were claimed."""
        now = self._clock()
        async with self._session_factory() as session:
            run_ids = await WorkflowRunRepository(session).list_due_ids(
                now, limit or self.sweep_batch_size
            )
        if not run_ids:
            return 0
        semaphore = asyncio.Semaphore(self.sweep_concurrency)

        async def _one(run_id: str) -> WorkflowRunResult | None:
            async with semaphore:
                return await self.run_pending(run_id)

        results = await asyncio.gather(*(_one(r) for r in run_ids), return_exceptions=True)
        claimed = 0
        for run_id, result in zip(run_ids, results, strict=True):
            if isinstance(result, BaseException):
                logger.error(
                    "Sweep could not execute run %s: %s", run_id, result, exc_info=result
                )
            elif result is not None:
                claimed += 1
        logger.debug("Sweep at %s: %d due, %d executed", now.isoformat(), len(run_ids), claimed)
        return claimed

    # ---- Reads ----

    async def get_run(self, run_id: str) -> WorkflowRunResult | None:
        async with self._session_factory() as session:
            run = await WorkflowRunRepository(session).get_by_id(run_id)
            return run_to_result(run) if run else None

    async def list_steps(self, run_id: str) -> list[StepRecord]:
        async with self._session_factory() as session:
            return await WorkflowStepRepository(session).list_for_run(run_id)

    async def list_runs(
        self,
        *,
        function_id: str | None = None,
        status: WorkflowRunStatus | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[WorkflowRunResult]:
        async with self._session_factory() as session:
            runs = await WorkflowRunRepository(session).list_runs(
                function_id=function_id,
                status=status.value if status else None,
                skip=skip,
                limit=limit,
            )
            return [run_to_result(r) for r in runs]


class SessionEventPublisher:
    """IWorkflowEventPublisher bound to a request's session (transactional outbox).

    Runs are written with the caller's other changes; the ids of new runs
    are kept so the caller can dispatch them after commit.
    """

    def __init__(self, engine: WorkflowEngine, db: AsyncSession) -> None:
        self._engine = engine
        self._db = db
        self.run_ids: list[str] = []

    async def publish(self, event: WorkflowEvent) -> list[WorkflowRunResult]:
        runs = await self._engine.enqueue(self._db, event)
        self.run_ids.extend(
            r.id for r in runs if r.status == WorkflowRunStatus.PENDING.value
        )
        return runs
