"""Durable step executor: checkpointed steps and persisted sleeps for one run.

A workflow function is re-entered from the top every time its run is
claimed. Steps already in the step log return their recorded output
without running again; the first unrecorded step runs, is committed,
and only then does the function continue. A sleep whose time has not
come raises RunSuspended, which unwinds the function; the engine stores
the resume time and the scheduler re-enters the run later.
"""

from __future__ import annotations

import inspect
import json
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from typing import Any, TypeVar

from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.dtos.workflow import StepRecord
from app.domain.exceptions import DuplicateStepError, StepOutputNotSerializableError
from app.infrastructure.persistence.repositories.workflow_repo import (
    WorkflowRunRepository,
    WorkflowStepRepository,
)
from app.shared.enums import StepKind
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import traced_operation
from app.shared.utils.datetime import ensure_utc, parse_datetime_utc, to_iso, utc_now

logger = get_logger(__name__)

T = TypeVar("T")

Clock = Callable[[], datetime]


class RunSuspended(Exception):
    """Control-flow signal: the run sleeps until resume_at. Not an error."""

    def __init__(self, step_name: str, resume_at: datetime) -> None:
        super().__init__(f"Run suspended at '{step_name}' until {resume_at.isoformat()}")
        self.step_name = step_name
        self.resume_at = resume_at


def json_output(step_name: str, value: Any) -> Any:
    """Return value as it will be read back from the step log."""
    try:
        return json.loads(json.dumps(value))
    except (TypeError, ValueError) as e:
        raise StepOutputNotSerializableError(step_name, type(value).__name__) from e


class StepContext:
    """Step API bound to one claimed run (implements IStepContext).

    Args:
        run_id: The claimed run.
        function_id: Registered function id (span attribute only).
        lease_token: Token issued by the claim; every checkpoint presents it.
        session_factory: Each checkpoint commits in its own short transaction.
        completed: Step log loaded when the run was claimed, in execution order.
        clock: Current time; tests pass a controllable clock.
        lease_seconds: Lease extension granted at every checkpoint.
    """

    def __init__(
        self,
        run_id: str,
        function_id: str,
        lease_token: str,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        completed: list[StepRecord] | None = None,
        clock: Clock = utc_now,
        lease_seconds: int = 300,
        tracer: trace.Tracer | None = None,
    ) -> None:
        self.run_id = run_id
        self.function_id = function_id
        self.lease_token = lease_token
        self._session_factory = session_factory
        self._completed: dict[str, StepRecord] = {s.name: s for s in completed or []}
        self._clock = clock
        self._lease = timedelta(seconds=lease_seconds)
        self._tracer = tracer or trace.get_tracer(__name__)
        self._seen: set[str] = set()
        self.executed: list[str] = []

    def _enter(self, name: str) -> None:
        if name in self._seen:
            raise DuplicateStepError(self.run_id, name)
        self._seen.add(name)

    async def _checkpoint(self, name: str, output: Any, kind: StepKind) -> StepRecord:
        now = self._clock()
        async with self._session_factory.begin() as session:
            # Lease check first: a lost claim rolls back before the step is written.
            await WorkflowRunRepository(session).checkpoint(
                self.run_id, self.lease_token, name, now + self._lease
            )
            record = await WorkflowStepRepository(session).record(
                self.run_id,
                name,
                output,
                now,
                kind=kind,
                position=len(self._completed),
            )
        self._completed[name] = record
        return record

    async def run(self, name: str, action: Callable[[], Awaitable[T] | T]) -> T:
        """Run action once for this run and return its (JSON) result.

        A recorded step returns its stored output and action is not called.
        If action raises, nothing is recorded and the error propagates.
        """
        self._enter(name)
        recorded = self._completed.get(name)
        if recorded is not None:
            logger.debug("Run %s: replaying step %s", self.run_id, name)
            return recorded.output

        with traced_operation(
            self._tracer,
            "workflow.step",
            {
                "workflow.run_id": self.run_id,
                "workflow.function_id": self.function_id,
                "workflow.step": name,
            },
        ):
            result = action()
            if inspect.isawaitable(result):
                result = await result
            output = json_output(name, result)
            record = await self._checkpoint(name, output, StepKind.RUN)
        self.executed.append(name)
        logger.info("Run %s: step %s completed", self.run_id, name)
        return record.output

    async def sleep_until(self, name: str, until: datetime) -> None:
        """Return once until has passed; otherwise suspend the run until then."""
        self._enter(name)
        if name in self._completed:
            return
        until = ensure_utc(until)
        if self._clock() >= until:
            await self._checkpoint(name, {"until": to_iso(until)}, StepKind.SLEEP)
            self.executed.append(name)
            return
        logger.info("Run %s: sleeping at %s until %s", self.run_id, name, until.isoformat())
        raise RunSuspended(name, until)

    async def sleep(self, name: str, duration: timedelta) -> None:
        """Sleep for duration, measured from the first time this step is reached."""
        target = await self.run(
            f"{name}:until", lambda: to_iso(self._clock() + duration)
        )
        await self.sleep_until(name, parse_datetime_utc(target))
