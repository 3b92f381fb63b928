"""WorkflowRun and WorkflowStep repositories: durable run state and the step replay log."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.workflow import StepRecord, WorkflowRunResult
from app.domain.exceptions import LeaseLostError
from app.infrastructure.persistence.models.workflow import WorkflowRun, WorkflowStep
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.shared.enums import StepKind, WorkflowRunStatus
from app.shared.utils.datetime import ensure_utc
from app.shared.utils.generators import generate_cuid

_CLAIMABLE = (WorkflowRunStatus.PENDING.value, WorkflowRunStatus.SLEEPING.value)


def run_to_result(run: WorkflowRun) -> WorkflowRunResult:
    """Map WorkflowRun ORM to WorkflowRunResult DTO."""
    return WorkflowRunResult(
        id=run.id,
        function_id=run.function_id,
        run_key=run.run_key,
        event_name=run.event_name,
        event_data=run.event_data,
        status=run.status,
        current_step=run.current_step,
        resume_at=ensure_utc(run.resume_at),
        attempt=run.attempt,
        output=run.output,
        error_message=run.error_message,
        started_at=ensure_utc(run.started_at),
        completed_at=ensure_utc(run.completed_at),
        created_at=ensure_utc(run.created_at),
        lease_token=run.lease_token,
    )


def _claimable_clause(now: datetime):
    """Runs that are due (pending/sleeping past resume_at) or whose lease expired."""
    due = and_(
        WorkflowRun.status.in_(_CLAIMABLE),
        or_(WorkflowRun.resume_at.is_(None), WorkflowRun.resume_at <= now),
    )
    abandoned = and_(
        WorkflowRun.status == WorkflowRunStatus.RUNNING.value,
        WorkflowRun.lease_expires_at.is_not(None),
        WorkflowRun.lease_expires_at < now,
    )
    return or_(due, abandoned)


class WorkflowRunRepository(BaseRepository[WorkflowRun]):
    """Workflow run repository (owned by the workflow engine)."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, WorkflowRun)

    async def get_by_key(self, function_id: str, run_key: str) -> WorkflowRun | None:
        result = await self.db.execute(
            select(WorkflowRun).where(
                WorkflowRun.function_id == function_id,
                WorkflowRun.run_key == run_key,
            )
        )
        return result.scalar_one_or_none()

    async def get_or_create(
        self,
        function_id: str,
        run_key: str,
        event_name: str,
        event_data: dict[str, Any],
    ) -> tuple[WorkflowRun, bool]:
        """Return (run, created). A concurrent insert of the same key returns the existing run."""
        existing = await self.get_by_key(function_id, run_key)
        if existing is not None:
            return existing, False
        run = WorkflowRun(
            function_id=function_id,
            run_key=run_key,
            event_name=event_name,
            event_data=event_data,
            status=WorkflowRunStatus.PENDING.value,
            attempt=0,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(run)
                await self.db.flush()
        except IntegrityError:
            # Savepoint rolled back; the other writer's row is now visible.
            existing = await self.get_by_key(function_id, run_key)
            if existing is None:
                raise
            return existing, False
        await self.db.refresh(run)
        return run, True

    async def list_due_ids(self, now: datetime, limit: int = 50) -> list[str]:
        """Ids of runs that may be claimed at now, oldest resume time first."""
        result = await self.db.execute(
            select(WorkflowRun.id)
            .where(_claimable_clause(now))
            .order_by(WorkflowRun.resume_at.asc(), WorkflowRun.created_at.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def claim(
        self, run_id: str, now: datetime, lease_seconds: int
    ) -> WorkflowRun | None:
        """Atomically move a claimable run to running with a lease.

        Conditional UPDATE: of several workers racing for the same run,
        exactly one sees rowcount == 1. Returns the claimed run or None.
        Each claim issues a fresh lease_token; every later write for the
        run must present it.
        """
        result = await self.db.execute(
            update(WorkflowRun)
            .where(WorkflowRun.id == run_id, _claimable_clause(now))
            .values(
                status=WorkflowRunStatus.RUNNING.value,
                lease_expires_at=now + timedelta(seconds=lease_seconds),
                lease_token=generate_cuid(),
                resume_at=None,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return None
        run = await self.get_by_id(run_id)
        if run is not None:
            await self.db.refresh(run)
            if run.started_at is None:
                run.started_at = now
                await self.db.flush()
        return run

    async def list_runs(
        self,
        *,
        function_id: str | None = None,
        status: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[WorkflowRun]:
        q = select(WorkflowRun)
        if function_id:
            q = q.where(WorkflowRun.function_id == function_id)
        if status:
            q = q.where(WorkflowRun.status == status)
        q = q.order_by(WorkflowRun.created_at.desc()).offset(skip).limit(limit)
        result = await self.db.execute(q)
        return list(result.scalars().all())

    async def _update_owned(
        self, run_id: str, lease_token: str, /, **values: Any
    ) -> None:
        """Update a running run only while lease_token still holds its claim.

        Raises:
            LeaseLostError: the run was reclaimed (or already left running)
        """
        result = await self.db.execute(
            update(WorkflowRun)
            .where(
                WorkflowRun.id == run_id,
                WorkflowRun.status == WorkflowRunStatus.RUNNING.value,
                WorkflowRun.lease_token == lease_token,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise LeaseLostError(run_id)

    async def checkpoint(
        self,
        run_id: str,
        lease_token: str,
        step_name: str,
        lease_expires_at: datetime,
    ) -> None:
        """Move the cursor past a completed step, extend the lease and reset the retry counter."""
        await self._update_owned(
            run_id,
            lease_token,
            current_step=step_name,
            lease_expires_at=lease_expires_at,
            attempt=0,
            error_message=None,
        )

    async def mark_sleeping(
        self, run_id: str, lease_token: str, step_name: str, resume_at: datetime
    ) -> None:
        await self._update_owned(
            run_id,
            lease_token,
            status=WorkflowRunStatus.SLEEPING.value,
            current_step=step_name,
            resume_at=resume_at,
            lease_expires_at=None,
            lease_token=None,
        )

    async def mark_completed(
        self, run_id: str, lease_token: str, output: Any, now: datetime
    ) -> None:
        await self._update_owned(
            run_id,
            lease_token,
            status=WorkflowRunStatus.COMPLETED.value,
            output=output,
            resume_at=None,
            lease_expires_at=None,
            lease_token=None,
            error_message=None,
            completed_at=now,
        )

    async def mark_failed(
        self, run_id: str, lease_token: str, error_message: str, now: datetime
    ) -> None:
        await self._update_owned(
            run_id,
            lease_token,
            status=WorkflowRunStatus.FAILED.value,
            error_message=error_message,
            resume_at=None,
            lease_expires_at=None,
            lease_token=None,
            completed_at=now,
        )

    async def schedule_retry(
        self,
        run_id: str,
        lease_token: str,
        attempt: int,
        resume_at: datetime,
        error_message: str,
    ) -> None:
        """Return the run to pending; it becomes claimable again at resume_at."""
        await self._update_owned(
            run_id,
            lease_token,
            status=WorkflowRunStatus.PENDING.value,
            attempt=attempt,
            resume_at=resume_at,
            lease_expires_at=None,
            lease_token=None,
            error_message=error_message,
        )


class WorkflowStepRepository(BaseRepository[WorkflowStep]):
    """Step log keyed by (run_id, name)."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, WorkflowStep)

    @staticmethod
    def _to_record(step: WorkflowStep) -> StepRecord:
        return StepRecord(
            name=step.name,
            kind=step.kind,
            position=step.position,
            output=step.output,
            completed_at=ensure_utc(step.completed_at),
        )

    async def get_step(self, run_id: str, name: str) -> StepRecord | None:
        result = await self.db.execute(
            select(WorkflowStep).where(
                WorkflowStep.run_id == run_id, WorkflowStep.name == name
            )
        )
        step = result.scalar_one_or_none()
        return self._to_record(step) if step else None

    async def list_for_run(self, run_id: str) -> list[StepRecord]:
        result = await self.db.execute(
            select(WorkflowStep)
            .where(WorkflowStep.run_id == run_id)
            .order_by(WorkflowStep.position.asc(), WorkflowStep.completed_at.asc())
        )
        return [self._to_record(s) for s in result.scalars().all()]

    async def record(
        self,
        run_id: str,
        name: str,
        output: Any,
        completed_at: datetime,
        kind: StepKind = StepKind.RUN,
        position: int = 0,
    ) -> StepRecord:
        """Insert a completed step at position (its execution order within the run).

        If the step was recorded concurrently, return that record.
        """
        step = WorkflowStep(
            run_id=run_id,
            name=name,
            kind=kind.value,
            position=position,
            output=output,
            completed_at=completed_at,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(step)
                await self.db.flush()
        except IntegrityError:
            existing = await self.get_step(run_id, name)
            if existing is None:
                raise
            return existing
        return self._to_record(step)
