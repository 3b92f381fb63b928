"""Workflow API: event intake and run inspection."""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from app.api.v1.dependencies import get_workflow_engine
from app.application.dtos.workflow import WorkflowEvent
from app.domain.exceptions import ResourceNotFoundException
from app.infrastructure.workflows import WorkflowEngine
from app.schemas.workflow import (
    WorkflowEventRequest,
    WorkflowEventResponse,
    WorkflowRunDetailResponse,
    WorkflowRunResponse,
    WorkflowStepResponse,
)
from app.shared.enums import WorkflowRunStatus

router = APIRouter()


@router.post("/events", response_model=WorkflowEventResponse, status_code=202)
async def send_event(
    body: WorkflowEventRequest,
    background_tasks: BackgroundTasks,
    engine: Annotated[WorkflowEngine, Depends(get_workflow_engine)],
):
    """Accept a trigger event. Redelivery (same id, or same name and data) reuses the run."""
    runs = await engine.send(WorkflowEvent(name=body.name, data=body.data, id=body.id))
    pending = [r.id for r in runs if r.status == WorkflowRunStatus.PENDING.value]
    if pending:
        background_tasks.add_task(engine.dispatch, pending)
    return WorkflowEventResponse(
        runs=[WorkflowRunResponse.model_validate(r) for r in runs]
    )


@router.get("/runs", response_model=list[WorkflowRunResponse])
async def list_runs(
    engine: Annotated[WorkflowEngine, Depends(get_workflow_engine)],
    function_id: str | None = Query(None),
    status: WorkflowRunStatus | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
):
    """List runs, newest first."""
    runs = await engine.list_runs(
        function_id=function_id, status=status, skip=skip, limit=limit
    )
    return [WorkflowRunResponse.model_validate(r) for r in runs]


@router.get("/runs/{run_id}", response_model=WorkflowRunDetailResponse)
async def get_run(
    run_id: str,
    engine: Annotated[WorkflowEngine, Depends(get_workflow_engine)],
):
    """Get a run with its completed steps."""
    run = await engine.get_run(run_id)
    if run is None:
        raise ResourceNotFoundException("workflow_run", run_id)
    steps = await engine.list_steps(run_id)
    return WorkflowRunDetailResponse(
        **WorkflowRunResponse.model_validate(run).model_dump(),
        steps=[WorkflowStepResponse.model_validate(s) for s in steps],
    )
