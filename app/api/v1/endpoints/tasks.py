"""Task API: thin routes delegating to TaskService.

Writes run in one explicit transaction; workflow runs enqueued by the
service are committed with the task and dispatched after the response.
"""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.dependencies import (
    get_current_user_id,
    get_db,
    get_event_publisher,
    get_task_service,
    get_workflow_engine,
)
from app.application.dtos.task import TaskCreate, TaskUpdate
from app.application.use_cases.tasks import TaskService
from app.infrastructure.workflows import SessionEventPublisher, WorkflowEngine
from app.schemas.task import (
    TaskCreateRequest,
    TaskDeleteRequest,
    TaskDeleteResponse,
    TaskResponse,
    TaskUpdateRequest,
)

router = APIRouter()


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(
    request: Request,
    body: TaskCreateRequest,
    background_tasks: BackgroundTasks,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[TaskService, Depends(get_task_service)],
    publisher: Annotated[SessionEventPublisher, Depends(get_event_publisher)],
    engine: Annotated[WorkflowEngine, Depends(get_workflow_engine)],
):
    """Create a task (project team lead only); notifies the assignee."""
    async with db.begin():
        task = await service.create_task(
            user_id,
            TaskCreate(
                project_id=body.project_id,
                title=body.title,
                description=body.description,
                type=body.type.value,
                status=body.status.value,
                priority=body.priority.value,
                assignee_id=body.assignee_id,
                due_date=body.due_date,
            ),
            origin=request.headers.get("origin", ""),
        )
    if publisher.run_ids:
        background_tasks.add_task(engine.dispatch, list(publisher.run_ids))
    return TaskResponse.model_validate(task)


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    body: TaskUpdateRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[TaskService, Depends(get_task_service)],
):
    """Replace a task's editable fields (project team lead only)."""
    async with db.begin():
        task = await service.update_task(
            user_id,
            task_id,
            TaskUpdate(
                title=body.title,
                description=body.description,
                status=body.status.value,
                priority=body.priority.value,
                assignee_id=body.assignee_id,
                due_date=body.due_date,
            ),
        )
    return TaskResponse.model_validate(task)


@router.post("/delete", response_model=TaskDeleteResponse)
async def delete_tasks(
    body: TaskDeleteRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    db: Annotated[AsyncSession, Depends(get_db)],
    service: Annotated[TaskService, Depends(get_task_service)],
):
    """Delete tasks by id (project team lead only)."""
    async with db.begin():
        deleted = await service.delete_tasks(user_id, body.task_ids)
    return TaskDeleteResponse(deleted=deleted)
