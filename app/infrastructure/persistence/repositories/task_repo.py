"""Task repository: task writes for the task use cases and reads for the notification workflow."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import joinedload

from app.application.dtos.task import (
    AssigneeInfo,
    ProjectInfo,
    TaskCreate,
    TaskDetails,
    TaskResult,
    TaskUpdate,
)
from app.infrastructure.persistence.models.task import Task
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.shared.enums import TaskStatus
from app.shared.utils.datetime import ensure_utc


def _to_result(t: Task) -> TaskResult:
    """Map Task ORM to TaskResult DTO."""
    return TaskResult(
        id=t.id,
        project_id=t.project_id,
        title=t.title,
        description=t.description,
        type=t.type,
        status=t.status,
        priority=t.priority,
        assignee_id=t.assignee_id,
        due_date=ensure_utc(t.due_date),
        created_at=ensure_utc(t.created_at),
        updated_at=ensure_utc(t.updated_at),
    )


def _to_details(t: Task) -> TaskDetails:
    """Map Task ORM (with project and assignee loaded) to TaskDetails DTO."""
    assignee = (
        AssigneeInfo(id=t.assignee.id, email=t.assignee.email, name=t.assignee.name)
        if t.assignee is not None
        else None
    )
    return TaskDetails(
        id=t.id,
        title=t.title,
        description=t.description,
        status=t.status,
        priority=t.priority,
        due_date=ensure_utc(t.due_date),
        project=ProjectInfo(
            id=t.project.id, name=t.project.name, team_lead_id=t.project.team_lead_id
        ),
        assignee=assignee,
    )


class TaskRepository(BaseRepository[Task]):
    """Task repository. Implements ITaskRepository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Task)

    async def get_task(self, task_id: str) -> TaskResult | None:
        task = await self.get_by_id(task_id)
        return _to_result(task) if task else None

    async def list_by_ids(self, task_ids: list[str]) -> list[TaskResult]:
        return [_to_result(t) for t in await self.get_many(task_ids)]

    async def get_with_assignee_and_project(self, task_id: str) -> TaskDetails | None:
        """Load a task with its assignee and project in one query, or None."""
        result = await self.db.execute(
            select(Task)
            .options(joinedload(Task.assignee), joinedload(Task.project))
            .where(Task.id == task_id)
        )
        task = result.scalar_one_or_none()
        return _to_details(task) if task else None

    async def get_status(self, task_id: str) -> TaskStatus | None:
        """Return only the current status of a task, or None if it no longer exists."""
        result = await self.db.execute(select(Task.status).where(Task.id == task_id))
        status = result.scalar_one_or_none()
        return TaskStatus(status) if status is not None else None

    async def create_task(self, data: TaskCreate) -> TaskResult:
        """Create a task and return the result DTO."""
        task = Task(
            project_id=data.project_id,
            title=data.title,
            description=data.description,
            type=data.type,
            status=data.status,
            priority=data.priority,
            assignee_id=data.assignee_id,
            due_date=data.due_date,
        )
        return _to_result(await self.create(task))

    async def update_task(self, task_id: str, data: TaskUpdate) -> TaskResult | None:
        """Replace the editable fields of a task; None if it does not exist."""
        task = await self.get_by_id(task_id)
        if task is None:
            return None
        task.title = data.title
        task.description = data.description
        task.status = data.status
        task.priority = data.priority
        task.assignee_id = data.assignee_id
        task.due_date = data.due_date
        await self.db.flush()
        await self.db.refresh(task)
        return _to_result(task)

    async def delete_many(self, task_ids: list[str]) -> int:
        """Delete tasks by id; return number of rows removed."""
        if not task_ids:
            return 0
        result = await self.db.execute(delete(Task).where(Task.id.in_(task_ids)))
        await self.db.flush()
        return result.rowcount or 0


class SessionScopedTaskReader:
    """ITaskReader that opens a short-lived session per read.

    Used by the notification workflow: each read sees the latest committed
    task state and no session is held across a suspension.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_with_assignee_and_project(self, task_id: str) -> TaskDetails | None:
        async with self._session_factory() as session:
            return await TaskRepository(session).get_with_assignee_and_project(task_id)

    async def get_status(self, task_id: str) -> TaskStatus | None:
        async with self._session_factory() as session:
            return await TaskRepository(session).get_status(task_id)
