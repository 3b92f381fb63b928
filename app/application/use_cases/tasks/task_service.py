"""Task use cases: create, update and delete tasks with team-lead authorization.

Creating a task with an assignee emits the task-assigned trigger that
starts the notification workflow.
"""

from __future__ import annotations

from app.application.dtos.task import ProjectWithMembers, TaskCreate, TaskResult, TaskUpdate
from app.application.dtos.workflow import TASK_ASSIGNED_EVENT, WorkflowEvent
from app.application.interfaces.repositories import IProjectRepository, ITaskRepository
from app.application.interfaces.services import IWorkflowEventPublisher
from app.domain.exceptions import (
    AuthorizationException,
    ResourceNotFoundException,
    ValidationException,
)
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class TaskService:
    """Task writes for project team leads."""

    def __init__(
        self,
        task_repo: ITaskRepository,
        project_repo: IProjectRepository,
        publisher: IWorkflowEventPublisher | None = None,
    ) -> None:
        self.task_repo = task_repo
        self.project_repo = project_repo
        self.publisher = publisher

    async def _project_led_by(self, project_id: str, user_id: str) -> ProjectWithMembers:
        project = await self.project_repo.get_with_members(project_id)
        if project is None:
            raise ResourceNotFoundException("project", project_id)
        if project.team_lead_id != user_id:
            raise AuthorizationException(
                message="You don't have admin privileges for this project"
            )
        return project

    @staticmethod
    def _check_assignee(project: ProjectWithMembers, assignee_id: str | None) -> None:
        if assignee_id and assignee_id not in project.member_ids:
            raise ValidationException(
                "Assignee is not a member of the project", field="assignee_id"
            )

    async def create_task(
        self, user_id: str, data: TaskCreate, *, origin: str = ""
    ) -> TaskResult:
        """Create a task; notify the assignee through the workflow engine when one is set."""
        project = await self._project_led_by(data.project_id, user_id)
        self._check_assignee(project, data.assignee_id)

        task = await self.task_repo.create_task(data)
        logger.info("Task %s created in project %s by %s", task.id, project.id, user_id)

        if task.assignee_id and self.publisher is not None:
            await self.publisher.publish(
                WorkflowEvent(
                    name=TASK_ASSIGNED_EVENT,
                    data={"taskId": task.id, "origin": origin},
                )
            )
        return task

    async def update_task(self, user_id: str, task_id: str, data: TaskUpdate) -> TaskResult:
        """Replace a task's editable fields."""
        existing = await self.task_repo.get_task(task_id)
        if existing is None:
            raise ResourceNotFoundException("task", task_id)
        project = await self._project_led_by(existing.project_id, user_id)
        self._check_assignee(project, data.assignee_id)

        updated = await self.task_repo.update_task(task_id, data)
        if updated is None:
            raise ResourceNotFoundException("task", task_id)
        logger.info("Task %s updated by %s", task_id, user_id)
        return updated

    async def delete_tasks(self, user_id: str, task_ids: list[str]) -> int:
        """Delete tasks; the caller must lead the project of every task. Returns count deleted."""
        tasks = await self.task_repo.list_by_ids(task_ids)
        if not tasks:
            raise ResourceNotFoundException("task", ", ".join(task_ids))
        for project_id in sorted({t.project_id for t in tasks}):
            await self._project_led_by(project_id, user_id)

        deleted = await self.task_repo.delete_many([t.id for t in tasks])
        logger.info("Deleted %d task(s) by %s", deleted, user_id)
        return deleted
