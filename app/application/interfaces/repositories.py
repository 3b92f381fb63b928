"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
All types reference application DTOs only; no infrastructure imports.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from app.shared.enums import TaskStatus

if TYPE_CHECKING:
    from app.application.dtos.task import (
        ProjectWithMembers,
        TaskCreate,
        TaskDetails,
        TaskResult,
        TaskUpdate,
    )


class ITaskRepository(Protocol):
    """Protocol for task persistence used by the task use cases."""

    async def get_task(self, task_id: str) -> TaskResult | None:
        """Return the task or None."""

    async def list_by_ids(self, task_ids: list[str]) -> list[TaskResult]:
        """Return the tasks that exist among task_ids."""

    async def create_task(self, data: TaskCreate) -> TaskResult:
        """Create a task."""

    async def update_task(self, task_id: str, data: TaskUpdate) -> TaskResult | None:
        """Replace editable fields; None when the task does not exist."""

    async def delete_many(self, task_ids: list[str]) -> int:
        """Delete tasks; return the number removed."""


class IProjectRepository(Protocol):
    """Protocol for reading projects with their members."""

    async def get_with_members(self, project_id: str) -> ProjectWithMembers | None:
        """Return the project with member ids, or None."""


class ITaskReader(Protocol):
    """Read-only task access for the notification workflow (Persistence Gateway).

    Each call observes the latest committed state, so a read after a long
    wait sees status changes made in the meantime.
    """

    async def get_with_assignee_and_project(self, task_id: str) -> TaskDetails | None:
        """Return the task with assignee and project, or None if it does not exist."""

    async def get_status(self, task_id: str) -> TaskStatus | None:
        """Return the task's current status, or None if it does not exist."""
