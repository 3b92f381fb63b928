"""Task use cases."""

from app.application.use_cases.tasks.task_service import TaskService

__all__ = ["TaskService"]
