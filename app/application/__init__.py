"""Application layer: DTOs, interfaces, use cases and workflow functions.

Depends only on domain and protocol definitions (DIP).
Infrastructure implements the interfaces (repositories, email, workflow engine).
"""

from app.application.use_cases.tasks import TaskService
from app.application.workflows import TaskNotificationWorkflow

__all__ = ["TaskNotificationWorkflow", "TaskService"]
