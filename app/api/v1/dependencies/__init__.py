"""Presentation-layer dependency injection (composition root).

Routes depend on these providers only, never on infrastructure directly.
Sub-modules: auth, tasks, workflow.
"""

from app.api.v1.dependencies.auth import get_current_user_id
from app.api.v1.dependencies.tasks import get_task_service
from app.api.v1.dependencies.workflow import get_event_publisher, get_workflow_engine
from app.infrastructure.persistence.database import get_db

__all__ = [
    "get_current_user_id",
    "get_db",
    "get_event_publisher",
    "get_task_service",
    "get_workflow_engine",
]
