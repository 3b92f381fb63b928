"""Workflow functions (bodies executed by the durable workflow engine)."""

from app.application.workflows.task_notification import (
    FUNCTION_ID,
    TaskNotificationWorkflow,
    parse_notification_event,
)

__all__ = ["FUNCTION_ID", "TaskNotificationWorkflow", "parse_notification_event"]
