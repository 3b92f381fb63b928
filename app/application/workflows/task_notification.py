"""Task-assignment notification workflow.

Triggered by app/task.assigned. Emails the assignee, waits until the
task's due date, then re-reads the task and sends an overdue reminder
unless it was completed in the meantime. Every external effect is a
named step, so a run that is resumed or retried never sends twice.

Steps, in order: get-task, send-assignment-email, wait-for-due-date,
check-task-status, send-overdue-reminder.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from app.application.dtos.task import TaskDetails
from app.application.dtos.workflow import (
    TASK_ASSIGNED_EVENT,
    NotificationEvent,
    WorkflowEvent,
)
from app.application.interfaces.repositories import ITaskReader
from app.application.interfaces.services import (
    IEmailRenderer,
    IEmailSender,
    IStepContext,
    IWorkflowRegistry,
)
from app.domain.exceptions import InvalidTriggerPayloadError
from app.shared.enums import TaskStatus
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

FUNCTION_ID = "task-assignment-notification"

TEMPLATE_ASSIGNED = "task_assigned"
TEMPLATE_OVERDUE = "task_overdue"

NO_DESCRIPTION = "No description provided"
NO_DUE_DATE = "No due date"

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def parse_notification_event(data: dict[str, Any]) -> NotificationEvent:
    """Validate trigger data ({taskId, origin}) into a NotificationEvent."""
    if not isinstance(data, dict):
        raise InvalidTriggerPayloadError(TASK_ASSIGNED_EVENT, "data must be an object")
    task_id = data.get("taskId")
    if not isinstance(task_id, str) or not task_id.strip():
        raise InvalidTriggerPayloadError(TASK_ASSIGNED_EVENT, "taskId is required")
    origin = data.get("origin") or data.get("originContext") or ""
    if not isinstance(origin, str):
        raise InvalidTriggerPayloadError(TASK_ASSIGNED_EVENT, "origin must be a string")
    return NotificationEvent(task_id=task_id.strip(), origin=origin.strip())


def format_due_date(due_date: datetime | None) -> str:
    if due_date is None:
        return NO_DUE_DATE
    return due_date.strftime("%B %d, %Y")


def _done(reason: str, **extra: Any) -> dict[str, Any]:
    return {"status": "completed", "reason": reason, **extra}


def _skipped(reason: str) -> dict[str, Any]:
    return {"status": "skipped", "reason": reason}


class TaskNotificationWorkflow:
    """Body of the task-assignment-notification function.

    Args:
        tasks: Task reads; each call sees the latest committed state.
        email_sender: Delivery; raises TransientEmailError / PermanentEmailError.
        renderer: Subject and HTML body per template key.
        frontend_url: Link base when the trigger carries no origin.
    """

    def __init__(
        self,
        tasks: ITaskReader,
        email_sender: IEmailSender,
        renderer: IEmailRenderer,
        *,
        frontend_url: str,
    ) -> None:
        self._tasks = tasks
        self._email_sender = email_sender
        self._renderer = renderer
        self._frontend_url = frontend_url

    def register(self, registry: IWorkflowRegistry) -> None:
        registry.register(FUNCTION_ID, TASK_ASSIGNED_EVENT, self)

    async def __call__(self, event: WorkflowEvent, step: IStepContext) -> dict[str, Any]:
        payload = parse_notification_event(event.data)

        raw = await step.run("get-task", lambda: self._load_task(payload.task_id))
        if raw is None:
            logger.info("Task %s not found; nothing to notify", payload.task_id)
            return _skipped("task_not_found")
        task = TaskDetails.from_dict(raw)
        if task.assignee is None:
            logger.info("Task %s has no assignee; nothing to notify", task.id)
            return _skipped("no_assignee")

        await step.run(
            "send-assignment-email",
            lambda: self._send(TEMPLATE_ASSIGNED, task, payload),
        )

        if task.due_date is None:
            return _done("no_due_date", reminder=False)

        await step.sleep_until("wait-for-due-date", task.due_date)

        status = await step.run("check-task-status", lambda: self._current_status(task.id))
        if status is None:
            logger.info("Task %s was deleted before its due date", task.id)
            return _skipped("task_deleted")
        if status == TaskStatus.COMPLETED.value:
            return _done("completed_before_due_date", reminder=False)

        await step.run(
            "send-overdue-reminder",
            lambda: self._send(TEMPLATE_OVERDUE, task, payload),
        )
        return _done("overdue_reminder_sent", reminder=True)

    async def _load_task(self, task_id: str) -> dict[str, Any] | None:
        details = await self._tasks.get_with_assignee_and_project(task_id)
        return details.to_dict() if details else None

    async def _current_status(self, task_id: str) -> str | None:
        status = await self._tasks.get_status(task_id)
        return status.value if status else None

    def _task_url(self, task: TaskDetails, origin: str) -> str:
        base = (origin or self._frontend_url).rstrip("/")
        return f"{base}/taskDetails?projectId={task.project.id}&taskId={task.id}"

    async def _send(
        self, template_key: str, task: TaskDetails, payload: NotificationEvent
    ) -> dict[str, Any]:
        assert task.assignee is not None
        to_address = (task.assignee.email or "").strip()
        if not _EMAIL_RE.match(to_address):
            # Accepted at task creation but undeliverable; skip rather than fail the run.
            logger.warning(
                "Task %s: assignee %s has no valid email (%r); %s not sent",
                task.id,
                task.assignee.id,
                to_address,
                template_key,
            )
            return {"sent": False, "reason": "invalid_email"}

        subject, html_body = self._renderer.render(
            template_key,
            {
                "assignee_name": task.assignee.name,
                "task_title": task.title,
                "description": task.description or NO_DESCRIPTION,
                "due_date": format_due_date(task.due_date),
                "project_name": task.project.name,
                "priority": task.priority,
                "task_url": self._task_url(task, payload.origin),
            },
        )
        await self._email_sender.send(to_address, subject, html_body)
        return {"sent": True, "to": to_address}
