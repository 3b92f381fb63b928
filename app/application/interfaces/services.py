"""Service interfaces (ports) for the application layer.

Protocols define contracts for the email gateway and the workflow engine (DIP).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

if TYPE_CHECKING:
    from app.application.dtos.workflow import WorkflowEvent, WorkflowRunResult

T = TypeVar("T")


class IEmailSender(Protocol):
    """Protocol for the email gateway.

    Returns normally on success. Raises TransientEmailError for failures
    worth retrying and PermanentEmailError for rejected messages.
    """

    async def send(self, to_address: str, subject: str, html_body: str) -> None:
        """Send one HTML email to a single recipient."""


class IEmailRenderer(Protocol):
    """Protocol for rendering notification emails from a template key."""

    def render(self, template_key: str, context: dict[str, Any]) -> tuple[str, str]:
        """Return (subject, html_body). Raises KeyError for unknown keys."""


class IStepContext(Protocol):
    """Durable step API handed to a workflow function for one run."""

    run_id: str

    async def run(
        self, name: str, action: Callable[[], Awaitable[T] | T]
    ) -> T:
        """Run action once per run; later invocations return the recorded result."""

    async def sleep_until(self, name: str, until: datetime) -> None:
        """Return once until has passed; otherwise suspend the run until then."""

    async def sleep(self, name: str, duration: timedelta) -> None:
        """Suspend the run for duration, measured from the first time this step is reached."""


class IWorkflowEventPublisher(Protocol):
    """Protocol for emitting trigger events from use cases."""

    async def publish(self, event: WorkflowEvent) -> list[WorkflowRunResult]:
        """Record runs for every function triggered by event; return them."""


class IWorkflowRegistry(Protocol):
    """Protocol for registering workflow functions with an engine."""

    def register(
        self,
        function_id: str,
        trigger: str,
        handler: Callable[[WorkflowEvent, Any], Awaitable[Any]],
    ) -> None:
        """Register handler to run for every event named trigger."""
