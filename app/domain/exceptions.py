"""Domain exceptions for the TaskPulse application.

Defines domain-level exceptions for business rule violations and the
workflow error taxonomy. Presentation layer maps TaskPulseException
subclasses to HTTP responses in exception handlers; the workflow engine
uses NonRetriableError to decide between retrying and failing a run.
"""

from typing import Any


class TaskPulseException(Exception):
    """Base exception for all TaskPulse application errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API error responses."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(TaskPulseException):
    """Raised when input validation fails (e.g. assignee not in project)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class AuthenticationException(TaskPulseException):
    """Raised when the caller identity is missing or invalid."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message, "AUTHENTICATION_ERROR")


class AuthorizationException(TaskPulseException):
    """Raised when the caller lacks required permissions for the operation."""

    def __init__(
        self,
        resource: str | None = None,
        action: str | None = None,
        message: str = "Permission denied",
    ) -> None:
        if resource and action:
            message = f"Permission denied: {action} on {resource}"
        details: dict[str, Any] = {}
        if resource:
            details["resource"] = resource
        if action:
            details["action"] = action
        super().__init__(message, "PERMISSION_DENIED", details)


class ResourceNotFoundException(TaskPulseException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class SqlNotConfiguredException(TaskPulseException):
    """Raised when the database session factory has not been initialized."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )


# ---- Workflow errors ----


class WorkflowException(TaskPulseException):
    """Base for errors raised by the workflow engine or step executor."""


class NonRetriableError(WorkflowException):
    """Permanent fault: the engine marks the run failed instead of retrying it."""


class InvalidTriggerPayloadError(NonRetriableError):
    """Raised when a trigger event's data cannot be parsed into the expected input."""

    def __init__(self, event_name: str, reason: str) -> None:
        super().__init__(
            f"Invalid payload for {event_name}: {reason}",
            "INVALID_TRIGGER_PAYLOAD",
            {"event_name": event_name, "reason": reason},
        )


class DuplicateStepError(NonRetriableError):
    """Raised when one run invocation uses the same step name twice."""

    def __init__(self, run_id: str, step_name: str) -> None:
        super().__init__(
            f"Step '{step_name}' was already used in this invocation of run {run_id}",
            "DUPLICATE_STEP",
            {"run_id": run_id, "step_name": step_name},
        )


class StepOutputNotSerializableError(NonRetriableError):
    """Raised when a step returns a value that cannot be stored as JSON."""

    def __init__(self, step_name: str, type_name: str) -> None:
        super().__init__(
            f"Step '{step_name}' returned non-JSON-serializable {type_name}",
            "STEP_OUTPUT_NOT_SERIALIZABLE",
            {"step_name": step_name, "type": type_name},
        )


class UnknownWorkflowFunctionError(NonRetriableError):
    """Raised when a persisted run references a function that is not registered."""

    def __init__(self, function_id: str) -> None:
        super().__init__(
            f"Workflow function not registered: {function_id}",
            "UNKNOWN_WORKFLOW_FUNCTION",
            {"function_id": function_id},
        )


class LeaseLostError(WorkflowException):
    """Raised when a worker writes to a run whose claim was taken over by another worker.

    The run belongs to the new claim; the stale worker stops without writing.
    """

    def __init__(self, run_id: str) -> None:
        super().__init__(
            f"Lease on workflow run {run_id} was lost to another worker",
            "LEASE_LOST",
            {"run_id": run_id},
        )
        self.run_id = run_id


class EmailDeliveryError(WorkflowException):
    """Base for email gateway failures."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        details = {"status_code": status_code} if status_code is not None else {}
        super().__init__(message, "EMAIL_DELIVERY_ERROR", details)
        self.status_code = status_code


class TransientEmailError(EmailDeliveryError):
    """Temporary delivery failure (timeout, 429, 5xx); the step will be retried."""


class PermanentEmailError(EmailDeliveryError, NonRetriableError):
    """Delivery rejected by the provider (4xx other than 429); retrying will not help."""
