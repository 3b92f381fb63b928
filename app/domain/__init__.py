"""Domain layer: exceptions (business rule violations and workflow errors).

No dependencies on infrastructure or presentation. Used by application
and infrastructure layers.
"""

from app.domain.exceptions import (
    AuthenticationException,
    AuthorizationException,
    EmailDeliveryError,
    InvalidTriggerPayloadError,
    LeaseLostError,
    NonRetriableError,
    PermanentEmailError,
    ResourceNotFoundException,
    TaskPulseException,
    TransientEmailError,
    ValidationException,
    WorkflowException,
)

__all__ = [
    "AuthenticationException",
    "AuthorizationException",
    "EmailDeliveryError",
    "InvalidTriggerPayloadError",
    "LeaseLostError",
    "NonRetriableError",
    "PermanentEmailError",
    "ResourceNotFoundException",
    "TaskPulseException",
    "TransientEmailError",
    "ValidationException",
    "WorkflowException",
]
