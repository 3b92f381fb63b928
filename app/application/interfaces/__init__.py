"""Application interfaces (ports): repository and service protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from app.infrastructure or app.api.
"""

from app.application.interfaces.repositories import (
    IProjectRepository,
    ITaskReader,
    ITaskRepository,
)
from app.application.interfaces.services import (
    IEmailRenderer,
    IEmailSender,
    IStepContext,
    IWorkflowEventPublisher,
    IWorkflowRegistry,
)

__all__ = [
    "IEmailRenderer",
    "IEmailSender",
    "IProjectRepository",
    "IStepContext",
    "ITaskReader",
    "ITaskRepository",
    "IWorkflowEventPublisher",
    "IWorkflowRegistry",
]
