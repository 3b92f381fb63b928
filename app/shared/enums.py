"""Shared enumerations for the TaskPulse application.

Task enums mirror the values stored in the task table; workflow enums
describe the run lifecycle and the kinds of entries in the step log.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class TaskStatus(_ValuesMixin, str, Enum):
    """Task progress status."""

    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class TaskPriority(_ValuesMixin, str, Enum):
    """Task priority."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class TaskType(_ValuesMixin, str, Enum):
    """Kind of work a task represents."""

    TASK = "TASK"
    BUG = "BUG"
    FEATURE = "FEATURE"
    IMPROVEMENT = "IMPROVEMENT"
    OTHER = "OTHER"


class WorkflowRunStatus(_ValuesMixin, str, Enum):
    """Workflow run lifecycle status.

    pending and sleeping runs are claimable once resume_at has passed;
    completed and failed are terminal.
    """

    PENDING = "pending"
    RUNNING = "running"
    SLEEPING = "sleeping"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def terminal(cls) -> frozenset["WorkflowRunStatus"]:
        return frozenset({cls.COMPLETED, cls.FAILED})


class StepKind(_ValuesMixin, str, Enum):
    """Kind of entry in the step log."""

    RUN = "run"
    SLEEP = "sleep"
