"""Shared utilities: enums, telemetry, and cross-cutting helpers.

Used by domain, application, and infrastructure. No business logic.
"""

from app.shared.enums import (
    StepKind,
    TaskPriority,
    TaskStatus,
    TaskType,
    WorkflowRunStatus,
)
from app.shared.utils import (
    ensure_utc,
    generate_cuid,
    parse_datetime_utc,
    stable_digest,
    to_iso,
    utc_now,
)

__all__ = [
    "StepKind",
    "TaskPriority",
    "TaskStatus",
    "TaskType",
    "WorkflowRunStatus",
    "generate_cuid",
    "stable_digest",
    "utc_now",
    "ensure_utc",
    "parse_datetime_utc",
    "to_iso",
]
