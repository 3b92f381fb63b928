"""DTOs for tasks and projects (no dependency on ORM)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.shared.utils.datetime import parse_datetime_utc, to_iso


@dataclass(frozen=True)
class TaskCreate:
    """Input for creating a task (already validated by the request schema)."""

    project_id: str
    title: str
    description: str | None = None
    type: str = "TASK"
    status: str = "TODO"
    priority: str = "MEDIUM"
    assignee_id: str | None = None
    due_date: datetime | None = None


@dataclass(frozen=True)
class TaskUpdate:
    """Replacement values for an existing task (all editable fields)."""

    title: str
    description: str | None = None
    status: str = "TODO"
    priority: str = "MEDIUM"
    assignee_id: str | None = None
    due_date: datetime | None = None


@dataclass(frozen=True)
class TaskResult:
    """Task read-model."""

    id: str
    project_id: str
    title: str
    description: str | None
    type: str
    status: str
    priority: str
    assignee_id: str | None
    due_date: datetime | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class AssigneeInfo:
    """The parts of a user needed to address a notification."""

    id: str
    email: str
    name: str


@dataclass(frozen=True)
class ProjectInfo:
    id: str
    name: str
    team_lead_id: str


@dataclass(frozen=True)
class TaskDetails:
    """Task with assignee and project loaded (findTask include=[assignee, project]).

    Round-trips through to_dict()/from_dict() so it can be stored as a
    JSON step output in the workflow step log.
    """

    id: str
    title: str
    description: str | None
    status: str
    priority: str
    due_date: datetime | None
    project: ProjectInfo
    assignee: AssigneeInfo | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "due_date": to_iso(self.due_date),
            "project": {
                "id": self.project.id,
                "name": self.project.name,
                "team_lead_id": self.project.team_lead_id,
            },
            "assignee": (
                {
                    "id": self.assignee.id,
                    "email": self.assignee.email,
                    "name": self.assignee.name,
                }
                if self.assignee
                else None
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TaskDetails:
        assignee = data.get("assignee")
        return cls(
            id=data["id"],
            title=data["title"],
            description=data.get("description"),
            status=data["status"],
            priority=data["priority"],
            due_date=parse_datetime_utc(data.get("due_date")),
            project=ProjectInfo(**data["project"]),
            assignee=AssigneeInfo(**assignee) if assignee else None,
        )


@dataclass(frozen=True)
class ProjectWithMembers:
    """Project with member user ids (authorization checks for task writes)."""

    id: str
    workspace_id: str
    name: str
    team_lead_id: str
    member_ids: frozenset[str] = field(default_factory=frozenset)
