"""Test doubles and database helpers shared by the test modules."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.infrastructure.persistence.models import Task, User

FRONTEND_URL = "http://app.test"


class FakeClock:
    """Callable clock for the workflow engine; starts at a fixed UTC time."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def set(self, value: datetime) -> None:
        self.now = value


@dataclass
class SentEmail:
    to: str
    subject: str
    html: str


class RecordingEmailSender:
    """IEmailSender that records messages; queued errors are raised first, one per send."""

    def __init__(self) -> None:
        self.sent: list[SentEmail] = []
        self.errors: list[Exception] = []
        self.calls = 0

    async def send(self, to_address: str, subject: str, html_body: str) -> None:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        self.sent.append(SentEmail(to_address, subject, html_body))

    @property
    def subjects(self) -> list[str]:
        return [m.subject for m in self.sent]


@dataclass(frozen=True)
class SeedData:
    lead_id: str
    member_id: str
    outsider_id: str
    project_id: str
    project_name: str
    member_email: str


async def insert_task(
    session_factory: async_sessionmaker[AsyncSession],
    *,
    project_id: str,
    assignee_id: str | None,
    title: str = "Write release notes",
    description: str | None = "Summarize the changes",
    status: str = "TODO",
    due_date: datetime | None = None,
) -> str:
    """Insert a task row directly and return its id."""
    async with session_factory.begin() as session:
        task = Task(
            project_id=project_id,
            title=title,
            description=description,
            status=status,
            assignee_id=assignee_id,
            due_date=due_date,
        )
        session.add(task)
        await session.flush()
        return task.id


async def set_task_status(
    session_factory: async_sessionmaker[AsyncSession], task_id: str, status: str
) -> None:
    async with session_factory.begin() as session:
        task = await session.get(Task, task_id)
        assert task is not None
        task.status = status


async def delete_task(
    session_factory: async_sessionmaker[AsyncSession], task_id: str
) -> None:
    async with session_factory.begin() as session:
        task = await session.get(Task, task_id)
        assert task is not None
        await session.delete(task)


async def set_user_email(
    session_factory: async_sessionmaker[AsyncSession], user_id: str, email: str
) -> None:
    async with session_factory.begin() as session:
        user = await session.get(User, user_id)
        assert user is not None
        user.email = email


def assigned_event(task_id: str, origin: str = "") -> dict[str, Any]:
    return {"taskId": task_id, "origin": origin}
