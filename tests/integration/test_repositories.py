"""Task, project and workflow-run repositories against SQLite."""

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.dtos.task import TaskCreate, TaskUpdate
from app.domain.exceptions import LeaseLostError
from app.infrastructure.persistence.repositories import (
    ProjectRepository,
    SessionScopedTaskReader,
    TaskRepository,
    WorkflowRunRepository,
    WorkflowStepRepository,
    run_to_result,
)
from app.shared.enums import TaskStatus, WorkflowRunStatus
from tests.support import SeedData, insert_task

NOW = datetime(2025, 1, 1, 9, 0, tzinfo=UTC)


async def test_project_with_members(
    session_factory: async_sessionmaker[AsyncSession], seed: SeedData
) -> None:
    async with session_factory() as session:
        project = await ProjectRepository(session).get_with_members(seed.project_id)
        missing = await ProjectRepository(session).get_with_members("nope")

    assert project.name == "Apollo"
    assert project.team_lead_id == seed.lead_id
    assert project.member_ids == frozenset({seed.lead_id, seed.member_id})
    assert missing is None


async def test_create_update_and_delete_tasks(
    session_factory: async_sessionmaker[AsyncSession], seed: SeedData
) -> None:
    due = datetime(2025, 1, 10, tzinfo=UTC)
    async with session_factory.begin() as session:
        repo = TaskRepository(session)
        created = await repo.create_task(
            TaskCreate(project_id=seed.project_id, title="Draft", due_date=due)
        )
    assert created.id
    assert created.status == TaskStatus.TODO.value
    assert created.priority == "MEDIUM"
    assert created.due_date == due

    async with session_factory.begin() as session:
        updated = await TaskRepository(session).update_task(
            created.id,
            TaskUpdate(title="Final", status="IN_PROGRESS", assignee_id=seed.member_id),
        )
        assert await TaskRepository(session).update_task("nope", TaskUpdate(title="x")) is None
    assert updated.title == "Final"
    assert updated.assignee_id == seed.member_id
    assert updated.due_date is None

    async with session_factory.begin() as session:
        deleted = await TaskRepository(session).delete_many([created.id, "nope"])
    assert deleted == 1
    async with session_factory() as session:
        assert await TaskRepository(session).get_task(created.id) is None


async def test_task_details_and_status_reads(
    session_factory: async_sessionmaker[AsyncSession], seed: SeedData
) -> None:
    task_id = await insert_task(
        session_factory,
        project_id=seed.project_id,
        assignee_id=seed.member_id,
        status="IN_PROGRESS",
    )
    reader = SessionScopedTaskReader(session_factory)

    details = await reader.get_with_assignee_and_project(task_id)
    assert details.assignee.email == seed.member_email
    assert details.project.name == "Apollo"
    assert details.due_date is None
    assert await reader.get_status(task_id) == TaskStatus.IN_PROGRESS
    assert await reader.get_status("nope") is None
    assert await reader.get_with_assignee_and_project("nope") is None


async def test_get_or_create_returns_existing_run(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    async with session_factory.begin() as session:
        repo = WorkflowRunRepository(session)
        run, created = await repo.get_or_create("fn", "k1", "app/e", {"a": 1})
        again, created_again = await repo.get_or_create("fn", "k1", "app/e", {"a": 1})
        other, created_other = await repo.get_or_create("fn2", "k1", "app/e", {"a": 1})

    assert created and not created_again and created_other
    assert again.id == run.id
    assert other.id != run.id
    assert run.status == WorkflowRunStatus.PENDING.value


async def test_due_ids_and_claim(session_factory: async_sessionmaker[AsyncSession]) -> None:
    async with session_factory.begin() as session:
        repo = WorkflowRunRepository(session)
        due, _ = await repo.get_or_create("fn", "due", "app/e", {})
        later, _ = await repo.get_or_create("fn", "later", "app/e", {})
        owned = await repo.claim(later.id, NOW, 60)
        await repo.mark_sleeping(
            later.id, owned.lease_token, "wait", NOW + timedelta(hours=1)
        )

    async with session_factory.begin() as session:
        repo = WorkflowRunRepository(session)
        assert await repo.list_due_ids(NOW) == [due.id]
        claimed = await repo.claim(due.id, NOW, 60)
        assert claimed.status == WorkflowRunStatus.RUNNING.value
        assert claimed.started_at is not None
        assert await repo.claim(later.id, NOW, 60) is None

    async with session_factory() as session:
        repo = WorkflowRunRepository(session)
        assert await repo.list_due_ids(NOW) == []
        assert set(await repo.list_due_ids(NOW + timedelta(hours=2))) == {due.id, later.id}


async def test_each_claim_issues_a_new_lease_token(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    async with session_factory.begin() as session:
        repo = WorkflowRunRepository(session)
        run, _ = await repo.get_or_create("fn", "k", "app/e", {})
        first = run_to_result(await repo.claim(run.id, NOW, 60))
    async with session_factory.begin() as session:
        # Lease expired: a second worker takes the run over.
        second = run_to_result(
            await WorkflowRunRepository(session).claim(run.id, NOW + timedelta(seconds=61), 60)
        )

    assert first.lease_token and second.lease_token
    assert first.lease_token != second.lease_token


async def test_stale_lease_token_cannot_write(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    async with session_factory.begin() as session:
        repo = WorkflowRunRepository(session)
        run, _ = await repo.get_or_create("fn", "k", "app/e", {})
        stale = run_to_result(await repo.claim(run.id, NOW, 60)).lease_token
    async with session_factory.begin() as session:
        current = run_to_result(
            await WorkflowRunRepository(session).claim(run.id, NOW + timedelta(seconds=61), 60)
        ).lease_token

    for write in (
        lambda repo: repo.checkpoint(run.id, stale, "s", NOW + timedelta(minutes=5)),
        lambda repo: repo.mark_completed(run.id, stale, "late", NOW),
        lambda repo: repo.mark_failed(run.id, stale, "boom", NOW),
        lambda repo: repo.schedule_retry(run.id, stale, 1, NOW, "boom"),
        lambda repo: repo.mark_sleeping(run.id, stale, "s", NOW),
    ):
        with pytest.raises(LeaseLostError):
            async with session_factory.begin() as session:
                await write(WorkflowRunRepository(session))

    async with session_factory.begin() as session:
        await WorkflowRunRepository(session).mark_completed(run.id, current, "ok", NOW)
    async with session_factory() as session:
        stored = await WorkflowRunRepository(session).get_by_id(run.id)
    assert stored.status == WorkflowRunStatus.COMPLETED.value
    assert stored.output == "ok"
    assert stored.lease_token is None


async def test_finished_run_rejects_further_writes(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    async with session_factory.begin() as session:
        repo = WorkflowRunRepository(session)
        run, _ = await repo.get_or_create("fn", "k", "app/e", {})
        token = run_to_result(await repo.claim(run.id, NOW, 60)).lease_token
        await repo.mark_completed(run.id, token, "done", NOW)

    with pytest.raises(LeaseLostError):
        async with session_factory.begin() as session:
            await WorkflowRunRepository(session).mark_failed(run.id, token, "late", NOW)


async def test_steps_listed_in_execution_order_when_timestamps_tie(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    async with session_factory.begin() as session:
        run, _ = await WorkflowRunRepository(session).get_or_create("fn", "k", "app/e", {})
        steps = WorkflowStepRepository(session)
        for position, name in enumerate(["zeta", "alpha", "mid"]):
            await steps.record(run.id, name, position, NOW, position=position)

    async with session_factory() as session:
        listed = await WorkflowStepRepository(session).list_for_run(run.id)

    assert [s.name for s in listed] == ["zeta", "alpha", "mid"]
    assert [s.position for s in listed] == [0, 1, 2]
