"""End-to-end task notification runs: real engine, SQLite, fake clock, recording sender."""

from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.dtos.workflow import TASK_ASSIGNED_EVENT, WorkflowEvent
from app.domain.exceptions import PermanentEmailError, TransientEmailError
from app.infrastructure.workflows import WorkflowEngine
from app.shared.enums import TaskStatus, WorkflowRunStatus
from tests.support import (
    FRONTEND_URL,
    FakeClock,
    RecordingEmailSender,
    SeedData,
    assigned_event,
    delete_task,
    insert_task,
    set_task_status,
    set_user_email,
)

DUE = datetime(2025, 1, 10, tzinfo=UTC)
ASSIGNED_SUBJECT = "New Task Assignment in Apollo"
OVERDUE_SUBJECT = 'Reminder: "Write release notes" is overdue'


async def _trigger(engine: WorkflowEngine, task_id: str, **kwargs):
    [run] = await engine.send(WorkflowEvent(TASK_ASSIGNED_EVENT, assigned_event(task_id, **kwargs)))
    return await engine.run_pending(run.id)


async def test_overdue_task_gets_assignment_and_reminder_emails(
    workflow_engine: WorkflowEngine,
    session_factory: async_sessionmaker[AsyncSession],
    seed: SeedData,
    email_sender: RecordingEmailSender,
    clock: FakeClock,
) -> None:
    task_id = await insert_task(
        session_factory,
        project_id=seed.project_id,
        assignee_id=seed.member_id,
        status=TaskStatus.IN_PROGRESS.value,
        due_date=DUE,
    )

    run = await _trigger(workflow_engine, task_id)

    assert run.status == WorkflowRunStatus.SLEEPING.value
    assert run.current_step == "wait-for-due-date"
    assert run.resume_at == DUE
    assert email_sender.subjects == [ASSIGNED_SUBJECT]
    assert email_sender.sent[0].to == seed.member_email

    clock.set(DUE - timedelta(minutes=1))
    assert await workflow_engine.resume_due_runs() == 0

    clock.set(DUE + timedelta(minutes=1))
    assert await workflow_engine.resume_due_runs() == 1

    done = await workflow_engine.get_run(run.id)
    assert done.status == WorkflowRunStatus.COMPLETED.value
    assert done.output == {
        "status": "completed",
        "reason": "overdue_reminder_sent",
        "reminder": True,
    }
    assert email_sender.subjects == [ASSIGNED_SUBJECT, OVERDUE_SUBJECT]
    assert "Complete Task Now" in email_sender.sent[1].html
    steps = [s.name for s in await workflow_engine.list_steps(run.id)]
    assert steps == [
        "get-task",
        "send-assignment-email",
        "wait-for-due-date",
        "check-task-status",
        "send-overdue-reminder",
    ]


async def test_task_completed_before_due_date_gets_no_reminder(
    workflow_engine: WorkflowEngine,
    session_factory: async_sessionmaker[AsyncSession],
    seed: SeedData,
    email_sender: RecordingEmailSender,
    clock: FakeClock,
) -> None:
    task_id = await insert_task(
        session_factory,
        project_id=seed.project_id,
        assignee_id=seed.member_id,
        due_date=DUE,
    )
    run = await _trigger(workflow_engine, task_id)

    await set_task_status(session_factory, task_id, TaskStatus.COMPLETED.value)
    clock.set(DUE + timedelta(hours=1))
    await workflow_engine.resume_due_runs()

    done = await workflow_engine.get_run(run.id)
    assert done.output["reason"] == "completed_before_due_date"
    assert email_sender.subjects == [ASSIGNED_SUBJECT]


async def test_task_without_due_date_completes_after_one_email(
    workflow_engine: WorkflowEngine,
    session_factory: async_sessionmaker[AsyncSession],
    seed: SeedData,
    email_sender: RecordingEmailSender,
) -> None:
    task_id = await insert_task(
        session_factory, project_id=seed.project_id, assignee_id=seed.member_id
    )

    run = await _trigger(workflow_engine, task_id)

    assert run.status == WorkflowRunStatus.COMPLETED.value
    assert run.output == {"status": "completed", "reason": "no_due_date", "reminder": False}
    assert run.resume_at is None
    assert email_sender.subjects == [ASSIGNED_SUBJECT]
    assert "No due date" in email_sender.sent[0].html


async def test_assignment_email_links_to_task_on_origin(
    workflow_engine: WorkflowEngine,
    session_factory: async_sessionmaker[AsyncSession],
    seed: SeedData,
    email_sender: RecordingEmailSender,
) -> None:
    task_id = await insert_task(
        session_factory, project_id=seed.project_id, assignee_id=seed.member_id
    )
    other_id = await insert_task(
        session_factory, project_id=seed.project_id, assignee_id=seed.member_id
    )
    await _trigger(workflow_engine, task_id, origin="https://tenant.example.com/")
    await _trigger(workflow_engine, other_id)

    first, second = email_sender.sent
    assert (
        f"https://tenant.example.com/taskDetails?projectId={seed.project_id}&amp;taskId={task_id}"
        in first.html
    )
    assert f"{FRONTEND_URL}/taskDetails?projectId={seed.project_id}&amp;taskId={other_id}" in second.html


async def test_missing_task_sends_nothing(
    workflow_engine: WorkflowEngine, seed: SeedData, email_sender: RecordingEmailSender
) -> None:
    run = await _trigger(workflow_engine, "task_does_not_exist")

    assert run.status == WorkflowRunStatus.COMPLETED.value
    assert run.output == {"status": "skipped", "reason": "task_not_found"}
    assert email_sender.sent == []


async def test_unassigned_task_sends_nothing(
    workflow_engine: WorkflowEngine,
    session_factory: async_sessionmaker[AsyncSession],
    seed: SeedData,
    email_sender: RecordingEmailSender,
) -> None:
    task_id = await insert_task(session_factory, project_id=seed.project_id, assignee_id=None)

    run = await _trigger(workflow_engine, task_id)

    assert run.output == {"status": "skipped", "reason": "no_assignee"}
    assert email_sender.sent == []


async def test_task_deleted_while_sleeping_skips_reminder(
    workflow_engine: WorkflowEngine,
    session_factory: async_sessionmaker[AsyncSession],
    seed: SeedData,
    email_sender: RecordingEmailSender,
    clock: FakeClock,
) -> None:
    task_id = await insert_task(
        session_factory, project_id=seed.project_id, assignee_id=seed.member_id, due_date=DUE
    )
    run = await _trigger(workflow_engine, task_id)
    await delete_task(session_factory, task_id)

    clock.set(DUE)
    await workflow_engine.resume_due_runs()

    done = await workflow_engine.get_run(run.id)
    assert done.output == {"status": "skipped", "reason": "task_deleted"}
    assert email_sender.subjects == [ASSIGNED_SUBJECT]


async def test_duplicate_trigger_sends_one_email(
    workflow_engine: WorkflowEngine,
    session_factory: async_sessionmaker[AsyncSession],
    seed: SeedData,
    email_sender: RecordingEmailSender,
) -> None:
    task_id = await insert_task(
        session_factory, project_id=seed.project_id, assignee_id=seed.member_id
    )
    event = WorkflowEvent(TASK_ASSIGNED_EVENT, assigned_event(task_id))

    [first] = await workflow_engine.send(event)
    [second] = await workflow_engine.send(event)
    assert first.id == second.id

    await workflow_engine.dispatch([first.id, second.id])
    await workflow_engine.resume_due_runs()

    assert email_sender.subjects == [ASSIGNED_SUBJECT]


async def test_transient_reminder_failure_is_retried_without_resending_assignment(
    workflow_engine: WorkflowEngine,
    session_factory: async_sessionmaker[AsyncSession],
    seed: SeedData,
    email_sender: RecordingEmailSender,
    clock: FakeClock,
) -> None:
    task_id = await insert_task(
        session_factory, project_id=seed.project_id, assignee_id=seed.member_id, due_date=DUE
    )
    run = await _trigger(workflow_engine, task_id)

    email_sender.errors.append(TransientEmailError("503 from provider", status_code=503))
    clock.set(DUE)
    await workflow_engine.resume_due_runs()

    retrying = await workflow_engine.get_run(run.id)
    assert retrying.status == WorkflowRunStatus.PENDING.value
    assert retrying.attempt == 1
    assert retrying.resume_at == DUE + timedelta(seconds=10)

    clock.advance(seconds=10)
    await workflow_engine.resume_due_runs()

    done = await workflow_engine.get_run(run.id)
    assert done.status == WorkflowRunStatus.COMPLETED.value
    assert email_sender.subjects == [ASSIGNED_SUBJECT, OVERDUE_SUBJECT]
    assert email_sender.calls == 3


async def test_rejected_email_fails_run_without_retry(
    workflow_engine: WorkflowEngine,
    session_factory: async_sessionmaker[AsyncSession],
    seed: SeedData,
    email_sender: RecordingEmailSender,
) -> None:
    task_id = await insert_task(
        session_factory, project_id=seed.project_id, assignee_id=seed.member_id
    )
    email_sender.errors.append(PermanentEmailError("400 invalid sender", status_code=400))

    run = await _trigger(workflow_engine, task_id)

    assert run.status == WorkflowRunStatus.FAILED.value
    assert "400 invalid sender" in run.error_message
    assert email_sender.calls == 1


async def test_invalid_assignee_email_is_skipped_and_run_completes(
    workflow_engine: WorkflowEngine,
    session_factory: async_sessionmaker[AsyncSession],
    seed: SeedData,
    email_sender: RecordingEmailSender,
) -> None:
    await set_user_email(session_factory, seed.member_id, "not-an-address")
    task_id = await insert_task(
        session_factory, project_id=seed.project_id, assignee_id=seed.member_id
    )

    run = await _trigger(workflow_engine, task_id)

    assert run.status == WorkflowRunStatus.COMPLETED.value
    assert email_sender.calls == 0
    steps = {s.name: s.output for s in await workflow_engine.list_steps(run.id)}
    assert steps["send-assignment-email"] == {"sent": False, "reason": "invalid_email"}


async def test_malformed_trigger_fails_run(
    workflow_engine: WorkflowEngine, email_sender: RecordingEmailSender
) -> None:
    [run] = await workflow_engine.send(WorkflowEvent(TASK_ASSIGNED_EVENT, {"origin": "x"}))
    result = await workflow_engine.run_pending(run.id)

    assert result.status == WorkflowRunStatus.FAILED.value
    assert "taskId is required" in result.error_message
    assert email_sender.calls == 0
