"""Pytest configuration and fixtures for taskpulse.

Every test that touches the database gets its own SQLite file (aiosqlite)
built from the ORM metadata; no external services are needed. Time is
controlled with FakeClock so due dates and retries can be crossed instantly.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import UTC, datetime

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import Settings, get_settings
from app.core.workflow_runtime import build_workflow_engine
from app.infrastructure.external.email import EmailTemplateRenderer
from app.infrastructure.persistence.database import (
    Base,
    build_session_factory,
    configure_sqlite,
    get_db,
)
from app.infrastructure.persistence.models import (
    Project,
    ProjectMember,
    User,
    Workspace,
)
from app.infrastructure.workflows import WorkflowEngine
from tests.support import FRONTEND_URL, FakeClock, RecordingEmailSender, SeedData


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> None:
    get_settings.cache_clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 1, 1, 9, 0, tzinfo=UTC))


@pytest.fixture
def settings() -> Settings:
    return Settings(
        frontend_url=FRONTEND_URL,
        email_backend="log",
        workflow_max_attempts=3,
        workflow_retry_base_seconds=10.0,
        workflow_retry_max_seconds=600.0,
        workflow_lease_seconds=300,
        workflow_sweep_concurrency=1,
        workflow_scheduler_enabled=False,
    )


@pytest.fixture
async def db_engine(tmp_path) -> AsyncIterator[AsyncEngine]:
    """Fresh SQLite database per test with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    configure_sqlite(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(db_engine)


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def workflow_engine(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    email_sender: RecordingEmailSender,
    clock: FakeClock,
) -> WorkflowEngine:
    """Engine with the task notification workflow registered."""
    return build_workflow_engine(
        settings,
        session_factory,
        email_sender=email_sender,
        renderer=EmailTemplateRenderer(),
        clock=clock,
    )


@pytest.fixture
async def seed(session_factory: async_sessionmaker[AsyncSession]) -> SeedData:
    """Workspace with one project: a team lead, a member, and an outsider user."""
    data = SeedData(
        lead_id="user_lead",
        member_id="user_member",
        outsider_id="user_outsider",
        project_id="proj_1",
        project_name="Apollo",
        member_email="member@example.com",
    )
    async with session_factory.begin() as session:
        session.add_all(
            [
                User(id=data.lead_id, email="lead@example.com", name="Lena Lead"),
                User(id=data.member_id, email=data.member_email, name="Max Member"),
                User(id=data.outsider_id, email="out@example.com", name="Otto Outsider"),
            ]
        )
        await session.flush()
        session.add(Workspace(id="ws_1", name="Acme", slug="acme", owner_id=data.lead_id))
        await session.flush()
        session.add(
            Project(
                id=data.project_id,
                workspace_id="ws_1",
                name=data.project_name,
                team_lead_id=data.lead_id,
            )
        )
        await session.flush()
        session.add_all(
            [
                ProjectMember(project_id=data.project_id, user_id=data.lead_id),
                ProjectMember(project_id=data.project_id, user_id=data.member_id),
            ]
        )
    return data


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    workflow_engine: WorkflowEngine,
) -> AsyncIterator[AsyncClient]:
    """Async HTTP client against a fresh app wired to the test database and engine.

    ASGITransport does not run the lifespan; state and the session
    dependency are set here instead.
    """
    from app.main import create_app

    app = create_app()
    app.state.workflow_engine = workflow_engine

    async def _test_db() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _test_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
