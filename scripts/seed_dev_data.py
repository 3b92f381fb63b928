"""Seed a development database with a workspace, a project and two users.

The team lead can create tasks in the project (send X-User-ID: user_lead)
and assign them to the member (assignee_id: user_member).

Usage:
    python -m scripts.seed_dev_data
Creates the tables first when they do not exist. Idempotent.
"""

from __future__ import annotations

import asyncio

import app.infrastructure.persistence.database as database
from app.infrastructure.persistence.models import (
    Project,
    ProjectMember,
    User,
    Workspace,
    WorkspaceMember,
)

LEAD_ID = "user_lead"
MEMBER_ID = "user_member"
WORKSPACE_ID = "ws_dev"
PROJECT_ID = "proj_dev"


async def main() -> None:
    session_factory = database.init_engine()
    await database.create_all()
    try:
        async with session_factory.begin() as session:
            if await session.get(Project, PROJECT_ID) is not None:
                print("Seed data already present")
                return
            session.add_all(
                [
                    User(id=LEAD_ID, email="lead@example.com", name="Team Lead"),
                    User(id=MEMBER_ID, email="member@example.com", name="Member"),
                ]
            )
            await session.flush()
            session.add(
                Workspace(id=WORKSPACE_ID, name="Dev", slug="dev", owner_id=LEAD_ID)
            )
            await session.flush()
            session.add_all(
                [
                    WorkspaceMember(user_id=LEAD_ID, workspace_id=WORKSPACE_ID, role="ADMIN"),
                    WorkspaceMember(user_id=MEMBER_ID, workspace_id=WORKSPACE_ID),
                    Project(
                        id=PROJECT_ID,
                        workspace_id=WORKSPACE_ID,
                        name="Dev Project",
                        team_lead_id=LEAD_ID,
                    ),
                ]
            )
            await session.flush()
            session.add_all(
                [
                    ProjectMember(project_id=PROJECT_ID, user_id=LEAD_ID),
                    ProjectMember(project_id=PROJECT_ID, user_id=MEMBER_ID),
                ]
            )
        print(f"Seeded project {PROJECT_ID} (lead={LEAD_ID}, member={MEMBER_ID})")
    finally:
        await database.dispose_engine()


if __name__ == "__main__":
    asyncio.run(main())
