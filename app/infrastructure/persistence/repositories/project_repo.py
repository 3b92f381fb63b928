"""Project repository (read-only: authorization data for task writes)."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.application.dtos.task import ProjectWithMembers
from app.infrastructure.persistence.models.project import Project
from app.infrastructure.persistence.repositories.base import BaseRepository


class ProjectRepository(BaseRepository[Project]):
    """Project repository. Implements IProjectRepository."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Project)

    async def get_with_members(self, project_id: str) -> ProjectWithMembers | None:
        """Return the project with its member user ids, or None."""
        result = await self.db.execute(
            select(Project)
            .options(selectinload(Project.members))
            .where(Project.id == project_id)
        )
        project = result.scalar_one_or_none()
        if project is None:
            return None
        return ProjectWithMembers(
            id=project.id,
            workspace_id=project.workspace_id,
            name=project.name,
            team_lead_id=project.team_lead_id,
            member_ids=frozenset(m.user_id for m in project.members),
        )
