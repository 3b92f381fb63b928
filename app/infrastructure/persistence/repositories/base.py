"""Base repository: generic get/create/delete shared by the concrete repositories."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.persistence.database import Base


class BaseRepository[ModelType: Base]:
    """Base repository with get_by_id, get_many, create and delete.

    Repositories flush but never commit; the caller owns the transaction
    (request dependency, workflow engine, or script).
    """

    def __init__(self, db: AsyncSession, model: type[ModelType]) -> None:
        self.db = db
        self.model = model

    async def get_by_id(self, entity_id: str) -> ModelType | None:
        """Return a single record by primary key, or None."""
        model: Any = self.model
        result = await self.db.execute(select(self.model).where(model.id == entity_id))
        return result.scalar_one_or_none()

    async def get_many(self, entity_ids: list[str]) -> list[ModelType]:
        """Return records whose primary key is in entity_ids (unknown ids are ignored)."""
        if not entity_ids:
            return []
        model: Any = self.model
        result = await self.db.execute(select(self.model).where(model.id.in_(entity_ids)))
        return list(result.scalars().all())

    async def create(self, obj: ModelType) -> ModelType:
        """Persist a new record and return it refreshed (server defaults loaded)."""
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def delete(self, obj: ModelType) -> None:
        await self.db.delete(obj)
        await self.db.flush()
