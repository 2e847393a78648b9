"""Base repository with common database operations."""

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with common CRUD operations."""

    def __init__(self, db: AsyncSession, model: type[ModelType]):
        self.db = db
        self.model = model

    async def get_by_id(self, id: Any) -> ModelType | None:
        """Get entity by primary key."""
        return await self.db.get(self.model, id)

    async def get_all(self) -> list[ModelType]:
        """Get all entities."""
        result = await self.db.execute(select(self.model))
        return list(result.scalars().all())

    async def count(self, *criteria) -> int:
        """Count entities matching optional filter criteria."""
        query = select(func.count()).select_from(self.model)
        if criteria:
            query = query.where(*criteria)
        result = await self.db.execute(query)
        return result.scalar() or 0

    async def create(self, obj: ModelType) -> ModelType:
        """Create new entity."""
        self.db.add(obj)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def update(self, obj: ModelType, fields: dict[str, Any]) -> ModelType:
        """Apply a partial field set to an entity."""
        for name, value in fields.items():
            setattr(obj, name, value)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def delete(self, obj: ModelType) -> None:
        """Delete entity."""
        await self.db.delete(obj)
        await self.db.commit()
