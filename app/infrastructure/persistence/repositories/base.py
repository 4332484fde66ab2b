"""Base repository: one session, one model, shared row lookups."""

from typing import Any

from sqlalchemy import Update, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.persistence.database import Base


class BaseRepository[ModelType: Base]:
    def __init__(self, db: AsyncSession, model: type[ModelType]) -> None:
        self.db = db
        self.model = model

    async def get_by_id(self, entity_id: str) -> ModelType | None:
        model: Any = self.model
        result = await self.db.execute(select(self.model).where(model.id == entity_id))
        return result.scalar_one_or_none()

    async def _updated(self, stmt: Update) -> bool:
        """Run a guarded UPDATE; True when its WHERE matched a row."""
        model: Any = self.model
        result = await self.db.execute(stmt.returning(model.id))
        return result.scalar_one_or_none() is not None
