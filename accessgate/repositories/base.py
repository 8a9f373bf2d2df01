"""
Base repository with the data-access operations shared by the stores.
"""

from typing import Any, Generic, Type, TypeVar

from sqlalchemy import Delete, Select, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from accessgate.models.base import Base

ModelT = TypeVar("ModelT", bound=Base)
StmtT = TypeVar("StmtT", Select, Delete)


class BaseRepository(Generic[ModelT]):
    """
    Base repository bound to one session (one unit of work).

    Repositories flush, they never commit; the service that opened the
    session decides when the unit of work is durable. Filters are keyword
    equality matches on mapped attributes.

    Usage:
        class WhitelistRepository(BaseRepository[WhitelistEntry]):
            model = WhitelistEntry

        entry = await WhitelistRepository(session).get_one(identity="a@x.com")
    """

    model: Type[ModelT]

    def __init__(self, db: AsyncSession):
        self.db = db

    def _where(self, stmt: StmtT, filters: dict[str, Any]) -> StmtT:
        for field, value in filters.items():
            stmt = stmt.where(getattr(self.model, field) == value)
        return stmt

    async def get_one(self, **filters) -> ModelT | None:
        result = await self.db.execute(self._where(select(self.model), filters))
        return result.scalar_one_or_none()

    async def exists(self, **filters) -> bool:
        stmt = self._where(select(func.count()).select_from(self.model), filters)
        return (await self.db.scalar(stmt) or 0) > 0

    async def create(self, **data) -> ModelT:
        """Add and flush, so database defaults and constraints apply immediately."""
        entity = self.model(**data)
        self.db.add(entity)
        await self.db.flush()
        return entity

    async def delete_many(self, **filters) -> int:
        """Bulk delete; returns the number of rows removed."""
        result = await self.db.execute(self._where(delete(self.model), filters))
        return result.rowcount or 0
