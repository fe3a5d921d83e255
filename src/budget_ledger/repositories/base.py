"""Base repository: generic CRUD plus owner-scoped lookups."""
from typing import Generic, Type, TypeVar
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from budget_ledger.models.base import BaseModel

T = TypeVar("T", bound=BaseModel)


class BaseRepository(Generic[T]):
    """Generic repository for any model.

    The ``*_by_user`` helpers require the model to have a ``user_id`` column;
    every owner-facing read and delete goes through them so a record of one
    user is never visible to another.
    """

    def __init__(self, db: AsyncSession, model: Type[T]):
        self.db = db
        self.model = model

    async def get_by_id(self, id: UUID) -> T | None:
        """Get a single record by ID, regardless of owner."""
        result = await self.db.execute(select(self.model).where(self.model.id == id))
        return result.unique().scalar_one_or_none()

    async def get_by_user(self, user_id: UUID, id: UUID) -> T | None:
        """Get a record only if it belongs to the specified user."""
        result = await self.db.execute(
            select(self.model).where(self.model.id == id, self.model.user_id == user_id)
        )
        return result.unique().scalar_one_or_none()

    async def create(self, obj: T) -> T:
        """Create a new record."""
        self.db.add(obj)
        await self.db.commit()
        await self.db.refresh(obj)
        return obj

    async def delete(self, id: UUID) -> bool:
        """Delete a record by ID. Dependent rows follow the table's ON DELETE rules."""
        obj = await self.get_by_id(id)
        if not obj:
            return False

        await self.db.delete(obj)
        await self.db.commit()
        return True

    async def delete_by_user(self, user_id: UUID, id: UUID) -> bool:
        """Delete an owner's record in one statement. Returns False if absent."""
        result = await self.db.execute(
            delete(self.model).where(self.model.id == id, self.model.user_id == user_id)
        )
        await self.db.commit()
        return (result.rowcount or 0) > 0
