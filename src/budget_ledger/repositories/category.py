"""Category repository with user-scoped queries."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from budget_ledger.models.category import Category
from budget_ledger.repositories.base import BaseRepository


class CategoryRepository(BaseRepository[Category]):
    """Repository for Category model with user-scoped security."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Category)

    async def get_all_by_user(self, user_id: UUID) -> list[Category]:
        result = await self.db.execute(
            select(Category)
            .where(Category.user_id == user_id)
            .order_by(Category.sort_order, Category.name)
        )
        return list(result.scalars().all())

    async def get_by_name(
        self, user_id: UUID, name: str, parent_id: UUID | None = None
    ) -> Category | None:
        """Find a category by (owner, parent, name); NULL parent means top level."""
        parent_clause = (
            Category.parent_id.is_(None) if parent_id is None else Category.parent_id == parent_id
        )
        result = await self.db.execute(
            select(Category).where(
                Category.user_id == user_id, Category.name == name, parent_clause
            )
        )
        return result.scalar_one_or_none()

    async def has_categories(self, user_id: UUID) -> bool:
        result = await self.db.execute(
            select(Category.id).where(Category.user_id == user_id).limit(1)
        )
        return result.first() is not None
