"""Categorization rule repository."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from budget_ledger.models.rule import Rule
from budget_ledger.repositories.base import BaseRepository


class RuleRepository(BaseRepository[Rule]):
    """Repository for Rule model with user-scoped security."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Rule)

    async def get_all_by_user(self, user_id: UUID) -> list[Rule]:
        """All rules for display, highest priority first."""
        result = await self.db.execute(
            select(Rule)
            .where(Rule.user_id == user_id)
            .order_by(Rule.priority.desc(), Rule.name)
        )
        return list(result.unique().scalars().all())

    async def get_active_by_user(self, user_id: UUID) -> list[Rule]:
        """Active rules in evaluation order: priority DESC, then oldest first.

        ``id`` breaks exact timestamp ties so the order is always deterministic.
        """
        result = await self.db.execute(
            select(Rule)
            .where(Rule.user_id == user_id, Rule.is_active.is_(True))
            .order_by(Rule.priority.desc(), Rule.created_at.asc(), Rule.id.asc())
        )
        return list(result.unique().scalars().all())
