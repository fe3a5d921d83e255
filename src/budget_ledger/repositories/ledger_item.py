"""Ledger item repository: linked connections and their sync checkpoint."""
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from budget_ledger.models.base import utcnow
from budget_ledger.models.enums import ItemStatus
from budget_ledger.models.ledger_item import LedgerItem
from budget_ledger.repositories.base import BaseRepository


class LedgerItemRepository(BaseRepository[LedgerItem]):
    """Repository for LedgerItem model with user-scoped security."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, LedgerItem)

    async def get_by_provider_item_id(self, provider_item_id: str) -> LedgerItem | None:
        result = await self.db.execute(
            select(LedgerItem).where(LedgerItem.provider_item_id == provider_item_id)
        )
        return result.scalar_one_or_none()

    async def get_all_by_user(
        self, user_id: UUID, status: ItemStatus | None = None
    ) -> list[LedgerItem]:
        query = select(LedgerItem).where(LedgerItem.user_id == user_id)
        if status is not None:
            query = query.where(LedgerItem.status == status)
        result = await self.db.execute(query.order_by(LedgerItem.created_at))
        return list(result.scalars().all())

    async def update_cursor(self, item_id: UUID, cursor: str) -> None:
        """Persist the sync checkpoint and stamp last_sync_at."""
        await self.db.execute(
            update(LedgerItem)
            .where(LedgerItem.id == item_id)
            .values(cursor=cursor, last_sync_at=utcnow())
        )
        await self.db.commit()

    async def reset_cursor(self, item_id: UUID, cursor: str | None) -> None:
        """Move the checkpoint back (None restarts from the beginning)."""
        await self.db.execute(
            update(LedgerItem).where(LedgerItem.id == item_id).values(cursor=cursor)
        )
        await self.db.commit()

    async def update_status(
        self,
        item_id: UUID,
        status: ItemStatus,
        error_code: str | None = None,
        error_message: str | None = None,
    ) -> None:
        await self.db.execute(
            update(LedgerItem)
            .where(LedgerItem.id == item_id)
            .values(status=status, error_code=error_code, error_message=error_message)
        )
        await self.db.commit()

    async def update_status_by_provider_item_id(
        self,
        provider_item_id: str,
        status: ItemStatus,
        error_code: str | None = None,
        error_message: str | None = None,
    ) -> bool:
        """Status change driven by a provider webhook. Returns False if unknown."""
        result = await self.db.execute(
            update(LedgerItem)
            .where(LedgerItem.provider_item_id == provider_item_id)
            .values(status=status, error_code=error_code, error_message=error_message)
        )
        await self.db.commit()
        return (result.rowcount or 0) > 0
