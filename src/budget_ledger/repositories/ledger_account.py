"""Account registry: provider account id -> local account, per item."""
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from budget_ledger.core.money import to_minor_units
from budget_ledger.models.ledger_account import LedgerAccount
from budget_ledger.models.ledger_item import LedgerItem
from budget_ledger.repositories.base import BaseRepository
from budget_ledger.schemas.provider import AccountInfo


class LedgerAccountRepository(BaseRepository[LedgerAccount]):
    """Repository for LedgerAccount model."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, LedgerAccount)

    async def get_by_item(self, item_id: UUID) -> list[LedgerAccount]:
        result = await self.db.execute(
            select(LedgerAccount)
            .where(LedgerAccount.item_id == item_id)
            .order_by(LedgerAccount.name)
        )
        return list(result.scalars().all())

    async def account_map(self, item_id: UUID) -> dict[str, UUID]:
        """Provider account id -> local account id for every account of the item."""
        result = await self.db.execute(
            select(LedgerAccount.provider_account_id, LedgerAccount.id).where(
                LedgerAccount.item_id == item_id
            )
        )
        return {row.provider_account_id: row.id for row in result}

    async def get_for_user(self, user_id: UUID, account_id: UUID) -> LedgerAccount | None:
        """Account lookup through its item's owner."""
        result = await self.db.execute(
            select(LedgerAccount)
            .join(LedgerItem, LedgerItem.id == LedgerAccount.item_id)
            .where(LedgerAccount.id == account_id, LedgerItem.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_all_by_user(
        self, user_id: UUID, include_hidden: bool = True
    ) -> list[LedgerAccount]:
        query = (
            select(LedgerAccount)
            .join(LedgerItem, LedgerItem.id == LedgerAccount.item_id)
            .where(LedgerItem.user_id == user_id)
        )
        if not include_hidden:
            query = query.where(LedgerAccount.is_hidden.is_(False))
        result = await self.db.execute(query.order_by(LedgerAccount.name))
        return list(result.scalars().all())

    async def upsert_from_provider(
        self, item_id: UUID, info: AccountInfo, commit: bool = True
    ) -> LedgerAccount:
        """Create or refresh an account from provider data. ``is_hidden`` is never touched."""
        result = await self.db.execute(
            select(LedgerAccount).where(
                LedgerAccount.provider_account_id == info.account_id
            )
        )
        account = result.scalar_one_or_none()
        if account is None:
            account = LedgerAccount(item_id=item_id, provider_account_id=info.account_id)
            self.db.add(account)

        account.name = info.name
        account.official_name = info.official_name
        account.type = info.type
        account.subtype = info.subtype
        account.mask = info.mask
        account.current_balance = to_minor_units(info.balances.current)
        account.available_balance = to_minor_units(info.balances.available)
        account.currency_code = info.balances.iso_currency_code or account.currency_code or "USD"

        if commit:
            await self.db.commit()
            await self.db.refresh(account)
        return account
