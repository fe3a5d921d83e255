"""Ledger entry store: idempotent transaction storage and aggregate queries."""
import logging
from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from budget_ledger.models.category import Category
from budget_ledger.models.transaction import Transaction
from budget_ledger.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

# Fields the provider owns; a re-sync may overwrite these and nothing else.
PROVIDER_FIELDS = (
    "amount",
    "txn_date",
    "merchant_name",
    "description",
    "provider_category",
    "pending",
)


class TransactionRepository(BaseRepository[Transaction]):
    """Repository for Transaction model with filtering and analytics queries."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Transaction)

    async def get_by_provider_id(
        self, user_id: UUID, provider_transaction_id: str
    ) -> Transaction | None:
        result = await self.db.execute(
            select(Transaction).where(
                Transaction.user_id == user_id,
                Transaction.provider_transaction_id == provider_transaction_id,
            )
        )
        return result.scalar_one_or_none()

    def _filtered(
        self,
        query,
        user_id: UUID,
        account_id: UUID | None = None,
        category_id: UUID | None = None,
        uncategorized: bool = False,
        start_date: date | None = None,
        end_date: date | None = None,
        search: str | None = None,
    ):
        query = query.where(Transaction.user_id == user_id)
        if account_id is not None:
            query = query.where(Transaction.ledger_account_id == account_id)
        if uncategorized:
            query = query.where(Transaction.category_id.is_(None))
        elif category_id is not None:
            query = query.where(Transaction.category_id == category_id)
        if start_date is not None:
            query = query.where(Transaction.txn_date >= start_date)
        if end_date is not None:
            query = query.where(Transaction.txn_date <= end_date)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                Transaction.merchant_name.ilike(pattern) | Transaction.description.ilike(pattern)
            )
        return query

    async def get_filtered(
        self, user_id: UUID, skip: int = 0, limit: int = 100, **filters: Any
    ) -> list[Transaction]:
        """Get transactions for a user with optional filters and pagination."""
        query = self._filtered(select(Transaction), user_id, **filters)
        result = await self.db.execute(
            query.order_by(Transaction.txn_date.desc(), Transaction.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_filtered(self, user_id: UUID, **filters: Any) -> int:
        query = self._filtered(select(func.count(Transaction.id)), user_id, **filters)
        result = await self.db.execute(query)
        return int(result.scalar_one())

    async def get_uncategorized(self, user_id: UUID, limit: int = 1000) -> list[Transaction]:
        """Oldest-first batch of the owner's uncategorized transactions."""
        result = await self.db.execute(
            select(Transaction)
            .where(Transaction.user_id == user_id, Transaction.category_id.is_(None))
            .order_by(Transaction.txn_date, Transaction.created_at)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def upsert_from_provider(
        self, user_id: UUID, provider_transaction_id: str, values: dict[str, Any]
    ) -> tuple[Transaction, bool]:
        """Insert or update by provider transaction id.

        Returns ``(transaction, created)``. On update only ``PROVIDER_FIELDS``
        are written, so a user-assigned category and notes survive a re-sync.
        """
        existing = await self.get_by_provider_id(user_id, provider_transaction_id)
        if existing is not None:
            self._apply_provider_fields(existing, values)
            await self.db.commit()
            return existing, False

        txn = Transaction(
            user_id=user_id,
            provider_transaction_id=provider_transaction_id,
            is_manual=False,
            **values,
        )
        self.db.add(txn)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost an insert race with a concurrent sync of the same item.
            await self.db.rollback()
            existing = await self.get_by_provider_id(user_id, provider_transaction_id)
            if existing is None:
                raise
            logger.info(
                "Transaction inserted concurrently, updating instead",
                extra={"provider_transaction_id": provider_transaction_id},
            )
            self._apply_provider_fields(existing, values)
            await self.db.commit()
            return existing, False
        return txn, True

    @staticmethod
    def _apply_provider_fields(txn: Transaction, values: dict[str, Any]) -> None:
        for field in PROVIDER_FIELDS:
            if field in values:
                setattr(txn, field, values[field])

    async def update_category(
        self, user_id: UUID, transaction_id: UUID, category_id: UUID | None
    ) -> Transaction | None:
        txn = await self.get_by_user(user_id, transaction_id)
        if txn is None:
            return None
        txn.category_id = category_id
        await self.db.commit()
        await self.db.refresh(txn)
        return txn

    async def delete_by_provider_id(self, user_id: UUID, provider_transaction_id: str) -> bool:
        """Delete a provider-sourced transaction. Returns False if it was not stored."""
        result = await self.db.execute(
            delete(Transaction).where(
                Transaction.user_id == user_id,
                Transaction.provider_transaction_id == provider_transaction_id,
            )
        )
        await self.db.commit()
        return (result.rowcount or 0) > 0

    async def _totals_by_category(
        self, user_id: UUID, money_out: bool, start_date: date | None, end_date: date | None
    ) -> list[dict[str, Any]]:
        amount_filter = Transaction.amount < 0 if money_out else Transaction.amount > 0
        total = func.sum(func.abs(Transaction.amount)).label("total")
        query = (
            select(
                Transaction.category_id,
                Category.name.label("category_name"),
                total,
                func.count(Transaction.id).label("count"),
            )
            .select_from(Transaction)
            .outerjoin(Category, Category.id == Transaction.category_id)
            .where(Transaction.user_id == user_id, amount_filter)
        )
        if start_date is not None:
            query = query.where(Transaction.txn_date >= start_date)
        if end_date is not None:
            query = query.where(Transaction.txn_date <= end_date)
        result = await self.db.execute(
            query.group_by(Transaction.category_id, Category.name).order_by(total.desc())
        )
        return [
            {
                "category_id": row.category_id,
                "category_name": row.category_name or "Uncategorized",
                "total": int(row.total or 0),
                "count": int(row.count),
            }
            for row in result
        ]

    async def get_spending_by_category(
        self, user_id: UUID, start_date: date | None = None, end_date: date | None = None
    ) -> list[dict[str, Any]]:
        """Money out per category as positive minor units, largest first."""
        return await self._totals_by_category(user_id, True, start_date, end_date)

    async def get_income_by_category(
        self, user_id: UUID, start_date: date | None = None, end_date: date | None = None
    ) -> list[dict[str, Any]]:
        return await self._totals_by_category(user_id, False, start_date, end_date)
