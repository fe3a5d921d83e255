"""Transaction service: listing, manual entries and category summaries."""
import logging
from datetime import date
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from budget_ledger.config import settings
from budget_ledger.core.exceptions import NotFoundError, ValidationError
from budget_ledger.models.transaction import Transaction
from budget_ledger.repositories.category import CategoryRepository
from budget_ledger.repositories.transaction import TransactionRepository
from budget_ledger.schemas.transaction import (
    CategorySummary,
    CategoryTotal,
    MoneyMeta,
    TransactionCreate,
    TransactionUpdate,
)
from budget_ledger.services.categorization import CategorizationService

logger = logging.getLogger(__name__)

USER_FIELDS = {"category_id", "notes"}


def money_meta() -> MoneyMeta:
    return MoneyMeta(currency=settings.currency, minor_unit=settings.currency_minor_unit)


class TransactionService:
    """Service layer for transaction queries and manual edits."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.transaction_repo = TransactionRepository(db)
        self.category_repo = CategoryRepository(db)
        self.categorization = CategorizationService(db)

    async def list_transactions(
        self, user_id: UUID, skip: int = 0, limit: int = 100, **filters
    ) -> tuple[list[Transaction], int]:
        """Get a page of transactions and the total matching count."""
        transactions = await self.transaction_repo.get_filtered(user_id, skip, limit, **filters)
        total = await self.transaction_repo.count_filtered(user_id, **filters)
        return transactions, total

    async def get_transaction(self, user_id: UUID, transaction_id: UUID) -> Transaction:
        txn = await self.transaction_repo.get_by_user(user_id, transaction_id)
        if txn is None:
            raise NotFoundError("TXN_001", {"transaction_id": str(transaction_id)})
        return txn

    async def _check_category(self, user_id: UUID, category_id: UUID | None) -> None:
        if category_id is not None and await self.category_repo.get_by_user(user_id, category_id) is None:
            raise ValidationError("CAT_001", {"category_id": str(category_id)})

    async def create_manual(self, user_id: UUID, data: TransactionCreate) -> Transaction:
        """Record a manual transaction, categorizing it when no category is given."""
        await self._check_category(user_id, data.category_id)

        category_id = data.category_id
        if category_id is None and data.auto_categorize:
            category_id = await self.categorization.categorize(
                user_id, data.merchant_name, data.description, data.amount
            )

        txn = await self.transaction_repo.create(
            Transaction(
                user_id=user_id,
                amount=data.amount,
                txn_date=data.txn_date,
                merchant_name=data.merchant_name,
                description=data.description,
                category_id=category_id,
                notes=data.notes,
                is_manual=True,
                pending=False,
            )
        )
        logger.info("Manual transaction created", extra={"transaction_id": str(txn.id)})
        return txn

    async def update_transaction(
        self, user_id: UUID, transaction_id: UUID, data: TransactionUpdate
    ) -> Transaction:
        txn = await self.get_transaction(user_id, transaction_id)
        changes = data.model_dump(exclude_unset=True)

        if not txn.is_manual and set(changes) - USER_FIELDS:
            raise ValidationError(
                "TXN_003", {"fields": sorted(set(changes) - USER_FIELDS)}
            )
        for field in ("amount", "txn_date"):
            if field in changes and changes[field] is None:
                raise ValidationError("VAL_001", {"field": field})
        if "category_id" in changes:
            await self._check_category(user_id, changes["category_id"])

        for field, value in changes.items():
            setattr(txn, field, value)
        await self.db.commit()
        await self.db.refresh(txn)
        return txn

    async def delete_manual(self, user_id: UUID, transaction_id: UUID) -> None:
        """Delete a manual transaction; imported ones are owned by the provider."""
        txn = await self.get_transaction(user_id, transaction_id)
        if not txn.is_manual:
            raise ValidationError("TXN_002", {"transaction_id": str(transaction_id)})
        await self.db.delete(txn)
        await self.db.commit()

    async def category_summary(
        self, user_id: UUID, start_date: date | None = None, end_date: date | None = None
    ) -> CategorySummary:
        if start_date and end_date and start_date > end_date:
            raise ValidationError("VAL_001", {"field": "start_date"})
        spending = await self.transaction_repo.get_spending_by_category(user_id, start_date, end_date)
        income = await self.transaction_repo.get_income_by_category(user_id, start_date, end_date)
        return CategorySummary(
            start_date=start_date,
            end_date=end_date,
            spending=[CategoryTotal(**row) for row in spending],
            income=[CategoryTotal(**row) for row in income],
            money=money_meta(),
        )
