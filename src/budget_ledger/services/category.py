"""Category service: owner-scoped CRUD and the default category set."""
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from budget_ledger.core.exceptions import LedgerServiceError, NotFoundError, ValidationError
from budget_ledger.models.category import Category
from budget_ledger.repositories.category import CategoryRepository
from budget_ledger.schemas.category import CategoryCreate, CategoryUpdate

logger = logging.getLogger(__name__)

# (name, color, icon, is_income); created for every new user.
DEFAULT_CATEGORIES = (
    ("Income", "#10B981", "dollar-sign", True),
    ("Housing", "#4F46E5", "home", False),
    ("Transportation", "#F59E0B", "car", False),
    ("Food & Dining", "#EF4444", "utensils", False),
    ("Utilities", "#6366F1", "zap", False),
    ("Healthcare", "#EC4899", "heart", False),
    ("Entertainment", "#8B5CF6", "film", False),
    ("Shopping", "#14B8A6", "shopping-bag", False),
    ("Personal Care", "#F97316", "user", False),
    ("Education", "#0EA5E9", "book", False),
    ("Subscriptions", "#84CC16", "credit-card", False),
    ("Other", "#6B7280", "more-horizontal", False),
)


class CategoryService:
    """Service layer for categories."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.category_repo = CategoryRepository(db)

    async def list_categories(self, user_id: UUID) -> list[Category]:
        return await self.category_repo.get_all_by_user(user_id)

    async def get_category(self, user_id: UUID, category_id: UUID) -> Category:
        category = await self.category_repo.get_by_user(user_id, category_id)
        if category is None:
            raise NotFoundError("CAT_001", {"category_id": str(category_id)})
        return category

    async def _check_parent(self, user_id: UUID, parent_id: UUID | None) -> None:
        if parent_id is not None and await self.category_repo.get_by_user(user_id, parent_id) is None:
            raise ValidationError("CAT_001", {"parent_id": str(parent_id)})

    async def _check_unique(
        self, user_id: UUID, name: str, parent_id: UUID | None, exclude_id: UUID | None = None
    ) -> None:
        existing = await self.category_repo.get_by_name(user_id, name, parent_id)
        if existing is not None and existing.id != exclude_id:
            raise LedgerServiceError("CAT_002", {"name": name}, http_status=409)

    async def create_category(self, user_id: UUID, data: CategoryCreate) -> Category:
        await self._check_parent(user_id, data.parent_id)
        await self._check_unique(user_id, data.name, data.parent_id)
        return await self.category_repo.create(
            Category(user_id=user_id, is_system=False, **data.model_dump())
        )

    async def update_category(
        self, user_id: UUID, category_id: UUID, data: CategoryUpdate
    ) -> Category:
        category = await self.get_category(user_id, category_id)
        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field == "parent_id"
        }

        if "parent_id" in changes:
            if changes["parent_id"] == category.id:
                raise ValidationError("VAL_001", {"field": "parent_id"})
            await self._check_parent(user_id, changes["parent_id"])
        name = changes.get("name", category.name)
        parent_id = changes.get("parent_id", category.parent_id)
        if name != category.name or parent_id != category.parent_id:
            await self._check_unique(user_id, name, parent_id, exclude_id=category.id)

        for field, value in changes.items():
            setattr(category, field, value)
        await self.db.commit()
        await self.db.refresh(category)
        return category

    async def delete_category(self, user_id: UUID, category_id: UUID) -> None:
        """Delete an owner's category.

        Transactions keep existing with no category; rules and learned
        patterns targeting it are removed with it.
        """
        category = await self.get_category(user_id, category_id)
        await self.db.delete(category)
        await self.db.commit()
        logger.info("Category deleted", extra={"category_id": str(category_id)})

    async def create_defaults_for_user(self, user_id: UUID) -> list[Category]:
        """Create the system default categories unless the user already has some."""
        if await self.category_repo.has_categories(user_id):
            return []
        categories = [
            Category(
                user_id=user_id,
                name=name,
                color=color,
                icon=icon,
                is_income=is_income,
                is_system=True,
                sort_order=position,
            )
            for position, (name, color, icon, is_income) in enumerate(DEFAULT_CATEGORIES)
        ]
        self.db.add_all(categories)
        await self.db.commit()
        logger.info(
            "Default categories created",
            extra={"user_id": str(user_id), "categories_count": len(categories)},
        )
        return categories
