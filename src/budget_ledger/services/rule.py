"""Rule service: owner-scoped CRUD with validation before persistence."""
import logging
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from budget_ledger.core.exceptions import NotFoundError, RuleValidationError
from budget_ledger.models.enums import RuleMatchType
from budget_ledger.models.rule import Rule
from budget_ledger.repositories.category import CategoryRepository
from budget_ledger.repositories.rule import RuleRepository
from budget_ledger.schemas.rule import RuleCreate, RuleUpdate

logger = logging.getLogger(__name__)

RULE_FIELDS = (
    "name",
    "category_id",
    "match_type",
    "merchant_pattern",
    "description_pattern",
    "amount_min",
    "amount_max",
    "is_exact_match",
    "priority",
    "is_active",
)

NULLABLE_FIELDS = {"merchant_pattern", "description_pattern", "amount_min", "amount_max"}


def validate_rule_fields(fields: dict[str, Any]) -> None:
    """Reject rules the resolver could not evaluate meaningfully.

    Raises:
        RuleValidationError: With the catalog code of the first problem found
    """
    match_type = RuleMatchType(fields["match_type"])
    merchant = (fields.get("merchant_pattern") or "").strip()
    description = (fields.get("description_pattern") or "").strip(" ,")
    amount_min = fields.get("amount_min")
    amount_max = fields.get("amount_max")

    if match_type is RuleMatchType.merchant and not merchant:
        raise RuleValidationError("RULE_001", {"field": "merchant_pattern"})
    if match_type is RuleMatchType.description and not description:
        raise RuleValidationError("RULE_002", {"field": "description_pattern"})
    if match_type is RuleMatchType.amount_range and amount_min is None and amount_max is None:
        raise RuleValidationError("RULE_003", {"field": "amount_min"})
    if amount_min is not None and amount_max is not None and amount_min > amount_max:
        raise RuleValidationError(
            "RULE_004", {"amount_min": amount_min, "amount_max": amount_max}
        )
    if (
        match_type is RuleMatchType.combined
        and not merchant
        and not description
        and amount_min is None
        and amount_max is None
    ):
        raise RuleValidationError("RULE_007", {"field": "match_type"})


class RuleService:
    """Service layer for categorization rules."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.rule_repo = RuleRepository(db)
        self.category_repo = CategoryRepository(db)

    async def _require_category(self, user_id: UUID, category_id: UUID) -> None:
        if await self.category_repo.get_by_user(user_id, category_id) is None:
            raise RuleValidationError("RULE_005", {"category_id": str(category_id)})

    async def list_rules(self, user_id: UUID) -> list[Rule]:
        return await self.rule_repo.get_all_by_user(user_id)

    async def get_rule(self, user_id: UUID, rule_id: UUID) -> Rule:
        rule = await self.rule_repo.get_by_user(user_id, rule_id)
        if rule is None:
            raise NotFoundError("RULE_006", {"rule_id": str(rule_id)})
        return rule

    async def create_rule(self, user_id: UUID, data: RuleCreate) -> Rule:
        fields = data.model_dump()
        validate_rule_fields(fields)
        await self._require_category(user_id, data.category_id)

        rule = await self.rule_repo.create(Rule(user_id=user_id, **fields))
        logger.info(
            "Rule created",
            extra={"rule_id": str(rule.id), "match_type": rule.match_type.value},
        )
        return rule

    async def update_rule(self, user_id: UUID, rule_id: UUID, data: RuleUpdate) -> Rule:
        rule = await self.get_rule(user_id, rule_id)
        changes = {
            field: value
            for field, value in data.model_dump(exclude_unset=True).items()
            if value is not None or field in NULLABLE_FIELDS
        }

        merged = {field: getattr(rule, field) for field in RULE_FIELDS}
        merged.update(changes)
        validate_rule_fields(merged)
        if "category_id" in changes:
            await self._require_category(user_id, changes["category_id"])

        for field, value in changes.items():
            setattr(rule, field, value)
        await self.db.commit()
        await self.db.refresh(rule)
        return rule

    async def delete_rule(self, user_id: UUID, rule_id: UUID) -> None:
        rule = await self.get_rule(user_id, rule_id)
        await self.db.delete(rule)
        await self.db.commit()
