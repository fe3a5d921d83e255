"""Categorization resolver and its learning feedback loop.

Resolution order, short-circuiting on the first hit:

1. the owner's active rules, highest priority first (oldest first on ties)
2. the learned merchant pattern, if its confidence clears the threshold
3. the static keyword table
4. otherwise no category; the transaction stays uncategorized
"""
import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from budget_ledger.categorization import (
    KEYWORD_TABLE,
    TransactionFacts,
    match_keywords,
    normalize_merchant,
    predicate_for,
)
from budget_ledger.config import settings
from budget_ledger.core.exceptions import NotFoundError, ValidationError
from budget_ledger.models.category import Category
from budget_ledger.models.enums import PatternType
from budget_ledger.models.learned_pattern import LearnedPattern
from budget_ledger.models.transaction import Transaction
from budget_ledger.repositories.category import CategoryRepository
from budget_ledger.repositories.learned_pattern import LearnedPatternRepository
from budget_ledger.repositories.rule import RuleRepository
from budget_ledger.repositories.transaction import TransactionRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    """Which layer produced a category. ``source`` is rule, pattern or keyword."""

    category_id: UUID
    source: str
    rule_id: UUID | None = None


class _OwnerContext:
    """Owner's rules and categories, loaded once per resolver pass."""

    def __init__(self, rules: list, categories: list[Category]):
        self.rules = [(rule, predicate_for(rule)) for rule in rules]
        self.categories = categories


class CategorizationService:
    """Service layer for categorizing transactions and learning from corrections."""

    def __init__(self, db: AsyncSession, keyword_table=KEYWORD_TABLE):
        self.db = db
        self.rule_repo = RuleRepository(db)
        self.category_repo = CategoryRepository(db)
        self.pattern_repo = LearnedPatternRepository(db)
        self.transaction_repo = TransactionRepository(db)
        self.keyword_table = keyword_table
        self.confidence_threshold = settings.pattern_confidence_threshold

    async def _load_context(self, user_id: UUID) -> _OwnerContext:
        rules = await self.rule_repo.get_active_by_user(user_id)
        categories = await self.category_repo.get_all_by_user(user_id)
        return _OwnerContext(rules, categories)

    async def _resolve(
        self,
        user_id: UUID,
        context: _OwnerContext,
        merchant_name: str | None,
        description: str | None,
        amount: int,
    ) -> Resolution | None:
        facts = TransactionFacts(merchant_name, description, amount)

        for rule, predicate in context.rules:
            if predicate.matches(facts):
                return Resolution(rule.category_id, "rule", rule.id)

        normalized = normalize_merchant(merchant_name)
        if normalized:
            pattern = await self.pattern_repo.find(user_id, PatternType.merchant, normalized)
            if pattern is not None and pattern.confidence_score >= self.confidence_threshold:
                return Resolution(pattern.category_id, "pattern")

        category_id = match_keywords(
            merchant_name, description, amount, context.categories, self.keyword_table
        )
        if category_id is not None:
            return Resolution(category_id, "keyword")
        return None

    async def resolve(
        self,
        user_id: UUID,
        merchant_name: str | None,
        description: str | None,
        amount: int,
    ) -> Resolution | None:
        """Like ``categorize`` but also reports which layer matched."""
        context = await self._load_context(user_id)
        return await self._resolve(user_id, context, merchant_name, description, amount)

    async def categorize(
        self,
        user_id: UUID,
        merchant_name: str | None,
        description: str | None,
        amount: int,
    ) -> UUID | None:
        """Return the category id for a transaction, or None when nothing matches.

        Args:
            user_id: Owner whose rules, patterns and categories apply
            merchant_name: Merchant as reported by the bank
            description: Free-text description
            amount: Signed minor units (negative is money out)
        """
        resolution = await self.resolve(user_id, merchant_name, description, amount)
        return resolution.category_id if resolution else None

    async def categorize_transaction(self, txn: Transaction) -> UUID | None:
        return await self.categorize(txn.user_id, txn.merchant_name, txn.description, txn.amount)

    async def reinforce(
        self, user_id: UUID, transaction_id: UUID, category_id: UUID
    ) -> LearnedPattern | None:
        """Feed a user's category choice for a transaction back into learned patterns.

        No-op (returns None) when the merchant normalizes to nothing.
        """
        txn = await self.transaction_repo.get_by_user(user_id, transaction_id)
        if txn is None:
            raise NotFoundError("TXN_001", {"transaction_id": str(transaction_id)})

        normalized = normalize_merchant(txn.merchant_name)
        if not normalized:
            return None

        pattern = await self.pattern_repo.reinforce(
            user_id, category_id, PatternType.merchant, normalized
        )
        logger.info(
            "Learned pattern reinforced",
            extra={
                "user_id": str(user_id),
                "pattern_id": str(pattern.id),
                "match_count": pattern.match_count,
                "confidence_score": pattern.confidence_score,
            },
        )
        return pattern

    async def assign_category(
        self, user_id: UUID, transaction_id: UUID, category_id: UUID | None
    ) -> Transaction:
        """Set (or clear) a transaction's category as an explicit user choice."""
        if category_id is not None:
            category = await self.category_repo.get_by_user(user_id, category_id)
            if category is None:
                raise ValidationError("CAT_001", {"category_id": str(category_id)})

        txn = await self.transaction_repo.update_category(user_id, transaction_id, category_id)
        if txn is None:
            raise NotFoundError("TXN_001", {"transaction_id": str(transaction_id)})

        if category_id is not None:
            await self.reinforce(user_id, transaction_id, category_id)
        return txn

    async def apply_to_uncategorized(self, user_id: UUID) -> int:
        """Run the resolver over one batch of uncategorized transactions.

        Each assignment commits on its own, so an interrupted run keeps what
        it already categorized and can simply be repeated.

        Returns:
            Number of transactions that received a category
        """
        context = await self._load_context(user_id)
        batch = await self.transaction_repo.get_uncategorized(
            user_id, limit=settings.bulk_apply_batch_size
        )
        categorized = 0
        for txn in batch:
            resolution = await self._resolve(
                user_id, context, txn.merchant_name, txn.description, txn.amount
            )
            if resolution is None:
                continue
            txn.category_id = resolution.category_id
            await self.db.commit()
            categorized += 1

        logger.info(
            "Applied categorization to uncategorized transactions",
            extra={
                "user_id": str(user_id),
                "batch_size": len(batch),
                "categorized_count": categorized,
            },
        )
        return categorized

    async def list_patterns(self, user_id: UUID) -> list[LearnedPattern]:
        return await self.pattern_repo.get_all_by_user(user_id)

    async def delete_pattern(self, user_id: UUID, pattern_id: UUID) -> None:
        """Forget a learned pattern; the next correction starts it over at 0.8."""
        if not await self.pattern_repo.delete_by_user(user_id, pattern_id):
            raise NotFoundError("PAT_001", {"pattern_id": str(pattern_id)})
