"""Integration tests for the categorization resolver and its learning loop."""
from datetime import date
from unittest.mock import AsyncMock

import pytest

from budget_ledger.core.exceptions import NotFoundError, ValidationError
from budget_ledger.models.enums import PatternType
from budget_ledger.models.rule import Rule
from budget_ledger.models.transaction import Transaction
from budget_ledger.repositories.learned_pattern import LearnedPatternRepository
from budget_ledger.repositories.rule import RuleRepository
from budget_ledger.repositories.transaction import TransactionRepository
from budget_ledger.services.categorization import CategorizationService


async def add_rule(db, user_id, category_id, **fields) -> Rule:
    values = {"name": "rule", "match_type": "merchant", "priority": 0}
    values.update(fields)
    return await RuleRepository(db).create(Rule(user_id=user_id, category_id=category_id, **values))


async def add_txn(db, user_id, merchant_name, amount=-1500, **fields) -> Transaction:
    return await TransactionRepository(db).create(
        Transaction(
            user_id=user_id,
            merchant_name=merchant_name,
            amount=amount,
            txn_date=fields.pop("txn_date", date(2026, 10, 1)),
            is_manual=True,
            **fields,
        )
    )


class TestResolutionOrder:
    @pytest.mark.asyncio
    async def test_merchant_rule_beats_keywords(self, db_session, test_user, categories):
        travel = categories["Other"].id
        await add_rule(db_session, test_user.id, travel, merchant_pattern="uber")
        service = CategorizationService(db_session)

        resolution = await service.resolve(test_user.id, "UBER *TRIP", "Ride downtown", -1532)

        assert resolution.category_id == travel
        assert resolution.source == "rule"

    @pytest.mark.asyncio
    async def test_rule_beats_learned_pattern_without_looking_it_up(
        self, db_session, test_user, categories, monkeypatch
    ):
        learned = categories["Entertainment"].id
        ruled = categories["Transportation"].id
        await LearnedPatternRepository(db_session).reinforce(
            test_user.id, learned, PatternType.merchant, "uber"
        )
        rule = await add_rule(db_session, test_user.id, ruled, merchant_pattern="uber")
        service = CategorizationService(db_session)
        find_spy = AsyncMock(wraps=service.pattern_repo.find)
        monkeypatch.setattr(service.pattern_repo, "find", find_spy)

        resolution = await service.resolve(test_user.id, "Uber", "Ride downtown", -1532)

        assert resolution.source == "rule"
        assert resolution.category_id == ruled
        assert resolution.rule_id == rule.id
        find_spy.assert_not_awaited()

        rule.is_active = False
        await db_session.commit()
        fallback = await service.resolve(test_user.id, "Uber", "Ride downtown", -1532)

        assert fallback.source == "pattern"
        assert fallback.category_id == learned
        find_spy.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_higher_priority_rule_wins(self, db_session, test_user, categories):
        low = await add_rule(db_session, test_user.id, categories["Shopping"].id,
                             merchant_pattern="amazon", priority=1)
        high = await add_rule(db_session, test_user.id, categories["Subscriptions"].id,
                              match_type="amount_range", amount_max=1500, priority=10)

        resolution = await CategorizationService(db_session).resolve(
            test_user.id, "Amazon Prime", None, -1499
        )

        assert resolution.rule_id == high.id
        assert resolution.rule_id != low.id

    @pytest.mark.asyncio
    async def test_equal_priority_oldest_rule_wins(self, db_session, test_user, categories):
        older = await add_rule(db_session, test_user.id, categories["Shopping"].id,
                               name="zzz older", merchant_pattern="target", priority=5)
        await add_rule(db_session, test_user.id, categories["Other"].id,
                       name="aaa newer", merchant_pattern="target", priority=5)

        resolution = await CategorizationService(db_session).resolve(
            test_user.id, "TARGET T-1234", None, -2500
        )

        assert resolution.rule_id == older.id

    @pytest.mark.asyncio
    async def test_inactive_rules_are_skipped(self, db_session, test_user, categories):
        await add_rule(db_session, test_user.id, categories["Other"].id,
                       merchant_pattern="starbucks", is_active=False)

        resolution = await CategorizationService(db_session).resolve(
            test_user.id, "Starbucks", None, -550
        )

        assert resolution.source == "keyword"
        assert resolution.category_id == categories["Food & Dining"].id

    @pytest.mark.asyncio
    async def test_learned_pattern_beats_keywords(self, db_session, test_user, categories):
        await LearnedPatternRepository(db_session).reinforce(
            test_user.id, categories["Entertainment"].id, PatternType.merchant, "starbucks"
        )

        resolution = await CategorizationService(db_session).resolve(
            test_user.id, "STARBUCKS #4521 NYC", None, -550
        )

        assert resolution.source == "pattern"
        assert resolution.category_id == categories["Entertainment"].id

    @pytest.mark.asyncio
    async def test_pattern_below_threshold_is_ignored(self, db_session, test_user, categories):
        pattern = await LearnedPatternRepository(db_session).reinforce(
            test_user.id, categories["Entertainment"].id, PatternType.merchant, "starbucks"
        )
        pattern.confidence_score = 0.5
        await db_session.commit()

        resolution = await CategorizationService(db_session).resolve(
            test_user.id, "Starbucks", None, -550
        )

        assert resolution.source == "keyword"

    @pytest.mark.asyncio
    async def test_no_match_leaves_uncategorized(self, db_session, test_user, categories):
        service = CategorizationService(db_session)
        assert await service.categorize(test_user.id, "ZXQ LLC", "misc", -100) is None

    @pytest.mark.asyncio
    async def test_rules_of_other_owners_do_not_apply(
        self, db_session, test_user, another_user, categories
    ):
        from budget_ledger.services.category import CategoryService

        theirs = await CategoryService(db_session).create_defaults_for_user(another_user.id)
        await add_rule(db_session, another_user.id, theirs[0].id, merchant_pattern="zxq")

        assert await CategorizationService(db_session).categorize(
            test_user.id, "ZXQ LLC", None, -100
        ) is None


class TestLearning:
    @pytest.mark.asyncio
    async def test_assign_category_reinforces_pattern(self, db_session, test_user, categories):
        service = CategorizationService(db_session)
        food = categories["Food & Dining"].id
        first = await add_txn(db_session, test_user.id, "Joe's Diner #12")
        second = await add_txn(db_session, test_user.id, "JOE'S DINER #98")

        await service.assign_category(test_user.id, first.id, food)
        updated = await service.assign_category(test_user.id, second.id, food)

        assert updated.category_id == food
        learned = await LearnedPatternRepository(db_session).find(
            test_user.id, PatternType.merchant, "joes diner"
        )
        assert learned.match_count == 2
        assert learned.confidence_score == 0.9

        # A new transaction from the same merchant now resolves by pattern.
        resolution = await service.resolve(test_user.id, "Joe's Diner #40", None, -900)
        assert resolution.source == "pattern"

    @pytest.mark.asyncio
    async def test_correction_to_new_category_resets_confidence(
        self, db_session, test_user, categories
    ):
        service = CategorizationService(db_session)
        txn = await add_txn(db_session, test_user.id, "Target")
        await service.assign_category(test_user.id, txn.id, categories["Shopping"].id)
        await service.assign_category(test_user.id, txn.id, categories["Shopping"].id)

        await service.assign_category(test_user.id, txn.id, categories["Food & Dining"].id)

        learned = await LearnedPatternRepository(db_session).find(
            test_user.id, PatternType.merchant, "target"
        )
        assert learned.category_id == categories["Food & Dining"].id
        assert learned.match_count == 1
        assert learned.confidence_score == 0.7

    @pytest.mark.asyncio
    async def test_clearing_category_does_not_learn(self, db_session, test_user, categories):
        service = CategorizationService(db_session)
        txn = await add_txn(db_session, test_user.id, "Target", category_id=categories["Shopping"].id)

        cleared = await service.assign_category(test_user.id, txn.id, None)

        assert cleared.category_id is None
        assert await service.list_patterns(test_user.id) == []

    @pytest.mark.asyncio
    async def test_blank_merchant_is_not_learned(self, db_session, test_user, categories):
        service = CategorizationService(db_session)
        txn = await add_txn(db_session, test_user.id, "#00231")

        assert await service.reinforce(test_user.id, txn.id, categories["Other"].id) is None
        assert await service.list_patterns(test_user.id) == []

    @pytest.mark.asyncio
    async def test_assign_unknown_category_or_transaction(
        self, db_session, test_user, another_user, categories
    ):
        service = CategorizationService(db_session)
        txn = await add_txn(db_session, test_user.id, "Target")

        with pytest.raises(ValidationError):
            await service.assign_category(another_user.id, txn.id, categories["Shopping"].id)
        with pytest.raises(NotFoundError):
            await service.reinforce(another_user.id, txn.id, categories["Shopping"].id)

    @pytest.mark.asyncio
    async def test_delete_pattern(self, db_session, test_user, categories):
        service = CategorizationService(db_session)
        txn = await add_txn(db_session, test_user.id, "Target")
        pattern = await service.reinforce(test_user.id, txn.id, categories["Shopping"].id)

        await service.delete_pattern(test_user.id, pattern.id)

        with pytest.raises(NotFoundError):
            await service.delete_pattern(test_user.id, pattern.id)


class TestApplyToUncategorized:
    @pytest.mark.asyncio
    async def test_categorizes_only_uncategorized(self, db_session, test_user, categories):
        food = categories["Food & Dining"].id
        shopping = categories["Shopping"].id
        await add_rule(db_session, test_user.id, food, merchant_pattern="corner cafe")
        manual_choice = await add_txn(db_session, test_user.id, "Corner Cafe", category_id=shopping)
        to_rule = await add_txn(db_session, test_user.id, "Corner Cafe")
        to_keyword = await add_txn(db_session, test_user.id, "Amazon Marketplace")
        unknown = await add_txn(db_session, test_user.id, "ZXQ LLC")

        count = await CategorizationService(db_session).apply_to_uncategorized(test_user.id)

        assert count == 2
        for txn in (manual_choice, to_rule, to_keyword, unknown):
            await db_session.refresh(txn)
        assert manual_choice.category_id == shopping
        assert to_rule.category_id == food
        assert to_keyword.category_id == shopping
        assert unknown.category_id is None

    @pytest.mark.asyncio
    async def test_repeat_run_is_a_no_op(self, db_session, test_user, categories):
        await add_txn(db_session, test_user.id, "Amazon")
        service = CategorizationService(db_session)

        assert await service.apply_to_uncategorized(test_user.id) == 1
        assert await service.apply_to_uncategorized(test_user.id) == 0
