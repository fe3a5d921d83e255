"""Integration tests for repository layer."""
from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from budget_ledger.models.enums import PatternType, RuleMatchType
from budget_ledger.models.rule import Rule
from budget_ledger.models.transaction import Transaction
from budget_ledger.repositories.category import CategoryRepository
from budget_ledger.repositories.learned_pattern import LearnedPatternRepository
from budget_ledger.repositories.ledger_account import LedgerAccountRepository
from budget_ledger.repositories.rule import RuleRepository
from budget_ledger.repositories.transaction import TransactionRepository
from budget_ledger.schemas.provider import AccountBalances, AccountInfo


def provider_values(account_id, amount=-435, merchant="Starbucks", txn_date=date(2026, 10, 1)):
    return {
        "ledger_account_id": account_id,
        "amount": amount,
        "txn_date": txn_date,
        "merchant_name": merchant,
        "description": f"{merchant.upper()} #4521",
        "provider_category": "FOOD_AND_DRINK",
        "pending": True,
    }


async def add_manual(db: AsyncSession, user_id, **fields) -> Transaction:
    values = {"amount": -1000, "txn_date": date(2026, 10, 5), "is_manual": True}
    values.update(fields)
    return await TransactionRepository(db).create(Transaction(user_id=user_id, **values))


class TestTransactionRepository:
    """Test TransactionRepository provider upserts and queries."""

    @pytest.mark.asyncio
    async def test_upsert_creates_then_updates(self, db_session, test_user, linked_item):
        _, account = linked_item
        repo = TransactionRepository(db_session)

        txn, created = await repo.upsert_from_provider(
            test_user.id, "txn-1", provider_values(account.id)
        )
        assert created is True
        assert txn.is_manual is False

        updated, created = await repo.upsert_from_provider(
            test_user.id, "txn-1", {**provider_values(account.id, amount=-450), "pending": False}
        )
        assert created is False
        assert updated.id == txn.id
        assert updated.amount == -450
        assert updated.pending is False

    @pytest.mark.asyncio
    async def test_upsert_keeps_user_fields(self, db_session, test_user, linked_item, categories):
        _, account = linked_item
        repo = TransactionRepository(db_session)
        txn, _ = await repo.upsert_from_provider(test_user.id, "txn-1", provider_values(account.id))
        txn.category_id = categories["Shopping"].id
        txn.notes = "gift card"
        await db_session.commit()

        values = provider_values(account.id)
        values["category_id"] = None
        values["notes"] = None
        again, _ = await repo.upsert_from_provider(test_user.id, "txn-1", values)

        assert again.category_id == categories["Shopping"].id
        assert again.notes == "gift card"

    @pytest.mark.asyncio
    async def test_delete_by_provider_id(self, db_session, test_user, linked_item):
        _, account = linked_item
        repo = TransactionRepository(db_session)
        await repo.upsert_from_provider(test_user.id, "txn-1", provider_values(account.id))

        assert await repo.delete_by_provider_id(test_user.id, "txn-1") is True
        assert await repo.delete_by_provider_id(test_user.id, "txn-1") is False
        assert await repo.get_by_provider_id(test_user.id, "txn-1") is None

    @pytest.mark.asyncio
    async def test_user_cannot_access_other_users_transaction(
        self, db_session, test_user, another_user
    ):
        txn = await add_manual(db_session, test_user.id, merchant_name="Rent")
        repo = TransactionRepository(db_session)

        assert await repo.get_by_user(another_user.id, txn.id) is None
        assert (await repo.get_by_user(test_user.id, txn.id)).id == txn.id

    @pytest.mark.asyncio
    async def test_filters_and_count(self, db_session, test_user, categories):
        food = categories["Food & Dining"].id
        await add_manual(db_session, test_user.id, merchant_name="Blue Bottle", category_id=food,
                         txn_date=date(2026, 9, 1))
        await add_manual(db_session, test_user.id, merchant_name="Shell", txn_date=date(2026, 9, 15))
        await add_manual(db_session, test_user.id, description="blue apron box",
                         txn_date=date(2026, 10, 1))
        repo = TransactionRepository(db_session)

        assert await repo.count_filtered(test_user.id) == 3
        assert await repo.count_filtered(test_user.id, category_id=food) == 1
        assert await repo.count_filtered(test_user.id, uncategorized=True) == 2
        assert await repo.count_filtered(test_user.id, search="blue") == 2
        in_september = await repo.get_filtered(
            test_user.id, start_date=date(2026, 9, 1), end_date=date(2026, 9, 30)
        )
        # Newest first.
        assert [t.merchant_name for t in in_september] == ["Shell", "Blue Bottle"]
        page = await repo.get_filtered(test_user.id, skip=1, limit=1)
        assert len(page) == 1

    @pytest.mark.asyncio
    async def test_spending_and_income_by_category(self, db_session, test_user, categories):
        food = categories["Food & Dining"]
        income = categories["Income"]
        await add_manual(db_session, test_user.id, amount=-1200, category_id=food.id)
        await add_manual(db_session, test_user.id, amount=-800, category_id=food.id)
        await add_manual(db_session, test_user.id, amount=-500)
        await add_manual(db_session, test_user.id, amount=250000, category_id=income.id)
        repo = TransactionRepository(db_session)

        spending = await repo.get_spending_by_category(test_user.id)
        income_rows = await repo.get_income_by_category(test_user.id)

        assert spending[0] == {
            "category_id": food.id,
            "category_name": "Food & Dining",
            "total": 2000,
            "count": 2,
        }
        assert spending[1]["category_name"] == "Uncategorized"
        assert spending[1]["total"] == 500
        assert income_rows == [
            {"category_id": income.id, "category_name": "Income", "total": 250000, "count": 1}
        ]


class TestLearnedPatternRepository:
    @pytest.mark.asyncio
    async def test_reinforce_progression(self, db_session, test_user, categories):
        repo = LearnedPatternRepository(db_session)
        food = categories["Food & Dining"].id

        first = await repo.reinforce(test_user.id, food, PatternType.merchant, "starbucks")
        assert (first.match_count, first.confidence_score) == (1, 0.8)

        second = await repo.reinforce(test_user.id, food, PatternType.merchant, "starbucks")
        assert (second.match_count, second.confidence_score) == (2, 0.9)

        third = await repo.reinforce(test_user.id, food, PatternType.merchant, "starbucks")
        fourth = await repo.reinforce(test_user.id, food, PatternType.merchant, "starbucks")
        assert third.confidence_score == 1.0
        assert (fourth.match_count, fourth.confidence_score) == (4, 1.0)

    @pytest.mark.asyncio
    async def test_reinforce_with_other_category_resets(self, db_session, test_user, categories):
        repo = LearnedPatternRepository(db_session)
        food = categories["Food & Dining"].id
        shopping = categories["Shopping"].id
        await repo.reinforce(test_user.id, food, PatternType.merchant, "target")
        await repo.reinforce(test_user.id, food, PatternType.merchant, "target")

        pattern = await repo.reinforce(test_user.id, shopping, PatternType.merchant, "target")

        assert pattern.category_id == shopping
        assert pattern.match_count == 1
        assert pattern.confidence_score == 0.7
        assert len(await repo.get_all_by_user(test_user.id)) == 1

    @pytest.mark.asyncio
    async def test_delete_is_owner_scoped(self, db_session, test_user, another_user, categories):
        repo = LearnedPatternRepository(db_session)
        pattern = await repo.reinforce(
            test_user.id, categories["Shopping"].id, PatternType.merchant, "target"
        )

        assert await repo.delete_by_user(another_user.id, pattern.id) is False
        assert await repo.delete_by_user(test_user.id, pattern.id) is True
        assert await repo.find(test_user.id, PatternType.merchant, "target") is None


class TestLedgerAccountRepository:
    @pytest.mark.asyncio
    async def test_upsert_refreshes_balances_and_keeps_hidden_flag(
        self, db_session, linked_item
    ):
        item, account = linked_item
        account.is_hidden = True
        await db_session.commit()
        repo = LedgerAccountRepository(db_session)

        refreshed = await repo.upsert_from_provider(
            item.id,
            AccountInfo(
                account_id="acc-checking",
                name="Everyday Checking",
                balances=AccountBalances(current=99.99, available=None),
            ),
        )

        assert refreshed.id == account.id
        assert refreshed.current_balance == 9999
        assert refreshed.available_balance is None
        assert refreshed.is_hidden is True
        assert await repo.account_map(item.id) == {"acc-checking": account.id}

    @pytest.mark.asyncio
    async def test_get_for_user_goes_through_item_owner(
        self, db_session, linked_item, test_user, another_user
    ):
        _, account = linked_item
        repo = LedgerAccountRepository(db_session)

        assert await repo.get_for_user(another_user.id, account.id) is None
        assert (await repo.get_for_user(test_user.id, account.id)).id == account.id


class TestCategoryRepository:
    @pytest.mark.asyncio
    async def test_get_by_name_distinguishes_parent(self, db_session, test_user, categories):
        repo = CategoryRepository(db_session)
        food = categories["Food & Dining"]

        assert (await repo.get_by_name(test_user.id, "Food & Dining")).id == food.id
        assert await repo.get_by_name(test_user.id, "Food & Dining", parent_id=food.id) is None
        assert await repo.has_categories(test_user.id) is True

    @pytest.mark.asyncio
    async def test_listing_follows_sort_order(self, db_session, test_user, categories):
        names = [c.name for c in await CategoryRepository(db_session).get_all_by_user(test_user.id)]
        assert names[0] == "Income"
        assert names[-1] == "Other"


class TestRuleRepository:
    @pytest.mark.asyncio
    async def test_active_rules_order_is_deterministic_on_timestamp_ties(
        self, db_session: AsyncSession, test_user, categories
    ):
        stamp = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)
        repo = RuleRepository(db_session)
        tied = [
            await repo.create(
                Rule(
                    user_id=test_user.id,
                    category_id=categories["Shopping"].id,
                    name=f"tied {n}",
                    match_type=RuleMatchType.merchant,
                    merchant_pattern="target",
                    priority=5,
                    created_at=stamp,
                )
            )
            for n in range(3)
        ]
        urgent = await repo.create(
            Rule(
                user_id=test_user.id,
                category_id=categories["Other"].id,
                name="urgent",
                match_type=RuleMatchType.merchant,
                merchant_pattern="target",
                priority=9,
                created_at=stamp + timedelta(days=1),
            )
        )

        first = await repo.get_active_by_user(test_user.id)
        second = await repo.get_active_by_user(test_user.id)

        expected = [urgent.id] + sorted((r.id for r in tied), key=lambda rule_id: rule_id.hex)
        assert [r.id for r in first] == expected
        assert [r.id for r in second] == expected
