"""Database models."""
from budget_ledger.models.user import User
from budget_ledger.models.category import Category
from budget_ledger.models.rule import Rule
from budget_ledger.models.learned_pattern import LearnedPattern
from budget_ledger.models.ledger_item import LedgerItem
from budget_ledger.models.ledger_account import LedgerAccount
from budget_ledger.models.transaction import Transaction
from budget_ledger.models.enums import ItemStatus, PatternType, RuleMatchType

__all__ = [
    "User",
    "Category",
    "Rule",
    "LearnedPattern",
    "LedgerItem",
    "LedgerAccount",
    "Transaction",
    "ItemStatus",
    "PatternType",
    "RuleMatchType",
]
