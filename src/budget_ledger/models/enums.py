"""Closed value sets stored on ledger and categorization tables."""
from enum import Enum

from sqlalchemy import Enum as SAEnum


class RuleMatchType(str, Enum):
    merchant = "merchant"
    description = "description"
    amount_range = "amount_range"
    combined = "combined"


class PatternType(str, Enum):
    merchant = "merchant"
    description = "description"


class ItemStatus(str, Enum):
    active = "active"
    error = "error"
    pending_expiration = "pending_expiration"


def string_enum(enum_cls: type[Enum], name: str) -> SAEnum:
    """Store enum values as VARCHAR with a CHECK constraint (portable across SQLite and Postgres)."""
    return SAEnum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        values_callable=lambda members: [member.value for member in members],
    )
