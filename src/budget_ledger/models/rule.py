"""User-defined categorization rule."""
from uuid import UUID

from sqlalchemy import BigInteger, Boolean, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_ledger.models.base import BaseModel
from budget_ledger.models.enums import RuleMatchType, string_enum


class Rule(BaseModel):
    """Rule mapping a merchant / description / amount predicate to a category.

    Amount bounds are absolute values in minor currency units.
    """

    __tablename__ = "categorization_rules"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    category_id: Mapped[UUID] = mapped_column(
        ForeignKey("categories.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    match_type: Mapped[RuleMatchType] = mapped_column(
        string_enum(RuleMatchType, "rule_match_type"), nullable=False
    )
    merchant_pattern: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description_pattern: Mapped[str | None] = mapped_column(String(500), nullable=True)
    amount_min: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    amount_max: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    is_exact_match: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        Index("ix_rules_user_id_active_priority", "user_id", "is_active", "priority"),
    )

    category: Mapped["Category"] = relationship("Category", lazy="joined")

    def __repr__(self) -> str:
        return (
            f"<Rule(id={self.id}, name={self.name}, match_type={self.match_type}, "
            f"priority={self.priority})>"
        )
