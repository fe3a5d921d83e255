"""Confidence-weighted merchant/description -> category memory.

Patterns are user-scoped and built only from explicit user corrections.
"""
from uuid import UUID

from sqlalchemy import Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from budget_ledger.models.base import BaseModel
from budget_ledger.models.enums import PatternType, string_enum


class LearnedPattern(BaseModel):
    """Normalized pattern value learned for a specific user."""

    __tablename__ = "learned_patterns"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    category_id: Mapped[UUID] = mapped_column(
        ForeignKey("categories.id", ondelete="CASCADE"), nullable=False
    )
    pattern_type: Mapped[PatternType] = mapped_column(
        string_enum(PatternType, "pattern_type"), nullable=False
    )
    pattern_value: Mapped[str] = mapped_column(String(255), nullable=False)
    confidence_score: Mapped[float] = mapped_column(Float, default=0.8, nullable=False)
    match_count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "user_id", "pattern_type", "pattern_value", name="uq_learned_pattern_user_type_value"
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<LearnedPattern(id={self.id}, pattern_value={self.pattern_value}, "
            f"confidence_score={self.confidence_score}, match_count={self.match_count})>"
        )
