"""Spending / income category owned by a user."""
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_ledger.models.base import BaseModel


class Category(BaseModel):
    """Category a transaction can be assigned to."""

    __tablename__ = "categories"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    parent_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(String(7), default="#6B7280", nullable=False)
    icon: Mapped[str] = mapped_column(String(50), default="tag", nullable=False)
    is_income: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_system: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "parent_id", "name", name="uq_category_user_parent_name"),
    )

    user: Mapped["User"] = relationship("User", back_populates="categories")

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, name={self.name}, is_income={self.is_income})>"
