"""User model: the owner every ledger and categorization record is scoped to."""
from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_ledger.models.base import BaseModel


class User(BaseModel):
    """Owner of categories, rules, learned patterns, items and transactions."""

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Rely on DB-level ON DELETE CASCADE; prevent SQLAlchemy from NULLing FKs on delete.
    categories: Mapped[list["Category"]] = relationship(
        "Category", back_populates="user", passive_deletes="all"
    )
    ledger_items: Mapped[list["LedgerItem"]] = relationship(
        "LedgerItem", back_populates="user", passive_deletes="all"
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, is_active={self.is_active})>"
