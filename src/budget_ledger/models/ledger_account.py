"""Ledger account (checking, savings, card) under a ledger item."""
from uuid import UUID

from sqlalchemy import BigInteger, Boolean, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_ledger.models.base import BaseModel


class LedgerAccount(BaseModel):
    """Provider account; balances in minor currency units."""

    __tablename__ = "ledger_accounts"

    item_id: Mapped[UUID] = mapped_column(
        ForeignKey("ledger_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    provider_account_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    official_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    subtype: Mapped[str | None] = mapped_column(String(50), nullable=True)
    mask: Mapped[str | None] = mapped_column(String(10), nullable=True)
    current_balance: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    available_balance: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    currency_code: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)
    is_hidden: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    item: Mapped["LedgerItem"] = relationship("LedgerItem", back_populates="accounts")

    def __repr__(self) -> str:
        return f"<LedgerAccount(id={self.id}, name={self.name}, mask={self.mask})>"
