"""Ledger entry: one provider-sourced or manually entered transaction."""
from datetime import date
from uuid import UUID

from sqlalchemy import BigInteger, Boolean, Date, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_ledger.models.base import BaseModel


class Transaction(BaseModel):
    """Transaction record.

    ``amount`` is signed in minor units: negative is money out, positive is
    money in. Provider amounts use the opposite convention and are negated on
    ingest.
    """

    __tablename__ = "transactions"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    ledger_account_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("ledger_accounts.id", ondelete="SET NULL"), nullable=True, index=True
    )
    provider_transaction_id: Mapped[str | None] = mapped_column(
        String(255), unique=True, nullable=True
    )
    category_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    txn_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    merchant_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    provider_category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    pending: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_manual: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_transactions_user_id_category_id", "user_id", "category_id"),
        Index("ix_transactions_user_id_txn_date", "user_id", "txn_date"),
    )

    category: Mapped["Category | None"] = relationship("Category", lazy="joined")

    def __repr__(self) -> str:
        return (
            f"<Transaction(id={self.id}, merchant_name={self.merchant_name}, "
            f"amount={self.amount})>"
        )
