"""Ledger item: one linked bank connection (one provider credential)."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from budget_ledger.models.base import BaseModel
from budget_ledger.models.enums import ItemStatus, string_enum


class LedgerItem(BaseModel):
    """External bank connection and its incremental sync checkpoint."""

    __tablename__ = "ledger_items"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    provider_item_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    credential_encrypted: Mapped[str] = mapped_column(Text, nullable=False)
    institution_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    institution_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[ItemStatus] = mapped_column(
        string_enum(ItemStatus, "ledger_item_status"), default=ItemStatus.active, nullable=False
    )
    consent_expiration_time: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    # Opaque provider checkpoint; only written after a page is fully applied.
    cursor: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_sync_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    error_code: Mapped[str | None] = mapped_column(String(100), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="ledger_items")
    accounts: Mapped[list["LedgerAccount"]] = relationship(
        "LedgerAccount", back_populates="item", passive_deletes="all"
    )

    def __repr__(self) -> str:
        return (
            f"<LedgerItem(id={self.id}, institution_name={self.institution_name}, "
            f"status={self.status})>"
        )
