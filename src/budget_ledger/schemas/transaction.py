"""Pydantic schemas for ledger transactions.

All amounts are signed minor units: negative is money out, positive is
money in. The ``money`` metadata says how to render them.
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class MoneyMeta(BaseModel):
    """Metadata describing how monetary amounts are represented."""

    currency: str = Field(description="ISO currency code (e.g., USD)")
    minor_unit: int = Field(description="Number of decimal places for the currency")


class TransactionCreate(BaseModel):
    """Manually entered transaction."""

    amount: int = Field(description="Signed minor units (negative = expense)")
    txn_date: date
    merchant_name: str | None = Field(None, max_length=255)
    description: str | None = Field(None, max_length=500)
    category_id: UUID | None = None
    notes: str | None = None
    auto_categorize: bool = Field(
        True, description="Run the resolver when no category is given"
    )


class TransactionUpdate(BaseModel):
    """Partial update. Imported transactions only accept category_id and notes."""

    amount: int | None = None
    txn_date: date | None = None
    merchant_name: str | None = Field(None, max_length=255)
    description: str | None = Field(None, max_length=500)
    category_id: UUID | None = None
    notes: str | None = None


class CategoryAssignment(BaseModel):
    """Explicit category choice; ``null`` clears the category."""

    category_id: UUID | None


class TransactionResponse(BaseModel):
    id: UUID
    ledger_account_id: UUID | None = None
    provider_transaction_id: str | None = None
    category_id: UUID | None = None
    amount: int
    txn_date: date
    merchant_name: str | None = None
    description: str | None = None
    provider_category: str | None = None
    pending: bool
    is_manual: bool
    notes: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TransactionListResult(BaseModel):
    transactions: list[TransactionResponse]
    total: int = Field(description="Total matching transactions")
    money: MoneyMeta


class CategoryTotal(BaseModel):
    category_id: UUID | None = None
    category_name: str
    total: int = Field(description="Absolute minor units")
    count: int


class CategorySummary(BaseModel):
    """Money out and money in per category over a date range."""

    start_date: date | None = None
    end_date: date | None = None
    spending: list[CategoryTotal]
    income: list[CategoryTotal]
    money: MoneyMeta
