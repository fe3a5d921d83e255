"""Pydantic schemas for linked bank connections and their accounts."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from budget_ledger.models.enums import ItemStatus


class LinkTokenResponse(BaseModel):
    link_token: str = Field(description="Token used to open the provider's link flow")
    expiration: str = Field(description="Provider-issued expiry timestamp")


class ExchangeTokenRequest(BaseModel):
    public_token: str = Field(min_length=1, description="Public token returned by the link flow")


class LinkResult(BaseModel):
    """Outcome of linking a new bank connection."""

    item_id: UUID
    institution_name: str | None = None
    accounts_linked: int = Field(description="Number of accounts registered")
    transactions_synced: int = Field(description="Transactions inserted by the initial sync")
    sync_errors: list[str] = Field(default_factory=list)


class LedgerAccountResponse(BaseModel):
    """Account data for API responses. Balances are in minor units."""

    id: UUID
    item_id: UUID
    name: str
    official_name: str | None = None
    type: str | None = None
    subtype: str | None = None
    mask: str | None = None
    current_balance: int | None = None
    available_balance: int | None = None
    currency_code: str
    is_hidden: bool

    model_config = ConfigDict(from_attributes=True)


class LedgerItemResponse(BaseModel):
    id: UUID
    institution_id: str | None = None
    institution_name: str | None = None
    status: ItemStatus
    last_sync_at: datetime | None = None
    error_code: str | None = None
    error_message: str | None = None
    accounts: list[LedgerAccountResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class LedgerItemListResult(BaseModel):
    items: list[LedgerItemResponse]


class AccountVisibilityRequest(BaseModel):
    hidden: bool


class WebhookError(BaseModel):
    error_code: str | None = None
    error_message: str | None = None


class WebhookPayload(BaseModel):
    """Provider webhook body. Only the fields acted upon are modelled."""

    webhook_type: str
    webhook_code: str
    item_id: str | None = None
    error: WebhookError | None = None

    model_config = ConfigDict(extra="ignore")
