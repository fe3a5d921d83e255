"""Bank-data provider records.

These models mirror the provider's JSON payloads (transactions/sync,
accounts/get, institutions/get_by_id) closely enough to validate them, and
nothing more. Amounts keep the provider's sign convention: positive means
money left the account.
"""

import datetime

from pydantic import BaseModel, ConfigDict, Field


class PersonalFinanceCategory(BaseModel):
    model_config = ConfigDict(extra="ignore")

    primary: str | None = None
    detailed: str | None = None


class ProviderTransaction(BaseModel):
    """An added or modified transaction as reported by the provider."""

    model_config = ConfigDict(extra="ignore")

    transaction_id: str
    account_id: str
    amount: float = Field(description="Major units, provider sign convention (outflow > 0)")
    date: datetime.date
    name: str | None = None
    merchant_name: str | None = None
    pending: bool = False
    personal_finance_category: PersonalFinanceCategory | None = None

    @property
    def category_label(self) -> str | None:
        if self.personal_finance_category is None:
            return None
        return self.personal_finance_category.primary


class RemovedTransaction(BaseModel):
    model_config = ConfigDict(extra="ignore")

    transaction_id: str
    account_id: str | None = None


class SyncPage(BaseModel):
    """One page of the provider's incremental sync feed."""

    model_config = ConfigDict(extra="ignore")

    added: list[ProviderTransaction] = Field(default_factory=list)
    modified: list[ProviderTransaction] = Field(default_factory=list)
    removed: list[RemovedTransaction] = Field(default_factory=list)
    has_more: bool = False
    next_cursor: str = ""


class AccountBalances(BaseModel):
    model_config = ConfigDict(extra="ignore")

    current: float | None = None
    available: float | None = None
    iso_currency_code: str | None = None


class AccountInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    account_id: str
    name: str
    official_name: str | None = None
    type: str | None = None
    subtype: str | None = None
    mask: str | None = None
    balances: AccountBalances = Field(default_factory=AccountBalances)


class InstitutionInfo(BaseModel):
    institution_id: str | None = None
    name: str | None = None


class LinkToken(BaseModel):
    link_token: str
    expiration: str


class TokenExchange(BaseModel):
    access_token: str
    item_id: str
