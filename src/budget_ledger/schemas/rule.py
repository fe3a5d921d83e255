"""Pydantic schemas for categorization rules."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from budget_ledger.models.enums import RuleMatchType


class RuleCreate(BaseModel):
    """Rule creation request. Amount bounds are absolute minor units."""

    name: str = Field(min_length=1, max_length=100)
    category_id: UUID
    match_type: RuleMatchType
    merchant_pattern: str | None = Field(None, max_length=255)
    description_pattern: str | None = Field(
        None, max_length=500, description="Comma-separated keywords, any of which may match"
    )
    amount_min: int | None = Field(None, ge=0)
    amount_max: int | None = Field(None, ge=0)
    is_exact_match: bool = False
    priority: int = Field(0, description="Higher priority rules are evaluated first")
    is_active: bool = True


class RuleUpdate(BaseModel):
    """Partial rule update; only fields that are sent are changed."""

    name: str | None = Field(None, min_length=1, max_length=100)
    category_id: UUID | None = None
    match_type: RuleMatchType | None = None
    merchant_pattern: str | None = Field(None, max_length=255)
    description_pattern: str | None = Field(None, max_length=500)
    amount_min: int | None = Field(None, ge=0)
    amount_max: int | None = Field(None, ge=0)
    is_exact_match: bool | None = None
    priority: int | None = None
    is_active: bool | None = None


class RuleResponse(BaseModel):
    id: UUID
    category_id: UUID
    name: str
    match_type: RuleMatchType
    merchant_pattern: str | None = None
    description_pattern: str | None = None
    amount_min: int | None = None
    amount_max: int | None = None
    is_exact_match: bool
    priority: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ApplyRulesResult(BaseModel):
    categorized_count: int = Field(description="Transactions that received a category")
