"""Pydantic schemas for spending categories."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    parent_id: UUID | None = None
    color: str = Field("#6B7280", pattern=HEX_COLOR)
    icon: str = Field("tag", max_length=50)
    is_income: bool = False
    sort_order: int = 0


class CategoryUpdate(BaseModel):
    """Partial category update; only fields that are sent are changed."""

    name: str | None = Field(None, min_length=1, max_length=100)
    parent_id: UUID | None = None
    color: str | None = Field(None, pattern=HEX_COLOR)
    icon: str | None = Field(None, max_length=50)
    is_income: bool | None = None
    sort_order: int | None = None


class CategoryResponse(BaseModel):
    id: UUID
    parent_id: UUID | None = None
    name: str
    color: str
    icon: str
    is_income: bool
    is_system: bool
    sort_order: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
