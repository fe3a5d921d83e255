"""Pydantic schemas for learned patterns."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from budget_ledger.models.enums import PatternType


class LearnedPatternResponse(BaseModel):
    id: UUID
    category_id: UUID
    pattern_type: PatternType
    pattern_value: str
    confidence_score: float
    match_count: int
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
