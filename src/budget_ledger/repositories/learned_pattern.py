"""Learned pattern store: confidence-weighted pattern -> category memory."""
import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from budget_ledger.models.enums import PatternType
from budget_ledger.models.learned_pattern import LearnedPattern
from budget_ledger.repositories.base import BaseRepository

logger = logging.getLogger(__name__)

INITIAL_CONFIDENCE = 0.8
REINFORCE_STEP = 0.1
CORRECTION_CONFIDENCE = 0.7
MAX_CONFIDENCE = 1.0


class LearnedPatternRepository(BaseRepository[LearnedPattern]):
    """Repository for LearnedPattern with the reinforcement update rules."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, LearnedPattern)

    async def find(
        self, user_id: UUID, pattern_type: PatternType, pattern_value: str
    ) -> LearnedPattern | None:
        result = await self.db.execute(
            select(LearnedPattern).where(
                LearnedPattern.user_id == user_id,
                LearnedPattern.pattern_type == pattern_type,
                LearnedPattern.pattern_value == pattern_value,
            )
        )
        return result.scalar_one_or_none()

    async def get_all_by_user(self, user_id: UUID) -> list[LearnedPattern]:
        result = await self.db.execute(
            select(LearnedPattern)
            .where(LearnedPattern.user_id == user_id)
            .order_by(LearnedPattern.match_count.desc(), LearnedPattern.confidence_score.desc())
        )
        return list(result.scalars().all())

    async def reinforce(
        self,
        user_id: UUID,
        category_id: UUID,
        pattern_type: PatternType,
        pattern_value: str,
    ) -> LearnedPattern:
        """Record a user correction for an already-normalized pattern value.

        - unseen value: insert at 0.8 confidence, match_count 1
        - same category: match_count + 1, confidence + 0.1 capped at 1.0
        - different category: switch category, match_count 1, confidence 0.7
        """
        pattern = await self.find(user_id, pattern_type, pattern_value)
        if pattern is None:
            pattern = LearnedPattern(
                user_id=user_id,
                category_id=category_id,
                pattern_type=pattern_type,
                pattern_value=pattern_value,
                confidence_score=INITIAL_CONFIDENCE,
                match_count=1,
            )
            self.db.add(pattern)
            try:
                await self.db.commit()
            except IntegrityError:
                # A concurrent correction inserted the same key first; apply ours on top.
                await self.db.rollback()
                logger.info(
                    "Learned pattern inserted concurrently, updating instead",
                    extra={"user_id": str(user_id), "pattern_type": pattern_type.value},
                )
                pattern = await self.find(user_id, pattern_type, pattern_value)
                if pattern is None:
                    raise
                self._apply_correction(pattern, category_id)
                await self.db.commit()
        else:
            self._apply_correction(pattern, category_id)
            await self.db.commit()

        await self.db.refresh(pattern)
        return pattern

    @staticmethod
    def _apply_correction(pattern: LearnedPattern, category_id: UUID) -> None:
        if pattern.category_id == category_id:
            pattern.match_count += 1
            pattern.confidence_score = min(
                MAX_CONFIDENCE, round(pattern.confidence_score + REINFORCE_STEP, 2)
            )
        else:
            pattern.category_id = category_id
            pattern.match_count = 1
            pattern.confidence_score = CORRECTION_CONFIDENCE
