"""Learned pattern endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from budget_ledger.api.deps import CurrentUser, get_categorization_service
from budget_ledger.schemas.pattern import LearnedPatternResponse
from budget_ledger.services.categorization import CategorizationService

router = APIRouter(prefix="/patterns", tags=["patterns"])


@router.get("", response_model=list[LearnedPatternResponse], summary="List learned patterns")
async def list_patterns(
    current_user: CurrentUser,
    service: CategorizationService = Depends(get_categorization_service),
):
    return await service.list_patterns(current_user.id)


@router.delete(
    "/{pattern_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Forget a learned pattern"
)
async def delete_pattern(
    pattern_id: UUID,
    current_user: CurrentUser,
    service: CategorizationService = Depends(get_categorization_service),
) -> Response:
    await service.delete_pattern(current_user.id, pattern_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
