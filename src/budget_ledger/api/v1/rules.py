"""Categorization rule endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from budget_ledger.api.deps import CurrentUser, get_categorization_service, get_rule_service
from budget_ledger.schemas.rule import ApplyRulesResult, RuleCreate, RuleResponse, RuleUpdate
from budget_ledger.services.categorization import CategorizationService
from budget_ledger.services.rule import RuleService

router = APIRouter(prefix="/rules", tags=["rules"])


@router.get("", response_model=list[RuleResponse], summary="List rules")
async def list_rules(
    current_user: CurrentUser,
    service: RuleService = Depends(get_rule_service),
):
    """All rules of the user, highest priority first."""
    return await service.list_rules(current_user.id)


@router.post(
    "",
    response_model=RuleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a rule",
    description="""
    Create a categorization rule.

    - **merchant**: requires `merchant_pattern`; `is_exact_match` selects equality vs substring
    - **description**: requires `description_pattern` (comma-separated keywords, any may match)
    - **amount_range**: requires `amount_min` and/or `amount_max` (absolute minor units)
    - **combined**: all present conditions must hold
    """,
)
async def create_rule(
    payload: RuleCreate,
    current_user: CurrentUser,
    service: RuleService = Depends(get_rule_service),
):
    return await service.create_rule(current_user.id, payload)


@router.post(
    "/apply",
    response_model=ApplyRulesResult,
    summary="Categorize uncategorized transactions",
)
async def apply_rules(
    current_user: CurrentUser,
    service: CategorizationService = Depends(get_categorization_service),
) -> ApplyRulesResult:
    count = await service.apply_to_uncategorized(current_user.id)
    return ApplyRulesResult(categorized_count=count)


@router.get("/{rule_id}", response_model=RuleResponse, summary="Get a rule")
async def get_rule(
    rule_id: UUID,
    current_user: CurrentUser,
    service: RuleService = Depends(get_rule_service),
):
    return await service.get_rule(current_user.id, rule_id)


@router.patch("/{rule_id}", response_model=RuleResponse, summary="Update a rule")
async def update_rule(
    rule_id: UUID,
    payload: RuleUpdate,
    current_user: CurrentUser,
    service: RuleService = Depends(get_rule_service),
):
    return await service.update_rule(current_user.id, rule_id, payload)


@router.delete("/{rule_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a rule")
async def delete_rule(
    rule_id: UUID,
    current_user: CurrentUser,
    service: RuleService = Depends(get_rule_service),
) -> Response:
    await service.delete_rule(current_user.id, rule_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
