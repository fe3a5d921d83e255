"""Transaction endpoints."""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from budget_ledger.api.deps import (
    CurrentUser,
    get_categorization_service,
    get_transaction_service,
)
from budget_ledger.schemas.transaction import (
    CategoryAssignment,
    CategorySummary,
    TransactionCreate,
    TransactionListResult,
    TransactionResponse,
    TransactionUpdate,
)
from budget_ledger.services.categorization import CategorizationService
from budget_ledger.services.transaction import TransactionService, money_meta

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get(
    "",
    response_model=TransactionListResult,
    summary="List transactions with filters",
    description="""
    ## Filters
    - **account_id**: Filter by linked account
    - **category_id**: Filter by category
    - **uncategorized**: Only transactions without a category (overrides category_id)
    - **start_date**, **end_date**: Date range filter (inclusive)
    - **search**: Case-insensitive search in merchant and description

    Newest first. Amounts are signed minor units (negative = money out).
    """,
)
async def list_transactions(
    current_user: CurrentUser,
    page: Annotated[int, Query(ge=1, description="Page number (1-indexed)")] = 1,
    limit: Annotated[int, Query(ge=1, le=100, description="Items per page (1-100)")] = 20,
    account_id: Annotated[UUID | None, Query(description="Filter by account ID")] = None,
    category_id: Annotated[UUID | None, Query(description="Filter by category ID")] = None,
    uncategorized: Annotated[bool, Query(description="Only uncategorized")] = False,
    start_date: Annotated[date | None, Query(description="From date (inclusive)")] = None,
    end_date: Annotated[date | None, Query(description="To date (inclusive)")] = None,
    search: Annotated[str | None, Query(max_length=100, description="Search text")] = None,
    service: TransactionService = Depends(get_transaction_service),
) -> TransactionListResult:
    transactions, total = await service.list_transactions(
        current_user.id,
        skip=(page - 1) * limit,
        limit=limit,
        account_id=account_id,
        category_id=category_id,
        uncategorized=uncategorized,
        start_date=start_date,
        end_date=end_date,
        search=search,
    )
    return TransactionListResult(
        transactions=[TransactionResponse.model_validate(t) for t in transactions],
        total=total,
        money=money_meta(),
    )


@router.post(
    "",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a manual transaction",
)
async def create_transaction(
    payload: TransactionCreate,
    current_user: CurrentUser,
    service: TransactionService = Depends(get_transaction_service),
):
    return await service.create_manual(current_user.id, payload)


@router.get(
    "/summary",
    response_model=CategorySummary,
    summary="Spending and income by category",
)
async def category_summary(
    current_user: CurrentUser,
    start_date: Annotated[date | None, Query(description="From date (inclusive)")] = None,
    end_date: Annotated[date | None, Query(description="To date (inclusive)")] = None,
    service: TransactionService = Depends(get_transaction_service),
) -> CategorySummary:
    return await service.category_summary(current_user.id, start_date, end_date)


@router.get("/{transaction_id}", response_model=TransactionResponse, summary="Get a transaction")
async def get_transaction(
    transaction_id: UUID,
    current_user: CurrentUser,
    service: TransactionService = Depends(get_transaction_service),
):
    return await service.get_transaction(current_user.id, transaction_id)


@router.patch(
    "/{transaction_id}",
    response_model=TransactionResponse,
    summary="Update a transaction",
    description="Imported transactions only accept `category_id` and `notes`.",
)
async def update_transaction(
    transaction_id: UUID,
    payload: TransactionUpdate,
    current_user: CurrentUser,
    service: TransactionService = Depends(get_transaction_service),
):
    return await service.update_transaction(current_user.id, transaction_id, payload)


@router.put(
    "/{transaction_id}/category",
    response_model=TransactionResponse,
    summary="Set a transaction's category",
    description="""
    Explicit user categorization. Besides saving the category, the merchant is
    remembered so future transactions from it are categorized the same way.
    Sending `null` clears the category without learning anything.
    """,
)
async def set_transaction_category(
    transaction_id: UUID,
    payload: CategoryAssignment,
    current_user: CurrentUser,
    service: CategorizationService = Depends(get_categorization_service),
):
    return await service.assign_category(current_user.id, transaction_id, payload.category_id)


@router.delete(
    "/{transaction_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a manual transaction",
)
async def delete_transaction(
    transaction_id: UUID,
    current_user: CurrentUser,
    service: TransactionService = Depends(get_transaction_service),
) -> Response:
    await service.delete_manual(current_user.id, transaction_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
