"""Category endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from budget_ledger.api.deps import CurrentUser, get_category_service
from budget_ledger.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from budget_ledger.services.category import CategoryService

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryResponse], summary="List categories")
async def list_categories(
    current_user: CurrentUser,
    service: CategoryService = Depends(get_category_service),
):
    return await service.list_categories(current_user.id)


@router.post(
    "",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a category",
)
async def create_category(
    payload: CategoryCreate,
    current_user: CurrentUser,
    service: CategoryService = Depends(get_category_service),
):
    return await service.create_category(current_user.id, payload)


@router.post(
    "/defaults",
    response_model=list[CategoryResponse],
    summary="Create the default category set",
    description="No-op (empty list) when the user already has categories.",
)
async def create_default_categories(
    current_user: CurrentUser,
    service: CategoryService = Depends(get_category_service),
):
    return await service.create_defaults_for_user(current_user.id)


@router.get("/{category_id}", response_model=CategoryResponse, summary="Get a category")
async def get_category(
    category_id: UUID,
    current_user: CurrentUser,
    service: CategoryService = Depends(get_category_service),
):
    return await service.get_category(current_user.id, category_id)


@router.patch("/{category_id}", response_model=CategoryResponse, summary="Update a category")
async def update_category(
    category_id: UUID,
    payload: CategoryUpdate,
    current_user: CurrentUser,
    service: CategoryService = Depends(get_category_service),
):
    return await service.update_category(current_user.id, category_id, payload)


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a category",
    description="Transactions in the category become uncategorized; rules targeting it are deleted.",
)
async def delete_category(
    category_id: UUID,
    current_user: CurrentUser,
    service: CategoryService = Depends(get_category_service),
) -> Response:
    await service.delete_category(current_user.id, category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
