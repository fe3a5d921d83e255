"""Bank connection endpoints: linking, sync, unlinking and provider webhooks."""

import logging
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from budget_ledger.api.deps import (
    CurrentUser,
    get_item_service,
    get_ledger_client,
    get_secret_store,
    get_session_factory,
    get_sync_service,
)
from budget_ledger.core.encryption import SecretStore
from budget_ledger.ledger.client import LedgerClient
from budget_ledger.schemas.item import (
    AccountVisibilityRequest,
    ExchangeTokenRequest,
    LedgerAccountResponse,
    LedgerItemListResult,
    LinkResult,
    LinkTokenResponse,
    WebhookPayload,
)
from budget_ledger.schemas.sync import ItemSyncResult
from budget_ledger.services.item import ItemService
from budget_ledger.services.sync import SyncService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/items", tags=["items"])


@router.post("/link-token", response_model=LinkTokenResponse, summary="Start bank linking")
async def create_link_token(
    current_user: CurrentUser,
    service: ItemService = Depends(get_item_service),
):
    return await service.create_link_token(current_user.id)


@router.post(
    "/exchange",
    response_model=LinkResult,
    status_code=status.HTTP_201_CREATED,
    summary="Finish bank linking",
    description="Exchanges the public token, registers accounts and runs the first sync.",
)
async def exchange_public_token(
    payload: ExchangeTokenRequest,
    current_user: CurrentUser,
    service: ItemService = Depends(get_item_service),
):
    return await service.link_item(current_user.id, payload.public_token)


@router.get("", response_model=LedgerItemListResult, summary="List linked banks")
async def list_items(
    current_user: CurrentUser,
    service: ItemService = Depends(get_item_service),
) -> LedgerItemListResult:
    return LedgerItemListResult(items=await service.list_items(current_user.id))


@router.post("/sync", response_model=list[ItemSyncResult], summary="Sync all linked banks")
async def sync_all_items(
    current_user: CurrentUser,
    service: SyncService = Depends(get_sync_service),
):
    results = await service.sync_all_for_user(current_user.id)
    return [ItemSyncResult(item_id=item_id, **r.model_dump()) for item_id, r in results.items()]


@router.post(
    "/{item_id}/sync",
    response_model=ItemSyncResult,
    summary="Sync one linked bank",
    description="Refreshes the bank's accounts and balances, then pulls new transactions.",
)
async def sync_item(
    item_id: UUID,
    current_user: CurrentUser,
    item_service: ItemService = Depends(get_item_service),
    sync_service: SyncService = Depends(get_sync_service),
):
    await item_service.get_item(current_user.id, item_id)
    result = await sync_service.refresh_and_sync(item_id, current_user.id)
    return ItemSyncResult(item_id=item_id, **result.model_dump())


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Unlink a bank")
async def delete_item(
    item_id: UUID,
    current_user: CurrentUser,
    service: ItemService = Depends(get_item_service),
) -> Response:
    await service.remove_item(current_user.id, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put(
    "/accounts/{account_id}/visibility",
    response_model=LedgerAccountResponse,
    summary="Hide or show an account",
)
async def set_account_visibility(
    account_id: UUID,
    payload: AccountVisibilityRequest,
    current_user: CurrentUser,
    service: ItemService = Depends(get_item_service),
):
    return await service.set_account_hidden(current_user.id, account_id, payload.hidden)


async def process_webhook(
    payload: WebhookPayload,
    session_factory: async_sessionmaker[AsyncSession],
    client: LedgerClient,
    secret_store: SecretStore,
) -> None:
    """Run webhook handling after the provider has been acknowledged."""
    async with session_factory() as db:
        try:
            await ItemService(db, client, secret_store).handle_webhook(payload)
        except Exception:
            logger.exception(
                "Webhook processing failed",
                extra={"provider_item_id": payload.item_id},
            )


@router.post("/webhook", summary="Provider webhook receiver")
async def receive_webhook(
    payload: WebhookPayload,
    background_tasks: BackgroundTasks,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    client: LedgerClient = Depends(get_ledger_client),
    secret_store: SecretStore = Depends(get_secret_store),
):
    """Acknowledge immediately; the work happens after the response is sent."""
    background_tasks.add_task(process_webhook, payload, session_factory, client, secret_store)
    return {"received": True}
