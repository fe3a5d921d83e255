"""Linking, listing and unlinking bank connections; provider webhooks."""
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from budget_ledger.core.encryption import SecretStore
from budget_ledger.core.exceptions import LedgerProviderError, NotFoundError
from budget_ledger.ledger.client import LedgerClient
from budget_ledger.models.enums import ItemStatus
from budget_ledger.models.ledger_account import LedgerAccount
from budget_ledger.models.ledger_item import LedgerItem
from budget_ledger.repositories.ledger_account import LedgerAccountRepository
from budget_ledger.repositories.ledger_item import LedgerItemRepository
from budget_ledger.schemas.item import (
    LedgerAccountResponse,
    LedgerItemResponse,
    LinkResult,
    LinkTokenResponse,
    WebhookPayload,
)
from budget_ledger.schemas.provider import InstitutionInfo
from budget_ledger.services.sync import SyncService

logger = logging.getLogger(__name__)


class ItemService:
    """Service layer for ledger item lifecycle."""

    def __init__(
        self,
        db: AsyncSession,
        client: LedgerClient,
        secret_store: SecretStore | None = None,
    ):
        self.db = db
        self.client = client
        self.secret_store = secret_store or SecretStore()
        self.item_repo = LedgerItemRepository(db)
        self.account_repo = LedgerAccountRepository(db)
        self.sync_service = SyncService(db, client, self.secret_store)

    async def create_link_token(self, user_id: UUID) -> LinkTokenResponse:
        token = await self.client.create_link_token(str(user_id))
        return LinkTokenResponse(link_token=token.link_token, expiration=token.expiration)

    async def link_item(self, user_id: UUID, public_token: str) -> LinkResult:
        """Exchange a public token and register the new connection.

        Order: exchange, encrypt, institution lookup (best-effort), create the
        item, register its accounts, then run the first transaction sync.

        Raises:
            LedgerProviderError: Token exchange or account listing failed
            EncryptionUnavailable: No encryption key configured
        """
        exchange = await self.client.exchange_public_token(public_token)
        credential_encrypted = self.secret_store.encrypt(exchange.access_token)

        try:
            institution = await self.client.get_institution(exchange.access_token)
        except LedgerProviderError as e:
            logger.warning(
                "Institution lookup failed, linking without it",
                extra={"provider_item_id": exchange.item_id, "error_code": e.error_code},
            )
            institution = InstitutionInfo()

        item = await self.item_repo.create(
            LedgerItem(
                user_id=user_id,
                provider_item_id=exchange.item_id,
                credential_encrypted=credential_encrypted,
                institution_id=institution.institution_id,
                institution_name=institution.name,
                status=ItemStatus.active,
            )
        )
        item_id = item.id
        logger.info("Ledger item linked", extra={"item_id": str(item_id), "user_id": str(user_id)})

        accounts = await self.sync_service.sync_accounts(item_id)
        sync_result = await self.sync_service.sync_item(item_id, user_id)

        return LinkResult(
            item_id=item_id,
            institution_name=institution.name,
            accounts_linked=len(accounts),
            transactions_synced=sync_result.added,
            sync_errors=sync_result.errors,
        )

    async def list_items(self, user_id: UUID) -> list[LedgerItemResponse]:
        items = await self.item_repo.get_all_by_user(user_id)
        results = []
        for item in items:
            accounts = await self.account_repo.get_by_item(item.id)
            results.append(
                LedgerItemResponse(
                    id=item.id,
                    institution_id=item.institution_id,
                    institution_name=item.institution_name,
                    status=item.status,
                    last_sync_at=item.last_sync_at,
                    error_code=item.error_code,
                    error_message=item.error_message,
                    accounts=[LedgerAccountResponse.model_validate(a) for a in accounts],
                )
            )
        return results

    async def get_item(self, user_id: UUID, item_id: UUID) -> LedgerItem:
        item = await self.item_repo.get_by_user(user_id, item_id)
        if item is None:
            raise NotFoundError("ITEM_001", {"item_id": str(item_id)})
        return item

    async def remove_item(self, user_id: UUID, item_id: UUID) -> None:
        """Unlink a connection.

        Provider deregistration is best-effort; the local delete always runs.
        Accounts go with the item and transactions keep their history with the
        account reference cleared.
        """
        item = await self.get_item(user_id, item_id)

        try:
            credential = self.secret_store.decrypt(item.credential_encrypted)
            await self.client.remove_item(credential)
        except Exception as e:
            logger.warning(
                "Provider deregistration failed, deleting locally anyway",
                extra={"item_id": str(item_id), "error_type": type(e).__name__},
            )

        await self.item_repo.delete(item_id)
        logger.info("Ledger item removed", extra={"item_id": str(item_id), "user_id": str(user_id)})

    async def set_account_hidden(
        self, user_id: UUID, account_id: UUID, hidden: bool
    ) -> LedgerAccount:
        account = await self.account_repo.get_for_user(user_id, account_id)
        if account is None:
            raise NotFoundError("ITEM_002", {"account_id": str(account_id)})
        account.is_hidden = hidden
        await self.db.commit()
        await self.db.refresh(account)
        return account

    async def handle_webhook(self, payload: WebhookPayload) -> str:
        """Act on a provider webhook.

        Returns a short label of what was done ("synced", "status_updated" or
        "ignored") for logging.
        """
        log_extra = {
            "webhook_type": payload.webhook_type,
            "webhook_code": payload.webhook_code,
            "provider_item_id": payload.item_id,
        }
        logger.info("Provider webhook received", extra=log_extra)

        if not payload.item_id:
            return "ignored"

        if (payload.webhook_type, payload.webhook_code) == ("TRANSACTIONS", "SYNC_UPDATES_AVAILABLE"):
            item = await self.item_repo.get_by_provider_item_id(payload.item_id)
            if item is None:
                logger.warning("Webhook for unknown item", extra=log_extra)
                return "ignored"
            await self.sync_service.refresh_and_sync(item.id, item.user_id)
            return "synced"

        if payload.webhook_type == "ITEM" and payload.webhook_code == "ERROR":
            error = payload.error
            updated = await self.item_repo.update_status_by_provider_item_id(
                payload.item_id,
                ItemStatus.error,
                error.error_code if error else None,
                error.error_message if error else None,
            )
            return "status_updated" if updated else "ignored"

        if payload.webhook_type == "ITEM" and payload.webhook_code == "PENDING_EXPIRATION":
            updated = await self.item_repo.update_status_by_provider_item_id(
                payload.item_id, ItemStatus.pending_expiration
            )
            return "status_updated" if updated else "ignored"

        logger.debug("Unhandled webhook", extra=log_extra)
        return "ignored"
