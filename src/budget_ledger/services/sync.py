"""Incremental ledger synchronization.

One item's sync is a strictly sequential page loop: each page is applied in
full and only then is its cursor persisted, so a crash replays at most one
page (harmless, upserts are idempotent) and never skips one.
"""
import asyncio
import logging
from typing import Any, Iterable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from budget_ledger.core.encryption import SecretStore
from budget_ledger.core.exceptions import (
    EncryptionUnavailable,
    LedgerProviderError,
    NotFoundError,
)
from budget_ledger.core.money import to_minor_units
from budget_ledger.ledger.client import LedgerClient
from budget_ledger.models.enums import ItemStatus
from budget_ledger.models.ledger_account import LedgerAccount
from budget_ledger.repositories.ledger_account import LedgerAccountRepository
from budget_ledger.repositories.ledger_item import LedgerItemRepository
from budget_ledger.repositories.transaction import TransactionRepository
from budget_ledger.schemas.provider import ProviderTransaction, SyncPage
from budget_ledger.schemas.sync import SyncResult

logger = logging.getLogger(__name__)

# Transient provider error: data changed while paging; restart the whole pass.
MUTATION_DURING_PAGINATION = "TRANSACTIONS_SYNC_MUTATION_DURING_PAGINATION"


def provider_values(record: ProviderTransaction, account_id: UUID) -> dict[str, Any]:
    """Map a provider record to stored columns, flipping the provider's sign."""
    return {
        "ledger_account_id": account_id,
        "amount": -to_minor_units(record.amount),
        "txn_date": record.date,
        "merchant_name": record.merchant_name or record.name,
        "description": record.name,
        "provider_category": record.category_label,
        "pending": record.pending,
    }


class SyncService:
    """Service layer driving provider sync for ledger items."""

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
        self.transaction_repo = TransactionRepository(db)

    async def sync_accounts(self, item_id: UUID) -> list[LedgerAccount]:
        """Upsert every account the provider reports for the item. Never deletes.

        Raises:
            NotFoundError: Unknown item
            EncryptionUnavailable: Credential cannot be decrypted
            LedgerProviderError: Provider call failed
        """
        item = await self.item_repo.get_by_id(item_id)
        if item is None:
            raise NotFoundError("ITEM_001", {"item_id": str(item_id)})

        credential = self.secret_store.decrypt(item.credential_encrypted)
        infos = await self.client.list_accounts(credential)

        accounts = [
            await self.account_repo.upsert_from_provider(item_id, info, commit=False)
            for info in infos
        ]
        await self.db.commit()
        logger.info(
            "Accounts synced", extra={"item_id": str(item_id), "accounts_count": len(accounts)}
        )
        return accounts

    async def sync_item(self, item_id: UUID, user_id: UUID) -> SyncResult:
        """Pull all pending provider changes for one item.

        Always returns a result; failures are reported in ``errors`` and, for
        provider-reported failures, in the item's status.
        """
        result = SyncResult()

        item = await self.item_repo.get_by_user(user_id, item_id)
        if item is None:
            result.errors.append("Item not found")
            return result

        start_cursor = cursor = item.cursor
        credential_blob = item.credential_encrypted

        logger.info("Starting item sync", extra={"item_id": str(item_id), "has_cursor": bool(cursor)})
        try:
            credential = self.secret_store.decrypt(credential_blob)
            account_map = await self.account_repo.account_map(item_id)

            has_more = True
            while has_more:
                page = await self.client.sync_page(credential, cursor)
                await self._apply_page(user_id, page, account_map, result)

                # Page fully applied; only now may the checkpoint move.
                cursor = page.next_cursor or cursor
                has_more = page.has_more
                if has_more and cursor:
                    await self.item_repo.update_cursor(item_id, cursor)

            if cursor:
                await self.item_repo.update_cursor(item_id, cursor)
            await self.item_repo.update_status(item_id, ItemStatus.active)

        except LedgerProviderError as e:
            await self.db.rollback()
            result.errors.append(str(e))
            logger.warning(
                "Item sync failed at provider",
                extra={
                    "item_id": str(item_id),
                    "error_code": e.error_code,
                    "provider_error_code": e.provider_error_code,
                },
            )
            if e.provider_error_code == MUTATION_DURING_PAGINATION:
                # The provider only accepts a restart from the cursor the
                # pagination began with; intermediate checkpoints are invalid.
                await self.item_repo.reset_cursor(item_id, start_cursor)
            elif e.provider_error_code:
                await self.item_repo.update_status(
                    item_id,
                    ItemStatus.error,
                    e.provider_error_code,
                    e.provider_error_message,
                )
        except EncryptionUnavailable as e:
            await self.db.rollback()
            result.errors.append(f"Credential unavailable ({e.error_code})")
            logger.error(
                "Item credential could not be decrypted",
                extra={"item_id": str(item_id), "error_code": e.error_code},
            )
        except Exception as e:
            await self.db.rollback()
            result.errors.append(str(e) or "Sync failed")
            logger.exception("Item sync failed", extra={"item_id": str(item_id)})

        logger.info(
            "Item sync finished",
            extra={
                "item_id": str(item_id),
                "added": result.added,
                "modified": result.modified,
                "removed": result.removed,
                "errors_count": len(result.errors),
            },
        )
        return result

    async def _apply_page(
        self,
        user_id: UUID,
        page: SyncPage,
        account_map: dict[str, UUID],
        result: SyncResult,
    ) -> None:
        for action, records in (("add", page.added), ("modify", page.modified)):
            for record in records:
                account_id = account_map.get(record.account_id)
                if account_id is None:
                    # Unknown account; it shows up after the next account sync.
                    continue
                try:
                    _, created = await self.transaction_repo.upsert_from_provider(
                        user_id, record.transaction_id, provider_values(record, account_id)
                    )
                except Exception:
                    await self.db.rollback()
                    logger.exception(
                        "Failed to upsert transaction",
                        extra={"provider_transaction_id": record.transaction_id},
                    )
                    result.errors.append(f"Failed to {action} transaction {record.transaction_id}")
                    continue
                if created:
                    result.added += 1
                else:
                    result.modified += 1

        for removed in page.removed:
            try:
                deleted = await self.transaction_repo.delete_by_provider_id(
                    user_id, removed.transaction_id
                )
            except Exception:
                await self.db.rollback()
                logger.exception(
                    "Failed to remove transaction",
                    extra={"provider_transaction_id": removed.transaction_id},
                )
                result.errors.append(f"Failed to remove transaction {removed.transaction_id}")
                continue
            if deleted:
                result.removed += 1

    async def refresh_and_sync(self, item_id: UUID, user_id: UUID) -> SyncResult:
        """Refresh the item's accounts, then pull its transactions.

        Accounts opened after linking must be registered before the page loop,
        otherwise their records are skipped while the cursor moves past them.
        A failed account refresh is reported and the transaction sync still runs.
        """
        account_errors: list[str] = []
        if await self.item_repo.get_by_user(user_id, item_id) is not None:
            try:
                await self.sync_accounts(item_id)
            except LedgerProviderError as e:
                await self.db.rollback()
                account_errors.append(f"Account refresh failed: {e}")
                logger.warning(
                    "Account refresh failed before sync",
                    extra={"item_id": str(item_id), "error_code": e.error_code},
                )
            except EncryptionUnavailable:
                # sync_item reports the credential failure itself.
                await self.db.rollback()

        result = await self.sync_item(item_id, user_id)
        result.errors = account_errors + result.errors
        return result

    async def sync_all_for_user(self, user_id: UUID) -> dict[UUID, SyncResult]:
        """Refresh and sync the user's items one after another, skipping items in error."""
        items = await self.item_repo.get_all_by_user(user_id)
        item_ids = [item.id for item in items if item.status != ItemStatus.error]
        results: dict[UUID, SyncResult] = {}
        for item_id in item_ids:
            results[item_id] = await self.refresh_and_sync(item_id, user_id)
        return results


async def sync_items_concurrently(
    session_factory: async_sessionmaker[AsyncSession],
    client: LedgerClient,
    targets: Iterable[tuple[UUID, UUID]],
    secret_store: SecretStore | None = None,
) -> dict[UUID, SyncResult]:
    """Sync several ``(item_id, user_id)`` pairs in parallel, one session each.

    Items share no mutable state, so the only ordering is within each item.
    """
    targets = list(targets)

    async def run(item_id: UUID, user_id: UUID) -> SyncResult:
        async with session_factory() as db:
            return await SyncService(db, client, secret_store).sync_item(item_id, user_id)

    outcomes = await asyncio.gather(
        *(run(item_id, user_id) for item_id, user_id in targets), return_exceptions=True
    )

    results: dict[UUID, SyncResult] = {}
    for (item_id, _), outcome in zip(targets, outcomes):
        if isinstance(outcome, BaseException):
            logger.error(
                "Concurrent item sync crashed",
                extra={"item_id": str(item_id), "error_type": type(outcome).__name__},
            )
            results[item_id] = SyncResult(errors=[str(outcome) or type(outcome).__name__])
        else:
            results[item_id] = outcome
    return results
