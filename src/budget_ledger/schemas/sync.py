"""Pydantic schemas for ledger sync results."""

from uuid import UUID

from pydantic import BaseModel, Field


class SyncResult(BaseModel):
    """Soft-failure report of one item sync.

    Per-record problems land in ``errors`` without failing the sync; a
    connection or credential failure also lands here and degrades the item's
    status.
    """

    added: int = Field(default=0, description="Transactions inserted")
    modified: int = Field(default=0, description="Existing transactions updated")
    removed: int = Field(default=0, description="Transactions deleted")
    errors: list[str] = Field(default_factory=list, description="Human-readable failures")


class ItemSyncResult(SyncResult):
    item_id: UUID
