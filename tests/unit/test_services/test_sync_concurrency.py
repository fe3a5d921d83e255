"""Unit tests for running several item syncs side by side."""

import asyncio
from uuid import uuid4

import pytest

from budget_ledger.schemas.sync import SyncResult
from budget_ledger.services import sync as sync_module
from budget_ledger.services.sync import sync_items_concurrently


class FakeSession:
    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSessionFactory:
    def __init__(self):
        self.opened = 0

    def __call__(self):
        self.opened += 1
        return FakeSession()


@pytest.mark.asyncio
async def test_each_item_gets_its_own_session(monkeypatch):
    first, second = uuid4(), uuid4()
    owner = uuid4()
    running: set = set()
    overlap: list[bool] = []

    async def fake_sync_item(self, item_id, user_id):
        running.add(item_id)
        await asyncio.sleep(0.01)
        overlap.append(len(running) > 1)
        running.discard(item_id)
        if item_id == second:
            raise RuntimeError("boom")
        return SyncResult(added=2)

    monkeypatch.setattr(sync_module.SyncService, "sync_item", fake_sync_item)
    factory = FakeSessionFactory()

    results = await sync_items_concurrently(factory, client=object(), targets=[(first, owner), (second, owner)])

    assert factory.opened == 2
    assert any(overlap)
    assert results[first].added == 2
    assert results[second].errors == ["boom"]


@pytest.mark.asyncio
async def test_no_targets():
    assert await sync_items_concurrently(FakeSessionFactory(), client=object(), targets=[]) == {}
