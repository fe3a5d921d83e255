"""API version 1 routes."""

from fastapi import APIRouter

from budget_ledger.api.v1 import categories, items, patterns, rules, transactions

router = APIRouter(prefix="/api/v1")

router.include_router(rules.router)
router.include_router(categories.router)
router.include_router(transactions.router)
router.include_router(patterns.router)
router.include_router(items.router)
