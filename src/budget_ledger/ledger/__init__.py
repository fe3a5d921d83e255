"""Bank-data provider integration."""

from budget_ledger.ledger.client import LedgerClient, PlaidLedgerClient

__all__ = ["LedgerClient", "PlaidLedgerClient"]
